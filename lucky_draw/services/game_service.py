"""Read-side use-cases for participants: find a game and its board state."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from lucky_draw.errors import NotFoundError
from lucky_draw.models.draw import Draw
from lucky_draw.models.game import Game
from lucky_draw.models.prize import Prize
from lucky_draw.models.template import Template
from lucky_draw.repositories.game_repository import GameRepository
from lucky_draw.repositories.template_repository import TemplateRepository
from lucky_draw.utils.codes import normalize_invite_code

# Paths that share the top-level namespace with invite codes.
RESERVED_CODES = frozenset({"ADMIN", "GAME", "RESERVE", "SIDE", "API", "MEDIA", "HEALTH", "STATIC"})


@dataclass(frozen=True)
class GameStats:
    total_slots: int
    drawn_slots: int
    remaining_slots: int
    participants: int
    prize_winners: int
    prize_count: int
    remaining_prizes: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_slots": self.total_slots,
            "drawn_slots": self.drawn_slots,
            "remaining_slots": self.remaining_slots,
            "participants": self.participants,
            "prize_winners": self.prize_winners,
            "prize_count": self.prize_count,
            "remaining_prizes": self.remaining_prizes,
        }


def compute_stats(prizes: Sequence[Prize], draws: Sequence[Draw]) -> GameStats:
    by_id = {p.id: p for p in prizes}
    drawn = sum(1 for p in prizes if p.is_drawn)
    winners = sum(1 for d in draws if d.prize_id in by_id and by_id[d.prize_id].is_winning)
    prize_count = sum(1 for p in prizes if p.is_winning)
    return GameStats(
        total_slots=len(prizes),
        drawn_slots=drawn,
        remaining_slots=len(prizes) - drawn,
        participants=len(draws),
        prize_winners=winners,
        prize_count=prize_count,
        remaining_prizes=prize_count - winners,
    )


@dataclass(frozen=True)
class GameState:
    game: Game
    prizes: Sequence[Prize]
    draws: Sequence[Draw]
    template: Template | None
    stats: GameStats
    my_draw: Draw | None = None

    def prize_with_draw(self, slot_number: int) -> tuple[Prize, Draw | None] | None:
        prize = next((p for p in self.prizes if p.slot_number == slot_number), None)
        if prize is None:
            return None
        draw = next((d for d in self.draws if d.prize_id == prize.id), None)
        return prize, draw


class GameService:
    """Participant use-cases."""

    def __init__(
        self,
        repository: GameRepository | None = None,
        templates: TemplateRepository | None = None,
    ) -> None:
        self._repo = repository or GameRepository()
        self._templates = templates or TemplateRepository()

    def get_by_invite_code(self, session: Session, invite_code: str) -> Game:
        code = normalize_invite_code(invite_code)
        game = None if code in RESERVED_CODES else self._repo.get_by_invite_code(session, code)
        if game is None:
            raise NotFoundError(message=f"No game with invite code {code}")
        return game

    def get_game(self, session: Session, game_id: str) -> Game:
        game = self._repo.get_by_id(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        return game

    def resolve_template(self, session: Session, game: Game) -> Template | None:
        if game.template_id:
            template = self._templates.get_by_id(session, game.template_id)
            if template is not None:
                return template
        return self._templates.get_default(session)

    def load_state(self, session: Session, game: Game, session_id: str | None = None) -> GameState:
        prizes = self._repo.list_prizes(session, game.id)
        draws = self._repo.list_draws(session, game.id)
        my_draw = next((d for d in draws if session_id and d.session_id == session_id), None)
        return GameState(
            game=game,
            prizes=prizes,
            draws=draws,
            template=self.resolve_template(session, game),
            stats=compute_stats(prizes, draws),
            my_draw=my_draw,
        )
