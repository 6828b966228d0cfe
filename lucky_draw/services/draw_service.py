"""Business logic for claiming a prize slot.

One participant session gets one draw per game, and one slot is drawn at
most once. Both rules hold under concurrent requests: the slot is claimed
with a conditional UPDATE, and the draw row is guarded by unique constraints
on (game_id, session_id) and prize_id.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lucky_draw.db import publish_after_commit
from lucky_draw.models.draw import Draw
from lucky_draw.models.game import GameStatus
from lucky_draw.realtime import change_payload, game_channel
from lucky_draw.repositories.game_repository import GameRepository
from lucky_draw.schemas.game import DrawSchema, PrizeSchema

logger = logging.getLogger(__name__)

_prize_schema = PrizeSchema()
_draw_schema = DrawSchema()


class DrawError(str, Enum):
    NO_PLAYER_NAME = "NO_PLAYER_NAME"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    ALREADY_PARTICIPATED = "ALREADY_PARTICIPATED"
    SLOT_NOT_FOUND = "SLOT_NOT_FOUND"
    ALREADY_DRAWN = "ALREADY_DRAWN"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


HTTP_STATUS = {
    DrawError.NO_PLAYER_NAME: 400,
    DrawError.GAME_NOT_FOUND: 404,
    DrawError.SLOT_NOT_FOUND: 404,
    DrawError.GAME_NOT_ACTIVE: 409,
    DrawError.ALREADY_PARTICIPATED: 409,
    DrawError.ALREADY_DRAWN: 409,
    DrawError.UNKNOWN_ERROR: 500,
}

_MESSAGES = {
    DrawError.NO_PLAYER_NAME: "Please enter your name first.",
    DrawError.GAME_NOT_FOUND: "Game not found.",
    DrawError.ALREADY_PARTICIPATED: "You have already drawn in this game.",
    DrawError.SLOT_NOT_FOUND: "That ornament does not exist.",
    DrawError.ALREADY_DRAWN: "Someone already picked this ornament. Choose another one.",
}


@dataclass(frozen=True)
class DrawResult:
    success: bool
    error: str | None = None
    message: str | None = None
    draw_id: str | None = None
    prize_name: str | None = None
    prize_grade: str | None = None
    slot_number: int | None = None
    is_winner: bool | None = None

    @classmethod
    def failure(cls, error: DrawError, message: str | None = None) -> "DrawResult":
        return cls(success=False, error=error.value, message=message or _MESSAGES.get(error))

    @property
    def http_status(self) -> int:
        if self.success:
            return 201
        return HTTP_STATUS.get(DrawError(self.error), 400) if self.error else 400

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error, "message": self.message}
        data = asdict(self)
        del data["error"], data["message"]
        return data


class DrawService:
    """Claim a slot for a participant session."""

    def __init__(self, repository: GameRepository | None = None) -> None:
        self._repo = repository or GameRepository()

    def draw_prize(
        self,
        session: Session,
        game_id: str,
        slot_number: int,
        player_name: str | None,
        session_id: str | None,
    ) -> DrawResult:
        name = (player_name or "").strip()
        sid = (session_id or "").strip()
        if not name or not sid:
            return DrawResult.failure(DrawError.NO_PLAYER_NAME)

        game = self._repo.get_by_id(session, game_id)
        if game is None:
            return DrawResult.failure(DrawError.GAME_NOT_FOUND)

        if game.status != GameStatus.ACTIVE.value:
            message = (
                "The game has ended." if game.status == GameStatus.ENDED.value else "The game has not started yet."
            )
            return DrawResult.failure(DrawError.GAME_NOT_ACTIVE, message)

        if self._repo.find_draw_for_session(session, game.id, sid) is not None:
            return DrawResult.failure(DrawError.ALREADY_PARTICIPATED)

        prize = self._repo.get_prize_by_slot(session, game.id, int(slot_number))
        if prize is None:
            return DrawResult.failure(DrawError.SLOT_NOT_FOUND)
        if prize.is_drawn:
            return DrawResult.failure(DrawError.ALREADY_DRAWN)

        if not self._repo.mark_prize_drawn(session, prize.id):
            session.rollback()
            return DrawResult.failure(DrawError.ALREADY_DRAWN)

        try:
            draw = self._repo.add_draw(
                session,
                Draw(prize_id=prize.id, game_id=game.id, player_name=name, session_id=sid),
            )
        except IntegrityError as exc:
            # Lost a race with a concurrent request; nothing from this attempt survives.
            session.rollback()
            logger.info("Draw rejected by constraint game=%s slot=%s: %s", game_id, slot_number, exc.orig)
            if self._repo.find_draw_for_session(session, game_id, sid) is not None:
                return DrawResult.failure(DrawError.ALREADY_PARTICIPATED)
            return DrawResult.failure(DrawError.ALREADY_DRAWN)

        session.refresh(prize)

        prize_data = _prize_schema.dump(prize)
        draw_data = _draw_schema.dump(draw)
        channel = game_channel(game.id)
        publish_after_commit(session, channel, "prizes", change_payload("prizes", "UPDATE", new=prize_data))
        publish_after_commit(session, channel, "draws", change_payload("draws", "INSERT", new=draw_data))
        publish_after_commit(
            session, channel, "draw_completed", {"prize": prize_data, "draw": draw_data}, sender=sid
        )

        logger.info(
            "Draw game=%s slot=%s player=%s grade=%s", game.id, prize.slot_number, name, prize.prize_grade
        )
        return DrawResult(
            success=True,
            draw_id=draw.id,
            prize_name=prize.prize_name,
            prize_grade=prize.prize_grade,
            slot_number=prize.slot_number,
            is_winner=prize.is_winning,
        )
