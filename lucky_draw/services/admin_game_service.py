"""Organizer use-cases for games and their prize slots."""

from __future__ import annotations

import csv
import io
import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pytz
from sqlalchemy.orm import Session
from werkzeug.datastructures import FileStorage

from lucky_draw.db import publish_after_commit
from lucky_draw.errors import ConflictError, NotFoundError, ValidationError
from lucky_draw.models.draw import Draw
from lucky_draw.models.game import Game, GameStatus
from lucky_draw.models.prize import BLANK_PRIZE_NAME, Prize
from lucky_draw.models.template import TemplateSlot
from lucky_draw.realtime import change_payload, game_channel
from lucky_draw.repositories.admin_repository import AdminRepository
from lucky_draw.repositories.game_repository import GameRepository
from lucky_draw.repositories.template_repository import TemplateRepository
from lucky_draw.schemas.game import GameSchema, PrizeSchema
from lucky_draw.services.game_service import GameStats, compute_stats
from lucky_draw.services.sprite import default_position
from lucky_draw.storage import AUDIO_EXTENSIONS, Storage, remove_after_commit, replace_object, store_upload
from lucky_draw.utils.codes import generate_invite_code

logger = logging.getLogger(__name__)

_game_schema = GameSchema()
_prize_schema = PrizeSchema()

INVITE_CODE_ATTEMPTS = 20
CSV_HEADER = ("이름", "번호", "경품", "등급", "시간")
CSV_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class PrizePreset:
    grade: str | None
    name: str
    count: int = 0


PRIZE_PRESETS: tuple[PrizePreset, ...] = (
    PrizePreset("1등", "상품권 10만원", 1),
    PrizePreset("2등", "상품권 5만원", 3),
    PrizePreset("3등", "상품권 3만원", 5),
    PrizePreset("4등", "상품권 1만원", 10),
    PrizePreset("5등", "커피 쿠폰", 20),
    PrizePreset(None, BLANK_PRIZE_NAME),
)


def prize_pool(size: int) -> list[tuple[str | None, str]]:
    """Graded prizes in preset order, padded with blanks up to ``size``."""

    pool = [(p.grade, p.name) for p in PRIZE_PRESETS for _ in range(p.count)]
    pool.extend((None, BLANK_PRIZE_NAME) for _ in range(max(size - len(pool), 0)))
    return pool


def shuffle(items: list[Any], rng: random.Random | None = None) -> list[Any]:
    """Fisher-Yates, in place."""

    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def local_timestamp(moment: datetime | None, tz_name: str) -> str:
    if moment is None:
        return ""
    if moment.tzinfo is None:
        # SQLite hands back naive values; they were written as UTC.
        moment = pytz.utc.localize(moment)
    return moment.astimezone(pytz.timezone(tz_name)).strftime(CSV_TIME_FORMAT)


def grade_counts(prizes: Iterable[Prize]) -> dict[str, int]:
    """Count per preset grade; the blank bucket is keyed by its prize name."""

    counts = {p.grade or p.name: 0 for p in PRIZE_PRESETS}
    for prize in prizes:
        key = prize.prize_grade or BLANK_PRIZE_NAME
        counts[key] = counts.get(key, 0) + 1
    return counts


@dataclass(frozen=True)
class GameDetail:
    game: Game
    prizes: Sequence[Prize]
    draws: Sequence[Draw]
    stats: GameStats
    grade_counts: dict[str, int]
    invite_url: str


class AdminGameService:
    """Game administration."""

    def __init__(
        self,
        repository: GameRepository | None = None,
        templates: TemplateRepository | None = None,
        admins: AdminRepository | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._repo = repository or GameRepository()
        self._templates = templates or TemplateRepository()
        self._admins = admins or AdminRepository()
        self._rng = rng or random.Random()

    # Games

    def list_games(self, session: Session, game_ids: Iterable[str] | None = None) -> Sequence[Game]:
        return self._repo.list_games(session, game_ids)

    def get_game(self, session: Session, game_id: str) -> Game:
        game = self._repo.get_by_id(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        return game

    def _unique_invite_code(self, session: Session) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = generate_invite_code()
            if not self._repo.invite_code_exists(session, code):
                return code
        raise ConflictError("Could not allocate an invite code, try again")

    def create_game(self, session: Session, name: str, total_slots: int = 100) -> Game:
        template = self._templates.get_default(session)
        slots: dict[int, TemplateSlot] = {}
        if template is not None:
            slots = {s.slot_number: s for s in self._templates.list_slots(session, template.id)}

        game = self._repo.create(
            session,
            name=name.strip(),
            invite_code=self._unique_invite_code(session),
            status=GameStatus.WAITING.value,
            total_slots=total_slots,
            template_id=template.id if template is not None else None,
        )

        prizes = []
        for slot_number in range(1, total_slots + 1):
            slot = slots.get(slot_number)
            if slot is not None and slot.position_top is not None and slot.position_left is not None:
                top, left = slot.position_top, slot.position_left
            else:
                top, left = default_position(slot_number)
            prizes.append(
                Prize(
                    game_id=game.id,
                    slot_number=slot_number,
                    prize_name=BLANK_PRIZE_NAME,
                    prize_grade=None,
                    is_drawn=False,
                    display_position=slot_number,
                    position_top=top,
                    position_left=left,
                    offset_x=slot.offset_x if slot is not None else 0,
                    offset_y=slot.offset_y if slot is not None else 0,
                )
            )
        self._repo.add_prizes(session, prizes)

        logger.info("Created game %s (%s) with %d slots", game.id, game.invite_code, total_slots)
        return game

    def game_detail(self, session: Session, game_id: str, public_base_url: str = "") -> GameDetail:
        game = self.get_game(session, game_id)
        prizes = self._repo.list_prizes(session, game.id)
        draws = self._repo.list_draws(session, game.id, newest_first=True)
        return GameDetail(
            game=game,
            prizes=prizes,
            draws=draws,
            stats=compute_stats(prizes, draws),
            grade_counts=grade_counts(prizes),
            invite_url=f"{public_base_url.rstrip('/')}/{game.invite_code}",
        )

    def _publish_game(self, session: Session, game: Game) -> None:
        session.flush()
        publish_after_commit(
            session,
            game_channel(game.id),
            "games",
            change_payload("games", "UPDATE", new=_game_schema.dump(game)),
        )

    def update_status(self, session: Session, game_id: str, status: str) -> Game:
        game = self.get_game(session, game_id)
        game.status = GameStatus(status).value
        self._publish_game(session, game)
        logger.info("Game %s status -> %s", game.id, game.status)
        return game

    def update_settings(self, session: Session, game_id: str, values: Mapping[str, Any]) -> Game:
        game = self.get_game(session, game_id)
        for key, value in values.items():
            setattr(game, key, value)
        self._publish_game(session, game)
        logger.info("Game %s settings updated: %s", game.id, ", ".join(sorted(values)))
        return game

    def reset_game(self, session: Session, game_id: str) -> Game:
        """Delete every draw, release every slot and go back to waiting."""

        game = self.get_game(session, game_id)
        removed = self._repo.delete_draws(session, game.id)
        self._repo.reset_prizes(session, game.id)
        game.status = GameStatus.WAITING.value
        session.flush()
        session.expire_all()

        publish_after_commit(session, game_channel(game.id), "reset", {"game_id": game.id})
        self._publish_game(session, game)
        logger.info("Reset game %s (%d draws removed)", game.id, removed)
        return game

    def delete_game(self, session: Session, game_id: str) -> None:
        game = self.get_game(session, game_id)
        self._admins.detach_game(session, game.id)
        self._repo.delete(session, game)
        publish_after_commit(
            session, game_channel(game_id), "games", change_payload("games", "DELETE", old={"id": game_id})
        )
        logger.info("Deleted game %s", game_id)

    # Prizes

    def _get_prize(self, session: Session, game_id: str, prize_id: str) -> Prize:
        prize = self._repo.get_prize(session, prize_id)
        if prize is None or prize.game_id != game_id:
            raise NotFoundError(message=f"Prize {prize_id} not found")
        return prize

    def _publish_prizes(self, session: Session, game_id: str, prizes: Iterable[Prize]) -> None:
        session.flush()
        channel = game_channel(game_id)
        for prize in prizes:
            publish_after_commit(
                session, channel, "prizes", change_payload("prizes", "UPDATE", new=_prize_schema.dump(prize))
            )

    def update_prize(
        self, session: Session, game_id: str, prize_id: str, prize_name: str, prize_grade: str | None
    ) -> Prize:
        prize = self._get_prize(session, game_id, prize_id)
        if prize.is_drawn:
            raise ConflictError("A drawn prize cannot be edited", details={"prize_id": prize_id})
        prize.prize_name = prize_name.strip()
        prize.prize_grade = (prize_grade or "").strip() or None
        self._publish_prizes(session, game_id, [prize])
        return prize

    def update_prize_layout(
        self, session: Session, game_id: str, prize_id: str, values: Mapping[str, Any]
    ) -> Prize:
        prize = self._get_prize(session, game_id, prize_id)
        for key, value in values.items():
            setattr(prize, key, value)
        self._publish_prizes(session, game_id, [prize])
        return prize

    def save_layout(self, session: Session, game_id: str, items: Sequence[Mapping[str, Any]]) -> list[Prize]:
        self.get_game(session, game_id)
        updated = []
        for item in items:
            values = dict(item)
            prize = self._get_prize(session, game_id, str(values.pop("id")))
            for key, value in values.items():
                setattr(prize, key, value)
            updated.append(prize)
        self._publish_prizes(session, game_id, updated)
        logger.info("Saved layout for %d prizes of game %s", len(updated), game_id)
        return updated

    def randomize_prizes(self, session: Session, game_id: str) -> list[Prize]:
        """Shuffle the preset distribution over undrawn slots; drawn slots keep their prize."""

        self.get_game(session, game_id)
        undrawn = [p for p in self._repo.list_prizes(session, game_id) if not p.is_drawn]
        pool = shuffle(prize_pool(len(undrawn)), self._rng)
        for prize, (grade, name) in zip(undrawn, pool):
            prize.prize_grade = grade
            prize.prize_name = name
        self._publish_prizes(session, game_id, undrawn)
        logger.info("Randomized %d prizes for game %s", len(undrawn), game_id)
        return undrawn

    def apply_template(self, session: Session, game_id: str, template_id: str | None) -> Game:
        """Point the game at a template and copy its slot layout onto the prizes."""

        game = self.get_game(session, game_id)
        if template_id is None:
            game.template_id = None
            self._publish_game(session, game)
            return game

        template = self._templates.get_by_id(session, template_id)
        if template is None:
            raise NotFoundError(message=f"Template {template_id} not found")

        slots = {s.slot_number: s for s in self._templates.list_slots(session, template.id)}
        prizes = self._repo.list_prizes(session, game.id)
        for prize in prizes:
            slot = slots.get(prize.slot_number)
            if slot is None:
                continue
            prize.offset_x = slot.offset_x
            prize.offset_y = slot.offset_y
            if slot.position_top is not None:
                prize.position_top = slot.position_top
            if slot.position_left is not None:
                prize.position_left = slot.position_left

        game.template_id = template.id
        self._publish_prizes(session, game.id, prizes)
        self._publish_game(session, game)
        logger.info("Applied template %s to game %s", template.id, game.id)
        return game

    # Results

    def results_csv(self, session: Session, game_id: str, tz_name: str = "UTC") -> tuple[str, str]:
        """Return ``(filename, body)``; the body starts with a UTF-8 BOM.

        Draw times are written as local wall-clock time in ``tz_name``.
        """

        game = self.get_game(session, game_id)
        prizes = {p.id: p for p in self._repo.list_prizes(session, game.id)}
        draws = self._repo.list_draws(session, game.id, newest_first=True)

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for draw in draws:
            prize = prizes.get(draw.prize_id)
            writer.writerow(
                [
                    draw.player_name,
                    prize.slot_number if prize else "",
                    prize.prize_name if prize else "",
                    (prize.prize_grade if prize else None) or "-",
                    local_timestamp(draw.drawn_at, tz_name),
                ]
            )
        return f"{game.name}-results.csv", "\ufeff" + buf.getvalue()

    # Background music

    def upload_bgm(self, session: Session, storage: Storage, game_id: str, upload: FileStorage | None) -> Game:
        game = self.get_game(session, game_id)
        url = store_upload(storage, upload, game.id, "bgm", AUDIO_EXTENSIONS)
        replace_object(session, storage, game.bgm_url, url)
        game.bgm_url = url
        game.bgm_enabled = True
        self._publish_game(session, game)
        return game

    def remove_bgm(self, session: Session, storage: Storage, game_id: str) -> Game:
        game = self.get_game(session, game_id)
        if not game.bgm_url:
            raise ValidationError("No background music to remove")
        remove_after_commit(session, storage, game.bgm_url)
        game.bgm_url = None
        game.bgm_enabled = False
        self._publish_game(session, game)
        return game
