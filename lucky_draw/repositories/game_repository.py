"""Repository layer for games, prizes and draws."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from lucky_draw.models.draw import Draw
from lucky_draw.models.game import Game
from lucky_draw.models.prize import Prize


class GameRepository:
    """Persistence for a game and the rows that belong to it."""

    def list_games(self, session: Session, game_ids: Iterable[str] | None = None) -> Sequence[Game]:
        stmt = select(Game).order_by(Game.created_at.desc())
        if game_ids is not None:
            stmt = stmt.where(Game.id.in_(list(game_ids)))
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, game_id: str) -> Game | None:
        return session.get(Game, game_id)

    def get_by_invite_code(self, session: Session, invite_code: str) -> Game | None:
        stmt = select(Game).where(Game.invite_code == invite_code.strip().upper())
        return session.scalars(stmt).first()

    def invite_code_exists(self, session: Session, invite_code: str) -> bool:
        stmt = select(func.count()).select_from(Game).where(Game.invite_code == invite_code)
        return bool(session.scalar(stmt))

    def create(self, session: Session, **values: object) -> Game:
        game = Game(**values)
        session.add(game)
        session.flush()  # assign PK
        return game

    def delete(self, session: Session, game: Game) -> None:
        session.delete(game)
        session.flush()

    # Prizes

    def add_prizes(self, session: Session, prizes: Iterable[Prize]) -> None:
        session.add_all(list(prizes))
        session.flush()

    def list_prizes(self, session: Session, game_id: str) -> Sequence[Prize]:
        stmt = select(Prize).where(Prize.game_id == game_id).order_by(Prize.slot_number.asc())
        return list(session.scalars(stmt).all())

    def get_prize(self, session: Session, prize_id: str) -> Prize | None:
        return session.get(Prize, prize_id)

    def get_prize_by_slot(self, session: Session, game_id: str, slot_number: int) -> Prize | None:
        stmt = select(Prize).where(Prize.game_id == game_id, Prize.slot_number == slot_number)
        return session.scalars(stmt).first()

    def mark_prize_drawn(self, session: Session, prize_id: str) -> bool:
        """Flip ``is_drawn`` only if it is still false; False means someone else won the race."""

        stmt = (
            update(Prize)
            .where(Prize.id == prize_id, Prize.is_drawn.is_(False))
            .values(is_drawn=True)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount == 1

    def reset_prizes(self, session: Session, game_id: str) -> int:
        stmt = (
            update(Prize)
            .where(Prize.game_id == game_id)
            .values(is_drawn=False)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount

    # Draws

    def list_draws(self, session: Session, game_id: str, newest_first: bool = False) -> Sequence[Draw]:
        order = Draw.drawn_at.desc() if newest_first else Draw.drawn_at.asc()
        stmt = select(Draw).where(Draw.game_id == game_id).order_by(order)
        return list(session.scalars(stmt).all())

    def get_draw(self, session: Session, draw_id: str) -> Draw | None:
        return session.get(Draw, draw_id)

    def find_draw_for_session(self, session: Session, game_id: str, session_id: str) -> Draw | None:
        stmt = select(Draw).where(Draw.game_id == game_id, Draw.session_id == session_id)
        return session.scalars(stmt).first()

    def add_draw(self, session: Session, draw: Draw) -> Draw:
        session.add(draw)
        session.flush()
        return draw

    def delete_draws(self, session: Session, game_id: str) -> int:
        stmt = delete(Draw).where(Draw.game_id == game_id).execution_options(synchronize_session=False)
        return session.execute(stmt).rowcount
