"""Draw ORM model: a participant's single claim on a prize slot."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lucky_draw.models.base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from lucky_draw.models.game import Game
    from lucky_draw.models.prize import Prize


class Draw(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "draws"
    __table_args__ = (
        UniqueConstraint("game_id", "session_id", name="uq_draws_game_session"),
        UniqueConstraint("prize_id", name="uq_draws_prize"),
    )

    prize_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("prizes.id", ondelete="CASCADE"), nullable=False
    )
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), index=True, nullable=False
    )
    player_name: Mapped[str] = mapped_column(String(50), nullable=False)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    drawn_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    game: Mapped["Game"] = relationship(back_populates="draws")
    prize: Mapped["Prize"] = relationship(back_populates="draw")
