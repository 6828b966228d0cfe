"""Prize ORM model: one drawable slot of a game."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lucky_draw.models.base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from lucky_draw.models.draw import Draw
    from lucky_draw.models.game import Game

BLANK_PRIZE_NAME = "꽝"


class Prize(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "prizes"
    __table_args__ = (UniqueConstraint("game_id", "slot_number", name="uq_prizes_game_slot"),)

    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), index=True, nullable=False
    )
    slot_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..N
    prize_name: Mapped[str] = mapped_column(String(200), nullable=False, default=BLANK_PRIZE_NAME)
    prize_grade: Mapped[str | None] = mapped_column(String(50), nullable=True)  # None = no prize
    is_drawn: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    display_position: Mapped[int] = mapped_column(Integer, nullable=False)
    position_top: Mapped[float | None] = mapped_column(Float, nullable=True)  # percent
    position_left: Mapped[float | None] = mapped_column(Float, nullable=True)  # percent
    offset_x: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # sprite px
    offset_y: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    game: Mapped["Game"] = relationship(back_populates="prizes")
    draw: Mapped["Draw | None"] = relationship(
        back_populates="prize", uselist=False, cascade="all, delete", passive_deletes=True
    )

    @property
    def is_winning(self) -> bool:
        return self.prize_grade is not None
