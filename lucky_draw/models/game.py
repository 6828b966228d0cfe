"""Game ORM model.

One row per lucky-draw event. Participants reach it through ``invite_code``;
prizes and draws hang off it and are removed with it.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lucky_draw.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from lucky_draw.models.draw import Draw
    from lucky_draw.models.prize import Prize
    from lucky_draw.models.template import Template


class GameStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    ENDED = "ended"


class Game(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "games"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=GameStatus.WAITING.value)
    total_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    template_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("templates.id", ondelete="SET NULL"), nullable=True
    )

    # Branding
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    subtitle: Mapped[str | None] = mapped_column(String(300), nullable=True)
    theme_color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Feature toggles
    show_snowfall: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_popup: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_winner_toast: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_marquee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    marquee_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Background music
    bgm_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bgm_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bgm_volume: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)

    prizes: Mapped[list["Prize"]] = relationship(
        back_populates="game",
        cascade="all, delete",
        passive_deletes=True,
        order_by="Prize.slot_number",
    )
    draws: Mapped[list["Draw"]] = relationship(
        back_populates="game",
        cascade="all, delete",
        passive_deletes=True,
    )
    template: Mapped["Template | None"] = relationship()
