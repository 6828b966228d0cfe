"""Visual template ORM models (background, sprite sheet, per-slot layout)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lucky_draw.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Template(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "templates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    sprite_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    sprite_config: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    slots: Mapped[list["TemplateSlot"]] = relationship(
        back_populates="template",
        cascade="all, delete",
        passive_deletes=True,
        order_by="TemplateSlot.slot_number",
    )


class TemplateSlot(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "template_slots"
    __table_args__ = (UniqueConstraint("template_id", "slot_number", name="uq_template_slots_slot"),)

    template_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("templates.id", ondelete="CASCADE"), index=True, nullable=False
    )
    slot_number: Mapped[int] = mapped_column(Integer, nullable=False)
    offset_x: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    offset_y: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    position_top: Mapped[float | None] = mapped_column(Float, nullable=True)
    position_left: Mapped[float | None] = mapped_column(Float, nullable=True)
    item_image: Mapped[str | None] = mapped_column(Text, nullable=True)

    template: Mapped[Template] = relationship(back_populates="slots")
