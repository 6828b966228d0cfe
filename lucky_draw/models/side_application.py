"""Side-event application ORM model."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lucky_draw.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SideApplicationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class SideApplication(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "side_applications"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    terms_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    privacy_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    marketing_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=SideApplicationStatus.PENDING.value)
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
