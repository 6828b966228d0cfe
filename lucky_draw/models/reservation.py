"""Event reservation (lead capture) ORM model."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lucky_draw.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "reservations"

    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    event_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expected_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    event_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    terms_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    privacy_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    marketing_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ReservationStatus.PENDING.value)
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
