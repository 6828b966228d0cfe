"""Admin account ORM model."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from lucky_draw.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AdminProfile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Organizer login. ``game_id`` scopes a non-super admin to one game."""

    __tablename__ = "admin_profiles"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_super: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    game_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="SET NULL"), nullable=True
    )

    def can_manage(self, game_id: str) -> bool:
        return self.is_super or self.game_id == game_id
