"""Repository layer for admin accounts."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from lucky_draw.models.admin_profile import AdminProfile


class AdminRepository:
    def get_by_id(self, session: Session, admin_id: str) -> AdminProfile | None:
        return session.get(AdminProfile, admin_id)

    def get_by_email(self, session: Session, email: str) -> AdminProfile | None:
        stmt = select(AdminProfile).where(AdminProfile.email == email.strip().lower())
        return session.scalars(stmt).first()

    def create(self, session: Session, **values: object) -> AdminProfile:
        profile = AdminProfile(**values)
        session.add(profile)
        session.flush()
        return profile

    def detach_game(self, session: Session, game_id: str) -> None:
        stmt = (
            update(AdminProfile)
            .where(AdminProfile.game_id == game_id)
            .values(game_id=None)
            .execution_options(synchronize_session="fetch")
        )
        session.execute(stmt)
