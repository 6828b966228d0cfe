"""Admin account use-cases."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from lucky_draw.errors import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from lucky_draw.models.admin_profile import AdminProfile
from lucky_draw.repositories.admin_repository import AdminRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    def __init__(self, repository: AdminRepository | None = None) -> None:
        self._repo = repository or AdminRepository()

    def authenticate(self, session: Session, email: str, password: str) -> AdminProfile:
        admin = self._repo.get_by_email(session, email)
        if admin is None or not check_password_hash(admin.password_hash, password):
            logger.info("Failed admin login for %s", email.strip().lower())
            raise UnauthorizedError("Invalid email or password")
        logger.info("Admin %s logged in", admin.email)
        return admin

    def get_admin(self, session: Session, admin_id: str | None) -> AdminProfile | None:
        if not admin_id:
            return None
        return self._repo.get_by_id(session, admin_id)

    def create_admin(
        self,
        session: Session,
        email: str,
        password: str,
        is_super: bool = False,
        game_id: str | None = None,
    ) -> AdminProfile:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError(details={"email": ["Invalid email"]})
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(details={"password": [f"At least {MIN_PASSWORD_LENGTH} characters"]})
        if self._repo.get_by_email(session, email) is not None:
            raise ConflictError(f"Admin {email} already exists")
        return self._repo.create(
            session,
            email=email,
            password_hash=generate_password_hash(password),
            is_super=is_super,
            game_id=game_id,
        )

    def check_access(self, admin: AdminProfile, game_id: str) -> None:
        if not admin.can_manage(game_id):
            raise ForbiddenError("You cannot manage this game")

    def landing_path(self, admin: AdminProfile) -> str:
        if admin.is_super or not admin.game_id:
            return "/admin"
        return f"/admin/{admin.game_id}"
