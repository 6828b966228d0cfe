"""Admin session helpers and the ``admin_required`` guard."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import g, session

from lucky_draw.db import get_session
from lucky_draw.errors import ForbiddenError, UnauthorizedError
from lucky_draw.models.admin_profile import AdminProfile
from lucky_draw.services.auth_service import AuthService

ADMIN_ID_KEY = "admin_id"

_service = AuthService()


def login_admin(admin: AdminProfile) -> None:
    session[ADMIN_ID_KEY] = admin.id
    session.permanent = True


def logout_admin() -> None:
    session.pop(ADMIN_ID_KEY, None)


def current_admin() -> AdminProfile | None:
    if "admin" not in g:
        g.admin = _service.get_admin(get_session(), session.get(ADMIN_ID_KEY))
    return g.admin


def admin_required(
    view: Callable[..., Any] | None = None,
    *,
    game_arg: str | None = None,
    super_only: bool = False,
):
    """Require a logged-in admin.

    ``game_arg`` names the view argument holding a game id the admin must be
    allowed to manage; ``super_only`` restricts the view to super admins.
    Failures raise AppErrors, which the error handlers turn into JSON for
    ``/api`` and a redirect to the login page for HTML pages.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            admin = current_admin()
            if admin is None:
                raise UnauthorizedError()
            if super_only and not admin.is_super:
                raise ForbiddenError("Super admin only")
            if game_arg is not None:
                _service.check_access(admin, str(kwargs[game_arg]))
            return fn(*args, **kwargs)

        return wrapper

    if view is not None:
        return decorator(view)
    return decorator
