from __future__ import annotations

from collections.abc import Iterator

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy.orm import Session

from lucky_draw import create_app
from lucky_draw.models.game import Game, GameStatus
from lucky_draw.realtime import RealtimeHub, get_hub
from lucky_draw.services.admin_game_service import AdminGameService
from lucky_draw.services.auth_service import AuthService

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse"


@pytest.fixture()
def app(tmp_path) -> Iterator[Flask]:
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
            "STORAGE_BACKEND": "local",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "PUBLIC_BASE_URL": "https://draw.example.com",
            "SSE_KEEPALIVE_SECONDS": 1,
        }
    )
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def db_session(app: Flask) -> Iterator[Session]:
    session = app.extensions["session_factory"]()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def hub(app: Flask) -> RealtimeHub:
    return get_hub(app)


@pytest.fixture()
def super_admin(db_session: Session):
    admin = AuthService().create_admin(db_session, ADMIN_EMAIL, ADMIN_PASSWORD, is_super=True)
    db_session.commit()
    return admin


@pytest.fixture()
def admin_client(client: FlaskClient, super_admin) -> FlaskClient:
    resp = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture()
def make_game(db_session: Session):
    """Create and commit a game; ``status`` defaults to active."""

    def _make(name: str = "Year-end party", total_slots: int = 10, status: str = GameStatus.ACTIVE.value) -> Game:
        service = AdminGameService()
        game = service.create_game(db_session, name, total_slots)
        game.status = status
        db_session.commit()
        return game

    return _make
