"""Admin API: login and game management. No business logic here."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from flask import Blueprint, Response, current_app, request

from lucky_draw.auth import admin_required, current_admin, login_admin, logout_admin
from lucky_draw.db import get_session
from lucky_draw.schemas.auth import AdminProfileSchema, LoginSchema
from lucky_draw.schemas.game import (
    ApplyTemplateSchema,
    DrawSchema,
    GameCreateSchema,
    GameSchema,
    GameSettingsSchema,
    GameStatusSchema,
    PrizeLayoutBulkSchema,
    PrizeLayoutSchema,
    PrizeSchema,
    PrizeUpdateSchema,
)
from lucky_draw.services.admin_game_service import PRIZE_PRESETS, AdminGameService, GameDetail
from lucky_draw.services.auth_service import AuthService
from lucky_draw.storage import get_storage
from lucky_draw.utils.responses import ok

admin_bp = Blueprint("admin", __name__)

_login_schema = LoginSchema()
_profile_schema = AdminProfileSchema()
_game_schema = GameSchema()
_games_schema = GameSchema(many=True)
_create_schema = GameCreateSchema()
_status_schema = GameStatusSchema()
_settings_schema = GameSettingsSchema()
_prize_schema = PrizeSchema()
_prizes_schema = PrizeSchema(many=True)
_draws_schema = DrawSchema(many=True)
_prize_update_schema = PrizeUpdateSchema()
_layout_schema = PrizeLayoutSchema()
_layout_bulk_schema = PrizeLayoutBulkSchema()
_apply_template_schema = ApplyTemplateSchema()

_auth = AuthService()
_service = AdminGameService()


def _public_base_url() -> str:
    return str(current_app.config.get("PUBLIC_BASE_URL") or request.host_url)


def dump_detail(detail: GameDetail) -> dict[str, Any]:
    return {
        "game": _game_schema.dump(detail.game),
        "prizes": _prizes_schema.dump(detail.prizes),
        "draws": _draws_schema.dump(detail.draws),
        "stats": detail.stats.to_dict(),
        "grade_counts": detail.grade_counts,
        "invite_url": detail.invite_url,
    }


# Auth


@admin_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    data = _login_schema.load(payload)

    admin = _auth.authenticate(get_session(), data["email"], data["password"])
    login_admin(admin)
    return ok({"admin": _profile_schema.dump(admin), "redirect": _auth.landing_path(admin)})


@admin_bp.post("/logout")
def logout():
    logout_admin()
    return ok({"logged_out": True})


@admin_bp.get("/me")
@admin_required
def me():
    admin = current_admin()
    return ok(_profile_schema.dump(admin))


# Games


@admin_bp.get("/games")
@admin_required
def list_games():
    admin = current_admin()
    scope = None if admin.is_super else [admin.game_id] if admin.game_id else []
    games = _service.list_games(get_session(), scope)
    return ok(_games_schema.dump(games))


@admin_bp.post("/games")
@admin_required(super_only=True)
def create_game():
    payload = request.get_json(silent=True) or {}
    data = _create_schema.load(payload)

    game = _service.create_game(get_session(), name=data["name"], total_slots=data["total_slots"])
    return ok(_game_schema.dump(game), status_code=201)


@admin_bp.get("/games/<game_id>")
@admin_required(game_arg="game_id")
def get_game(game_id: str):
    detail = _service.game_detail(get_session(), game_id, _public_base_url())
    return ok(dump_detail(detail))


@admin_bp.patch("/games/<game_id>")
@admin_required(game_arg="game_id")
def update_settings(game_id: str):
    payload = request.get_json(silent=True) or {}
    data = _settings_schema.load(payload)

    game = _service.update_settings(get_session(), game_id, data)
    return ok(_game_schema.dump(game))


@admin_bp.put("/games/<game_id>/status")
@admin_required(game_arg="game_id")
def update_status(game_id: str):
    payload = request.get_json(silent=True) or {}
    data = _status_schema.load(payload)

    game = _service.update_status(get_session(), game_id, data["status"])
    return ok(_game_schema.dump(game))


@admin_bp.post("/games/<game_id>/reset")
@admin_required(game_arg="game_id")
def reset_game(game_id: str):
    game = _service.reset_game(get_session(), game_id)
    return ok(_game_schema.dump(game))


@admin_bp.delete("/games/<game_id>")
@admin_required(super_only=True)
def delete_game(game_id: str):
    _service.delete_game(get_session(), game_id)
    return ok({"deleted": game_id})


@admin_bp.post("/games/<game_id>/template")
@admin_required(game_arg="game_id")
def apply_template(game_id: str):
    payload = request.get_json(silent=True) or {}
    data = _apply_template_schema.load(payload)

    game = _service.apply_template(get_session(), game_id, data["template_id"])
    return ok(_game_schema.dump(game))


@admin_bp.get("/games/<game_id>/results.csv")
@admin_required(game_arg="game_id")
def export_results(game_id: str):
    filename, body = _service.results_csv(get_session(), game_id, str(current_app.config["EVENT_TIMEZONE"]))
    return Response(
        body.encode("utf-8"),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@admin_bp.post("/games/<game_id>/bgm")
@admin_required(game_arg="game_id")
def upload_bgm(game_id: str):
    game = _service.upload_bgm(get_session(), get_storage(current_app), game_id, request.files.get("file"))
    return ok(_game_schema.dump(game))


@admin_bp.delete("/games/<game_id>/bgm")
@admin_required(game_arg="game_id")
def remove_bgm(game_id: str):
    game = _service.remove_bgm(get_session(), get_storage(current_app), game_id)
    return ok(_game_schema.dump(game))


# Prizes


@admin_bp.get("/prize-presets")
@admin_required
def prize_presets():
    return ok([{"grade": p.grade, "name": p.name, "count": p.count} for p in PRIZE_PRESETS])


@admin_bp.put("/games/<game_id>/prizes/<prize_id>")
@admin_required(game_arg="game_id")
def update_prize(game_id: str, prize_id: str):
    payload = request.get_json(silent=True) or {}
    data = _prize_update_schema.load(payload)

    prize = _service.update_prize(get_session(), game_id, prize_id, data["prize_name"], data["prize_grade"])
    return ok(_prize_schema.dump(prize))


@admin_bp.patch("/games/<game_id>/prizes/<prize_id>/layout")
@admin_required(game_arg="game_id")
def update_prize_layout(game_id: str, prize_id: str):
    payload = request.get_json(silent=True) or {}
    data = _layout_schema.load(payload)

    prize = _service.update_prize_layout(get_session(), game_id, prize_id, data)
    return ok(_prize_schema.dump(prize))


@admin_bp.put("/games/<game_id>/prizes/layout")
@admin_required(game_arg="game_id")
def save_layout(game_id: str):
    payload = request.get_json(silent=True) or {}
    data = _layout_bulk_schema.load(payload)

    prizes = _service.save_layout(get_session(), game_id, data["prizes"])
    return ok(_prizes_schema.dump(prizes))


@admin_bp.post("/games/<game_id>/prizes/randomize")
@admin_required(game_arg="game_id")
def randomize_prizes(game_id: str):
    session = get_session()
    _service.randomize_prizes(session, game_id)
    detail = _service.game_detail(session, game_id, _public_base_url())
    return ok(dump_detail(detail))
