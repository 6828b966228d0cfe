"""Participant API: game state, drawing a slot, player session, realtime."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, current_app, request

from lucky_draw.db import get_session, publish_after_commit
from lucky_draw.errors import NotFoundError
from lucky_draw.realtime import game_channel, get_hub
from lucky_draw.schemas.draw import BroadcastSchema, DrawRequestSchema, DrawResultSchema, PlayerSchema
from lucky_draw.schemas.game import DrawSchema, GameSchema, PrizeSchema
from lucky_draw.schemas.template import TemplateDetailSchema
from lucky_draw.services.draw_service import DrawService
from lucky_draw.services.game_service import GameService, GameState
from lucky_draw.services.sprite import SpriteConfig
from lucky_draw.utils import player
from lucky_draw.utils.responses import fail, ok

games_bp = Blueprint("games", __name__)

_draw_request_schema = DrawRequestSchema()
_draw_result_schema = DrawResultSchema()
_player_schema = PlayerSchema()
_broadcast_schema = BroadcastSchema()
_game_schema = GameSchema()
_prize_schema = PrizeSchema()
_prizes_schema = PrizeSchema(many=True)
_draw_schema = DrawSchema()
_draws_schema = DrawSchema(many=True)
_template_schema = TemplateDetailSchema()

_games = GameService()
_draws = DrawService()


def dump_state(state: GameState) -> dict[str, Any]:
    template = state.template
    return {
        "game": _game_schema.dump(state.game),
        "prizes": _prizes_schema.dump(state.prizes),
        "draws": _draws_schema.dump(state.draws),
        "template": _template_schema.dump(template) if template is not None else None,
        "sprite_config": SpriteConfig.from_mapping(template.sprite_config if template else None).to_mapping(),
        "stats": state.stats.to_dict(),
        "my_draw": _draw_schema.dump(state.my_draw) if state.my_draw is not None else None,
    }


@games_bp.get("/games/<invite_code>")
def get_game_state(invite_code: str):
    """Everything the tree board needs in one call."""

    session = get_session()
    game = _games.get_by_invite_code(session, invite_code)
    state = _games.load_state(session, game, player.get_session_id())
    return ok(dump_state(state))


@games_bp.get("/games/<invite_code>/my-draw")
def get_my_draw(invite_code: str):
    session = get_session()
    game = _games.get_by_invite_code(session, invite_code)
    state = _games.load_state(session, game, player.get_session_id())
    return ok(_draw_schema.dump(state.my_draw) if state.my_draw is not None else None)


@games_bp.get("/games/<invite_code>/slots/<int:slot_number>")
def get_slot(invite_code: str, slot_number: int):
    session = get_session()
    game = _games.get_by_invite_code(session, invite_code)
    found = _games.load_state(session, game).prize_with_draw(slot_number)
    if found is None:
        raise NotFoundError(message=f"Slot {slot_number} not found")
    prize, draw = found
    return ok({"prize": _prize_schema.dump(prize), "draw": _draw_schema.dump(draw) if draw else None})


@games_bp.post("/games/<invite_code>/draw")
def draw(invite_code: str):
    payload = request.get_json(silent=True) or {}
    data = _draw_request_schema.load(payload)

    session = get_session()
    game = _games.get_by_invite_code(session, invite_code)
    result = _draws.draw_prize(
        session,
        game_id=game.id,
        slot_number=data["slot_number"],
        player_name=data.get("player_name") or player.get_player_name(),
        session_id=data.get("session_id") or player.get_session_id(),
    )
    body = _draw_result_schema.dump(result.to_dict())
    if not result.success:
        return fail(str(result.error), str(result.message), result.http_status, details=body)
    return ok(body, status_code=result.http_status)


@games_bp.post("/games/<game_id>/broadcast")
def broadcast(game_id: str):
    """Relay a client event to everyone else watching the game."""

    payload = request.get_json(silent=True) or {}
    data = _broadcast_schema.load(payload)

    session = get_session()
    game = _games.get_game(session, game_id)
    sender = data.get("session_id") or player.get_session_id()
    publish_after_commit(session, game_channel(game.id), data["event"], data["payload"], sender=sender)
    return ok({"event": data["event"], "sender": sender}, status_code=202)


@games_bp.get("/games/<game_id>/events")
def game_events(game_id: str):
    """Server-Sent Events for one game; own broadcasts are not echoed."""

    _games.get_game(get_session(), game_id)
    hub = get_hub(current_app)
    sub = hub.subscribe(game_channel(game_id), session_id=request.args.get("session_id") or None)
    return Response(
        hub.stream(sub, float(current_app.config["SSE_KEEPALIVE_SECONDS"])),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# Player session


def _player_state() -> dict[str, Any]:
    return {
        "session_id": player.get_session_id(),
        "player_name": player.get_player_name(),
        "popup_seen": player.popup_seen(),
    }


@games_bp.get("/player")
def get_player():
    return ok(_player_state())


@games_bp.post("/player")
def set_player():
    payload = request.get_json(silent=True) or {}
    data = _player_schema.load(payload)
    player.set_player_name(data["player_name"])
    return ok(_player_state())


@games_bp.delete("/player")
def clear_player():
    player.clear_player_data()
    return ok({"cleared": True})


@games_bp.post("/player/popup-seen")
def popup_seen():
    player.mark_popup_seen()
    return ok({"popup_seen": True})
