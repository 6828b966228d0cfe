"""Web page routes."""

from __future__ import annotations

import random

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    redirect,
    render_template,
    request,
    send_from_directory,
    url_for,
)

from lucky_draw.auth import admin_required, current_admin, login_admin
from lucky_draw.db import get_session
from lucky_draw.errors import NotFoundError, UnauthorizedError
from lucky_draw.schemas.reservation import TIME_OPTIONS
from lucky_draw.services.auth_service import AuthService
from lucky_draw.services.game_service import GameService
from lucky_draw.services.sprite import SpriteConfig, background_style, random_ornament_indices
from lucky_draw.storage import LocalStorage, get_storage
from lucky_draw.utils import player

web_bp = Blueprint("web", __name__)

_games = GameService()
_auth = AuthService()


def ornament_styles(prizes, config: SpriteConfig, seed: str, size: float = 56) -> dict[int, str]:
    """Inline CSS per slot; icons are picked once per game so reloads look the same."""

    indices = random_ornament_indices(len(prizes), config, random.Random(seed))
    styles = {}
    for i, prize in enumerate(prizes):
        index = indices[i % len(indices)] if indices else 0
        css = background_style(index, size, config, (prize.offset_x, prize.offset_y)).to_css()
        styles[prize.slot_number] = "; ".join(f"{k}: {v}" for k, v in css.items())
    return styles


@web_bp.get("/")
def index():
    return render_template("index.html")


@web_bp.get("/<invite_code>")
def join(invite_code: str):
    session = get_session()
    try:
        game = _games.get_by_invite_code(session, invite_code)
    except NotFoundError:
        return render_template("index.html", error="Invalid invite code", invite_code=invite_code), 404
    if player.get_player_name():
        return redirect(url_for("web.game", invite_code=game.invite_code))
    return render_template("join.html", game=game)


@web_bp.get("/game/<invite_code>")
def game(invite_code: str):
    session = get_session()
    try:
        found = _games.get_by_invite_code(session, invite_code)
    except NotFoundError:
        return render_template("index.html", error="Invalid invite code", invite_code=invite_code), 404
    if not player.get_player_name():
        return redirect(url_for("web.join", invite_code=found.invite_code))

    state = _games.load_state(session, found, player.get_session_id())
    config = SpriteConfig.from_mapping(state.template.sprite_config if state.template else None)
    show_popup = found.show_popup and not player.popup_seen()
    my_prize = None
    if state.my_draw is not None:
        my_prize = next((p for p in state.prizes if p.id == state.my_draw.prize_id), None)
    return render_template(
        "game.html",
        game=found,
        template=state.template,
        state=state,
        my_prize=my_prize,
        styles=ornament_styles(state.prizes, config, found.id),
        player_name=player.get_player_name(),
        session_id=player.get_session_id(),
        show_popup=show_popup,
    )


@web_bp.get("/reserve")
def reserve():
    return render_template("reserve.html", time_options=TIME_OPTIONS)


@web_bp.get("/side")
def side():
    return render_template("side.html")


# Admin pages


@web_bp.route("/admin/login", methods=["GET", "POST"])
def admin_login():
    if request.method == "GET":
        if current_admin() is not None:
            return redirect(_auth.landing_path(current_admin()))
        return render_template("admin/login.html")

    email = request.form.get("email", "")
    try:
        admin = _auth.authenticate(get_session(), email, request.form.get("password", ""))
    except UnauthorizedError as exc:
        return render_template("admin/login.html", error=exc.message, email=email), 401
    login_admin(admin)
    return redirect(_auth.landing_path(admin))


@web_bp.get("/admin")
@admin_required
def admin_index():
    return render_template("admin/index.html", admin=current_admin())


@web_bp.get("/admin/reservations")
@admin_required(super_only=True)
def admin_reservations():
    return render_template("admin/reservations.html")


@web_bp.get("/admin/side-applications")
@admin_required(super_only=True)
def admin_side_applications():
    return render_template("admin/side_applications.html")


@web_bp.get("/admin/template/<template_id>")
@admin_required(super_only=True)
def admin_template(template_id: str):
    return render_template("admin/template.html", template_id=template_id)


@web_bp.get("/admin/<game_id>")
@admin_required(game_arg="game_id")
def admin_game(game_id: str):
    return render_template("admin/game.html", game=_games.get_game(get_session(), game_id))


@web_bp.get("/media/<path:key>")
def media(key: str):
    storage = get_storage(current_app)
    if not isinstance(storage, LocalStorage):
        abort(404)
    return send_from_directory(storage.root, key)


@web_bp.get("/favicon.ico")
def favicon() -> Response:
    svg = """<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 64 64'>
    <polygon points='32,4 56,52 8,52' fill='#1f7a3a'/>
    <rect x='28' y='52' width='8' height='8' fill='#7a4a1f'/>
    <circle cx='32' cy='24' r='4' fill='#e11d48'/>
    <circle cx='24' cy='40' r='4' fill='#facc15'/>
    <circle cx='40' cy='40' r='4' fill='#38bdf8'/>
</svg>"""

    return Response(svg, mimetype="image/svg+xml")
