"""Participant identity kept in Flask's signed session cookie."""

from __future__ import annotations

from flask import session

from lucky_draw.utils.codes import generate_session_id

SESSION_ID_KEY = "lucky_draw_session_id"
PLAYER_NAME_KEY = "lucky_draw_player_name"
POPUP_SEEN_KEY = "event_popup_seen"


def get_session_id() -> str:
    sid = session.get(SESSION_ID_KEY)
    if not sid:
        sid = generate_session_id()
        session[SESSION_ID_KEY] = sid
        session.permanent = True
    return sid


def get_player_name() -> str | None:
    return session.get(PLAYER_NAME_KEY)


def set_player_name(name: str) -> None:
    session[PLAYER_NAME_KEY] = name
    session.permanent = True


def clear_player_data() -> None:
    session.pop(PLAYER_NAME_KEY, None)
    session.pop(SESSION_ID_KEY, None)


def popup_seen() -> bool:
    return bool(session.get(POPUP_SEEN_KEY))


def mark_popup_seen() -> None:
    session[POPUP_SEEN_KEY] = True
