"""Schemas for the participant draw API."""

from __future__ import annotations

from marshmallow import Schema, fields, pre_load, validate

PLAYER_NAME_MIN = 2
PLAYER_NAME_MAX = 10

BROADCAST_EVENTS = ("draw_completed", "game_updated")


def player_name_field(**kwargs) -> fields.String:  # type: ignore[no-untyped-def]
    return fields.String(
        validate=validate.Length(
            min=PLAYER_NAME_MIN,
            max=PLAYER_NAME_MAX,
            error=f"Name must be {PLAYER_NAME_MIN}-{PLAYER_NAME_MAX} characters",
        ),
        **kwargs,
    )


def _strip_player_name(data, blank_as_missing: bool):  # type: ignore[no-untyped-def]
    if not isinstance(data, dict) or not isinstance(data.get("player_name"), str):
        return data
    data = dict(data)
    name = data["player_name"].strip()
    if not name and blank_as_missing:
        data.pop("player_name")
    else:
        data["player_name"] = name
    return data


class DrawRequestSchema(Schema):
    slot_number = fields.Integer(required=True, validate=validate.Range(min=1))

    # Both fall back to the signed session cookie when omitted.
    player_name = player_name_field(required=False, load_default=None, allow_none=True)
    session_id = fields.String(required=False, load_default=None, validate=validate.Length(max=64))

    @pre_load
    def _strip(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return _strip_player_name(data, blank_as_missing=True)


class DrawResultSchema(Schema):
    success = fields.Boolean(required=True)
    error = fields.String(allow_none=True)
    message = fields.String(allow_none=True)
    draw_id = fields.String(allow_none=True)
    prize_name = fields.String(allow_none=True)
    prize_grade = fields.String(allow_none=True)
    slot_number = fields.Integer(allow_none=True)
    is_winner = fields.Boolean(allow_none=True)


class PlayerSchema(Schema):
    player_name = player_name_field(required=True)

    @pre_load
    def _strip(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return _strip_player_name(data, blank_as_missing=False)


class BroadcastSchema(Schema):
    event = fields.String(required=True, validate=validate.OneOf(BROADCAST_EVENTS))
    payload = fields.Dict(required=False, load_default=dict)
    session_id = fields.String(required=False, load_default=None)
