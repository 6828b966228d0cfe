"""Marshmallow schemas for games, prizes and draws."""

from __future__ import annotations

from datetime import timezone

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from lucky_draw.models.game import GameStatus

_STATUSES = [s.value for s in GameStatus]


class PrizeSchema(Schema):
    id = fields.Str()
    game_id = fields.Str()
    slot_number = fields.Int()
    prize_name = fields.Str()
    prize_grade = fields.Str(allow_none=True)
    is_drawn = fields.Bool()
    display_position = fields.Int()
    position_top = fields.Float(allow_none=True)
    position_left = fields.Float(allow_none=True)
    offset_x = fields.Int()
    offset_y = fields.Int()
    created_at = fields.DateTime()


class DrawSchema(Schema):
    id = fields.Str()
    prize_id = fields.Str()
    game_id = fields.Str()
    player_name = fields.Str()
    session_id = fields.Str(allow_none=True)
    drawn_at = fields.DateTime()


class GameSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    invite_code = fields.Str()
    status = fields.Str()
    total_slots = fields.Int()
    template_id = fields.Str(allow_none=True)

    title = fields.Str(allow_none=True)
    subtitle = fields.Str(allow_none=True)
    theme_color = fields.Str(allow_none=True)
    logo_url = fields.Str(allow_none=True)

    show_snowfall = fields.Bool()
    show_popup = fields.Bool()
    show_winner_toast = fields.Bool()
    show_marquee = fields.Bool()
    marquee_text = fields.Str(allow_none=True)
    event_end_at = fields.DateTime(allow_none=True)

    bgm_url = fields.Str(allow_none=True)
    bgm_enabled = fields.Bool()
    bgm_volume = fields.Float()

    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class GameCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    total_slots = fields.Int(load_default=100, validate=validate.Range(min=10, max=200))


class GameStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_STATUSES))


class GameSettingsSchema(Schema):
    """Partial update of branding, toggles and music state."""

    name = fields.Str(validate=validate.Length(min=1, max=200))
    title = fields.Str(allow_none=True, validate=validate.Length(max=200))
    subtitle = fields.Str(allow_none=True, validate=validate.Length(max=300))
    theme_color = fields.Str(allow_none=True, validate=validate.Regexp(r"^#[0-9a-fA-F]{3,8}$"))
    logo_url = fields.Str(allow_none=True)

    show_snowfall = fields.Bool()
    show_popup = fields.Bool()
    show_winner_toast = fields.Bool()
    show_marquee = fields.Bool()
    marquee_text = fields.Str(allow_none=True)
    event_end_at = fields.AwareDateTime(allow_none=True, default_timezone=timezone.utc)

    bgm_enabled = fields.Bool()
    bgm_volume = fields.Float(validate=validate.Range(min=0.0, max=1.0))


class PrizeUpdateSchema(Schema):
    prize_name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    prize_grade = fields.Str(required=False, load_default=None, allow_none=True, validate=validate.Length(max=50))


class PrizeLayoutSchema(Schema):
    display_position = fields.Int(validate=validate.Range(min=1))
    position_top = fields.Float(allow_none=True, validate=validate.Range(min=0, max=100))
    position_left = fields.Float(allow_none=True, validate=validate.Range(min=0, max=100))
    offset_x = fields.Int()
    offset_y = fields.Int()


class PrizeLayoutItemSchema(PrizeLayoutSchema):
    id = fields.Str(required=True)


class PrizeLayoutBulkSchema(Schema):
    prizes = fields.List(fields.Nested(PrizeLayoutItemSchema), required=True, validate=validate.Length(min=1))

    @validates_schema
    def _validate_unique_ids(self, data, **kwargs):  # type: ignore[no-untyped-def]
        ids = [p["id"] for p in data.get("prizes") or []]
        if len(ids) != len(set(ids)):
            raise ValidationError({"prizes": ["Each prize may appear only once"]})


class ApplyTemplateSchema(Schema):
    template_id = fields.Str(required=True, allow_none=True)
