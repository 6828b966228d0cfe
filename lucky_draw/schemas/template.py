"""Schemas for visual templates and their slots."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from lucky_draw.services.sprite import SpriteConfig


class TemplateSlotSchema(Schema):
    id = fields.Str()
    template_id = fields.Str()
    slot_number = fields.Int()
    offset_x = fields.Int()
    offset_y = fields.Int()
    position_top = fields.Float(allow_none=True)
    position_left = fields.Float(allow_none=True)
    item_image = fields.Str(allow_none=True)


class TemplateSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    description = fields.Str(allow_none=True)
    background_image = fields.Str(allow_none=True)
    sprite_image = fields.Str(allow_none=True)
    sprite_config = fields.Dict(allow_none=True)
    is_default = fields.Bool()
    total_slots = fields.Int()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class TemplateDetailSchema(TemplateSchema):
    slots = fields.List(fields.Nested(TemplateSlotSchema))


class TemplateCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    description = fields.Str(load_default=None, allow_none=True)
    total_slots = fields.Int(load_default=100, validate=validate.Range(min=1, max=200))


class TemplateUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=200))
    description = fields.Str(allow_none=True)
    sprite_config = fields.Dict(allow_none=True)

    @validates("sprite_config")
    def _validate_sprite_config(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if value is None:
            return
        try:
            SpriteConfig.from_mapping(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid sprite config: {exc}") from exc


class TemplateSlotUpdateSchema(Schema):
    offset_x = fields.Int()
    offset_y = fields.Int()
    position_top = fields.Float(allow_none=True)
    position_left = fields.Float(allow_none=True)


class TemplateSlotPositionSchema(Schema):
    id = fields.Str(required=True)
    position_top = fields.Float(required=True)
    position_left = fields.Float(required=True)


class TemplatePositionsSchema(Schema):
    slots = fields.List(fields.Nested(TemplateSlotPositionSchema), required=True)
