"""Schemas for admin authentication."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.Str(required=True, validate=validate.Length(min=1))


class AdminProfileSchema(Schema):
    id = fields.Str()
    email = fields.Str()
    is_super = fields.Bool()
    game_id = fields.Str(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
