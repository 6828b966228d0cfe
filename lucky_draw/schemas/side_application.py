"""Schemas for side-event applications."""

from __future__ import annotations

import re

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates, validates_schema

from lucky_draw.models.side_application import SideApplicationStatus


class SideApplicationSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    phone = fields.Str()
    terms_agreed = fields.Bool()
    privacy_agreed = fields.Bool()
    marketing_agreed = fields.Bool()
    status = fields.Str()
    admin_note = fields.Str(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class SideApplicationCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(max=100))
    phone = fields.Str(required=True)
    terms_agreed = fields.Bool(load_default=False)
    privacy_agreed = fields.Bool(load_default=False)
    marketing_agreed = fields.Bool(load_default=False)

    @validates("name")
    def _validate_name(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if not value.strip():
            raise ValidationError("Name is required")

    @validates("phone")
    def _validate_phone(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if len(re.sub(r"\D", "", value)) < 10:
            raise ValidationError("Invalid phone number")

    @validates_schema
    def _validate_agreements(self, data, **kwargs):  # type: ignore[no-untyped-def]
        if not data.get("terms_agreed") or not data.get("privacy_agreed"):
            raise ValidationError({"terms_agreed": ["Required agreements must be accepted"]})

    @post_load
    def _strip(self, data, **kwargs):  # type: ignore[no-untyped-def]
        data["name"] = data["name"].strip()
        data["phone"] = data["phone"].strip()
        return data


class SideApplicationStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf([s.value for s in SideApplicationStatus]))
