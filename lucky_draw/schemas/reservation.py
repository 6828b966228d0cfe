"""Schemas for event reservations."""

from __future__ import annotations

import re

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates, validates_schema

from lucky_draw.models.reservation import ReservationStatus

PHONE_RE = re.compile(r"^01[0-9][0-9]{3,4}[0-9]{4}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# 09:00 .. 22:00 in 30 minute steps
TIME_OPTIONS = [f"{9 + i // 2:02d}:{(i % 2) * 30:02d}" for i in range(27)]


class ReservationSchema(Schema):
    id = fields.Str()
    customer_name = fields.Str()
    phone = fields.Str()
    email = fields.Str()
    company_name = fields.Str(allow_none=True)
    event_date = fields.Date()
    event_time = fields.Str()
    event_datetime = fields.DateTime()
    expected_participants = fields.Int(allow_none=True)
    event_description = fields.Str(allow_none=True)
    terms_agreed = fields.Bool()
    privacy_agreed = fields.Bool()
    marketing_agreed = fields.Bool()
    status = fields.Str()
    admin_note = fields.Str(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class ReservationCreateSchema(Schema):
    customer_name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    phone = fields.Str(required=True)
    email = fields.Str(required=True)
    company_name = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=200))
    event_date = fields.Date(required=True)
    event_time = fields.Str(required=True, validate=validate.OneOf(TIME_OPTIONS))
    expected_participants = fields.Int(load_default=None, allow_none=True, validate=validate.Range(min=1))
    event_description = fields.Str(load_default=None, allow_none=True)
    terms_agreed = fields.Bool(load_default=False)
    privacy_agreed = fields.Bool(load_default=False)
    marketing_agreed = fields.Bool(load_default=False)

    @validates("phone")
    def _validate_phone(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if not PHONE_RE.match(value.replace("-", "").strip()):
            raise ValidationError("Invalid phone number format")

    @validates("email")
    def _validate_email(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if not EMAIL_RE.match(value.strip()):
            raise ValidationError("Invalid email format")

    @validates_schema
    def _validate_agreements(self, data, **kwargs):  # type: ignore[no-untyped-def]
        errors: dict[str, list[str]] = {}
        if not data.get("terms_agreed"):
            errors["terms_agreed"] = ["Terms of service must be accepted"]
        if not data.get("privacy_agreed"):
            errors["privacy_agreed"] = ["Privacy policy must be accepted"]
        if not (data.get("customer_name") or "").strip():
            errors["customer_name"] = ["Name is required"]
        if errors:
            raise ValidationError(errors)

    @post_load
    def _normalize(self, data, **kwargs):  # type: ignore[no-untyped-def]
        data["customer_name"] = data["customer_name"].strip()
        data["phone"] = data["phone"].replace("-", "").strip()
        data["email"] = data["email"].strip()
        for key in ("company_name", "event_description"):
            value = data.get(key)
            data[key] = value.strip() or None if isinstance(value, str) else None
        return data


class ReservationStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf([s.value for s in ReservationStatus]))


class AdminNoteSchema(Schema):
    admin_note = fields.Str(required=True, allow_none=True)
