"""Admin API: visual templates and slot layout."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from lucky_draw.auth import admin_required
from lucky_draw.db import get_session
from lucky_draw.schemas.template import (
    TemplateCreateSchema,
    TemplateDetailSchema,
    TemplatePositionsSchema,
    TemplateSchema,
    TemplateSlotSchema,
    TemplateSlotUpdateSchema,
    TemplateUpdateSchema,
)
from lucky_draw.services.template_service import TemplateService
from lucky_draw.storage import get_storage
from lucky_draw.utils.responses import ok

admin_templates_bp = Blueprint("admin_templates", __name__)

_templates_schema = TemplateSchema(many=True)
_detail_schema = TemplateDetailSchema()
_create_schema = TemplateCreateSchema()
_update_schema = TemplateUpdateSchema()
_slot_schema = TemplateSlotSchema()
_slots_schema = TemplateSlotSchema(many=True)
_slot_update_schema = TemplateSlotUpdateSchema()
_positions_schema = TemplatePositionsSchema()
_service = TemplateService()


@admin_templates_bp.get("/templates")
@admin_required
def list_templates():
    return ok(_templates_schema.dump(_service.list_templates(get_session())))


@admin_templates_bp.post("/templates")
@admin_required(super_only=True)
def create_template():
    payload = request.get_json(silent=True) or {}
    data = _create_schema.load(payload)

    template = _service.create_template(get_session(), **data)
    return ok(_detail_schema.dump(template), status_code=201)


@admin_templates_bp.get("/templates/<template_id>")
@admin_required
def get_template(template_id: str):
    return ok(_detail_schema.dump(_service.get_template(get_session(), template_id)))


@admin_templates_bp.patch("/templates/<template_id>")
@admin_required(super_only=True)
def update_template(template_id: str):
    payload = request.get_json(silent=True) or {}
    data = _update_schema.load(payload)

    template = _service.update_template(get_session(), template_id, data)
    return ok(_detail_schema.dump(template))


@admin_templates_bp.post("/templates/<template_id>/default")
@admin_required(super_only=True)
def set_default(template_id: str):
    template = _service.set_default(get_session(), template_id)
    return ok(_detail_schema.dump(template))


@admin_templates_bp.delete("/templates/<template_id>")
@admin_required(super_only=True)
def delete_template(template_id: str):
    _service.delete_template(get_session(), get_storage(current_app), template_id)
    return ok({"deleted": template_id})


@admin_templates_bp.patch("/templates/<template_id>/slots/<slot_id>")
@admin_required(super_only=True)
def update_slot(template_id: str, slot_id: str):
    payload = request.get_json(silent=True) or {}
    data = _slot_update_schema.load(payload)

    slot = _service.update_slot(get_session(), template_id, slot_id, data)
    return ok(_slot_schema.dump(slot))


@admin_templates_bp.put("/templates/<template_id>/positions")
@admin_required(super_only=True)
def save_positions(template_id: str):
    payload = request.get_json(silent=True) or {}
    data = _positions_schema.load(payload)

    slots = _service.save_positions(get_session(), template_id, data["slots"])
    return ok(_slots_schema.dump(slots))


@admin_templates_bp.post("/templates/<template_id>/positions/reset")
@admin_required(super_only=True)
def reset_positions(template_id: str):
    slots = _service.reset_positions(get_session(), template_id)
    return ok(_slots_schema.dump(slots))


@admin_templates_bp.post("/templates/<template_id>/images/<kind>")
@admin_required(super_only=True)
def upload_image(template_id: str, kind: str):
    template = _service.upload_image(
        get_session(), get_storage(current_app), template_id, kind, request.files.get("file")
    )
    return ok(_detail_schema.dump(template))


@admin_templates_bp.delete("/templates/<template_id>/images/<kind>")
@admin_required(super_only=True)
def delete_image(template_id: str, kind: str):
    template = _service.delete_image(get_session(), get_storage(current_app), template_id, kind)
    return ok(_detail_schema.dump(template))
