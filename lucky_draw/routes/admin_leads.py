"""Admin API: reservations and side-event applications."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from lucky_draw.auth import admin_required
from lucky_draw.db import get_session
from lucky_draw.realtime import RESERVATIONS_CHANNEL, SIDE_APPLICATIONS_CHANNEL, get_hub
from lucky_draw.schemas.reservation import AdminNoteSchema, ReservationSchema, ReservationStatusSchema
from lucky_draw.schemas.side_application import SideApplicationSchema, SideApplicationStatusSchema
from lucky_draw.services.lead_service import ReservationService, SideApplicationService
from lucky_draw.utils.responses import ok

admin_leads_bp = Blueprint("admin_leads", __name__)

_reservation_schema = ReservationSchema()
_reservations_schema = ReservationSchema(many=True)
_reservation_status_schema = ReservationStatusSchema()
_application_schema = SideApplicationSchema()
_applications_schema = SideApplicationSchema(many=True)
_application_status_schema = SideApplicationStatusSchema()
_note_schema = AdminNoteSchema()
_reservations = ReservationService()
_applications = SideApplicationService()


def _event_stream(channel: str) -> Response:
    hub = get_hub(current_app)
    sub = hub.subscribe(channel)
    return Response(
        hub.stream(sub, float(current_app.config["SSE_KEEPALIVE_SECONDS"])),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# Reservations


@admin_leads_bp.get("/reservations")
@admin_required(super_only=True)
def list_reservations():
    reservations = _reservations.list_reservations(
        get_session(), status=request.args.get("status"), query=request.args.get("q")
    )
    return ok(_reservations_schema.dump(reservations))


@admin_leads_bp.put("/reservations/<reservation_id>/status")
@admin_required(super_only=True)
def update_reservation_status(reservation_id: str):
    payload = request.get_json(silent=True) or {}
    data = _reservation_status_schema.load(payload)

    reservation = _reservations.update_status(get_session(), reservation_id, data["status"])
    return ok(_reservation_schema.dump(reservation))


@admin_leads_bp.put("/reservations/<reservation_id>/note")
@admin_required(super_only=True)
def save_reservation_note(reservation_id: str):
    payload = request.get_json(silent=True) or {}
    data = _note_schema.load(payload)

    reservation = _reservations.save_note(get_session(), reservation_id, data["admin_note"])
    return ok(_reservation_schema.dump(reservation))


@admin_leads_bp.delete("/reservations/<reservation_id>")
@admin_required(super_only=True)
def delete_reservation(reservation_id: str):
    _reservations.delete_reservation(get_session(), reservation_id)
    return ok({"deleted": reservation_id})


@admin_leads_bp.get("/reservations/events")
@admin_required(super_only=True)
def reservation_events():
    return _event_stream(RESERVATIONS_CHANNEL)


# Side applications


@admin_leads_bp.get("/side-applications")
@admin_required(super_only=True)
def list_side_applications():
    applications = _applications.list_applications(get_session(), status=request.args.get("status"))
    return ok(_applications_schema.dump(applications))


@admin_leads_bp.put("/side-applications/<application_id>/status")
@admin_required(super_only=True)
def update_side_application_status(application_id: str):
    payload = request.get_json(silent=True) or {}
    data = _application_status_schema.load(payload)

    application = _applications.update_status(get_session(), application_id, data["status"])
    return ok(_application_schema.dump(application))


@admin_leads_bp.put("/side-applications/<application_id>/note")
@admin_required(super_only=True)
def save_side_application_note(application_id: str):
    payload = request.get_json(silent=True) or {}
    data = _note_schema.load(payload)

    application = _applications.save_note(get_session(), application_id, data["admin_note"])
    return ok(_application_schema.dump(application))


@admin_leads_bp.delete("/side-applications/<application_id>")
@admin_required(super_only=True)
def delete_side_application(application_id: str):
    _applications.delete_application(get_session(), application_id)
    return ok({"deleted": application_id})


@admin_leads_bp.get("/side-applications/events")
@admin_required(super_only=True)
def side_application_events():
    return _event_stream(SIDE_APPLICATIONS_CHANNEL)
