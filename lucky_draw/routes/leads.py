"""Public reservation and side-event application forms."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from lucky_draw.db import get_session
from lucky_draw.schemas.reservation import ReservationCreateSchema, ReservationSchema
from lucky_draw.schemas.side_application import SideApplicationCreateSchema, SideApplicationSchema
from lucky_draw.services.lead_service import ReservationService, SideApplicationService
from lucky_draw.utils.responses import ok

leads_bp = Blueprint("leads", __name__)

_reservation_create_schema = ReservationCreateSchema()
_reservation_schema = ReservationSchema()
_application_create_schema = SideApplicationCreateSchema()
_application_schema = SideApplicationSchema()
_reservations = ReservationService()
_applications = SideApplicationService()


@leads_bp.post("/reservations")
def create_reservation():
    payload = request.get_json(silent=True) or {}
    data = _reservation_create_schema.load(payload)

    reservation = _reservations.create_reservation(
        get_session(), data, tz_name=str(current_app.config["EVENT_TIMEZONE"])
    )
    return ok(_reservation_schema.dump(reservation), status_code=201)


@leads_bp.post("/side-applications")
def create_side_application():
    payload = request.get_json(silent=True) or {}
    data = _application_create_schema.load(payload)

    application = _applications.create_application(get_session(), data)
    return ok(_application_schema.dump(application), status_code=201)
