"""Service layer for reservations and side-event applications."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from typing import Any

import pytz
from sqlalchemy.orm import Session

from lucky_draw.db import publish_after_commit
from lucky_draw.errors import NotFoundError, ValidationError
from lucky_draw.models.reservation import Reservation, ReservationStatus
from lucky_draw.models.side_application import SideApplication, SideApplicationStatus
from lucky_draw.realtime import RESERVATIONS_CHANNEL, SIDE_APPLICATIONS_CHANNEL, change_payload
from lucky_draw.repositories.lead_repository import ReservationRepository, SideApplicationRepository
from lucky_draw.schemas.reservation import ReservationSchema
from lucky_draw.schemas.side_application import SideApplicationSchema

logger = logging.getLogger(__name__)

_reservation_schema = ReservationSchema()
_application_schema = SideApplicationSchema()


def event_datetime(event_date: date, event_time: str, tz_name: str) -> datetime:
    hour, minute = (int(part) for part in event_time.split(":"))
    return pytz.timezone(tz_name).localize(datetime.combine(event_date, time(hour, minute)))


class ReservationService:
    """Reservation use-cases."""

    def __init__(self, repository: ReservationRepository | None = None) -> None:
        self._repo = repository or ReservationRepository()

    def _publish(self, session: Session, change_type: str, reservation: Reservation) -> None:
        data = _reservation_schema.dump(reservation)
        new, old = (None, data) if change_type == "DELETE" else (data, None)
        publish_after_commit(
            session, RESERVATIONS_CHANNEL, "reservations", change_payload("reservations", change_type, new, old)
        )

    def create_reservation(
        self, session: Session, data: Mapping[str, Any], tz_name: str, today: date | None = None
    ) -> Reservation:
        today = today or datetime.now(pytz.timezone(tz_name)).date()
        if data["event_date"] < today:
            raise ValidationError(details={"event_date": ["Date cannot be in the past"]})

        reservation = self._repo.create(
            session,
            **data,
            event_datetime=event_datetime(data["event_date"], data["event_time"], tz_name),
            status=ReservationStatus.PENDING.value,
        )
        self._publish(session, "INSERT", reservation)
        logger.info("New reservation %s for %s", reservation.id, reservation.event_date)
        return reservation

    def list_reservations(
        self, session: Session, status: str | None = None, query: str | None = None
    ) -> Sequence[Reservation]:
        if status and status not in {s.value for s in ReservationStatus}:
            raise ValidationError(details={"status": [f"Unknown status {status}"]})
        return self._repo.list_reservations(session, status=status or None, query=(query or "").strip() or None)

    def get_reservation(self, session: Session, reservation_id: str) -> Reservation:
        reservation = self._repo.get_by_id(session, reservation_id)
        if reservation is None:
            raise NotFoundError(message=f"Reservation {reservation_id} not found")
        return reservation

    def update_status(self, session: Session, reservation_id: str, status: str) -> Reservation:
        reservation = self.get_reservation(session, reservation_id)
        reservation.status = ReservationStatus(status).value
        session.flush()
        self._publish(session, "UPDATE", reservation)
        logger.info("Reservation %s status -> %s", reservation.id, reservation.status)
        return reservation

    def save_note(self, session: Session, reservation_id: str, note: str | None) -> Reservation:
        reservation = self.get_reservation(session, reservation_id)
        reservation.admin_note = (note or "").strip() or None
        session.flush()
        self._publish(session, "UPDATE", reservation)
        return reservation

    def delete_reservation(self, session: Session, reservation_id: str) -> None:
        reservation = self.get_reservation(session, reservation_id)
        self._publish(session, "DELETE", reservation)
        self._repo.delete(session, reservation)
        logger.info("Deleted reservation %s", reservation_id)


class SideApplicationService:
    """Side-event application use-cases."""

    def __init__(self, repository: SideApplicationRepository | None = None) -> None:
        self._repo = repository or SideApplicationRepository()

    def _publish(self, session: Session, change_type: str, application: SideApplication) -> None:
        data = _application_schema.dump(application)
        new, old = (None, data) if change_type == "DELETE" else (data, None)
        publish_after_commit(
            session,
            SIDE_APPLICATIONS_CHANNEL,
            "side_applications",
            change_payload("side_applications", change_type, new, old),
        )

    def create_application(self, session: Session, data: Mapping[str, Any]) -> SideApplication:
        application = self._repo.create(session, **data, status=SideApplicationStatus.PENDING.value)
        self._publish(session, "INSERT", application)
        logger.info("New side application %s", application.id)
        return application

    def list_applications(self, session: Session, status: str | None = None) -> Sequence[SideApplication]:
        if status and status not in {s.value for s in SideApplicationStatus}:
            raise ValidationError(details={"status": [f"Unknown status {status}"]})
        return self._repo.list_applications(session, status=status or None)

    def get_application(self, session: Session, application_id: str) -> SideApplication:
        application = self._repo.get_by_id(session, application_id)
        if application is None:
            raise NotFoundError(message=f"Application {application_id} not found")
        return application

    def update_status(self, session: Session, application_id: str, status: str) -> SideApplication:
        application = self.get_application(session, application_id)
        application.status = SideApplicationStatus(status).value
        session.flush()
        self._publish(session, "UPDATE", application)
        return application

    def save_note(self, session: Session, application_id: str, note: str | None) -> SideApplication:
        application = self.get_application(session, application_id)
        application.admin_note = (note or "").strip() or None
        session.flush()
        self._publish(session, "UPDATE", application)
        return application

    def delete_application(self, session: Session, application_id: str) -> None:
        application = self.get_application(session, application_id)
        self._publish(session, "DELETE", application)
        self._repo.delete(session, application)
        logger.info("Deleted side application %s", application_id)
