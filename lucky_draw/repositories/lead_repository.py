"""Repository layer for reservations and side applications."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from lucky_draw.models.reservation import Reservation
from lucky_draw.models.side_application import SideApplication


class ReservationRepository:
    """CRUD operations for Reservation."""

    def list_reservations(
        self,
        session: Session,
        status: str | None = None,
        query: str | None = None,
    ) -> Sequence[Reservation]:
        stmt = select(Reservation).order_by(Reservation.created_at.desc())
        if status:
            stmt = stmt.where(Reservation.status == status)
        if query:
            like = f"%{query}%"
            stmt = stmt.where(
                or_(
                    Reservation.customer_name.like(like),
                    Reservation.phone.like(like),
                    Reservation.email.like(like),
                    Reservation.company_name.like(like),
                )
            )
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, reservation_id: str) -> Reservation | None:
        return session.get(Reservation, reservation_id)

    def create(self, session: Session, **values: object) -> Reservation:
        reservation = Reservation(**values)
        session.add(reservation)
        session.flush()
        return reservation

    def delete(self, session: Session, reservation: Reservation) -> None:
        session.delete(reservation)
        session.flush()


class SideApplicationRepository:
    """CRUD operations for SideApplication."""

    def list_applications(self, session: Session, status: str | None = None) -> Sequence[SideApplication]:
        stmt = select(SideApplication).order_by(SideApplication.created_at.desc())
        if status:
            stmt = stmt.where(SideApplication.status == status)
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, application_id: str) -> SideApplication | None:
        return session.get(SideApplication, application_id)

    def create(self, session: Session, **values: object) -> SideApplication:
        application = SideApplication(**values)
        session.add(application)
        session.flush()
        return application

    def delete(self, session: Session, application: SideApplication) -> None:
        session.delete(application)
        session.flush()
