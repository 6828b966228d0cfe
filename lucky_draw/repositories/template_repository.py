"""Repository layer for templates and template slots."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from lucky_draw.models.game import Game
from lucky_draw.models.template import Template, TemplateSlot


class TemplateRepository:
    """CRUD operations for Template."""

    def list_templates(self, session: Session) -> Sequence[Template]:
        stmt = select(Template).order_by(Template.is_default.desc(), Template.created_at.desc())
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, template_id: str) -> Template | None:
        return session.get(Template, template_id)

    def get_default(self, session: Session) -> Template | None:
        stmt = select(Template).where(Template.is_default.is_(True)).limit(1)
        return session.scalars(stmt).first()

    def create(self, session: Session, **values: object) -> Template:
        template = Template(**values)
        session.add(template)
        session.flush()
        return template

    def add_slots(self, session: Session, slots: Iterable[TemplateSlot]) -> None:
        session.add_all(list(slots))
        session.flush()

    def list_slots(self, session: Session, template_id: str) -> Sequence[TemplateSlot]:
        stmt = (
            select(TemplateSlot)
            .where(TemplateSlot.template_id == template_id)
            .order_by(TemplateSlot.slot_number.asc())
        )
        return list(session.scalars(stmt).all())

    def get_slot(self, session: Session, slot_id: str) -> TemplateSlot | None:
        return session.get(TemplateSlot, slot_id)

    def clear_default(self, session: Session, except_id: str | None = None) -> None:
        stmt = update(Template).values(is_default=False).execution_options(synchronize_session="fetch")
        if except_id is not None:
            stmt = stmt.where(Template.id != except_id)
        session.execute(stmt)

    def detach_games(self, session: Session, template_id: str) -> None:
        stmt = (
            update(Game)
            .where(Game.template_id == template_id)
            .values(template_id=None)
            .execution_options(synchronize_session="fetch")
        )
        session.execute(stmt)

    def delete(self, session: Session, template: Template) -> None:
        session.delete(template)
        session.flush()
