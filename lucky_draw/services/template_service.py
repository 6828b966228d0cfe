"""Service layer for visual templates."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session
from werkzeug.datastructures import FileStorage

from lucky_draw.errors import NotFoundError, ValidationError
from lucky_draw.models.template import Template, TemplateSlot
from lucky_draw.repositories.template_repository import TemplateRepository
from lucky_draw.services.sprite import SpriteConfig, default_position
from lucky_draw.storage import IMAGE_EXTENSIONS, Storage, remove_after_commit, replace_object, store_upload

logger = logging.getLogger(__name__)

IMAGE_KINDS = ("background", "sprite")


def clamp_percent(value: float | None) -> float | None:
    if value is None:
        return None
    return round(min(max(float(value), 0.0), 100.0), 2)


class TemplateService:
    """Template use-cases."""

    def __init__(self, repository: TemplateRepository | None = None) -> None:
        self._repo = repository or TemplateRepository()

    def list_templates(self, session: Session) -> Sequence[Template]:
        return self._repo.list_templates(session)

    def get_template(self, session: Session, template_id: str) -> Template:
        template = self._repo.get_by_id(session, template_id)
        if template is None:
            raise NotFoundError(message=f"Template {template_id} not found")
        return template

    def sprite_config(self, template: Template | None) -> SpriteConfig:
        return SpriteConfig.from_mapping(template.sprite_config if template is not None else None)

    def create_template(
        self, session: Session, name: str, description: str | None = None, total_slots: int = 100
    ) -> Template:
        template = self._repo.create(
            session,
            name=name.strip(),
            description=description,
            total_slots=total_slots,
            sprite_config=SpriteConfig().to_mapping(),
        )
        slots = []
        for slot_number in range(1, total_slots + 1):
            top, left = default_position(slot_number)
            slots.append(
                TemplateSlot(
                    template_id=template.id,
                    slot_number=slot_number,
                    offset_x=0,
                    offset_y=0,
                    position_top=top,
                    position_left=left,
                )
            )
        self._repo.add_slots(session, slots)
        session.refresh(template)
        logger.info("Created template %s with %d slots", template.id, total_slots)
        return template

    def update_template(self, session: Session, template_id: str, values: Mapping[str, Any]) -> Template:
        template = self.get_template(session, template_id)
        for key, value in values.items():
            if key == "sprite_config" and value is not None:
                value = SpriteConfig.from_mapping(value).to_mapping()
            setattr(template, key, value)
        session.flush()
        return template

    def set_default(self, session: Session, template_id: str) -> Template:
        template = self.get_template(session, template_id)
        self._repo.clear_default(session, except_id=template.id)
        template.is_default = True
        session.flush()
        logger.info("Template %s is now the default", template.id)
        return template

    def _get_slot(self, session: Session, template_id: str, slot_id: str) -> TemplateSlot:
        slot = self._repo.get_slot(session, slot_id)
        if slot is None or slot.template_id != template_id:
            raise NotFoundError(message=f"Slot {slot_id} not found")
        return slot

    def update_slot(
        self, session: Session, template_id: str, slot_id: str, values: Mapping[str, Any]
    ) -> TemplateSlot:
        slot = self._get_slot(session, template_id, slot_id)
        for key, value in values.items():
            if key in ("position_top", "position_left"):
                value = clamp_percent(value)
            setattr(slot, key, value)
        session.flush()
        return slot

    def save_positions(
        self, session: Session, template_id: str, items: Sequence[Mapping[str, Any]]
    ) -> Sequence[TemplateSlot]:
        self.get_template(session, template_id)
        for item in items:
            slot = self._get_slot(session, template_id, str(item["id"]))
            slot.position_top = clamp_percent(item["position_top"])
            slot.position_left = clamp_percent(item["position_left"])
        session.flush()
        logger.info("Saved %d slot positions for template %s", len(items), template_id)
        return self._repo.list_slots(session, template_id)

    def reset_positions(self, session: Session, template_id: str) -> Sequence[TemplateSlot]:
        self.get_template(session, template_id)
        slots = self._repo.list_slots(session, template_id)
        for slot in slots:
            slot.position_top, slot.position_left = default_position(slot.slot_number)
        session.flush()
        return slots

    def upload_image(
        self, session: Session, storage: Storage, template_id: str, kind: str, upload: FileStorage | None
    ) -> Template:
        if kind not in IMAGE_KINDS:
            raise ValidationError("Unknown image kind", details={"kind": [f"One of: {', '.join(IMAGE_KINDS)}"]})
        template = self.get_template(session, template_id)
        attr = f"{kind}_image"
        url = store_upload(storage, upload, template.id, kind, IMAGE_EXTENSIONS)
        replace_object(session, storage, getattr(template, attr), url)
        setattr(template, attr, url)
        session.flush()
        return template

    def delete_image(self, session: Session, storage: Storage, template_id: str, kind: str) -> Template:
        if kind not in IMAGE_KINDS:
            raise ValidationError("Unknown image kind", details={"kind": [f"One of: {', '.join(IMAGE_KINDS)}"]})
        template = self.get_template(session, template_id)
        attr = f"{kind}_image"
        remove_after_commit(session, storage, getattr(template, attr))
        setattr(template, attr, None)
        session.flush()
        return template

    def delete_template(self, session: Session, storage: Storage, template_id: str) -> None:
        template = self.get_template(session, template_id)
        self._repo.detach_games(session, template.id)
        for url in (template.background_image, template.sprite_image):
            remove_after_commit(session, storage, url)
        self._repo.delete(session, template)
        logger.info("Deleted template %s", template_id)
