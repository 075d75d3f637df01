"""Booking settings service - per-teacher policy with materialised defaults."""

import logging
from typing import List
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.models.booking_settings import BookingSettings, FORM_FIELDS, FormFieldName
from tutorbook.schemas.booking_settings import BookingSettingsBase, BookingSettingsUpdate
from tutorbook.services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)

POLICY_FIELDS = list(BookingSettingsBase.model_fields)
ALWAYS_COLLECTED = (FormFieldName.NAME, FormFieldName.EMAIL)


class SettingsService:
    """Service for booking settings."""

    def __init__(self, db: AsyncSession, teacher_id: UUID):
        self.db = db
        self.teacher_id = teacher_id

    async def _get_row(self):
        result = await self.db.execute(
            select(BookingSettings).where(BookingSettings.teacher_id == self.teacher_id)
        )
        return result.scalar_one_or_none()

    async def get(self) -> BookingSettings:
        """
        Stored settings, or an unsaved row carrying the defaults.
        Defaults are not persisted until the first write.
        """
        row = await self._get_row()
        if row:
            return row
        return BookingSettings(teacher_id=self.teacher_id, **BookingSettingsBase().model_dump())

    async def save(self, data: BookingSettingsUpdate) -> BookingSettings:
        """Replace the whole settings row and every blocked range in one transaction."""
        values = data.model_dump(include=set(POLICY_FIELDS))

        row = await self._get_row()
        if row is None:
            row = BookingSettings(teacher_id=self.teacher_id, **values)
            self.db.add(row)
        else:
            for field, value in values.items():
                setattr(row, field, value)

        schedule = ScheduleService(self.db, self.teacher_id)
        await schedule.replace_blocked_ranges(data.blocked_dates)

        await self.db.commit()
        await self.db.refresh(row)
        logger.info(
            "Saved booking settings for teacher %s (%d blocked ranges)",
            self.teacher_id, len(data.blocked_dates),
        )
        return row

    @staticmethod
    def form_fields(settings: BookingSettings) -> List[dict]:
        """
        Request-form fields with their registry metadata. Once any field is
        enabled, name and email are always collected and required.
        """
        enabled = set(settings.enabled_form_fields())
        if enabled:
            enabled.update(ALWAYS_COLLECTED)

        fields = []
        for name in FORM_FIELDS:
            if name not in enabled:
                continue
            entry = FORM_FIELDS[name]
            fields.append({
                "name": name.value,
                "label": entry.label,
                "input_kind": entry.input_kind,
                "required": entry.required or name in ALWAYS_COLLECTED,
            })
        return fields
