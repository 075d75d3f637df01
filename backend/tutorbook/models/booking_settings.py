"""Per-teacher booking policy and the request-form field registry."""

import uuid
from collections import namedtuple
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, Integer, JSON, Uuid
from sqlalchemy.orm import relationship
from tutorbook.database import Base


class FormFieldName(str, PyEnum):
    """Contact fields the public request form can collect."""
    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    DATES = "dates"
    DESCRIPTION = "description"


FormField = namedtuple("FormField", ["label", "input_kind", "required"])

# Closed registry; teachers only switch entries on or off
FORM_FIELDS = {
    FormFieldName.NAME: FormField("Full Name", "text", True),
    FormFieldName.EMAIL: FormField("Email Address", "email", True),
    FormFieldName.PHONE: FormField("Phone Number", "tel", True),
    FormFieldName.ADDRESS: FormField("Address", "text", True),
    FormFieldName.DATES: FormField("Preferred Dates", "text", True),
    FormFieldName.DESCRIPTION: FormField("Description/Notes", "textarea", True),
}


def default_form_fields() -> dict:
    return {name.value: True for name in FORM_FIELDS}


class BookingSettings(Base):
    """Booking policy - one row per teacher, replaced whole on save."""

    __tablename__ = "booking_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False, unique=True)

    # Advance booking bounds
    min_advance_booking_hours = Column(Integer, nullable=False, default=2)
    max_advance_booking_days = Column(Integer, nullable=False, default=30)

    # Sessions
    session_duration_minutes = Column(Integer, nullable=False, default=60)
    buffer_minutes = Column(Integer, nullable=False, default=15)
    max_sessions_per_day = Column(Integer, nullable=False, default=8)
    cancellation_policy_hours = Column(Integer, nullable=False, default=24)

    # Day rules
    allow_weekends = Column(Boolean, nullable=False, default=True)
    allow_same_day_booking = Column(Boolean, nullable=False, default=False)

    # Which booking surfaces are active on the public page
    allow_customer_book = Column(Boolean, nullable=False, default=True)
    allow_manual_book = Column(Boolean, nullable=False, default=True)

    # Request-form fields: {"name": true, "phone": false, ...}
    form_fields = Column(JSON, default=default_form_fields)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="booking_settings")

    def enabled_form_fields(self) -> list:
        """Registry entries switched on for this teacher, in registry order."""
        toggles = self.form_fields or {}
        return [name for name in FORM_FIELDS if toggles.get(name.value)]

    def __repr__(self):
        return f"<BookingSettings teacher={self.teacher_id}>"
