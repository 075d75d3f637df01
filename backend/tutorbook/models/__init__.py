"""SQLAlchemy models."""

from tutorbook.models.teacher import Teacher
from tutorbook.models.availability import AvailabilityWindow, BlockedRange, RecurringType
from tutorbook.models.booking_settings import (
    BookingSettings,
    FormField,
    FormFieldName,
    FORM_FIELDS,
    default_form_fields,
)
from tutorbook.models.booking import (
    Booking,
    BookingKind,
    BookingStatus,
    ScheduledReservation,
    ServiceRequest,
)

__all__ = [
    "Teacher",
    "AvailabilityWindow",
    "BlockedRange",
    "RecurringType",
    "BookingSettings",
    "FormField",
    "FormFieldName",
    "FORM_FIELDS",
    "default_form_fields",
    "Booking",
    "BookingKind",
    "BookingStatus",
    "ScheduledReservation",
    "ServiceRequest",
]
