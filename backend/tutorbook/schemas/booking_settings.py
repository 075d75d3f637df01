"""Booking settings schemas."""

from typing import Dict, List
from pydantic import BaseModel, Field, field_validator

from tutorbook.models.booking_settings import FORM_FIELDS, default_form_fields
from tutorbook.schemas.availability import BlockedRangeCreate, BlockedRangeResponse

KNOWN_FORM_FIELDS = {name.value for name in FORM_FIELDS}


class BookingSettingsBase(BaseModel):
    """Policy fields shared by read and write."""

    min_advance_booking_hours: int = Field(2, ge=0)
    max_advance_booking_days: int = Field(30, ge=0)
    session_duration_minutes: int = Field(60, gt=0)
    buffer_minutes: int = Field(15, ge=0)
    allow_weekends: bool = True
    allow_same_day_booking: bool = False
    cancellation_policy_hours: int = Field(24, ge=0)
    max_sessions_per_day: int = Field(8, gt=0)
    allow_customer_book: bool = True
    allow_manual_book: bool = True
    form_fields: Dict[str, bool] = Field(default_factory=default_form_fields)

    @field_validator("form_fields")
    @classmethod
    def check_form_fields(cls, v: Dict[str, bool]) -> Dict[str, bool]:
        unknown = set(v) - KNOWN_FORM_FIELDS
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        return v


class BookingSettingsUpdate(BookingSettingsBase):
    """Whole-row replacement; blocked_dates replaces every blocked range."""

    blocked_dates: List[BlockedRangeCreate] = []


class BookingSettingsResponse(BookingSettingsBase):
    """Settings plus the teacher's current blocked ranges."""

    blocked_dates: List[BlockedRangeResponse] = []

    class Config:
        from_attributes = True
