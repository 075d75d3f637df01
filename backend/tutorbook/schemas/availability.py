"""Availability window, blocked date and resolved availability schemas."""

from datetime import datetime, date
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from tutorbook.models.availability import RecurringType
from tutorbook.schemas.common import ClockTime, reject_null


# Availability windows

class WindowCreate(BaseModel):
    """Publish a recurring weekly window."""

    title: Optional[str] = Field(None, max_length=100)
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday
    start_time: ClockTime
    end_time: ClockTime
    active_from: date
    active_until: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        return self


class WindowUpdate(BaseModel):
    """Partial window update; times are re-checked against the stored row."""

    title: Optional[str] = Field(None, max_length=100)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    active_from: Optional[date] = None
    active_until: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator("day_of_week", "start_time", "end_time", "active_from", "is_active")
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)


class WindowResponse(BaseModel):
    """Availability window response."""

    id: UUID
    title: Optional[str]
    day_of_week: int
    start_time: ClockTime
    end_time: ClockTime
    active_from: date
    active_until: Optional[date]
    is_active: bool

    class Config:
        from_attributes = True


# Blocked dates

class BlockedRangeCreate(BaseModel):
    """Block whole days. end_date defaults to start_date."""

    start_date: date
    end_date: Optional[date] = None
    reason: str = Field("Unavailable", max_length=255)
    is_recurring: bool = False
    recurring_type: Optional[RecurringType] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date is None:
            self.end_date = self.start_date
        if self.start_date > self.end_date:
            raise ValueError("end_date must not be before start_date")
        # Recurring blocks are never expanded, so they are not accepted
        if self.is_recurring or self.recurring_type is not None:
            raise ValueError("Recurring blocked dates are not supported")
        return self


class BlockedRangeResponse(BaseModel):
    """Blocked range response."""

    id: UUID
    start_date: date
    end_date: date
    reason: Optional[str]
    is_recurring: bool
    recurring_type: Optional[RecurringType]
    created_at: datetime

    class Config:
        from_attributes = True


# Resolved availability

class IntervalResponse(BaseModel):
    """One selectable window occurrence."""

    window_id: UUID
    title: Optional[str]
    start: ClockTime
    end: ClockTime

    class Config:
        from_attributes = True


class DayAvailability(BaseModel):
    """Open intervals for a single day."""

    date: date
    intervals: List[IntervalResponse]


class AvailabilityResponse(BaseModel):
    """Per-day availability for a date range."""

    start: date
    end: date
    days: List[DayAvailability]


class CalendarDayResponse(BaseModel):
    """One cell of the month grid."""

    date: date
    is_current_month: bool
    is_past: bool
    is_today: bool
    has_availability: bool
    intervals: List[IntervalResponse]

    class Config:
        from_attributes = True


class CalendarResponse(BaseModel):
    """Six-week grid for a month."""

    year: int
    month: int
    days: List[CalendarDayResponse]


class UpcomingResponse(BaseModel):
    """Next dates with at least one open interval."""

    days: List[DayAvailability]


class TimeOptionsResponse(BaseModel):
    """Pickable start and end times inside a window."""

    window_id: UUID
    start_options: List[ClockTime]
    end_options: List[ClockTime]
