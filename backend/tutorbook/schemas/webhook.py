"""Inbound booking webhook schemas."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from tutorbook.models.booking import BookingStatus
from tutorbook.schemas.common import ClockTime, normalize_phone


class WebhookBookingData(BaseModel):
    """Booking as described by the external booking system."""

    external_id: str = Field(..., min_length=1, max_length=100)
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=30)
    booking_date: Optional[date] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    amount_paid: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[BookingStatus] = None
    notes: Optional[str] = None

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


class WebhookPayload(BaseModel):
    """Webhook envelope."""

    event_type: str
    teacher_id: UUID
    booking_data: WebhookBookingData


class WebhookResult(BaseModel):
    """Webhook acknowledgement."""

    status: str
    booking_id: Optional[UUID] = None
