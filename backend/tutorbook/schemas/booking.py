"""Booking-related Pydantic schemas."""

from datetime import datetime, date, time, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from tutorbook.models.booking import Booking, BookingKind, BookingStatus
from tutorbook.schemas.common import ClockTime, normalize_phone

MIDNIGHT = time(0, 0)


class CustomerInfo(BaseModel):
    """Who is booking."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


class CheckoutEntry(BaseModel):
    """One cart selection. Omitted times mean the whole window."""

    window_id: UUID
    booking_date: date
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None


class CheckoutRequest(BaseModel):
    """Self-service checkout - explicit entries or a stored cart."""

    customer: CustomerInfo
    entries: List[CheckoutEntry] = []
    cart_token: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_source(self):
        if bool(self.entries) == bool(self.cart_token):
            raise ValueError("Provide either entries or cart_token")
        return self


class BookingRequestCreate(BaseModel):
    """Contact-form answers keyed by form field name."""

    answers: Dict[str, str] = {}


class ManualBookingCreate(BaseModel):
    """Booking entered by the teacher from the dashboard."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    booking_date: date
    start_time: ClockTime
    end_time: ClockTime
    amount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    status: BookingStatus = BookingStatus.PAID
    notes: Optional[str] = None

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        return self


class QuoteCreate(BaseModel):
    """Quote attached to a service request."""

    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    duration_hours: Decimal = Field(..., gt=0, max_digits=6, decimal_places=2)
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    """Administrative status change."""

    status: BookingStatus


class BookingResponse(BaseModel):
    """
    Booking as the dashboard and booking UI see it.

    Service requests have no date or time of their own; they are shown with
    their creation date (teacher's timezone) and 00:00-00:00.
    """

    id: UUID
    kind: BookingKind
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    booking_date: date
    start_time: ClockTime
    end_time: ClockTime
    amount: float
    status: BookingStatus
    notes: Optional[str]
    external_id: Optional[str] = None
    invoice_reference: Optional[str] = None
    quote_description: Optional[str] = None
    quote_duration_hours: Optional[float] = None
    quote_sent_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking, tz: str) -> "BookingResponse":
        booking_date, start, end = booking.booking_date, booking.start_time, booking.end_time
        if booking.kind == BookingKind.REQUEST.value:
            created = booking.created_at.replace(tzinfo=timezone.utc)
            booking_date = created.astimezone(ZoneInfo(tz)).date()
            start = end = MIDNIGHT
        quote_hours = getattr(booking, "quote_duration_hours", None)

        return cls(
            id=booking.id,
            kind=BookingKind(booking.kind),
            customer_name=booking.customer_name,
            customer_email=booking.customer_email,
            customer_phone=booking.customer_phone,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            amount=float(booking.amount or 0),
            status=booking.status,
            notes=booking.notes,
            external_id=booking.external_id,
            invoice_reference=booking.invoice_reference,
            quote_description=getattr(booking, "quote_description", None),
            quote_duration_hours=quote_hours if quote_hours is None else float(quote_hours),
            quote_sent_at=getattr(booking, "quote_sent_at", None),
            created_at=booking.created_at,
        )


class BookingListResponse(BaseModel):
    """Paginated booking list response."""

    bookings: List[BookingResponse]
    total: int


class CheckoutResponse(BaseModel):
    """Created reservations and batch totals."""

    reservations: List[BookingResponse]
    total_hours: float
    total_amount: float


class InvoiceResponse(BaseModel):
    """Invoice created for a booking."""

    booking_id: UUID
    invoice_reference: str
