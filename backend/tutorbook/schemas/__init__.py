"""Pydantic schemas for API request/response validation."""

from tutorbook.schemas.teacher import (
    SignupRequest,
    LoginRequest,
    TokenResponse,
    TeacherUpdate,
    TeacherResponse,
    FormFieldResponse,
    PublicProfileResponse,
)
from tutorbook.schemas.availability import (
    WindowCreate,
    WindowUpdate,
    WindowResponse,
    BlockedRangeCreate,
    BlockedRangeResponse,
    IntervalResponse,
    DayAvailability,
    AvailabilityResponse,
    CalendarDayResponse,
    CalendarResponse,
    UpcomingResponse,
    TimeOptionsResponse,
)
from tutorbook.schemas.booking_settings import (
    BookingSettingsUpdate,
    BookingSettingsResponse,
)
from tutorbook.schemas.booking import (
    CustomerInfo,
    CheckoutEntry,
    CheckoutRequest,
    CheckoutResponse,
    BookingRequestCreate,
    ManualBookingCreate,
    QuoteCreate,
    StatusUpdate,
    BookingResponse,
    BookingListResponse,
    InvoiceResponse,
)
from tutorbook.schemas.cart import CartItemSelect, CartItemResponse, CartResponse
from tutorbook.schemas.webhook import WebhookPayload, WebhookBookingData, WebhookResult
