"""Teacher dashboard API routes."""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.database import get_db
from tutorbook.clock import Clock, get_clock
from tutorbook.api.deps import get_current_teacher, get_notification_service
from tutorbook.integrations import get_invoicing_client
from tutorbook.integrations.invoicing_client import InvoicingClient
from tutorbook.models.booking import BookingStatus
from tutorbook.models.teacher import Teacher
from tutorbook.schemas.availability import (
    BlockedRangeCreate,
    BlockedRangeResponse,
    WindowCreate,
    WindowResponse,
    WindowUpdate,
)
from tutorbook.schemas.booking import (
    BookingListResponse,
    BookingResponse,
    InvoiceResponse,
    ManualBookingCreate,
    QuoteCreate,
    StatusUpdate,
)
from tutorbook.schemas.booking_settings import BookingSettingsResponse, BookingSettingsUpdate
from tutorbook.schemas.teacher import TeacherResponse, TeacherUpdate
from tutorbook.services.notification_service import NotificationService
from tutorbook.services.reservation_service import ReservationService
from tutorbook.services.schedule_service import ScheduleService
from tutorbook.services.settings_service import SettingsService

router = APIRouter()


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile", response_model=TeacherResponse)
async def get_profile(teacher: Teacher = Depends(get_current_teacher)):
    """Get the teacher's own profile."""
    return teacher


@router.patch("/profile", response_model=TeacherResponse)
async def update_profile(
    data: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """Update profile fields. Omitted fields are left alone."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(teacher, field, value)
    await db.commit()
    await db.refresh(teacher)
    return teacher


# =============================================================================
# Availability Windows
# =============================================================================

@router.get("/availability", response_model=List[WindowResponse])
async def list_windows(
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """List availability windows, including deactivated ones unless asked."""
    return await ScheduleService(db, teacher.id).list_windows(active_only=active_only)


@router.post("/availability", response_model=WindowResponse, status_code=status.HTTP_201_CREATED)
async def create_window(
    data: WindowCreate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """Publish a weekly window. Overlapping an active window is a conflict."""
    return await ScheduleService(db, teacher.id).create_window(data)


@router.patch("/availability/{window_id}", response_model=WindowResponse)
async def update_window(
    window_id: UUID,
    data: WindowUpdate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    return await ScheduleService(db, teacher.id).update_window(window_id, data)


@router.delete("/availability/{window_id}", response_model=WindowResponse)
async def delete_window(
    window_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """Deactivate a window. Windows are kept for history."""
    return await ScheduleService(db, teacher.id).deactivate_window(window_id)


# =============================================================================
# Blocked Dates
# =============================================================================

@router.get("/blocked-dates", response_model=List[BlockedRangeResponse])
async def list_blocked_dates(
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    return await ScheduleService(db, teacher.id).list_blocked_ranges()


@router.post("/blocked-dates", response_model=BlockedRangeResponse, status_code=status.HTTP_201_CREATED)
async def create_blocked_date(
    data: BlockedRangeCreate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    return await ScheduleService(db, teacher.id).create_blocked_range(data)


@router.delete("/blocked-dates/{blocked_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blocked_date(
    blocked_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    await ScheduleService(db, teacher.id).delete_blocked_range(blocked_id)


# =============================================================================
# Booking Settings
# =============================================================================

async def _settings_response(db: AsyncSession, teacher: Teacher) -> BookingSettingsResponse:
    policy = await SettingsService(db, teacher.id).get()
    blocked = await ScheduleService(db, teacher.id).list_blocked_ranges()
    response = BookingSettingsResponse.model_validate(policy)
    response.blocked_dates = [BlockedRangeResponse.model_validate(b) for b in blocked]
    return response


@router.get("/booking-settings", response_model=BookingSettingsResponse)
async def get_booking_settings(
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """Current policy, or the defaults when nothing was saved yet."""
    return await _settings_response(db, teacher)


@router.put("/booking-settings", response_model=BookingSettingsResponse)
async def save_booking_settings(
    data: BookingSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    """Replace the policy and every blocked range."""
    await SettingsService(db, teacher.id).save(data)
    return await _settings_response(db, teacher)


# =============================================================================
# Bookings
# =============================================================================

@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    bookings = await ReservationService(db, teacher).list_bookings(status=status_filter)
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b, teacher.timezone) for b in bookings],
        total=len(bookings),
    )


@router.post("/bookings/manual", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_manual_booking(
    data: ManualBookingCreate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
    clock: Clock = Depends(get_clock),
):
    """Enter a booking by hand. Fails with 409 when the slot is taken."""
    booking = await ReservationService(db, teacher, clock).create_manual_booking(data)
    return BookingResponse.from_booking(booking, teacher.timezone)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    await ReservationService(db, teacher).delete(booking_id)


@router.post("/bookings/{booking_id}/quote", response_model=BookingResponse)
async def attach_quote(
    booking_id: UUID,
    data: QuoteCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
    clock: Clock = Depends(get_clock),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Send a quote for a booking request and email it to the customer."""
    booking = await ReservationService(db, teacher, clock).attach_quote(booking_id, data)
    background_tasks.add_task(notifications.quote_sent, teacher, booking)
    return BookingResponse.from_booking(booking, teacher.timezone)


@router.post("/bookings/{booking_id}/status", response_model=BookingResponse)
async def change_status(
    booking_id: UUID,
    data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    booking = await ReservationService(db, teacher).change_status(booking_id, data.status)
    return BookingResponse.from_booking(booking, teacher.timezone)


@router.post("/bookings/{booking_id}/invoice", response_model=InvoiceResponse)
async def create_invoice(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
    invoicing: InvoicingClient = Depends(get_invoicing_client),
):
    """Create an invoice for a booking. 502 when the invoicing service fails."""
    booking = await ReservationService(db, teacher).attach_invoice(booking_id, invoicing)
    return InvoiceResponse(booking_id=booking.id, invoice_reference=booking.invoice_reference)
