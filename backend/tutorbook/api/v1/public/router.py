"""Public booking page API routes - no authentication."""

from datetime import date, timedelta
from typing import Dict, List
from uuid import UUID
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import redis.asyncio as aioredis

from tutorbook.database import get_db, get_redis
from tutorbook.clock import Clock, get_clock
from tutorbook.config import get_settings
from tutorbook.api.deps import get_teacher_by_subdomain, get_notification_service
from tutorbook.exceptions import ValidationError
from tutorbook.models.teacher import Teacher
from tutorbook.schemas.availability import (
    AvailabilityResponse,
    CalendarDayResponse,
    CalendarResponse,
    DayAvailability,
    IntervalResponse,
    TimeOptionsResponse,
    UpcomingResponse,
)
from tutorbook.schemas.booking import (
    BookingRequestCreate,
    BookingResponse,
    CheckoutEntry,
    CheckoutRequest,
    CheckoutResponse,
)
from tutorbook.schemas.cart import CartItemResponse, CartItemSelect, CartResponse
from tutorbook.schemas.teacher import FormFieldResponse, PublicProfileResponse
from tutorbook.services.availability_resolver import (
    OpenInterval,
    build_month_grid,
    month_grid_bounds,
    upcoming_dates,
    window_applies,
)
from tutorbook.services.cart_service import CartService
from tutorbook.services.notification_service import NotificationService
from tutorbook.services.reservation_service import ReservationService
from tutorbook.services.schedule_service import ScheduleService
from tutorbook.services.settings_service import SettingsService
from tutorbook.services.slot_selector import Cart, compute_amount, select_custom_time, time_options

settings = get_settings()
router = APIRouter()


def _days(resolved: Dict[date, List[OpenInterval]], only: List[date] = None) -> List[DayAvailability]:
    dates = only if only is not None else sorted(resolved)
    return [
        DayAvailability(
            date=d,
            intervals=[IntervalResponse.model_validate(i) for i in resolved[d]],
        )
        for d in dates
    ]


# =============================================================================
# Profile & Availability
# =============================================================================

@router.get("/{subdomain}", response_model=PublicProfileResponse)
async def get_public_profile(
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
):
    """Everything the booking page needs to render its header and forms."""
    policy = await SettingsService(db, teacher.id).get()
    return PublicProfileResponse(
        subdomain=teacher.subdomain,
        name=teacher.name,
        title=teacher.title,
        bio=teacher.bio,
        phone=teacher.phone,
        hourly_rate=teacher.hourly_rate,
        theme=teacher.theme,
        timezone=teacher.timezone,
        allow_customer_book=policy.allow_customer_book,
        allow_manual_book=policy.allow_manual_book,
        form_fields=[FormFieldResponse(**f) for f in SettingsService.form_fields(policy)],
    )


@router.get("/{subdomain}/availability", response_model=AvailabilityResponse)
async def get_availability(
    start: date,
    end: date,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    clock: Clock = Depends(get_clock),
):
    """
    Open intervals per day for [start, end].
    Every date in the range is listed, closed ones with no intervals.
    """
    if start > end:
        raise ValidationError("start must not be after end")
    if (end - start).days + 1 > settings.MAX_AVAILABILITY_RANGE_DAYS:
        raise ValidationError(
            f"Date range cannot exceed {settings.MAX_AVAILABILITY_RANGE_DAYS} days"
        )

    policy = await SettingsService(db, teacher.id).get()
    resolved = await ScheduleService(db, teacher.id).resolve(
        start, end, clock.today(teacher.timezone), policy
    )
    return AvailabilityResponse(start=start, end=end, days=_days(resolved))


@router.get("/{subdomain}/calendar", response_model=CalendarResponse)
async def get_calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    clock: Clock = Depends(get_clock),
):
    """Six-week month grid, starting on the Sunday on or before the 1st."""
    today = clock.today(teacher.timezone)
    grid_start, grid_end = month_grid_bounds(year, month)

    policy = await SettingsService(db, teacher.id).get()
    resolved = await ScheduleService(db, teacher.id).resolve(grid_start, grid_end, today, policy)

    grid = build_month_grid(year, month, resolved, today)
    return CalendarResponse(
        year=year,
        month=month,
        days=[CalendarDayResponse.model_validate(day) for day in grid],
    )


@router.get("/{subdomain}/upcoming", response_model=UpcomingResponse)
async def get_upcoming(
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    clock: Clock = Depends(get_clock),
):
    """Dates in the coming weeks that have at least one open interval."""
    today = clock.today(teacher.timezone)
    policy = await SettingsService(db, teacher.id).get()
    resolved = await ScheduleService(db, teacher.id).resolve(
        today, today + timedelta(days=settings.UPCOMING_DAYS - 1), today, policy
    )
    return UpcomingResponse(days=_days(resolved, only=upcoming_dates(resolved)))


@router.get("/{subdomain}/windows/{window_id}/time-options", response_model=TimeOptionsResponse)
async def get_time_options(
    window_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
):
    """Start and end times the custom-time picker offers for a window."""
    window = await ScheduleService(db, teacher.id).get_window(window_id)
    if not window.is_active:
        raise ValidationError("This window is no longer available")

    options = time_options(window, settings.SLOT_GRID_MINUTES)
    return TimeOptionsResponse(
        window_id=window.id,
        start_options=options[:-1],
        end_options=options[1:],
    )


# =============================================================================
# Cart
# =============================================================================

async def _cart_response(
    carts: CartService, token: str, cart: Cart, teacher: Teacher, clock: Clock
) -> CartResponse:
    ttl = await carts.ttl(token)
    return CartResponse(
        token=token,
        items=[
            CartItemResponse(
                window_id=item.window_id,
                booking_date=item.booking_date,
                start_time=item.start_time,
                end_time=item.end_time,
                title=item.title,
                hours=item.hours,
                amount=compute_amount(item.hours, teacher.hourly_rate),
            )
            for item in cart.items
        ],
        total_hours=cart.total_hours(),
        total_cost=cart.total_cost(teacher.hourly_rate),
        expires_at=clock.now() + timedelta(seconds=ttl),
    )


@router.post("/{subdomain}/cart", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def create_cart(
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """Start an empty cart and return its token."""
    carts = CartService(redis, teacher.id)
    token, cart = await carts.create()
    return await _cart_response(carts, token, cart, teacher, clock)


@router.get("/{subdomain}/cart/{token}", response_model=CartResponse)
async def get_cart(
    token: str,
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    carts = CartService(redis, teacher.id)
    cart = await carts.get(token)
    return await _cart_response(carts, token, cart, teacher, clock)


@router.put("/{subdomain}/cart/{token}/items", response_model=CartResponse)
async def select_cart_item(
    token: str,
    data: CartItemSelect,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """
    Select a (custom) time inside a window.
    Re-selecting the same window replaces the earlier choice.
    """
    carts = CartService(redis, teacher.id)
    cart = await carts.get(token)

    window = await ScheduleService(db, teacher.id).get_window(data.window_id)
    if not window_applies(window, data.booking_date):
        raise ValidationError(
            f"The selected window is not available on {data.booking_date:%Y-%m-%d}"
        )

    slot = select_custom_time(
        window, data.booking_date, data.start_time, data.end_time,
        step_minutes=settings.SLOT_GRID_MINUTES,
    )
    cart.add(slot)
    await carts.save(token, cart)
    return await _cart_response(carts, token, cart, teacher, clock)


@router.delete("/{subdomain}/cart/{token}/items/{window_id}", response_model=CartResponse)
async def remove_cart_item(
    token: str,
    window_id: UUID,
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """Remove a selection. Removing something that is not there is fine."""
    carts = CartService(redis, teacher.id)
    cart = await carts.get(token)
    cart.remove(window_id)
    await carts.save(token, cart)
    return await _cart_response(carts, token, cart, teacher, clock)


# =============================================================================
# Checkout & Requests
# =============================================================================

@router.post("/{subdomain}/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    data: CheckoutRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Book every selected slot in one go.
    409 when a slot was taken in the meantime; nothing is booked then.
    """
    carts = CartService(redis, teacher.id)
    entries = data.entries
    if data.cart_token:
        cart = await carts.get(data.cart_token)
        entries = [
            CheckoutEntry(
                window_id=item.window_id,
                booking_date=item.booking_date,
                start_time=item.start_time,
                end_time=item.end_time,
            )
            for item in cart.items
        ]

    batch = await ReservationService(db, teacher, clock).create_reservations(
        data.customer, entries, data.notes
    )

    if data.cart_token:
        await carts.delete(data.cart_token)

    background_tasks.add_task(
        notifications.reservations_created,
        teacher, batch.reservations, batch.total_hours, batch.total_amount, data.notes,
    )
    return CheckoutResponse(
        reservations=[BookingResponse.from_booking(r, teacher.timezone) for r in batch.reservations],
        total_hours=batch.total_hours,
        total_amount=batch.total_amount,
    )


@router.post("/{subdomain}/booking-request", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_request(
    data: BookingRequestCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    teacher: Teacher = Depends(get_teacher_by_subdomain),
    clock: Clock = Depends(get_clock),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Contact form - stored as an inbox item for the teacher to quote."""
    request = await ReservationService(db, teacher, clock).create_booking_request(data.answers)
    background_tasks.add_task(notifications.request_created, teacher, request)
    return BookingResponse.from_booking(request, teacher.timezone)
