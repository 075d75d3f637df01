"""
Reservation service - turns selections, contact forms, manual entries and
webhook events into bookings, and moves bookings through their statuses.

Double-booking is prevented by the unique index on
(teacher_id, booking_date, start_time); every write path maps the resulting
IntegrityError to a ConflictError.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, date, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.clock import Clock
from tutorbook.config import get_settings
from tutorbook.exceptions import ConflictError, NotFoundError, ValidationError
from tutorbook.models.booking import Booking, BookingStatus, ScheduledReservation, ServiceRequest
from tutorbook.models.booking_settings import FORM_FIELDS, FormFieldName
from tutorbook.models.teacher import Teacher
from tutorbook.schemas.booking import CheckoutEntry, CustomerInfo, ManualBookingCreate, QuoteCreate
from tutorbook.schemas.common import normalize_phone
from tutorbook.schemas.webhook import WebhookBookingData
from tutorbook.services.availability_resolver import suppression_reason, window_applies
from tutorbook.services.schedule_service import ScheduleService, times_overlap
from tutorbook.services.settings_service import ALWAYS_COLLECTED, SettingsService
from tutorbook.services.slot_selector import SelectedSlot, compute_amount, select_custom_time

settings = get_settings()
logger = logging.getLogger(__name__)

GENERIC_REQUEST_NAME = "New Booking Request"
GENERIC_REQUEST_NOTES = "Booking request submitted without custom fields configured."

SUPPRESSION_MESSAGES = {
    "blocked": "{d} is blocked by the teacher",
    "past": "{d} is in the past",
    "weekend": "Weekend bookings are not allowed",
    "same_day": "Same-day bookings are not allowed",
    "too_far_ahead": "Bookings can be made at most {days} days in advance",
}

# Allowed administrative transitions; refunded is terminal
STATUS_TRANSITIONS = {
    BookingStatus.REQUEST: {BookingStatus.QUOTE_SENT},
    BookingStatus.QUOTE_SENT: {BookingStatus.PAID},
    BookingStatus.PENDING: {BookingStatus.PAID, BookingStatus.PARTIAL, BookingStatus.REFUNDED},
    BookingStatus.PARTIAL: {BookingStatus.PAID, BookingStatus.REFUNDED},
    BookingStatus.PAID: {BookingStatus.REFUNDED},
    BookingStatus.REFUNDED: set(),
}

# Request-form answers copied into the notes, in this order
REQUEST_NOTE_LINES = [
    (FormFieldName.DATES, "Preferred Dates"),
    (FormFieldName.ADDRESS, "Address"),
    (FormFieldName.DESCRIPTION, "Notes"),
]


def check_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in STATUS_TRANSITIONS.get(current, set()):
        raise ConflictError(f"Cannot move booking from {current.value} to {target.value}")


def _slot_label(booking_date: date, start: time) -> str:
    return f"{booking_date:%Y-%m-%d} {start:%H:%M}"


@dataclass
class ReservationBatch:
    """Reservations created by one checkout, with simple totals."""

    reservations: List[ScheduledReservation]
    total_hours: Decimal
    total_amount: Decimal


class ReservationService:
    """Service for booking operations."""

    def __init__(self, db: AsyncSession, teacher: Teacher, clock: Optional[Clock] = None):
        self.db = db
        self.teacher = teacher
        self.teacher_id = teacher.id
        self.clock = clock or Clock()

    def _utcnow(self) -> datetime:
        """Naive UTC, matching how timestamps are stored."""
        return self.clock.now().astimezone(timezone.utc).replace(tzinfo=None)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_by_id(self, booking_id: UUID) -> Booking:
        """Get a booking, re-verifying ownership."""
        result = await self.db.execute(
            select(Booking).where(
                Booking.id == booking_id,
                Booking.teacher_id == self.teacher_id,
            )
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Newest first."""
        query = select(Booking).where(Booking.teacher_id == self.teacher_id)
        if status:
            query = query.where(Booking.status == status)
        query = query.order_by(Booking.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars())

    async def _existing_reservations(
        self, dates: Sequence[date], include_refunded: bool = True
    ) -> List[ScheduledReservation]:
        query = select(ScheduledReservation).where(
            ScheduledReservation.teacher_id == self.teacher_id,
            ScheduledReservation.booking_date.in_(set(dates)),
        )
        if not include_refunded:
            query = query.where(ScheduledReservation.status != BookingStatus.REFUNDED)
        result = await self.db.execute(query)
        return list(result.scalars())

    # ==========================================================================
    # Self-service checkout
    # ==========================================================================

    async def create_reservations(
        self,
        customer: CustomerInfo,
        entries: Sequence[CheckoutEntry],
        notes: Optional[str] = None,
    ) -> ReservationBatch:
        """
        Validate every entry against the teacher's windows and policy, then
        insert all of them in one transaction. Any failure writes nothing.
        """
        if not entries:
            raise ValidationError("Select at least one time slot")

        policy = await SettingsService(self.db, self.teacher_id).get()
        if not policy.allow_customer_book:
            raise ValidationError("Online booking is disabled")

        now = self.clock.now(self.teacher.timezone)
        today = now.date()
        schedule = ScheduleService(self.db, self.teacher_id)
        windows = await schedule.get_windows([e.window_id for e in entries])
        blocked = await schedule.list_blocked_ranges()

        slots = [
            self._validate_entry(entry, windows, blocked, policy, now, today)
            for entry in entries
        ]
        self._check_batch_overlap(slots)

        # Refunded rows keep their slot but no longer count toward policy
        existing = await self._existing_reservations(
            [s.booking_date for s in slots], include_refunded=False
        )
        self._check_daily_limit(slots, existing, policy.max_sessions_per_day)
        self._check_buffer(slots, existing, policy.buffer_minutes)

        reservations = []
        for slot in slots:
            reservation = ScheduledReservation(
                teacher_id=self.teacher_id,
                created_at=self._utcnow(),
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                booking_date=slot.booking_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                amount=compute_amount(slot.hours, self.teacher.hourly_rate),
                status=BookingStatus.PENDING,
                notes=notes or "",
            )
            reservations.append(reservation)
        self.db.add_all(reservations)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise await self._slot_taken(slots)

        for reservation in reservations:
            await self.db.refresh(reservation)

        total_hours = sum((s.hours for s in slots), Decimal("0"))
        total_amount = sum((r.amount for r in reservations), Decimal("0.00"))
        logger.info(
            "Created %d reservation(s) for teacher %s (%s hours, $%s)",
            len(reservations), self.teacher_id, total_hours, total_amount,
        )
        return ReservationBatch(reservations, total_hours, total_amount)

    def _validate_entry(self, entry: CheckoutEntry, windows, blocked, policy, now: datetime, today: date) -> SelectedSlot:
        window = windows.get(entry.window_id)
        if window is None:
            raise ValidationError("Selected availability window does not exist")
        if not window_applies(window, entry.booking_date):
            raise ValidationError(
                f"The selected window is not available on {entry.booking_date:%Y-%m-%d}"
            )

        reason = suppression_reason(policy, blocked, entry.booking_date, today)
        if reason:
            raise ValidationError(SUPPRESSION_MESSAGES[reason].format(
                d=f"{entry.booking_date:%Y-%m-%d}", days=policy.max_advance_booking_days,
            ))

        slot = select_custom_time(
            window, entry.booking_date, entry.start_time, entry.end_time,
            step_minutes=settings.SLOT_GRID_MINUTES,
        )

        starts_at = datetime.combine(slot.booking_date, slot.start_time, tzinfo=ZoneInfo(self.teacher.timezone))
        if starts_at < now + timedelta(hours=policy.min_advance_booking_hours):
            raise ValidationError(
                f"Bookings must be made at least {policy.min_advance_booking_hours} hours in advance"
            )
        return slot

    @staticmethod
    def _check_batch_overlap(slots: Sequence[SelectedSlot]) -> None:
        for i, a in enumerate(slots):
            for b in slots[i + 1:]:
                if a.booking_date == b.booking_date and times_overlap(
                    a.start_time, a.end_time, b.start_time, b.end_time
                ):
                    raise ConflictError(
                        f"Selected slots overlap on {a.booking_date:%Y-%m-%d} "
                        f"({a.start_time:%H:%M}-{a.end_time:%H:%M} and {b.start_time:%H:%M}-{b.end_time:%H:%M})"
                    )

    @staticmethod
    def _check_daily_limit(slots: Sequence[SelectedSlot], existing: Sequence[ScheduledReservation], limit: int) -> None:
        per_day = Counter(r.booking_date for r in existing)
        per_day.update(s.booking_date for s in slots)
        for day, count in sorted(per_day.items()):
            if count > limit and any(s.booking_date == day for s in slots):
                raise ValidationError(
                    f"No more than {limit} sessions can be booked on {day:%Y-%m-%d}"
                )

    @staticmethod
    def _check_buffer(slots: Sequence[SelectedSlot], existing: Sequence[ScheduledReservation], buffer_minutes: int) -> None:
        """Existing reservations are padded by the buffer on both sides."""
        pad = timedelta(minutes=buffer_minutes)
        for slot in slots:
            start = datetime.combine(slot.booking_date, slot.start_time)
            end = datetime.combine(slot.booking_date, slot.end_time)
            for r in existing:
                if r.booking_date != slot.booking_date:
                    continue
                taken_start = datetime.combine(r.booking_date, r.start_time) - pad
                taken_end = datetime.combine(r.booking_date, r.end_time) + pad
                if start < taken_end and end > taken_start:
                    raise ConflictError(
                        f"The {_slot_label(slot.booking_date, slot.start_time)} slot is no longer available"
                    )

    async def _slot_taken(self, slots: Sequence[SelectedSlot]) -> ConflictError:
        """Name the slot that lost the race, if it can be found."""
        taken = {
            (r.booking_date, r.start_time)
            for r in await self._existing_reservations([s.booking_date for s in slots])
        }
        for slot in slots:
            if (slot.booking_date, slot.start_time) in taken:
                logger.warning(
                    "Double-booking rejected for teacher %s at %s",
                    self.teacher_id, _slot_label(slot.booking_date, slot.start_time),
                )
                return ConflictError(
                    f"The {_slot_label(slot.booking_date, slot.start_time)} slot was just booked. "
                    "Please pick another time."
                )
        return ConflictError("One of the selected slots is no longer available")

    # ==========================================================================
    # Manual booking
    # ==========================================================================

    async def create_manual_booking(self, data: ManualBookingCreate) -> ScheduledReservation:
        """Teacher-entered booking. No availability policy applies."""
        policy = await SettingsService(self.db, self.teacher_id).get()
        if not policy.allow_manual_book:
            raise ValidationError("Manual booking is disabled")

        reservation = ScheduledReservation(
            teacher_id=self.teacher_id,
            created_at=self._utcnow(),
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            booking_date=data.booking_date,
            start_time=data.start_time,
            end_time=data.end_time,
            amount=data.amount,
            status=data.status,
            notes=data.notes or "",
        )
        self.db.add(reservation)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A booking already exists at this time")

        await self.db.refresh(reservation)
        logger.info("Manual booking %s created for teacher %s", reservation.id, self.teacher_id)
        return reservation

    # ==========================================================================
    # Contact-form requests
    # ==========================================================================

    async def create_booking_request(self, answers: Dict[str, str]) -> ServiceRequest:
        """Store a contact-form submission as an inbox item for a later quote."""
        known = {name.value for name in FORM_FIELDS}
        unknown = sorted(set(answers) - known)
        if unknown:
            raise ValidationError(f"Unknown form fields: {', '.join(unknown)}")

        policy = await SettingsService(self.db, self.teacher_id).get()
        enabled = policy.enabled_form_fields()
        values = {k: (v or "").strip() for k, v in answers.items()}

        if not enabled:
            request = ServiceRequest(
                teacher_id=self.teacher_id,
                customer_name=GENERIC_REQUEST_NAME,
                customer_email="",
                notes=GENERIC_REQUEST_NOTES,
            )
        else:
            required = set(ALWAYS_COLLECTED)
            required.update(name for name in enabled if FORM_FIELDS[name].required)
            for name in FORM_FIELDS:
                if name in required and not values.get(name.value):
                    raise ValidationError(f"{FORM_FIELDS[name].label} is required")

            try:
                email = validate_email(values["email"], check_deliverability=False).normalized
            except EmailNotValidError as e:
                raise ValidationError(f"Invalid email address: {e}")

            try:
                phone = normalize_phone(values.get(FormFieldName.PHONE.value))
            except ValueError as e:
                raise ValidationError(str(e))

            lines = [
                f"{label}: {values[name.value]}"
                for name, label in REQUEST_NOTE_LINES
                if values.get(name.value)
            ]
            request = ServiceRequest(
                teacher_id=self.teacher_id,
                customer_name=values["name"],
                customer_email=email,
                customer_phone=phone,
                notes="\n".join(lines),
            )

        request.status = BookingStatus.REQUEST
        request.amount = Decimal("0")
        request.created_at = self._utcnow()
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info("Booking request %s received for teacher %s", request.id, self.teacher_id)
        return request

    # ==========================================================================
    # Status changes
    # ==========================================================================

    async def attach_quote(self, booking_id: UUID, data: QuoteCreate) -> ServiceRequest:
        """Promote a request to quote-sent. Customer name and email are left alone."""
        booking = await self.get_by_id(booking_id)
        if not isinstance(booking, ServiceRequest):
            raise ConflictError("Quotes can only be attached to booking requests")
        check_transition(booking.status, BookingStatus.QUOTE_SENT)

        summary = f"Quote: {data.description} ({data.duration_hours:g} hours, ${data.amount:.2f})"
        if data.notes:
            summary = f"{summary}\n{data.notes}"

        booking.amount = data.amount
        booking.quote_description = data.description
        booking.quote_duration_hours = data.duration_hours
        booking.quote_notes = data.notes
        booking.quote_sent_at = self._utcnow()
        booking.notes = f"{summary}\n\n{booking.notes}" if booking.notes else summary
        booking.status = BookingStatus.QUOTE_SENT

        await self.db.commit()
        await self.db.refresh(booking)
        logger.info("Quote sent for booking %s", booking.id)
        return booking

    async def change_status(self, booking_id: UUID, status: BookingStatus) -> Booking:
        if status == BookingStatus.QUOTE_SENT:
            raise ValidationError("Attach a quote to send it")

        booking = await self.get_by_id(booking_id)
        check_transition(booking.status, status)

        old_status = booking.status
        booking.status = status
        await self.db.commit()
        await self.db.refresh(booking)
        logger.info("Booking %s moved from %s to %s", booking.id, old_status.value, status.value)
        return booking

    async def delete(self, booking_id: UUID) -> None:
        booking = await self.get_by_id(booking_id)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info("Deleted booking %s", booking_id)

    # ==========================================================================
    # Invoicing
    # ==========================================================================

    async def attach_invoice(self, booking_id: UUID, invoicing) -> Booking:
        """Create an invoice downstream and store its reference. Failures change nothing."""
        booking = await self.get_by_id(booking_id)
        if booking.invoice_reference:
            raise ConflictError("An invoice already exists for this booking")

        reference = await invoicing.create_invoice(booking, self.teacher)

        booking.invoice_reference = reference
        await self.db.commit()
        await self.db.refresh(booking)
        return booking

    # ==========================================================================
    # Webhook events
    # ==========================================================================

    async def _get_by_external_id(self, external_id: str) -> Booking:
        result = await self.db.execute(
            select(Booking).where(
                Booking.teacher_id == self.teacher_id,
                Booking.external_id == external_id,
            )
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError(f"No booking with external id {external_id}")
        return booking

    async def apply_external_created(self, data: WebhookBookingData) -> ScheduledReservation:
        if not (data.booking_date and data.start_time and data.end_time):
            raise ValidationError("booking_date, start_time and end_time are required")
        if data.start_time >= data.end_time:
            raise ValidationError("end_time must be after start_time")

        reservation = ScheduledReservation(
            teacher_id=self.teacher_id,
            created_at=self._utcnow(),
            external_id=data.external_id,
            customer_name=data.customer_name or "Guest",
            customer_email=data.customer_email or "",
            customer_phone=data.customer_phone,
            booking_date=data.booking_date,
            start_time=data.start_time,
            end_time=data.end_time,
            amount=data.amount_paid or Decimal("0"),
            status=data.payment_status or BookingStatus.PENDING,
            notes=data.notes or "",
        )
        self.db.add(reservation)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                f"Booking {data.external_id} already exists or its slot is taken"
            )

        await self.db.refresh(reservation)
        logger.info("Created booking %s from webhook (%s)", reservation.id, data.external_id)
        return reservation

    async def apply_external_updated(self, data: WebhookBookingData) -> Booking:
        booking = await self._get_by_external_id(data.external_id)
        sent = data.model_fields_set

        if "payment_status" in sent and data.payment_status:
            booking.status = data.payment_status
        if "notes" in sent:
            booking.notes = data.notes or ""
        if "amount_paid" in sent and data.amount_paid is not None:
            booking.amount = data.amount_paid
        for field in ("customer_name", "customer_email", "customer_phone"):
            value = getattr(data, field)
            if field in sent and value:
                setattr(booking, field, value)
        if isinstance(booking, ScheduledReservation):
            for field in ("booking_date", "start_time", "end_time"):
                value = getattr(data, field)
                if field in sent and value is not None:
                    setattr(booking, field, value)
            if booking.start_time >= booking.end_time:
                await self.db.rollback()
                raise ValidationError("end_time must be after start_time")

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A booking already exists at this time")

        await self.db.refresh(booking)
        logger.info("Updated booking %s from webhook (%s)", booking.id, data.external_id)
        return booking

    async def apply_external_cancelled(self, data: WebhookBookingData) -> Booking:
        booking = await self._get_by_external_id(data.external_id)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info("Deleted booking %s from webhook (%s)", booking.id, data.external_id)
        return booking
