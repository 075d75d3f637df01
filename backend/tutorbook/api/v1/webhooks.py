"""Webhook endpoint for the external booking system."""

import hmac
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.database import get_db
from tutorbook.clock import Clock, get_clock
from tutorbook.config import get_settings
from tutorbook.exceptions import NotFoundError
from tutorbook.models.teacher import Teacher
from tutorbook.schemas.webhook import WebhookPayload, WebhookResult
from tutorbook.services.reservation_service import ReservationService

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter()


def verify_webhook_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require `Authorization: Bearer <WEBHOOK_SECRET>`, compared in constant time."""
    expected = f"Bearer {settings.WEBHOOK_SECRET}"
    if not settings.WEBHOOK_SECRET or not authorization or not hmac.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.post("/booking", response_model=WebhookResult, dependencies=[Depends(verify_webhook_secret)])
async def booking_webhook(
    payload: WebhookPayload,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Mirror booking.created / booking.updated / booking.cancelled events.
    Bookings are matched by the external id the sender supplies.
    """
    result = await db.execute(
        select(Teacher).where(Teacher.id == payload.teacher_id, Teacher.is_active == True)
    )
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise NotFoundError("Teacher not found")

    service = ReservationService(db, teacher, clock)
    data = payload.booking_data

    if payload.event_type == "booking.created":
        booking = await service.apply_external_created(data)
        return WebhookResult(status="created", booking_id=booking.id)
    if payload.event_type == "booking.updated":
        booking = await service.apply_external_updated(data)
        return WebhookResult(status="updated", booking_id=booking.id)
    if payload.event_type == "booking.cancelled":
        booking = await service.apply_external_cancelled(data)
        return WebhookResult(status="cancelled", booking_id=booking.id)

    logger.info("Ignoring unhandled webhook event %s", payload.event_type)
    return WebhookResult(status="ignored")
