"""Notification service - booking emails to customers and teachers."""

import logging
from typing import Iterable, Optional

from tutorbook.integrations.email_client import EmailClient

logger = logging.getLogger(__name__)


def describe_sessions(reservations: Iterable) -> str:
    return "\n".join(
        f"- {r.booking_date:%A, %B %d, %Y} {r.start_time:%H:%M}-{r.end_time:%H:%M}"
        for r in reservations
    )


class NotificationService:
    """
    Sends booking emails.

    Runs after the write has committed (as a background task), so every
    failure is logged and dropped here; nothing propagates to the caller.
    """

    def __init__(self, email: Optional[EmailClient] = None):
        self.email = email or EmailClient()

    async def _send(self, template: str, to: str, fields: dict) -> bool:
        try:
            sent = await self.email.send(template, to, fields)
        except Exception:
            logger.exception("Email %s to %s raised", template, to)
            return False
        if not sent:
            logger.warning("Email %s to %s was not sent", template, to)
        return sent

    async def reservations_created(self, teacher, reservations: list, total_hours, total_amount, notes: Optional[str] = None) -> None:
        """Confirmation to the customer and a heads-up to the teacher."""
        if not reservations:
            return
        first = reservations[0]
        fields = {
            "teacher_name": teacher.name,
            "customer_name": first.customer_name,
            "customer_email": first.customer_email,
            "sessions": describe_sessions(reservations),
            "total_hours": f"{total_hours:g}",
            "total_amount": f"{total_amount:.2f}",
            "notes": notes or "-",
        }
        await self._send("booking_confirmation", first.customer_email, fields)
        await self._send("teacher_new_booking", teacher.email, fields)

    async def request_created(self, teacher, request) -> None:
        """Acknowledgement to the customer (when known) and an inbox note to the teacher."""
        fields = {
            "teacher_name": teacher.name,
            "customer_name": request.customer_name,
            "notes": request.notes,
        }
        if request.customer_email:
            await self._send("request_received", request.customer_email, fields)
        await self._send("teacher_new_request", teacher.email, fields)

    async def quote_sent(self, teacher, request) -> None:
        await self._send("quote_sent", request.customer_email, {
            "teacher_name": teacher.name,
            "customer_name": request.customer_name,
            "description": request.quote_description,
            "duration_hours": f"{request.quote_duration_hours:g}",
            "amount": f"{request.amount:.2f}",
            "quote_notes": request.quote_notes,
        })
