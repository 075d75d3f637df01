"""Invoicing API integration."""

import logging
import secrets
from typing import Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from tutorbook.config import get_settings
from tutorbook.exceptions import IntegrationError

settings = get_settings()
logger = logging.getLogger(__name__)


class InvoicingClient:
    """Client for the external invoicing API."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.INVOICING_API_KEY
        self.base_url = base_url or settings.INVOICING_API_URL

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _request(self, method: str, endpoint: str, data: Optional[dict] = None) -> dict:
        """Make authenticated request to the invoicing API."""
        async with httpx.AsyncClient() as client:
            response = await client.request(
                method=method,
                url=f"{self.base_url}{endpoint}",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=data,
                timeout=settings.INTEGRATION_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return response.json()

    async def create_invoice(self, booking, teacher) -> str:
        """
        Create an invoice for a booking and return its external reference.
        Raises IntegrationError when the API fails.
        """
        if not self.api_key:
            reference = f"dev_{secrets.token_hex(8)}"
            logger.info("[DEV] Invoice %s for booking %s", reference, booking.id)
            return reference

        payload = {
            "customer": {
                "name": booking.customer_name,
                "email": booking.customer_email,
                "phone": booking.customer_phone,
            },
            "issuer": {
                "name": teacher.name,
                "email": teacher.email,
            },
            "line_items": [
                {
                    "description": self._describe(booking),
                    "amount": str(booking.amount),
                },
            ],
            "currency": "USD",
            "metadata": {"booking_id": str(booking.id)},
        }

        try:
            result = await self._request("POST", "/invoices", payload)
        except httpx.HTTPError as e:
            logger.exception("Invoicing API failed for booking %s", booking.id)
            raise IntegrationError(f"Invoicing service error: {e}")

        reference = result.get("id") or result.get("invoice_id")
        if not reference:
            raise IntegrationError("Invoicing service returned no invoice id")
        return str(reference)

    @staticmethod
    def _describe(booking) -> str:
        if booking.booking_date and booking.start_time and booking.end_time:
            return (
                f"Session on {booking.booking_date:%Y-%m-%d} "
                f"{booking.start_time:%H:%M}-{booking.end_time:%H:%M}"
            )
        return getattr(booking, "quote_description", None) or "Service"
