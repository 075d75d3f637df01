"""Resend integration for transactional email."""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from tutorbook.config import get_settings
from tutorbook.integrations.email_templates import render

settings = get_settings()
logger = logging.getLogger(__name__)

RESEND_BASE_URL = "https://api.resend.com"


class EmailClient:
    """Client for the Resend email API."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.from_address = settings.EMAIL_FROM

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _post(self, payload: dict) -> dict:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{RESEND_BASE_URL}/emails",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=settings.INTEGRATION_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return response.json()

    async def send(self, template: str, to: str, fields: Dict[str, Any]) -> bool:
        """
        Render and send a template.
        Returns False on any failure; never raises.
        """
        if not to:
            logger.info("Skipping %s email: no recipient", template)
            return False

        try:
            subject, body = render(template, fields)
        except KeyError:
            logger.error("Unknown email template %s", template)
            return False

        if not self.api_key:
            # Dev mode - just log
            logger.info("[DEV] Email %s to %s: %s", template, to, subject)
            return True

        try:
            result = await self._post({
                "from": self.from_address,
                "to": [to],
                "subject": subject,
                "text": body,
            })
        except httpx.HTTPError:
            logger.exception("Failed to send %s email to %s", template, to)
            return False

        logger.info("Sent %s email to %s (id=%s)", template, to, result.get("id"))
        return True
