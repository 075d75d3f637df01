"""Tests for email and invoicing clients and notifications."""

from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from tutorbook.exceptions import IntegrationError
from tutorbook.integrations.email_client import EmailClient
from tutorbook.integrations.email_templates import render
from tutorbook.integrations.invoicing_client import InvoicingClient
from tutorbook.services.notification_service import NotificationService


def make_booking(**overrides):
    data = dict(
        id="b-1", customer_name="Ana Silva", customer_email="ana@example.com", customer_phone=None,
        booking_date=date(2025, 1, 6), start_time=time(10, 0), end_time=time(11, 0),
        amount=Decimal("50.00"),
    )
    data.update(overrides)
    return SimpleNamespace(**data)


TEACHER = SimpleNamespace(name="Maria Lopez", email="maria@example.com", phone=None, subdomain="maria")


class TestTemplates:
    """Template rendering."""

    def test_missing_fields_render_blank(self):
        """Unknown placeholders do not raise."""
        subject, body = render("booking_confirmation", {})

        assert isinstance(subject, str) and isinstance(body, str)

    def test_unknown_template(self):
        """Unknown template names raise KeyError."""
        with pytest.raises(KeyError):
            render("nope", {})


class TestEmailClient:
    """Resend client."""

    async def test_dev_mode(self):
        """Without an API key, sending just logs and succeeds."""
        assert await EmailClient(api_key="").send("booking_confirmation", "ana@example.com", {}) is True

    async def test_no_recipient(self):
        """An empty recipient is skipped."""
        assert await EmailClient(api_key="").send("booking_confirmation", "", {}) is False

    async def test_http_failure_returns_false(self, monkeypatch):
        """Transport failures are reported, not raised."""
        client = EmailClient(api_key="key")
        monkeypatch.setattr(client, "_post", AsyncMock(side_effect=httpx.ConnectError("down")))

        assert await client.send("booking_confirmation", "ana@example.com", {}) is False


class TestInvoicingClient:
    """Invoicing client."""

    async def test_dev_reference(self):
        """Without an API key a dev reference is returned."""
        reference = await InvoicingClient(api_key="").create_invoice(make_booking(), TEACHER)

        assert reference.startswith("dev_")

    async def test_http_failure_raises(self, monkeypatch):
        """Transport failures become IntegrationError."""
        client = InvoicingClient(api_key="key", base_url="https://invoices.test")
        monkeypatch.setattr(client, "_request", AsyncMock(side_effect=httpx.ConnectError("down")))

        with pytest.raises(IntegrationError):
            await client.create_invoice(make_booking(), TEACHER)

    async def test_reference_from_response(self, monkeypatch):
        """The invoice id from the API is returned."""
        client = InvoicingClient(api_key="key", base_url="https://invoices.test")
        request = AsyncMock(return_value={"id": "inv_9"})
        monkeypatch.setattr(client, "_request", request)

        assert await client.create_invoice(make_booking(), TEACHER) == "inv_9"
        payload = request.await_args.args[2]
        assert payload["line_items"][0]["description"] == "Session on 2025-01-06 10:00-11:00"


class TestNotificationService:
    """Notification fan-out."""

    async def test_email_failure_is_swallowed(self):
        """A failing email client does not break the caller."""
        email = AsyncMock()
        email.send.side_effect = RuntimeError("boom")

        await NotificationService(email).reservations_created(
            TEACHER, [make_booking()], Decimal("1"), Decimal("50.00"), None
        )

        assert email.send.await_count == 2
