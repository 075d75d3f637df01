"""Tests for the external booking webhook."""

import uuid

import pytest

URL = "/api/v1/webhooks/booking"
AUTH = {"Authorization": "Bearer test-webhook-secret"}


def payload(teacher, event_type="booking.created", **data):
    booking_data = {
        "external_id": "ext-1",
        "customer_name": "Cal Rivera",
        "customer_email": "cal@example.com",
        "booking_date": "2025-01-06",
        "start_time": "10:00",
        "end_time": "11:00",
        "amount_paid": "50.00",
        "payment_status": "paid",
    }
    booking_data.update(data)
    return {"event_type": event_type, "teacher_id": str(teacher.id), "booking_data": booking_data}


class TestWebhookAuth:
    """Shared-secret authentication."""

    async def test_missing_secret(self, client, teacher):
        """POST should 401 without the secret."""
        response = await client.post(URL, json=payload(teacher))

        assert response.status_code == 401

    async def test_wrong_secret(self, client, teacher):
        """POST should 401 with a wrong secret."""
        response = await client.post(URL, json=payload(teacher), headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    async def test_unset_secret_rejects_everything(self, client, teacher, monkeypatch):
        """With no secret configured, every call is refused."""
        from tutorbook.api.v1 import webhooks

        monkeypatch.setattr(webhooks.settings, "WEBHOOK_SECRET", "")

        response = await client.post(URL, json=payload(teacher), headers={"Authorization": "Bearer "})

        assert response.status_code == 401


class TestWebhookEvents:
    """Event handling."""

    async def test_created_updated_cancelled(self, client, teacher, auth_headers):
        """Events should create, update and delete the mirrored booking."""
        created = await client.post(URL, json=payload(teacher), headers=AUTH)
        assert created.json()["status"] == "created"

        listed = await client.get("/api/v1/owner/bookings", headers=auth_headers)
        [booking] = listed.json()["bookings"]
        assert booking["external_id"] == "ext-1"
        assert booking["status"] == "paid"

        updated = await client.post(
            URL, headers=AUTH,
            json={"event_type": "booking.updated", "teacher_id": str(teacher.id),
                  "booking_data": {"external_id": "ext-1", "payment_status": "refunded"}},
        )
        assert updated.json()["status"] == "updated"
        listed = await client.get("/api/v1/owner/bookings", headers=auth_headers)
        assert listed.json()["bookings"][0]["status"] == "refunded"
        assert listed.json()["bookings"][0]["customer_name"] == "Cal Rivera"

        cancelled = await client.post(URL, json=payload(teacher, "booking.cancelled"), headers=AUTH)
        assert cancelled.json()["status"] == "cancelled"
        listed = await client.get("/api/v1/owner/bookings", headers=auth_headers)
        assert listed.json()["total"] == 0

    async def test_updated_times(self, client, teacher, auth_headers):
        """An update that moves the end time is applied to the mirrored booking."""
        await client.post(URL, json=payload(teacher), headers=AUTH)

        response = await client.post(
            URL, headers=AUTH,
            json={"event_type": "booking.updated", "teacher_id": str(teacher.id),
                  "booking_data": {"external_id": "ext-1", "end_time": "12:00"}},
        )

        assert response.status_code == 200
        [booking] = (await client.get("/api/v1/owner/bookings", headers=auth_headers)).json()["bookings"]
        assert (booking["start_time"], booking["end_time"]) == ("10:00", "12:00")

    async def test_updated_inverted_times(self, client, teacher):
        """An update that puts the end before the start should 400."""
        await client.post(URL, json=payload(teacher), headers=AUTH)

        response = await client.post(
            URL, headers=AUTH,
            json={"event_type": "booking.updated", "teacher_id": str(teacher.id),
                  "booking_data": {"external_id": "ext-1", "end_time": "09:00"}},
        )

        assert response.status_code == 400

    async def test_phone_normalized(self, client, teacher, auth_headers):
        """Phone numbers are stored in E.164 like every other phone input."""
        await client.post(URL, json=payload(teacher, customer_phone="(650) 253-0000"), headers=AUTH)

        [booking] = (await client.get("/api/v1/owner/bookings", headers=auth_headers)).json()["bookings"]
        assert booking["customer_phone"] == "+16502530000"

    async def test_inactive_teacher(self, client, teacher, db):
        """POST should 404 for a deactivated teacher."""
        teacher.is_active = False
        await db.commit()

        response = await client.post(URL, json=payload(teacher), headers=AUTH)

        assert response.status_code == 404

    async def test_created_defaults(self, client, teacher):
        """Missing name and status default to Guest and pending."""
        body = payload(teacher, customer_name=None, payment_status=None)

        response = await client.post(URL, json=body, headers=AUTH)

        assert response.json()["status"] == "created"

    async def test_created_without_times(self, client, teacher):
        """POST should 400 when a created booking has no times."""
        response = await client.post(URL, json=payload(teacher, start_time=None), headers=AUTH)

        assert response.status_code == 400

    async def test_slot_taken(self, client, teacher):
        """POST should 409 when the mirrored slot is already booked."""
        await client.post(URL, json=payload(teacher), headers=AUTH)

        response = await client.post(URL, json=payload(teacher, external_id="ext-2"), headers=AUTH)

        assert response.status_code == 409

    async def test_unknown_external_id(self, client, teacher):
        """Updating an unknown booking should 404."""
        response = await client.post(URL, json=payload(teacher, "booking.updated", external_id="missing"), headers=AUTH)

        assert response.status_code == 404

    async def test_unknown_teacher(self, client, teacher):
        """POST should 404 for an unknown teacher."""
        body = payload(teacher)
        body["teacher_id"] = str(uuid.uuid4())

        response = await client.post(URL, json=body, headers=AUTH)

        assert response.status_code == 404

    @pytest.mark.parametrize("event_type", ["booking.rescheduled", "invoice.paid"])
    async def test_unhandled_event(self, client, teacher, event_type):
        """Unhandled event types are acknowledged and ignored."""
        response = await client.post(URL, json=payload(teacher, event_type), headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"status": "ignored", "booking_id": None}
