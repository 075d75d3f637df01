"""Tests for the public booking page endpoints."""

import uuid

import pytest

BASE = "/api/v1/public/maria"

CUSTOMER = {"name": "Ana Silva", "email": "ana@example.com", "phone": "650-253-0000"}


def checkout_body(window, start="10:00", end="11:00", booking_date="2025-01-06"):
    return {
        "customer": dict(CUSTOMER),
        "entries": [{
            "window_id": str(window.id),
            "booking_date": booking_date,
            "start_time": start,
            "end_time": end,
        }],
    }


class TestProfile:
    """GET /public/{subdomain}"""

    async def test_profile(self, client, teacher):
        """GET should return the public profile and enabled form fields."""
        response = await client.get(BASE)

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Maria Lopez"
        assert body["allow_customer_book"] is True
        assert [f["name"] for f in body["form_fields"]][:2] == ["name", "email"]

    async def test_unknown_subdomain(self, client, teacher):
        """GET should 404 with a not_found code for an unknown subdomain."""
        response = await client.get("/api/v1/public/nobody")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestAvailability:
    """Resolved availability endpoints."""

    async def test_range(self, client, monday_window):
        """GET /availability should list every date, with intervals only on Mondays."""
        response = await client.get(f"{BASE}/availability", params={"start": "2025-01-05", "end": "2025-01-07"})

        assert response.status_code == 200
        days = response.json()["days"]
        assert [d["date"] for d in days] == ["2025-01-05", "2025-01-06", "2025-01-07"]
        assert days[1]["intervals"] == [{
            "window_id": str(monday_window.id),
            "title": "Morning",
            "start": "09:00",
            "end": "12:00",
        }]
        assert days[0]["intervals"] == [] and days[2]["intervals"] == []

    async def test_inverted_range(self, client, teacher):
        """GET /availability should 400 when start is after end."""
        response = await client.get(f"{BASE}/availability", params={"start": "2025-01-07", "end": "2025-01-05"})

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    async def test_range_too_long(self, client, teacher):
        """GET /availability should 400 beyond the maximum range."""
        response = await client.get(f"{BASE}/availability", params={"start": "2025-01-01", "end": "2025-06-01"})

        assert response.status_code == 400

    async def test_calendar(self, client, monday_window):
        """GET /calendar should return a 42-day grid starting on a Sunday."""
        response = await client.get(f"{BASE}/calendar", params={"year": 2025, "month": 1})

        assert response.status_code == 200
        days = response.json()["days"]
        assert len(days) == 42
        assert days[0]["date"] == "2024-12-29"
        open_days = [d["date"] for d in days if d["has_availability"]]
        assert open_days == ["2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27"]

    async def test_calendar_bad_month(self, client, teacher):
        """GET /calendar should 422 for month 13."""
        response = await client.get(f"{BASE}/calendar", params={"year": 2025, "month": 13})

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    async def test_upcoming(self, client, monday_window):
        """GET /upcoming should list only open dates."""
        response = await client.get(f"{BASE}/upcoming")

        assert response.status_code == 200
        assert [d["date"] for d in response.json()["days"]] == [
            "2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27",
        ]

    async def test_time_options(self, client, monday_window):
        """GET /time-options should split grid times into starts and ends."""
        response = await client.get(f"{BASE}/windows/{monday_window.id}/time-options")

        body = response.json()
        assert body["start_options"] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
        assert body["end_options"] == ["09:30", "10:00", "10:30", "11:00", "11:30", "12:00"]


class TestCart:
    """Session cart endpoints."""

    async def test_cart_flow(self, client, monday_window):
        """PUT should replace a window's selection and DELETE should remove it."""
        created = await client.post(f"{BASE}/cart")
        assert created.status_code == 201
        token = created.json()["token"]

        item = {"window_id": str(monday_window.id), "booking_date": "2025-01-06",
                "start_time": "09:00", "end_time": "10:30"}
        first = await client.put(f"{BASE}/cart/{token}/items", json=item)
        second = await client.put(f"{BASE}/cart/{token}/items", json={**item, "start_time": "10:00", "end_time": "12:00"})

        assert first.json()["total_cost"] == 75.0
        body = second.json()
        assert len(body["items"]) == 1
        assert body["items"][0]["start_time"] == "10:00"
        assert body["total_hours"] == 2.0
        assert body["total_cost"] == 100.0

        removed = await client.delete(f"{BASE}/cart/{token}/items/{monday_window.id}")
        assert removed.json()["items"] == []

    async def test_unknown_cart(self, client, teacher):
        """GET should 404 for an unknown or expired cart."""
        response = await client.get(f"{BASE}/cart/nope")

        assert response.status_code == 404

    async def test_off_grid_selection(self, client, monday_window):
        """PUT should 400 for a start time off the grid."""
        token = (await client.post(f"{BASE}/cart")).json()["token"]

        response = await client.put(f"{BASE}/cart/{token}/items", json={
            "window_id": str(monday_window.id), "booking_date": "2025-01-06",
            "start_time": "09:15", "end_time": "10:00",
        })

        assert response.status_code == 400

    async def test_checkout_from_cart(self, client, monday_window, redis):
        """POST /checkout with a cart token should book its items and drop the cart."""
        token = (await client.post(f"{BASE}/cart")).json()["token"]
        await client.put(f"{BASE}/cart/{token}/items", json={
            "window_id": str(monday_window.id), "booking_date": "2025-01-06",
            "start_time": "10:00", "end_time": "11:00",
        })

        response = await client.post(f"{BASE}/checkout", json={"customer": CUSTOMER, "cart_token": token})

        assert response.status_code == 201
        assert response.json()["total_amount"] == 50.0
        assert (await client.get(f"{BASE}/cart/{token}")).status_code == 404


class TestCheckout:
    """POST /checkout"""

    async def test_checkout(self, client, monday_window, email_client):
        """POST should 201 with a pending 50.00 reservation and notify both parties."""
        response = await client.post(f"{BASE}/checkout", json=checkout_body(monday_window))

        assert response.status_code == 201
        body = response.json()
        [reservation] = body["reservations"]
        assert reservation["status"] == "pending"
        assert reservation["kind"] == "scheduled"
        assert reservation["amount"] == 50.0
        assert reservation["customer_phone"] == "+16502530000"
        assert (reservation["start_time"], reservation["end_time"]) == ("10:00", "11:00")
        assert body["total_hours"] == 1.0

        templates = [call.args[0] for call in email_client.send.await_args_list]
        assert templates == ["booking_confirmation", "teacher_new_booking"]

    async def test_double_booking(self, client, monday_window):
        """POST should 409 for an already-booked slot."""
        first = await client.post(f"{BASE}/checkout", json=checkout_body(monday_window))
        second = await client.post(f"{BASE}/checkout", json=checkout_body(monday_window))

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["code"] == "conflict"

    async def test_needs_entries_or_cart(self, client, monday_window):
        """POST should 422 with neither entries nor a cart token."""
        response = await client.post(f"{BASE}/checkout", json={"customer": CUSTOMER})

        assert response.status_code == 422

    async def test_invalid_email(self, client, monday_window):
        """POST should 422 for a malformed customer email."""
        body = checkout_body(monday_window)
        body["customer"]["email"] = "not-an-email"

        response = await client.post(f"{BASE}/checkout", json=body)

        assert response.status_code == 422

    async def test_unknown_window(self, client, monday_window):
        """POST should 400 for a window that does not exist."""
        body = checkout_body(monday_window)
        body["entries"][0]["window_id"] = str(uuid.uuid4())

        response = await client.post(f"{BASE}/checkout", json=body)

        assert response.status_code == 400


class TestBookingRequest:
    """POST /booking-request"""

    @pytest.fixture
    def answers(self):
        return {
            "name": "Ben Okafor", "email": "ben@example.com", "phone": "650-253-0000",
            "address": "1 Main St", "dates": "Weekday evenings", "description": "Exam prep",
        }

    async def test_request(self, client, teacher, answers, email_client):
        """POST should 201 with a request dated today at 00:00-00:00."""
        response = await client.post(f"{BASE}/booking-request", json={"answers": answers})

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "request"
        assert body["kind"] == "request"
        assert body["booking_date"] == "2025-01-02"
        assert (body["start_time"], body["end_time"]) == ("00:00", "00:00")
        assert body["amount"] == 0.0
        templates = [call.args[0] for call in email_client.send.await_args_list]
        assert templates == ["request_received", "teacher_new_request"]

    async def test_missing_field(self, client, teacher, answers):
        """POST should 400 when an enabled field is blank."""
        answers["dates"] = ""

        response = await client.post(f"{BASE}/booking-request", json={"answers": answers})

        assert response.status_code == 400
        assert response.json()["detail"] == "Preferred Dates is required"

    async def test_name_and_email_always_offered(self, client, auth_headers, answers):
        """With only phone and description on, the form still asks for name and email and submits."""
        await client.put("/api/v1/owner/booking-settings", headers=auth_headers, json={
            "form_fields": {"name": False, "email": False, "phone": True, "address": False,
                            "dates": False, "description": True},
        })

        profile = await client.get(BASE)
        offered = [f["name"] for f in profile.json()["form_fields"]]
        assert offered == ["name", "email", "phone", "description"]

        response = await client.post(f"{BASE}/booking-request", json={
            "answers": {name: answers[name] for name in offered},
        })

        assert response.status_code == 201
        assert response.json()["customer_name"] == "Ben Okafor"
