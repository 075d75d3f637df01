"""Tests for availability windows, blocked ranges and booking settings."""

from datetime import date, time

import pytest
from pydantic import ValidationError as PydanticValidationError

from tutorbook.exceptions import ConflictError, NotFoundError, ValidationError
from tutorbook.schemas.availability import BlockedRangeCreate, WindowCreate, WindowUpdate
from tutorbook.schemas.booking_settings import BookingSettingsUpdate
from tutorbook.services.schedule_service import ScheduleService, date_ranges_overlap, times_overlap
from tutorbook.services.settings_service import SettingsService


def window_data(**overrides):
    data = dict(
        title="Morning", day_of_week=1, start_time=time(9, 0), end_time=time(12, 0),
        active_from=date(2025, 1, 1),
    )
    data.update(overrides)
    return WindowCreate(**data)


class TestOverlapHelpers:
    """Pure overlap predicates."""

    def test_adjacent_times_do_not_overlap(self):
        """Half-open ranges: 09-12 and 12-13 only touch."""
        assert not times_overlap(time(9), time(12), time(12), time(13))
        assert times_overlap(time(9), time(12), time(11, 30), time(13))

    def test_open_ended_date_ranges(self):
        """None means no end date."""
        assert date_ranges_overlap(date(2025, 1, 1), None, date(2026, 1, 1), None)
        assert not date_ranges_overlap(date(2025, 1, 1), date(2025, 1, 31), date(2025, 2, 1), None)

    def test_inverted_date_range_is_empty(self):
        """until before from never overlaps anything."""
        assert not date_ranges_overlap(date(2025, 1, 10), date(2025, 1, 5), date(2025, 1, 1), None)


class TestWindows:
    """Window lifecycle and overlap rule."""

    async def test_create_and_list(self, db, teacher):
        """Created windows are listed by weekday then start."""
        service = ScheduleService(db, teacher.id)
        await service.create_window(window_data(day_of_week=3))
        await service.create_window(window_data())

        windows = await service.list_windows()

        assert [w.day_of_week for w in windows] == [1, 3]

    async def test_times_stored_as_clock_times(self, db, teacher):
        """Times reach the row as time objects; only JSON renders them as HH:MM."""
        data = window_data()
        assert data.model_dump()["start_time"] == time(9, 0)
        assert data.model_dump(mode="json")["start_time"] == "09:00"

        window = await ScheduleService(db, teacher.id).create_window(data)
        updated = await ScheduleService(db, teacher.id).update_window(
            window.id, WindowUpdate(end_time=time(11, 0))
        )

        assert (updated.start_time, updated.end_time) == (time(9, 0), time(11, 0))

    def test_update_rejects_null(self):
        """Omitted fields are left alone but explicit nulls are refused."""
        assert WindowUpdate().model_fields_set == set()
        with pytest.raises(PydanticValidationError, match="start_time may not be null"):
            WindowUpdate(start_time=None)

    async def test_overlapping_window_rejected(self, db, teacher, monday_window):
        """Same weekday, overlapping times and dates conflict."""
        service = ScheduleService(db, teacher.id)

        with pytest.raises(ConflictError, match="Overlaps existing window 'Morning'"):
            await service.create_window(window_data(start_time=time(11, 0), end_time=time(13, 0)))

    async def test_adjacent_window_allowed(self, db, teacher, monday_window):
        """Back-to-back windows are fine."""
        service = ScheduleService(db, teacher.id)

        window = await service.create_window(window_data(start_time=time(12, 0), end_time=time(14, 0)))

        assert window.start_time == time(12, 0)

    async def test_disjoint_date_ranges_allowed(self, db, teacher):
        """Same times on the same weekday are fine when the date ranges do not meet."""
        service = ScheduleService(db, teacher.id)
        await service.create_window(window_data(active_until=date(2025, 1, 31)))

        window = await service.create_window(window_data(active_from=date(2025, 2, 1)))

        assert window.active_from == date(2025, 2, 1)

    async def test_update_rechecks_times(self, db, teacher, monday_window):
        """A partial update that inverts the times is rejected."""
        service = ScheduleService(db, teacher.id)

        with pytest.raises(ValidationError):
            await service.update_window(monday_window.id, WindowUpdate(end_time=time(8, 0)))

    async def test_update_into_overlap_rejected(self, db, teacher, monday_window):
        """Moving a window onto another one conflicts and leaves it unchanged."""
        service = ScheduleService(db, teacher.id)
        other = await service.create_window(window_data(start_time=time(13, 0), end_time=time(15, 0)))

        with pytest.raises(ConflictError):
            await service.update_window(other.id, WindowUpdate(start_time=time(11, 0)))

        reloaded = await service.get_window(other.id)
        assert reloaded.start_time == time(13, 0)

    async def test_deactivate_keeps_row(self, db, teacher, monday_window):
        """Deleting a window soft-disables it."""
        service = ScheduleService(db, teacher.id)

        await service.deactivate_window(monday_window.id)

        assert await service.list_windows(active_only=True) == []
        assert len(await service.list_windows()) == 1

    async def test_unknown_window(self, db, teacher):
        """Windows of other teachers or unknown ids are not found."""
        import uuid

        with pytest.raises(NotFoundError):
            await ScheduleService(db, teacher.id).get_window(uuid.uuid4())


class TestBlockedRanges:
    """Blocked dates."""

    async def test_single_day_default(self, db, teacher):
        """end_date defaults to start_date."""
        service = ScheduleService(db, teacher.id)

        blocked = await service.create_blocked_range(BlockedRangeCreate(start_date=date(2025, 1, 6)))

        assert blocked.end_date == date(2025, 1, 6)
        assert blocked.reason == "Unavailable"

    def test_inverted_range_rejected(self):
        """start after end is a schema error."""
        with pytest.raises(ValueError):
            BlockedRangeCreate(start_date=date(2025, 1, 6), end_date=date(2025, 1, 5))

    def test_recurring_rejected(self):
        """Recurring blocks are not accepted."""
        with pytest.raises(ValueError, match="Recurring"):
            BlockedRangeCreate(start_date=date(2025, 1, 6), is_recurring=True)

    async def test_delete_unknown(self, db, teacher):
        """Deleting a missing block is not found."""
        import uuid

        with pytest.raises(NotFoundError, match="Blocked date not found"):
            await ScheduleService(db, teacher.id).delete_blocked_range(uuid.uuid4())


class TestBookingSettings:
    """Settings defaults and full replacement."""

    async def test_defaults_without_row(self, db, teacher):
        """A teacher without stored settings gets the defaults."""
        policy = await SettingsService(db, teacher.id).get()

        assert policy.min_advance_booking_hours == 2
        assert policy.max_advance_booking_days == 30
        assert policy.allow_same_day_booking is False
        assert len(SettingsService.form_fields(policy)) == 6

    async def test_save_replaces_blocked_dates(self, db, teacher):
        """Saving replaces every blocked range in one go."""
        service = SettingsService(db, teacher.id)
        await service.save(BookingSettingsUpdate(
            blocked_dates=[BlockedRangeCreate(start_date=date(2025, 1, 6))],
        ))

        saved = await service.save(BookingSettingsUpdate(
            allow_weekends=False,
            blocked_dates=[
                BlockedRangeCreate(start_date=date(2025, 2, 1), end_date=date(2025, 2, 3)),
            ],
        ))

        blocked = await ScheduleService(db, teacher.id).list_blocked_ranges()
        assert saved.allow_weekends is False
        assert [(b.start_date, b.end_date) for b in blocked] == [(date(2025, 2, 1), date(2025, 2, 3))]

    async def test_disabled_form_fields(self, db, teacher):
        """Only enabled fields are offered; name and email stay required."""
        service = SettingsService(db, teacher.id)
        saved = await service.save(BookingSettingsUpdate(
            form_fields={"name": True, "email": True, "phone": False, "address": False,
                         "dates": False, "description": True},
        ))

        fields = SettingsService.form_fields(saved)

        assert [f["name"] for f in fields] == ["name", "email", "description"]
        assert all(f["required"] for f in fields[:2])

    async def test_name_and_email_always_collected(self, db, teacher):
        """Turning name and email off still offers them once any field is on."""
        saved = await SettingsService(db, teacher.id).save(BookingSettingsUpdate(
            form_fields={"name": False, "email": False, "phone": True, "address": False,
                         "dates": False, "description": True},
        ))

        fields = SettingsService.form_fields(saved)

        assert [f["name"] for f in fields] == ["name", "email", "phone", "description"]
        assert all(f["required"] for f in fields)

    async def test_no_fields_means_no_form(self, db, teacher):
        """With every field off the form is empty."""
        saved = await SettingsService(db, teacher.id).save(BookingSettingsUpdate(
            form_fields={name: False for name in ("name", "email", "phone", "address", "dates", "description")},
        ))

        assert SettingsService.form_fields(saved) == []
