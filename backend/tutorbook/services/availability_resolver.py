"""
Availability resolution.

Turns recurring weekly windows, blocked date ranges and the teacher's
booking policy into per-day lists of open intervals. Everything in this
module is pure: callers pass rows already loaded from the store and the
current day from a Clock.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

GRID_DAYS = 42  # six full weeks


@dataclass(frozen=True)
class OpenInterval:
    """One bookable window occurrence on a concrete date."""

    window_id: UUID
    start: time
    end: time
    title: Optional[str] = None


@dataclass
class CalendarDay:
    """One cell of the month grid."""

    date: date
    is_current_month: bool
    is_past: bool
    is_today: bool
    intervals: List[OpenInterval] = field(default_factory=list)

    @property
    def has_availability(self) -> bool:
        return bool(self.intervals)


def day_of_week(d: date) -> int:
    """Day index with 0 = Sunday."""
    return (d.weekday() + 1) % 7


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def window_applies(window, d: date) -> bool:
    """Whether a window publishes an interval on date d (ignores blocks and policy)."""
    if not window.is_active or window.day_of_week != day_of_week(d):
        return False
    if d < window.active_from:
        return False
    # An inverted range (active_until < active_from) never matches here
    if window.active_until is not None and d > window.active_until:
        return False
    return True


def is_blocked(blocked_ranges: Sequence, d: date) -> bool:
    return any(b.start_date <= d <= b.end_date for b in blocked_ranges)


def suppression_reason(settings, blocked_ranges: Sequence, d: date, today: date) -> Optional[str]:
    """Why a whole date is closed, or None when it is open."""
    if is_blocked(blocked_ranges, d):
        return "blocked"
    if d < today:
        return "past"
    if not settings.allow_weekends and day_of_week(d) in (0, 6):
        return "weekend"
    if not settings.allow_same_day_booking and d == today:
        return "same_day"
    if d > today + timedelta(days=settings.max_advance_booking_days):
        return "too_far_ahead"
    return None


def intervals_for_date(windows: Sequence, d: date) -> List[OpenInterval]:
    """Raw per-window intervals for a date. Not merged: each window is its own option."""
    intervals = [
        OpenInterval(window_id=w.id, start=w.start_time, end=w.end_time, title=w.title)
        for w in windows
        if window_applies(w, d)
    ]
    return sorted(intervals, key=lambda i: (i.start, i.end))


def resolve_availability(
    windows: Sequence,
    blocked_ranges: Sequence,
    settings,
    range_start: date,
    range_end: date,
    today: date,
) -> Dict[date, List[OpenInterval]]:
    """
    Resolve open intervals for every date in [range_start, range_end].

    Every date in the range is a key; closed dates map to an empty list.
    An inverted range yields an empty mapping.
    """
    resolved: Dict[date, List[OpenInterval]] = {}
    for d in iter_dates(range_start, range_end):
        intervals = intervals_for_date(windows, d)
        if intervals and suppression_reason(settings, blocked_ranges, d, today):
            intervals = []
        resolved[d] = intervals
    return resolved


def month_grid_bounds(year: int, month: int) -> tuple:
    """First and last date of the 6x7 grid covering a month (weeks start Sunday)."""
    first = date(year, month, 1)
    grid_start = first - timedelta(days=day_of_week(first))
    return grid_start, grid_start + timedelta(days=GRID_DAYS - 1)


def build_month_grid(
    year: int,
    month: int,
    resolved: Dict[date, List[OpenInterval]],
    today: date,
) -> List[CalendarDay]:
    """
    Build the 42-day display grid for a month.

    Leading and trailing days from adjacent months are included and carry
    whatever the resolver produced for them; is_current_month is display-only.
    """
    grid_start, grid_end = month_grid_bounds(year, month)
    return [
        CalendarDay(
            date=d,
            is_current_month=d.month == month,
            is_past=d < today,
            is_today=d == today,
            intervals=resolved.get(d, []),
        )
        for d in iter_dates(grid_start, grid_end)
    ]


def upcoming_dates(resolved: Dict[date, List[OpenInterval]]) -> List[date]:
    """Dates with at least one open interval, in order."""
    return [d for d in sorted(resolved) if resolved[d]]
