"""Clock abstraction so "today" and "now" can be pinned in tests."""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


class Clock:
    """Wall clock. Returns timezone-aware datetimes."""

    def now(self, tz: Optional[str] = None) -> datetime:
        current = datetime.now(timezone.utc)
        return current.astimezone(ZoneInfo(tz)) if tz else current

    def today(self, tz: Optional[str] = None) -> date:
        return self.now(tz).date()


class FixedClock(Clock):
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant

    def now(self, tz: Optional[str] = None) -> datetime:
        return self.instant.astimezone(ZoneInfo(tz)) if tz else self.instant


_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock."""
    return _clock
