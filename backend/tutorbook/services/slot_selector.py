"""
Slot selection - custom sub-windows carved from a published window, and the
visitor's pending cart of selections.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from uuid import UUID

from tutorbook.exceptions import ValidationError

DEFAULT_STEP_MINUTES = 30
CENTS = Decimal("0.01")


def time_options(window, step_minutes: int = DEFAULT_STEP_MINUTES) -> List[time]:
    """
    Times a visitor can pick inside a window.

    Steps from the window start on the grid while strictly before the end,
    then always offers the end itself, even when it is off-grid.
    """
    reference = date(2000, 1, 1)
    current = datetime.combine(reference, window.start_time)
    end = datetime.combine(reference, window.end_time)
    step = timedelta(minutes=step_minutes)

    options = []
    while current < end:
        options.append(current.time())
        current += step
    options.append(window.end_time)
    return options


def hours_between(start: time, end: time) -> Decimal:
    """Wall-clock difference in hours; only the delta matters."""
    reference = date(2000, 1, 1)
    delta = datetime.combine(reference, end) - datetime.combine(reference, start)
    return Decimal(int(delta.total_seconds())) / Decimal(3600)


def compute_amount(hours: Decimal, hourly_rate: Optional[Decimal]) -> Decimal:
    """Cost of a slot, rounded half-up to cents. No rate means no charge."""
    if hourly_rate is None:
        return Decimal("0.00")
    return (hours * Decimal(hourly_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class SelectedSlot:
    """A (possibly narrowed) window occurrence chosen by a visitor."""

    window_id: UUID
    booking_date: date
    start_time: time
    end_time: time
    title: Optional[str] = None

    @property
    def hours(self) -> Decimal:
        return hours_between(self.start_time, self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_id": str(self.window_id),
            "booking_date": self.booking_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectedSlot":
        return cls(
            window_id=UUID(data["window_id"]),
            booking_date=date.fromisoformat(data["booking_date"]),
            start_time=time.fromisoformat(data["start_time"]),
            end_time=time.fromisoformat(data["end_time"]),
            title=data.get("title"),
        )


def select_custom_time(
    window,
    booking_date: date,
    desired_start: Optional[time] = None,
    desired_end: Optional[time] = None,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> SelectedSlot:
    """
    Narrow a window to [desired_start, desired_end).

    Omitted bounds fall back to the window's own. Raises ValidationError when
    the range is empty, leaves the window, or is not on the offered options.
    """
    start = desired_start or window.start_time
    end = desired_end or window.end_time

    if start >= end:
        raise ValidationError("End time must be after start time")
    if start < window.start_time or end > window.end_time:
        raise ValidationError(
            f"Selected time {start:%H:%M}-{end:%H:%M} is outside the window "
            f"{window.start_time:%H:%M}-{window.end_time:%H:%M}"
        )

    options = time_options(window, step_minutes)
    if start not in options[:-1]:
        raise ValidationError(f"{start:%H:%M} is not an available start time")
    if end not in options[1:]:
        raise ValidationError(f"{end:%H:%M} is not an available end time")

    return SelectedSlot(
        window_id=window.id,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        title=getattr(window, "title", None),
    )


@dataclass
class Cart:
    """Pending selections, at most one per window id, in insertion order."""

    items: List[SelectedSlot] = field(default_factory=list)

    def add(self, slot: SelectedSlot) -> None:
        """Add a selection, replacing any previous one for the same window."""
        for index, existing in enumerate(self.items):
            if existing.window_id == slot.window_id:
                self.items[index] = slot
                return
        self.items.append(slot)

    def remove(self, window_id: UUID) -> None:
        self.items = [item for item in self.items if item.window_id != window_id]

    def total_hours(self) -> Decimal:
        return sum((item.hours for item in self.items), Decimal("0"))

    def total_cost(self, hourly_rate: Optional[Decimal]) -> Decimal:
        return sum(
            (compute_amount(item.hours, hourly_rate) for item in self.items),
            Decimal("0.00"),
        )

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cart":
        return cls(items=[SelectedSlot.from_dict(item) for item in data.get("items", [])])
