"""Session cart schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from tutorbook.schemas.common import ClockTime


class CartItemSelect(BaseModel):
    """Pick (or re-pick) a time inside a window. Omitted times mean the whole window."""

    window_id: UUID
    booking_date: date
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None


class CartItemResponse(BaseModel):
    """One pending selection."""

    window_id: UUID
    booking_date: date
    start_time: ClockTime
    end_time: ClockTime
    title: Optional[str]
    hours: float
    amount: float


class CartResponse(BaseModel):
    """Cart contents and running totals."""

    token: str
    items: List[CartItemResponse]
    total_hours: float
    total_cost: float
    expires_at: datetime
