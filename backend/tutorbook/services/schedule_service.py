"""Schedule service - availability windows, blocked dates and resolution."""

import logging
from datetime import date, time
from typing import Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.exceptions import ConflictError, NotFoundError, ValidationError
from tutorbook.models.availability import AvailabilityWindow, BlockedRange
from tutorbook.schemas.availability import BlockedRangeCreate, WindowCreate, WindowUpdate
from tutorbook.services.availability_resolver import OpenInterval, resolve_availability

logger = logging.getLogger(__name__)


def times_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open [start, end) overlap."""
    return start1 < end2 and end1 > start2


def date_ranges_overlap(
    from1: date, until1: Optional[date], from2: date, until2: Optional[date]
) -> bool:
    """Inclusive date ranges; None means open-ended. Inverted ranges are empty."""
    if until1 is not None and until1 < from1:
        return False
    if until2 is not None and until2 < from2:
        return False
    return (until2 is None or from1 <= until2) and (until1 is None or from2 <= until1)


class ScheduleService:
    """Service for availability windows and blocked ranges."""

    def __init__(self, db: AsyncSession, teacher_id: UUID):
        self.db = db
        self.teacher_id = teacher_id

    # ==========================================================================
    # Availability windows
    # ==========================================================================

    async def list_windows(self, active_only: bool = False) -> List[AvailabilityWindow]:
        query = select(AvailabilityWindow).where(AvailabilityWindow.teacher_id == self.teacher_id)
        if active_only:
            query = query.where(AvailabilityWindow.is_active == True)
        query = query.order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.start_time)
        result = await self.db.execute(query)
        return list(result.scalars())

    async def get_window(self, window_id: UUID) -> AvailabilityWindow:
        result = await self.db.execute(
            select(AvailabilityWindow).where(
                AvailabilityWindow.id == window_id,
                AvailabilityWindow.teacher_id == self.teacher_id,
            )
        )
        window = result.scalar_one_or_none()
        if not window:
            raise NotFoundError("Availability window not found")
        return window

    async def get_windows(self, window_ids: Sequence[UUID]) -> Dict[UUID, AvailabilityWindow]:
        """Windows by id, restricted to this teacher. Unknown ids are simply absent."""
        if not window_ids:
            return {}
        result = await self.db.execute(
            select(AvailabilityWindow).where(
                AvailabilityWindow.id.in_(set(window_ids)),
                AvailabilityWindow.teacher_id == self.teacher_id,
            )
        )
        return {w.id: w for w in result.scalars()}

    async def _check_overlap(self, candidate: AvailabilityWindow, exclude_id: Optional[UUID] = None) -> None:
        """No two active windows on the same weekday may overlap in both dates and times."""
        if not candidate.is_active:
            return

        query = select(AvailabilityWindow).where(
            AvailabilityWindow.teacher_id == self.teacher_id,
            AvailabilityWindow.day_of_week == candidate.day_of_week,
            AvailabilityWindow.is_active == True,
        )
        if exclude_id:
            query = query.where(AvailabilityWindow.id != exclude_id)
        result = await self.db.execute(query)

        for other in result.scalars():
            if not date_ranges_overlap(
                candidate.active_from, candidate.active_until,
                other.active_from, other.active_until,
            ):
                continue
            if times_overlap(candidate.start_time, candidate.end_time, other.start_time, other.end_time):
                label = f" '{other.title}'" if other.title else ""
                raise ConflictError(
                    f"Overlaps existing window{label} "
                    f"{other.start_time:%H:%M}-{other.end_time:%H:%M} on the same day"
                )

    async def create_window(self, data: WindowCreate) -> AvailabilityWindow:
        window = AvailabilityWindow(teacher_id=self.teacher_id, **data.model_dump())
        await self._check_overlap(window)

        self.db.add(window)
        await self.db.commit()
        await self.db.refresh(window)
        logger.info("Created window %s for teacher %s", window.id, self.teacher_id)
        return window

    async def update_window(self, window_id: UUID, data: WindowUpdate) -> AvailabilityWindow:
        """Apply a partial update, re-checking times and overlap on the merged result."""
        window = await self.get_window(window_id)
        updates = data.model_dump(exclude_unset=True)

        for field, value in updates.items():
            setattr(window, field, value)

        if window.start_time >= window.end_time:
            await self.db.rollback()
            raise ValidationError("end_time must be after start_time")

        try:
            await self._check_overlap(window, exclude_id=window.id)
        except ConflictError:
            await self.db.rollback()
            raise

        await self.db.commit()
        await self.db.refresh(window)
        return window

    async def deactivate_window(self, window_id: UUID) -> AvailabilityWindow:
        """Windows are never hard-deleted; delete means soft-disable."""
        window = await self.get_window(window_id)
        window.is_active = False
        await self.db.commit()
        await self.db.refresh(window)
        logger.info("Deactivated window %s", window_id)
        return window

    # ==========================================================================
    # Blocked ranges
    # ==========================================================================

    async def list_blocked_ranges(self) -> List[BlockedRange]:
        result = await self.db.execute(
            select(BlockedRange)
            .where(BlockedRange.teacher_id == self.teacher_id)
            .order_by(BlockedRange.start_date)
        )
        return list(result.scalars())

    async def create_blocked_range(self, data: BlockedRangeCreate) -> BlockedRange:
        blocked = self._build_blocked(data)
        self.db.add(blocked)
        await self.db.commit()
        await self.db.refresh(blocked)
        return blocked

    async def delete_blocked_range(self, blocked_id: UUID) -> None:
        result = await self.db.execute(
            select(BlockedRange).where(
                BlockedRange.id == blocked_id,
                BlockedRange.teacher_id == self.teacher_id,
            )
        )
        blocked = result.scalar_one_or_none()
        if not blocked:
            raise NotFoundError("Blocked date not found")

        await self.db.delete(blocked)
        await self.db.commit()

    async def replace_blocked_ranges(self, items: Sequence[BlockedRangeCreate]) -> List[BlockedRange]:
        """Delete every blocked range and insert the given ones. Caller commits."""
        await self.db.execute(
            delete(BlockedRange).where(BlockedRange.teacher_id == self.teacher_id)
        )
        rows = [self._build_blocked(item) for item in items]
        self.db.add_all(rows)
        return rows

    def _build_blocked(self, data: BlockedRangeCreate) -> BlockedRange:
        return BlockedRange(
            teacher_id=self.teacher_id,
            start_date=data.start_date,
            end_date=data.end_date or data.start_date,
            reason=data.reason,
            is_recurring=False,
            recurring_type=None,
        )

    # ==========================================================================
    # Resolution
    # ==========================================================================

    async def resolve(
        self,
        range_start: date,
        range_end: date,
        today: date,
        settings,
    ) -> Dict[date, List[OpenInterval]]:
        """Load the teacher's active windows and relevant blocks, then resolve."""
        windows = await self.list_windows(active_only=True)

        result = await self.db.execute(
            select(BlockedRange).where(
                BlockedRange.teacher_id == self.teacher_id,
                BlockedRange.start_date <= range_end,
                BlockedRange.end_date >= range_start,
            )
        )
        blocked = list(result.scalars())

        return resolve_availability(windows, blocked, settings, range_start, range_end, today)
