"""Availability window and blocked range models."""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Time, Integer, Date, Enum, Index, Uuid
from sqlalchemy.orm import relationship
from tutorbook.database import Base


class RecurringType(str, PyEnum):
    """Recurrence marker accepted by the legacy blocked-dates payload."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AvailabilityWindow(Base):
    """Recurring weekly availability published by a teacher."""

    __tablename__ = "availability_windows"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False)

    # Optional label shown as its own option ("Morning", "Evening")
    title = Column(String(100))

    # Schedule
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 1=Monday, ..., 6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Effective date range, both inclusive. Null active_until = never expires
    active_from = Column(Date, nullable=False)
    active_until = Column(Date)

    # Soft-disable, independent of the date range
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="availability_windows")

    __table_args__ = (
        Index("ix_availability_windows_teacher_day", "teacher_id", "day_of_week"),
    )

    def __repr__(self):
        return f"<AvailabilityWindow day={self.day_of_week} {self.start_time}-{self.end_time}>"


class BlockedRange(Base):
    """Whole days a teacher is unavailable."""

    __tablename__ = "blocked_ranges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False)

    # Date range, both inclusive
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Reason
    reason = Column(String(255), default="Unavailable")  # "Holiday", "Vacation", etc.

    # Never set: recurring input is rejected at the API boundary
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_type = Column(Enum(RecurringType))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="blocked_ranges")

    def __repr__(self):
        return f"<BlockedRange {self.start_date} - {self.end_date}>"
