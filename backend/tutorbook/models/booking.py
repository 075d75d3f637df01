"""Booking models - scheduled reservations and service requests."""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Date, Time, Index, Enum, Numeric, Uuid
from sqlalchemy.orm import relationship
from tutorbook.database import Base


class BookingStatus(str, PyEnum):
    """Payment/lifecycle status of a booking."""
    REQUEST = "request"          # Contact-form inbox item, no time yet
    PENDING = "pending"          # Self-service checkout, awaiting payment
    QUOTE_SENT = "quote-sent"    # Teacher attached a quote to a request
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"        # Terminal


class BookingKind(str, PyEnum):
    """Discriminator for the two booking variants."""
    SCHEDULED = "scheduled"
    REQUEST = "request"


class Booking(Base):
    """Common identity and customer contact shape for every booking."""

    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False)
    kind = Column(String(20), nullable=False)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, default="")
    customer_phone = Column(String(30))

    # Scheduling - null for service requests
    booking_date = Column(Date)
    start_time = Column(Time)
    end_time = Column(Time)

    # Money
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)

    notes = Column(Text, default="")

    # External references
    external_id = Column(String(100))        # Id from the booking webhook
    invoice_reference = Column(String(100))  # Id returned by the invoicing API

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="bookings")

    # Prevent double-booking: unique constraint on teacher + date + start time.
    # Requests carry null dates so they never collide.
    __table_args__ = (
        Index(
            "ix_bookings_unique_slot",
            "teacher_id",
            "booking_date",
            "start_time",
            unique=True,
        ),
        Index("ix_bookings_teacher_external", "teacher_id", "external_id", unique=True),
    )

    __mapper_args__ = {
        "polymorphic_on": kind,
    }

    def __repr__(self):
        return f"<Booking {self.kind} {self.id}>"


class ScheduledReservation(Booking):
    """A booking pinned to a concrete date and time."""

    __mapper_args__ = {
        "polymorphic_identity": BookingKind.SCHEDULED.value,
    }

    @property
    def duration_hours(self) -> float:
        start = datetime.combine(datetime.min, self.start_time)
        end = datetime.combine(datetime.min, self.end_time)
        return (end - start).total_seconds() / 3600


class ServiceRequest(Booking):
    """Contact-form inbox item, later promoted by attaching a quote."""

    quote_description = Column(Text)
    quote_duration_hours = Column(Numeric(6, 2))
    quote_notes = Column(Text)
    quote_sent_at = Column(DateTime)

    __mapper_args__ = {
        "polymorphic_identity": BookingKind.REQUEST.value,
    }
