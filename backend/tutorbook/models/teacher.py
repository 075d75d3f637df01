"""Teacher (tenant) model."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, Uuid
from sqlalchemy.orm import relationship
from tutorbook.database import Base


class Teacher(Base):
    """Teacher entity - a service provider with a public booking page (tenant)."""

    __tablename__ = "teachers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Routing key for the public page: <subdomain>.tutorbook.app
    subdomain = Column(String(63), unique=True, nullable=False, index=True)

    # Auth
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(255), nullable=False)
    title = Column(String(255))
    bio = Column(Text)
    phone = Column(String(20))

    # Null = no cost display or computation
    hourly_rate = Column(Numeric(10, 2))

    # Configuration
    theme = Column(String(50), default="default")
    timezone = Column(String(50), default="America/New_York")
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    availability_windows = relationship("AvailabilityWindow", back_populates="teacher")
    blocked_ranges = relationship("BlockedRange", back_populates="teacher")
    booking_settings = relationship("BookingSettings", back_populates="teacher", uselist=False)
    bookings = relationship("Booking", back_populates="teacher")

    def __repr__(self):
        return f"<Teacher {self.subdomain}>"
