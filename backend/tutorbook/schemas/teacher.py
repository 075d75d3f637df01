"""Teacher profile and auth schemas."""

import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from zoneinfo import available_timezones

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

from tutorbook.schemas.common import normalize_phone, reject_null

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])$")
RESERVED_SUBDOMAINS = {
    "www", "admin", "api", "app", "mail", "ftp", "blog", "help", "support",
    "docs", "status", "dashboard", "login", "signup", "auth", "static",
}


def validate_timezone(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in available_timezones():
        raise ValueError(f"Unknown timezone: {v}")
    return v


class SignupRequest(BaseModel):
    """Create a teacher account and claim a subdomain."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    subdomain: str = Field(..., min_length=3, max_length=63)
    title: Optional[str] = Field(None, max_length=255)
    hourly_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    timezone: str = "America/New_York"

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: str) -> str:
        """Lowercase, DNS-safe and not reserved."""
        v = v.strip().lower()
        if not SUBDOMAIN_PATTERN.match(v):
            raise ValueError("Subdomain may only contain lowercase letters, digits and hyphens")
        if v in RESERVED_SUBDOMAINS:
            raise ValueError(f"Subdomain '{v}' is reserved")
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        return validate_timezone(v)


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    teacher_id: UUID


class TeacherUpdate(BaseModel):
    """Partial profile update from the dashboard."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    phone: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    theme: Optional[str] = Field(None, max_length=50)
    timezone: Optional[str] = None

    @field_validator("name", "theme", "timezone")
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: Optional[str]) -> Optional[str]:
        return validate_timezone(v)


class TeacherResponse(BaseModel):
    """Teacher profile as seen by its owner."""

    id: UUID
    subdomain: str
    email: str
    name: str
    title: Optional[str]
    bio: Optional[str]
    phone: Optional[str]
    hourly_rate: Optional[float]
    theme: str
    timezone: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class FormFieldResponse(BaseModel):
    """One enabled field of the public request form."""

    name: str
    label: str
    input_kind: str
    required: bool


class PublicProfileResponse(BaseModel):
    """What the public booking page needs to render."""

    subdomain: str
    name: str
    title: Optional[str]
    bio: Optional[str]
    phone: Optional[str]
    hourly_rate: Optional[float]
    theme: str
    timezone: str
    allow_customer_book: bool
    allow_manual_book: bool
    form_fields: List[FormFieldResponse]
