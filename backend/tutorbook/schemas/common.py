"""Shared schema types."""

from datetime import time
from typing import Optional

import phonenumbers
from pydantic import PlainSerializer
from typing_extensions import Annotated

# Wall-clock time rendered as "HH:MM" (the booking UI's format)
ClockTime = Annotated[
    time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json")
]


def normalize_phone(v: Optional[str]) -> Optional[str]:
    """Validate a phone number and normalize it to E.164. Blank means none."""
    if v is None or not v.strip():
        return None
    try:
        parsed = phonenumbers.parse(v, "US")
        if not phonenumbers.is_valid_number(parsed):
            raise ValueError("Invalid phone number")
        return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException as e:
        raise ValueError(f"Invalid phone number: {e}")


def reject_null(v, info):
    """For partial updates: a field may be omitted but not sent as null."""
    if v is None:
        raise ValueError(f"{info.field_name} may not be null")
    return v
