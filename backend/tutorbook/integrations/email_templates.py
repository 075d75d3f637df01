"""Plain-text email templates keyed by name."""

from typing import Dict, Tuple

# name -> (subject, body); bodies are str.format templates
TEMPLATES: Dict[str, Tuple[str, str]] = {
    "booking_confirmation": (
        "Your booking with {teacher_name} is confirmed",
        "Hi {customer_name},\n\n"
        "Thanks for booking with {teacher_name}. Your sessions:\n\n"
        "{sessions}\n\n"
        "Total: {total_hours} hours, ${total_amount}\n\n"
        "Payment status: pending.",
    ),
    "teacher_new_booking": (
        "New booking from {customer_name}",
        "{customer_name} ({customer_email}) booked:\n\n"
        "{sessions}\n\n"
        "Total: {total_hours} hours, ${total_amount}\n\n"
        "Notes: {notes}",
    ),
    "request_received": (
        "We received your request",
        "Hi {customer_name},\n\n"
        "{teacher_name} has received your booking request and will send you a quote soon.",
    ),
    "teacher_new_request": (
        "New booking request from {customer_name}",
        "A new booking request is waiting in your inbox.\n\n{notes}",
    ),
    "quote_sent": (
        "Your quote from {teacher_name}",
        "Hi {customer_name},\n\n"
        "{teacher_name} sent you a quote:\n\n"
        "{description}\n"
        "Duration: {duration_hours} hours\n"
        "Amount: ${amount}\n\n"
        "{quote_notes}",
    ),
}


class _Blank(dict):
    """Missing template fields render as empty strings."""

    def __missing__(self, key):
        return ""


def render(template: str, fields: Dict[str, object]) -> Tuple[str, str]:
    """Return (subject, body). Raises KeyError for an unknown template."""
    subject, body = TEMPLATES[template]
    values = _Blank({k: "" if v is None else v for k, v in fields.items()})
    return subject.format_map(values), body.format_map(values)
