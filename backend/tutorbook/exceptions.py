"""Domain errors raised by services and mapped to HTTP responses in main."""


class BookingError(Exception):
    """Base class for errors a caller can act on."""

    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or missing input. Nothing was written."""

    status_code = 400
    code = "validation_error"


class ConflictError(BookingError):
    """The request collides with existing state (taken slot, overlapping window)."""

    status_code = 409
    code = "conflict"


class NotFoundError(BookingError):
    """Unknown teacher, booking, window or blocked range."""

    status_code = 404
    code = "not_found"


class IntegrationError(BookingError):
    """A downstream service failed while it was the primary operation."""

    status_code = 502
    code = "integration_error"
