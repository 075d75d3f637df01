"""External service clients."""

from tutorbook.integrations.email_client import EmailClient
from tutorbook.integrations.invoicing_client import InvoicingClient


def get_email_client() -> EmailClient:
    """FastAPI dependency for the email client."""
    return EmailClient()


def get_invoicing_client() -> InvoicingClient:
    """FastAPI dependency for the invoicing client."""
    return InvoicingClient()


__all__ = ["EmailClient", "InvoicingClient", "get_email_client", "get_invoicing_client"]
