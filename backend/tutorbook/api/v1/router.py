"""Main router for API v1."""

from fastapi import APIRouter

from tutorbook.api.v1 import auth, webhooks
from tutorbook.api.v1.owner.router import router as owner_router
from tutorbook.api.v1.public.router import router as public_router

api_router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

# =============================================================================
# Teacher Dashboard
# =============================================================================
api_router.include_router(
    owner_router,
    prefix="/owner",
    tags=["Teacher Dashboard"]
)

# =============================================================================
# Public Booking Pages
# =============================================================================
api_router.include_router(
    public_router,
    prefix="/public",
    tags=["Public Booking"]
)

# =============================================================================
# Webhooks (for external services)
# =============================================================================
api_router.include_router(
    webhooks.router,
    prefix="/webhooks",
    tags=["Webhooks"]
)
