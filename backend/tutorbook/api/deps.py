"""API dependencies for dependency injection and authentication."""

from typing import Optional
from uuid import UUID
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
from passlib.context import CryptContext

from tutorbook.database import get_db
from tutorbook.config import get_settings
from tutorbook.exceptions import NotFoundError
from tutorbook.integrations import get_email_client
from tutorbook.integrations.email_client import EmailClient
from tutorbook.models.teacher import Teacher
from tutorbook.services.notification_service import NotificationService

settings = get_settings()
bearer = HTTPBearer()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_TYPE = "teacher"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# =============================================================================
# Tokens
# =============================================================================

def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[dict] = None,
) -> str:
    """Signed teacher token; `sub` is the teacher id."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        **(extra_claims or {}),
        "sub": subject,
        "type": TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Verify signature and expiry. Any failure is a 401."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Could not validate credentials")


# =============================================================================
# Teacher resolution
# =============================================================================

async def get_current_teacher(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Teacher:
    """The active teacher named by the bearer token."""
    claims = decode_token(credentials.credentials)
    if claims.get("type") != TOKEN_TYPE:
        raise _unauthorized("Invalid token type for this endpoint")

    try:
        teacher_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise _unauthorized("Could not validate credentials")

    result = await db.execute(
        select(Teacher).where(Teacher.id == teacher_id, Teacher.is_active == True)
    )
    teacher = result.scalar_one_or_none()
    if teacher is None:
        raise _unauthorized("Teacher not found or inactive")
    return teacher


async def get_teacher_by_subdomain(
    subdomain: str,
    db: AsyncSession = Depends(get_db),
) -> Teacher:
    """Resolve the public page's teacher from the subdomain path segment."""
    result = await db.execute(
        select(Teacher).where(
            Teacher.subdomain == subdomain.lower(),
            Teacher.is_active == True,
        )
    )
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise NotFoundError("Teacher not found")
    return teacher


def get_notification_service(
    email: EmailClient = Depends(get_email_client),
) -> NotificationService:
    return NotificationService(email)
