"""Teacher authentication endpoints."""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorbook.database import get_db
from tutorbook.api.deps import create_access_token, hash_password, verify_password
from tutorbook.exceptions import ConflictError
from tutorbook.models.teacher import Teacher
from tutorbook.schemas.teacher import SignupRequest, LoginRequest, TokenResponse
from tutorbook.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter()


def _token_for(teacher: Teacher) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(
            subject=str(teacher.id),
            extra_claims={"subdomain": teacher.subdomain},
        ),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        teacher_id=teacher.id,
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a teacher account.
    The subdomain becomes the public booking page address.
    """
    email = data.email.lower()

    result = await db.execute(
        select(Teacher).where(or_(Teacher.email == email, Teacher.subdomain == data.subdomain))
    )
    existing = result.scalars().first()
    if existing:
        field = "Email" if existing.email == email else "Subdomain"
        raise ConflictError(f"{field} is already taken")

    teacher = Teacher(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name,
        subdomain=data.subdomain,
        title=data.title,
        hourly_rate=data.hourly_rate,
        timezone=data.timezone,
    )
    db.add(teacher)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email or subdomain is already taken")

    await db.refresh(teacher)
    logger.info("Teacher %s signed up as %s", teacher.id, teacher.subdomain)
    return _token_for(teacher)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password."""
    result = await db.execute(
        select(Teacher).where(
            Teacher.email == data.email.lower(),
            Teacher.is_active == True,
        )
    )
    teacher = result.scalar_one_or_none()

    if not teacher or not verify_password(data.password, teacher.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return _token_for(teacher)
