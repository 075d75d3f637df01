"""Shared fixtures: in-memory database, fake Redis, frozen clock, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("INVOICING_API_KEY", "")

from datetime import date, datetime, time, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tutorbook.api.deps import create_access_token, hash_password
from tutorbook.clock import FixedClock, get_clock
from tutorbook.database import Base, get_db, get_redis
from tutorbook.integrations import get_email_client, get_invoicing_client
from tutorbook.models import AvailabilityWindow, Teacher

# Thursday 2025-01-02, 09:00 in New York
NOW = datetime(2025, 1, 2, 14, 0, tzinfo=timezone.utc)
TODAY = date(2025, 1, 2)
NEXT_MONDAY = date(2025, 1, 6)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def redis():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def email_client():
    client = AsyncMock()
    client.send.return_value = True
    return client


@pytest.fixture
def invoicing_client():
    client = AsyncMock()
    client.create_invoice.return_value = "inv_123"
    return client


@pytest.fixture
async def teacher(db):
    teacher = Teacher(
        subdomain="maria",
        email="maria@example.com",
        password_hash=hash_password("correct-horse"),
        name="Maria Lopez",
        title="Piano Teacher",
        hourly_rate=Decimal("50.00"),
        timezone="America/New_York",
        theme="default",
        is_active=True,
    )
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)
    return teacher


@pytest.fixture
async def monday_window(db, teacher):
    """Monday 09:00-12:00 from 2025-01-01, no end date."""
    window = AvailabilityWindow(
        teacher_id=teacher.id,
        title="Morning",
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(12, 0),
        active_from=date(2025, 1, 1),
        active_until=None,
        is_active=True,
    )
    db.add(window)
    await db.commit()
    await db.refresh(window)
    return window


@pytest.fixture
def auth_headers(teacher):
    return {"Authorization": f"Bearer {create_access_token(str(teacher.id))}"}


@pytest.fixture
async def client(session_factory, clock, redis, email_client, invoicing_client):
    from tutorbook.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_invoicing_client] = lambda: invoicing_client

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
