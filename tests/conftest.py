"""Shared test fixtures: async DB, client, frozen clock, policy, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test env before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from hr_ledger.auth.dependencies import create_access_token
from hr_ledger.common.clock import Clock, get_clock
from hr_ledger.common.constants import UserRole
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.config import get_policy
from hr_ledger.database import Base, get_db
from hr_ledger.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import hr_ledger.attendance.models  # noqa: F401
import hr_ledger.common.audit  # noqa: F401
import hr_ledger.directory.models  # noqa: F401
import hr_ledger.leave.models  # noqa: F401
from hr_ledger.directory.models import Employee


# ── SQLite compat: compile PG-specific types ────────────────────────

@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

# 09:00 UTC on a Tuesday
FROZEN_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class FrozenClock(Clock):
    """Clock pinned to a settable instant."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **delta) -> None:
        self._now += timedelta(**delta)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Clock / policy ──────────────────────────────────────────────────

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def policy() -> AccountingPolicy:
    return AccountingPolicy(yearly_paid_leave_limit=18, min_daily_work_minutes=480)


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(clock, policy):
    """Create a fresh app instance with DB, clock and policy overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_policy] = lambda: policy
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


@pytest.fixture
def session_factory() -> async_sessionmaker:
    """Factory for extra sessions, used to interleave concurrent actors."""
    return TestSessionFactory


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    role: UserRole = UserRole.employee,
    manager_id: Optional[uuid.UUID] = None,
    full_name: str = "Test User",
    is_active: bool = True,
) -> dict:
    code = uuid.uuid4().hex[:6].upper()
    return dict(
        id=uuid.uuid4(),
        employee_code=f"HR-{code}",
        full_name=full_name,
        email=f"user.{code.lower()}@example.com",
        role=role,
        manager_id=manager_id,
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def make_employee(db):
    """Async factory: insert an employee and return the ORM object."""

    async def _factory(**kwargs) -> Employee:
        emp = Employee(**_make_employee(**kwargs))
        db.add(emp)
        await db.flush()
        return emp

    return _factory


# ── Auth helpers ────────────────────────────────────────────────────

@pytest.fixture
def auth_headers():
    """Return a builder of Bearer headers for a given employee."""

    def _headers(employee: Employee, role: Optional[UserRole] = None) -> dict[str, str]:
        token = create_access_token(employee.id, role or employee.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
