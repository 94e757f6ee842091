from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import uuid
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.db import build_engine, get_session
from hrms.main import app
from hrms.models import SQLModel
from hrms.models.enums import Role
from hrms.security import create_access_token
from hrms.services.employee import InMemoryEmployeeService, set_employee_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory database per test."""
    _engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def directory() -> InMemoryEmployeeService:
    """An empty employee directory installed for the duration of a test."""
    service = InMemoryEmployeeService()
    set_employee_service(service)
    return service


@pytest.fixture
def make_headers() -> Callable[..., dict[str, str]]:
    """Build bearer-token headers for a role and optional linked employee."""

    def _make(
        role: Role = Role.ADMIN,
        employee_id: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
    ) -> dict[str, str]:
        token = create_access_token(user_id or uuid.uuid4(), role.value, employee_id)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def admin_headers(make_headers: Callable[..., dict[str, str]]) -> dict[str, str]:
    return make_headers(Role.ADMIN, user_id=ADMIN_USER_ID)
