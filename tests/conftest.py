from __future__ import annotations

import datetime as dt
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.db import get_session
from app.main import app
from app.models import Company, SQLModel, TimeEntry, User
from app.models.enums import Role
from app.services import security
from app.services.security import create_access_token, hash_password

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _fast_password_hashing() -> Iterator[None]:
    """bcrypt at its minimum cost keeps account fixtures cheap."""
    settings = get_settings()
    original = settings.bcrypt_rounds
    settings.bcrypt_rounds = 4
    security._password_context.cache_clear()
    yield
    settings.bcrypt_rounds = original
    security._password_context.cache_clear()


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory database per test, shared by every connection, with foreign keys enforced."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session used by tests to arrange data and inspect results."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client; every request gets its own session on the test database."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_company(db_session: AsyncSession) -> Callable[..., Awaitable[Company]]:
    async def _make(name: str = "Acme Serviços", active: bool = True) -> Company:
        company = Company(name=name, active=active)
        db_session.add(company)
        await db_session.commit()
        return company

    return _make


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make(
        role: Role = Role.EMPLOYEE,
        company: Company | None = None,
        *,
        name: str | None = None,
        email: str | None = None,
        hourly_rate: float | None = None,
        manager: User | None = None,
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            name=name or f"{role.title()} {suffix}",
            email=email or f"{role.lower()}-{suffix}@example.com",
            password_hash=hash_password(PASSWORD),
            role=role.value,
            company_id=company.id if company else None,
            hourly_rate=hourly_rate,
            manager_id=manager.id if manager else None,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_time_entry(db_session: AsyncSession) -> Callable[..., Awaitable[TimeEntry]]:
    """Insert an entry directly, bypassing the overlap check and notifications."""

    async def _make(
        user: User,
        date: dt.date = dt.date(2025, 3, 10),
        start: str = "08:00",
        end: str = "12:00",
        *,
        approved: bool | None = None,
        project: str | None = None,
    ) -> TimeEntry:
        start_time = dt.time.fromisoformat(start)
        end_time = dt.time.fromisoformat(end)
        minutes = (end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute)
        entry = TimeEntry(
            user_id=user.id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            total_hours=round(minutes / 60, 2),
            project=project,
            approved=approved,
            rejected=False if approved else None,
        )
        db_session.add(entry)
        await db_session.commit()
        return entry

    return _make


def token_for(user: User, ttl: timedelta = timedelta(hours=1)) -> str:
    return create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        company_id=user.company_id,
        expires_delta=ttl,
    )


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a user, signed like a real login."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers


# ---------------------------------------------------------------------------
# A company with one user per role
# ---------------------------------------------------------------------------


@pytest.fixture
async def company(make_company: Callable[..., Awaitable[Company]]) -> Company:
    return await make_company()


@pytest.fixture
async def other_company(make_company: Callable[..., Awaitable[Company]]) -> Company:
    return await make_company(name="Outra Empresa")


@pytest.fixture
async def developer(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user(Role.DEVELOPER)


@pytest.fixture
async def admin(make_user: Callable[..., Awaitable[User]], company: Company) -> User:
    return await make_user(Role.ADMIN, company)


@pytest.fixture
async def manager(make_user: Callable[..., Awaitable[User]], company: Company) -> User:
    return await make_user(Role.MANAGER, company)


@pytest.fixture
async def employee(make_user: Callable[..., Awaitable[User]], company: Company, manager: User) -> User:
    return await make_user(Role.EMPLOYEE, company, hourly_rate=20.0, manager=manager)
