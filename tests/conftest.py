"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets a fresh engine and a transaction that rolls back afterwards.
- Runs on in-memory SQLite (aiosqlite) unless ``TEST_DATABASE_URL`` points
  at a PostgreSQL test database.
"""

import os
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from safari_connector.database import Base, get_db
from safari_connector.main import app
from safari_connector.models.booking import Booking
from safari_connector.models.operator import Operator
from safari_connector.models.trip import Trip
from safari_connector.models.user import User
from tests.factories import make_booking, make_operator, make_trip, make_user

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _make_engine() -> AsyncEngine:
    if not TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(TEST_DATABASE_URL, echo=False, pool_pre_ping=True)

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave on SQLite.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


# ---------------------------------------------------------------------------
# Per-test: fresh schema and transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: one user per role, an approved operator with a trip
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def traveller(db_session: AsyncSession) -> User:
    return await make_user(db_session, "traveller", name="Amina Traveller")


@pytest_asyncio.fixture
async def other_traveller(db_session: AsyncSession) -> User:
    return await make_user(db_session, "traveller", name="Other Traveller")


@pytest_asyncio.fixture
async def operator(db_session: AsyncSession) -> Operator:
    return await make_operator(db_session)


@pytest_asyncio.fixture
async def other_operator(db_session: AsyncSession) -> Operator:
    return await make_operator(db_session, company_name="Kilimanjaro Ventures")


@pytest_asyncio.fixture
async def operator_user(db_session: AsyncSession, operator: Operator) -> User:
    return await db_session.get(User, operator.user_id)


@pytest_asyncio.fixture
async def finance_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "finance", name="Finance Desk")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin", name="Platform Admin")


@pytest_asyncio.fixture
async def trip(db_session: AsyncSession, operator: Operator) -> Trip:
    return await make_trip(db_session, operator)


@pytest_asyncio.fixture
async def booking(db_session: AsyncSession, trip: Trip, traveller: User) -> Booking:
    """A fresh ``pending_payment`` / ``unpaid`` booking with an enquiry thread."""
    return await make_booking(db_session, trip, traveller)
