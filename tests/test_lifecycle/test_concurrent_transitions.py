"""Two sessions racing on the same booking through real, separate connections.

The rollback-wrapped ``db_session`` cannot show this: both writers there share
one connection. These tests commit to their own database (a SQLite file, or
``TEST_DATABASE_URL`` when it points at PostgreSQL).
"""

import asyncio
import os
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from safari_connector.database import Base
from safari_connector.errors import Conflict
from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.models.user import User
from safari_connector.services import transition_authority
from safari_connector.services.transition_authority import ActorContext, cancel_booking, confirm_booking
from tests.factories import make_booking, make_operator, make_trip, make_user

pytestmark = pytest.mark.asyncio

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
ON_POSTGRES = TEST_DATABASE_URL.startswith("postgresql")


@pytest_asyncio.fixture
async def shared_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    url = TEST_DATABASE_URL if ON_POSTGRES else f"sqlite+aiosqlite:///{tmp_path / 'race.db'}"
    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sessions(shared_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(shared_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def verified_booking(sessions: async_sessionmaker[AsyncSession]) -> dict:
    """A committed ``payment_verified`` booking plus the actors around it."""
    async with sessions() as session:
        traveller = await make_user(session, "traveller", name="Amina Traveller")
        operator = await make_operator(session)
        trip = await make_trip(session, operator)
        booking = await make_booking(session, trip, traveller, "payment_verified", "paid_in_full")
        operator_user = await session.get(User, operator.user_id)
        await session.commit()
        return {
            "booking_id": booking.id,
            "traveller": ActorContext.for_user(traveller),
            "operator": ActorContext.for_user(operator_user, operator),
        }


def _hold_applies_until_both_planned(monkeypatch: pytest.MonkeyPatch, first_committed: asyncio.Event | None):
    """Make every apply wait until two sessions have planned against the same row.

    With ``first_committed`` the second writer also waits for the first commit,
    which keeps SQLite's single writer lock out of the picture.
    """
    both_planned = asyncio.Barrier(2)
    arrivals: list[AsyncSession] = []
    real_apply = transition_authority.apply_transition

    async def apply_after_both_planned(db, plan):
        await both_planned.wait()
        arrivals.append(db)
        if first_committed is not None and len(arrivals) == 2:
            await first_committed.wait()
        return await real_apply(db, plan)

    monkeypatch.setattr(transition_authority, "apply_transition", apply_after_both_planned)


async def _run(sessions, action, booking_id: uuid.UUID, actor: ActorContext, done: asyncio.Event | None):
    async with sessions() as session:
        try:
            booking = await action(session, booking_id, actor)
            await session.commit()
            return booking.status
        except Conflict:
            await session.rollback()
            raise
        finally:
            if done is not None:
                done.set()


async def _status_events(sessions, booking_id: uuid.UUID) -> int:
    async with sessions() as session:
        return await session.scalar(
            select(func.count())
            .select_from(BookingEvent)
            .where(BookingEvent.booking_id == booking_id, BookingEvent.field == "status")
        )


# ---------------------------------------------------------------------------
# Same action twice
# ---------------------------------------------------------------------------


class TestDoubleConfirm:
    async def test_one_confirm_wins_the_other_conflicts(
        self, sessions, verified_booking: dict, monkeypatch: pytest.MonkeyPatch
    ):
        first_committed = asyncio.Event()
        _hold_applies_until_both_planned(monkeypatch, first_committed)
        booking_id, actor = verified_booking["booking_id"], verified_booking["operator"]

        results = await asyncio.gather(
            _run(sessions, confirm_booking, booking_id, actor, first_committed),
            _run(sessions, confirm_booking, booking_id, actor, first_committed),
            return_exceptions=True,
        )

        assert sorted(type(r).__name__ for r in results) == ["Conflict", "str"]
        assert "confirmed" in results

        async with sessions() as session:
            booking = await session.get(Booking, booking_id)
            assert booking.status == "confirmed"
        assert await _status_events(sessions, booking_id) == 1

    async def test_confirm_after_commit_is_a_no_op(self, sessions, verified_booking: dict):
        booking_id, actor = verified_booking["booking_id"], verified_booking["operator"]

        assert await _run(sessions, confirm_booking, booking_id, actor, None) == "confirmed"
        assert await _run(sessions, confirm_booking, booking_id, actor, None) == "confirmed"
        assert await _status_events(sessions, booking_id) == 1


# ---------------------------------------------------------------------------
# Different actions on the same snapshot
# ---------------------------------------------------------------------------


class TestConfirmAgainstCancel:
    async def test_exactly_one_of_confirm_and_cancel_lands(
        self, sessions, verified_booking: dict, monkeypatch: pytest.MonkeyPatch
    ):
        first_committed = asyncio.Event()
        _hold_applies_until_both_planned(monkeypatch, first_committed)
        booking_id = verified_booking["booking_id"]

        confirm, cancel = await asyncio.gather(
            _run(sessions, confirm_booking, booking_id, verified_booking["operator"], first_committed),
            _run(sessions, cancel_booking, booking_id, verified_booking["traveller"], first_committed),
            return_exceptions=True,
        )

        outcomes = [r for r in (confirm, cancel) if not isinstance(r, Exception)]
        assert len(outcomes) == 1
        assert sum(isinstance(r, Conflict) for r in (confirm, cancel)) == 1

        async with sessions() as session:
            booking = await session.get(Booking, booking_id)
            assert booking.status == outcomes[0]
        assert await _status_events(sessions, booking_id) == 1


@pytest.mark.skipif(not ON_POSTGRES, reason="needs row locks from a PostgreSQL TEST_DATABASE_URL")
class TestUnorderedWriters:
    async def test_row_lock_turns_the_loser_into_a_conflict(
        self, sessions, verified_booking: dict, monkeypatch: pytest.MonkeyPatch
    ):
        _hold_applies_until_both_planned(monkeypatch, None)
        booking_id, actor = verified_booking["booking_id"], verified_booking["operator"]

        results = await asyncio.gather(
            _run(sessions, confirm_booking, booking_id, actor, None),
            _run(sessions, confirm_booking, booking_id, actor, None),
            return_exceptions=True,
        )

        assert sorted(type(r).__name__ for r in results) == ["Conflict", "str"]
        assert await _status_events(sessions, booking_id) == 1
