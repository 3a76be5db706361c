"""
Concurrent bookings racing for the same places.

These run on a file database with one connection per session. Every
transaction starts with BEGIN IMMEDIATE, so SQLite queues the writers the way
row locks queue them on the production database.
"""

import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import surfclub.models  # noqa: F401 - registers every table on Base.metadata
from surfclub.core.config import get_settings
from surfclub.core.errors import CapacityError
from surfclub.db.base import Base
from surfclub.models.customer import Customer
from surfclub.services import slot_service
from surfclub.services.booking_service import BookingOrchestrator
from surfclub.services.pricing import PricingEngine

from conftest import MONDAY, MORNING, booked_count, customer


@pytest_asyncio.fixture
async def shared_db(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}", connect_args={"timeout": 30})

    @event.listens_for(engine.sync_engine, "connect")
    def _driver_does_not_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session, session.begin():
        slot = await slot_service.create_slot(session, 1, *MORNING)
    yield session_factory, slot.id
    await engine.dispose()


def kayak_pair(slot_id: int, email: str) -> dict:
    return {
        **customer(email=email),
        "activity_type": "kayak",
        "session_date": MONDAY.isoformat(),
        "slot_id": slot_id,
        "people": [{"name": "Front", "age": 30}, {"name": "Back", "age": 30}],
    }


@pytest.mark.asyncio
async def test_last_kayak_seats_go_to_one_of_two_racing_bookings(shared_db):
    session_factory, slot_id = shared_db
    orchestrator = BookingOrchestrator(session_factory, PricingEngine(Decimal("0.18")), get_settings())

    results = await asyncio.gather(
        orchestrator.create_activity_booking(kayak_pair(slot_id, "ana@example.com")),
        orchestrator.create_activity_booking(kayak_pair(slot_id, "ben@example.com")),
    )

    assert sorted(r.ok for r in results) == [False, True]
    loser = next(r for r in results if not r.ok)
    assert isinstance(loser.error, CapacityError)
    assert await booked_count(session_factory, slot_id, MONDAY, "kayak") == 2
    assert len(await orchestrator.list_bookings()) == 1


@pytest.mark.asyncio
async def test_racing_first_bookings_share_one_customer(shared_db):
    session_factory, slot_id = shared_db
    orchestrator = BookingOrchestrator(session_factory, PricingEngine(Decimal("0.18")), get_settings())

    def surfer(name: str) -> dict:
        return {
            **customer(email="new@example.com", name=name),
            "activity_type": "surf",
            "session_date": MONDAY.isoformat(),
            "slot_id": slot_id,
            "people": [{"name": name, "age": 30}],
        }

    first, second = await asyncio.gather(
        orchestrator.create_activity_booking(surfer("Nina")),
        orchestrator.create_activity_booking(surfer("Nina K")),
    )

    assert first.ok and second.ok
    one = await orchestrator.get_by_id(first.value)
    two = await orchestrator.get_by_id(second.value)
    assert one.customer.id == two.customer.id
    async with session_factory() as session:
        assert (await session.execute(select(func.count()).select_from(Customer))).scalar_one() == 1
