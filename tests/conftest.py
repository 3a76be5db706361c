"""
Pytest fixtures for test database, client, and a seeded weekly slot grid.

Every test gets its own in-memory SQLite database (one shared connection via
StaticPool) with the schema created from the models.
"""

from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import surfclub.models  # noqa: F401 - registers every table on Base.metadata
from surfclub.main import app
from surfclub.api.dependencies import get_session_factory
from surfclub.core.config import get_settings
from surfclub.db.base import Base
from surfclub.models.slot import SlotActivityAvailability
from surfclub.services import slot_service
from surfclub.services.booking_service import BookingOrchestrator
from surfclub.services.pricing import PricingEngine

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
MORNING = (time(7, 0), time(9, 0))
LATE_MORNING = (time(10, 0), time(12, 0))


@pytest_asyncio.fixture(scope="function")
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def slots(session_factory) -> dict[int, list[int]]:
    """Two slots per weekday with default capacities (surf 40, sup 12, kayak 2).

    Returns {day_of_week: [morning_slot_id, late_morning_slot_id]}.
    """
    grid: dict[int, list[int]] = {}
    async with session_factory() as session, session.begin():
        for day in range(1, 8):
            grid[day] = []
            # Created late-first so id order differs from start-time order
            for start, end in (LATE_MORNING, MORNING):
                slot = await slot_service.create_slot(session, day, start, end)
                grid[day].insert(0, slot.id)
    return grid


@pytest.fixture
def orchestrator(session_factory) -> BookingOrchestrator:
    return BookingOrchestrator(session_factory, PricingEngine(Decimal("0.18")), get_settings())


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests all go to the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def booked_count(session_factory, slot_id: int, on_date: date, activity: str) -> int:
    """Committed booked_count for a tuple; 0 when the row was never created."""
    async with session_factory() as session:
        result = await session.execute(
            select(SlotActivityAvailability.booked_count).where(
                SlotActivityAvailability.slot_id == slot_id,
                SlotActivityAvailability.booking_date == on_date,
                SlotActivityAvailability.activity_type == activity,
            )
        )
        return result.scalar() or 0


def customer(email: str = "ana@example.com", name: str = "Ana Surfer") -> dict:
    return {"customer_name": name, "customer_email": email, "customer_phone": "9876543210"}
