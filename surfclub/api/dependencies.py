"""
Request dependencies. Tests override get_session_factory to point the whole
API at their own database.
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from surfclub.core.config import get_settings
from surfclub.db.session import SessionLocal
from surfclub.services.booking_service import BookingOrchestrator
from surfclub.services.pricing import PricingEngine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return SessionLocal


async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Session for the staff and read endpoints: commit on success, rollback on error."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_pricing_engine() -> PricingEngine:
    return PricingEngine(get_settings().TAX_RATE)


def get_orchestrator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    pricing: PricingEngine = Depends(get_pricing_engine),
) -> BookingOrchestrator:
    return BookingOrchestrator(session_factory, pricing, get_settings())
