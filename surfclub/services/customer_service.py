"""
Customer lookup with merge-on-email semantics, and the staff customer views.
"""

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.core.errors import NotFoundError
from surfclub.core.logging import get_logger
from surfclub.db.statements import insert_ignore
from surfclub.models.booking import Booking
from surfclub.models.customer import Customer

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_customer_by_email(db: AsyncSession, email: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_or_create_customer(
    db: AsyncSession, name: str, email: str, phone: Optional[str] = None
) -> Customer:
    """
    Return the customer owning `email`, creating it on first sight.

    A returning email overwrites name and phone in place; there is no history.
    Two first bookings racing on one email both end up on the same row.
    """
    customer = await get_customer_by_email(db, email)
    if customer is None:
        result = await db.execute(
            insert_ignore(
                db,
                Customer,
                {"name": name, "email": normalize_email(email), "phone": phone},
                ["email"],
            )
        )
        customer = await get_customer_by_email(db, email)
        if result.rowcount == 1:
            logger.info("customer_created", customer_id=customer.id)
            return customer
        logger.info("customer_insert_lost_race", customer_id=customer.id)

    if customer.name != name or (phone and customer.phone != phone):
        customer.name = name
        if phone:
            customer.phone = phone
        await db.flush()
        logger.info("customer_updated", customer_id=customer.id)
    return customer


def _search_clause(search: Optional[str]):
    if not search:
        return None
    term = f"%{search}%"
    return or_(Customer.name.ilike(term), Customer.email.ilike(term), Customer.phone.ilike(term))


async def list_customers(
    db: AsyncSession, search: Optional[str] = None, limit: int = 50, offset: int = 0
) -> tuple[list[Customer], int]:
    """Newest customers first, with the total matching count for paging."""
    clause = _search_clause(search)
    query = select(Customer)
    count_query = select(func.count()).select_from(Customer)
    if clause is not None:
        query = query.where(clause)
        count_query = count_query.where(clause)

    customers = (
        await db.execute(query.order_by(Customer.created_at.desc(), Customer.id.desc()).limit(limit).offset(offset))
    ).scalars().all()
    total = (await db.execute(count_query)).scalar_one()
    return list(customers), total


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found", customer_id=customer_id)
    return customer


async def customer_stats(db: AsyncSession, customer_id: int) -> dict:
    """Booking count and spend over every booking the customer made, cancelled ones included."""
    row = (
        await db.execute(
            select(
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.total_amount), 0),
                func.min(Booking.created_at),
                func.max(Booking.created_at),
            ).where(Booking.customer_id == customer_id)
        )
    ).one()
    return {
        "total_bookings": row[0],
        "total_spent": row[1],
        "first_booking_date": row[2],
        "last_booking_date": row[3],
    }
