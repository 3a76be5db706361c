"""
Slot capacity ledger: booked head counts per (slot, date, activity).

This module is the only writer of `slot_activity_availability`.

CONCURRENCY STRATEGY: Conditional increment
===========================================

Problem:
  Two bookings read booked_count=10 of max 12, each asks for 2, both pass the
  check, both write. Result: 14 of 12.

Solution:
  The claim is a single statement that only succeeds while the ceiling holds:

    UPDATE slot_activity_availability
       SET booked_count = booked_count + :n
     WHERE slot_id = :slot AND booking_date = :date AND activity_type = :activity
       AND booked_count + :n <= :max_capacity

  rowcount == 0 means the tuple is full. The row is created lazily (INSERT ...
  ON CONFLICT DO NOTHING) right before, so the UPDATE always has a row to
  lock. The UPDATE holds that row lock until the caller's transaction ends,
  which makes every claim of one booking all-or-nothing together with the
  booking rows.

  A booking touching several tuples claims them in (date, slot, activity)
  order so two overlapping multi-tuple bookings never wait on each other in
  opposite orders. A rejected claim raises immediately; nothing queues.

  The ceiling row (activity_capacities) is read FOR SHARE before the UPDATE,
  and staff capacity changes take it FOR UPDATE. A ceiling cannot drop
  underneath an uncommitted claim that was checked against the old value.

check_capacity() is advisory (used to report errors early and to list
availability); only reserve_capacity() is authoritative.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import and_, case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.core.errors import ActivityNotConfigured, CapacityError
from surfclub.core.logging import get_logger
from surfclub.core.metrics import record_capacity_claim
from surfclub.db.statements import insert_ignore
from surfclub.models.slot import ActivityCapacity, Slot, SlotActivityAvailability

logger = get_logger(__name__)


@dataclass(frozen=True)
class CapacityClaim:
    slot_id: int
    session_date: date
    activity_type: str
    count: int

    @property
    def key(self) -> tuple:
        return (self.session_date, self.slot_id, self.activity_type)


@dataclass(frozen=True)
class ActivityRemaining:
    activity_type: str
    max_capacity: int
    booked_count: int

    @property
    def available_spots(self) -> int:
        return max(0, self.max_capacity - self.booked_count)


def merge_claims(claims: Iterable[CapacityClaim]) -> list[CapacityClaim]:
    """Sum counts per tuple and return them in lock-acquisition order."""
    totals: dict[tuple, int] = defaultdict(int)
    for claim in claims:
        totals[(claim.session_date, claim.slot_id, claim.activity_type)] += claim.count
    return [
        CapacityClaim(slot_id=slot_id, session_date=session_date, activity_type=activity, count=count)
        for (session_date, slot_id, activity), count in sorted(totals.items())
        if count > 0
    ]


def _availability_join(session_date: date):
    return and_(
        SlotActivityAvailability.slot_id == ActivityCapacity.slot_id,
        SlotActivityAvailability.activity_type == ActivityCapacity.activity_type,
        SlotActivityAvailability.booking_date == session_date,
    )


async def remaining_for_activity(
    db: AsyncSession, slot_id: int, session_date: date, activity_type: str
) -> Optional[ActivityRemaining]:
    """None when the activity is not configured on the slot."""
    row = (
        await db.execute(
            select(
                ActivityCapacity.activity_type,
                ActivityCapacity.max_capacity,
                func.coalesce(SlotActivityAvailability.booked_count, 0),
            )
            .select_from(ActivityCapacity)
            .outerjoin(SlotActivityAvailability, _availability_join(session_date))
            .where(
                ActivityCapacity.slot_id == slot_id,
                ActivityCapacity.activity_type == activity_type,
            )
        )
    ).one_or_none()
    if row is None:
        return None
    return ActivityRemaining(activity_type=row[0], max_capacity=row[1], booked_count=row[2])


async def remaining_by_slot(
    db: AsyncSession, session_date: date, slot_ids: Optional[list[int]] = None
) -> dict[int, list[ActivityRemaining]]:
    """Per-activity remaining capacity for every slot (or the given ones) on a date."""
    query = (
        select(
            ActivityCapacity.slot_id,
            ActivityCapacity.activity_type,
            ActivityCapacity.max_capacity,
            func.coalesce(SlotActivityAvailability.booked_count, 0),
        )
        .select_from(ActivityCapacity)
        .outerjoin(SlotActivityAvailability, _availability_join(session_date))
        .order_by(ActivityCapacity.slot_id, ActivityCapacity.activity_type)
    )
    if slot_ids is not None:
        query = query.where(ActivityCapacity.slot_id.in_(slot_ids))

    result: dict[int, list[ActivityRemaining]] = defaultdict(list)
    for slot_id, activity, max_capacity, booked in (await db.execute(query)).all():
        result[slot_id].append(
            ActivityRemaining(activity_type=activity, max_capacity=max_capacity, booked_count=booked)
        )
    return dict(result)


async def check_capacity(
    db: AsyncSession, slot_id: int, session_date: date, activity_type: str, count: int
) -> bool:
    """count <= max_capacity - booked_count; a missing availability row counts as 0 booked."""
    remaining = await remaining_for_activity(db, slot_id, session_date, activity_type)
    if remaining is None:
        return False
    return count <= remaining.max_capacity - remaining.booked_count


def fits_single_activity(activities: list[ActivityRemaining], count: int) -> bool:
    """Legacy aggregate rule: the one activity with the most room must seat everyone.

    This is not a union of capacity across activities: surf 1 + sup 1 free
    does not seat a group of 2.
    """
    if not activities:
        return False
    return max(a.available_spots for a in activities) >= count


async def has_availability(db: AsyncSession, slot_id: int, session_date: date, count: int) -> bool:
    """Legacy aggregate check used by package auto-allocation."""
    slot = await db.get(Slot, slot_id)
    if slot is None or not slot.is_active:
        return False
    remaining = await remaining_by_slot(db, session_date, [slot_id])
    return fits_single_activity(remaining.get(slot_id, []), count)


async def first_available_slot(db: AsyncSession, session_date: date, count: int) -> Optional[Slot]:
    """First active slot of the day (by start time) passing the legacy aggregate check."""
    slots = (
        await db.execute(
            select(Slot)
            .where(Slot.day_of_week == session_date.isoweekday(), Slot.is_active.is_(True))
            .order_by(Slot.start_time, Slot.id)
        )
    ).scalars().all()
    if not slots:
        return None
    remaining = await remaining_by_slot(db, session_date, [s.id for s in slots])
    for slot in slots:
        if fits_single_activity(remaining.get(slot.id, []), count):
            return slot
    return None


def ceiling_query(slot_id: int, activity_type: str):
    """Shared lock on the (slot, activity) ceiling for the rest of the claim."""
    return (
        select(ActivityCapacity.max_capacity)
        .where(
            ActivityCapacity.slot_id == slot_id,
            ActivityCapacity.activity_type == activity_type,
        )
        .with_for_update(read=True)
    )


async def reserve_capacity(db: AsyncSession, claim: CapacityClaim) -> None:
    """
    Atomically add `claim.count` to the tuple's booked_count.

    Raises ActivityNotConfigured when the slot does not offer the activity, and
    CapacityError when the increment would pass max_capacity. Either way the
    caller's transaction must be rolled back.
    """
    configured = (await db.execute(ceiling_query(claim.slot_id, claim.activity_type))).scalar()
    if configured is None:
        raise ActivityNotConfigured(
            f"Activity {claim.activity_type} is not available for slot {claim.slot_id}",
            slot_id=claim.slot_id,
            activity_type=claim.activity_type,
        )

    await db.execute(
        insert_ignore(
            db,
            SlotActivityAvailability,
            {
                "slot_id": claim.slot_id,
                "booking_date": claim.session_date,
                "activity_type": claim.activity_type,
                "booked_count": 0,
            },
            ["slot_id", "booking_date", "activity_type"],
        )
    )

    result = await db.execute(
        update(SlotActivityAvailability)
        .where(
            SlotActivityAvailability.slot_id == claim.slot_id,
            SlotActivityAvailability.booking_date == claim.session_date,
            SlotActivityAvailability.activity_type == claim.activity_type,
            SlotActivityAvailability.booked_count + claim.count <= configured,
        )
        .values(booked_count=SlotActivityAvailability.booked_count + claim.count)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        remaining = await remaining_for_activity(db, claim.slot_id, claim.session_date, claim.activity_type)
        available = remaining.available_spots if remaining else 0
        record_capacity_claim(claim.activity_type, "rejected")
        logger.warning(
            "capacity_claim_rejected",
            slot_id=claim.slot_id,
            date=claim.session_date.isoformat(),
            activity=claim.activity_type,
            requested=claim.count,
            available=available,
        )
        raise CapacityError(
            f"Not enough {claim.activity_type} capacity on {claim.session_date.isoformat()} "
            f"(slot {claim.slot_id}): requested {claim.count}, available {available}",
            slot_id=claim.slot_id,
            session_date=claim.session_date.isoformat(),
            activity_type=claim.activity_type,
            requested=claim.count,
            available=available,
        )

    record_capacity_claim(claim.activity_type, "reserved", claim.count)
    logger.info(
        "capacity_reserved",
        slot_id=claim.slot_id,
        date=claim.session_date.isoformat(),
        activity=claim.activity_type,
        count=claim.count,
    )


async def release_capacity(db: AsyncSession, claim: CapacityClaim) -> None:
    """
    Subtract `claim.count`, floored at zero.

    Over-release is not an error: a tuple never goes negative, and a release
    for a tuple with no row is a no-op.
    """
    remaining = SlotActivityAvailability.booked_count - claim.count
    await db.execute(
        update(SlotActivityAvailability)
        .where(
            SlotActivityAvailability.slot_id == claim.slot_id,
            SlotActivityAvailability.booking_date == claim.session_date,
            SlotActivityAvailability.activity_type == claim.activity_type,
        )
        .values(booked_count=case((remaining < 0, 0), else_=remaining))
        .execution_options(synchronize_session=False)
    )
    record_capacity_claim(claim.activity_type, "released", claim.count)
    logger.info(
        "capacity_released",
        slot_id=claim.slot_id,
        date=claim.session_date.isoformat(),
        activity=claim.activity_type,
        count=claim.count,
    )


async def reserve_many(db: AsyncSession, claims: Iterable[CapacityClaim]) -> list[CapacityClaim]:
    """Claim every tuple in fixed order. The first rejection aborts the rest."""
    merged = merge_claims(claims)
    for claim in merged:
        await reserve_capacity(db, claim)
    return merged


async def release_many(db: AsyncSession, claims: Iterable[CapacityClaim]) -> list[CapacityClaim]:
    merged = merge_claims(claims)
    for claim in merged:
        await release_capacity(db, claim)
    return merged
