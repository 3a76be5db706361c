"""
Slot schedule management and availability listings.

Staff operations (create, update, deactivate, capacity changes), staff
reports, and the read side customers browse before booking. Capacity
counters themselves are only ever touched by the capacity ledger.
"""

from datetime import date, time, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.core.catalog import ACTIVITY_TYPES, ActivityType
from surfclub.core.errors import NotFoundError, ValidationError
from surfclub.core.logging import get_logger
from surfclub.models.slot import ActivityCapacity, Slot, SlotActivityAvailability
from surfclub.services import capacity_ledger

logger = get_logger(__name__)

MAX_REPORT_DAYS = 31


def _validate_times(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise ValidationError(
            "Slot start time must be before its end time",
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
        )


async def get_slot(db: AsyncSession, slot_id: int) -> Slot:
    slot = await db.get(Slot, slot_id)
    if slot is None:
        raise NotFoundError(f"Slot {slot_id} not found", slot_id=slot_id)
    return slot


async def find_overlapping_slot(
    db: AsyncSession,
    day_of_week: int,
    start_time: time,
    end_time: time,
    exclude_id: Optional[int] = None,
) -> Optional[Slot]:
    """First active slot on the weekday whose window intersects [start, end)."""
    query = select(Slot).where(
        Slot.day_of_week == day_of_week,
        Slot.is_active.is_(True),
        Slot.start_time < end_time,
        Slot.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.where(Slot.id != exclude_id)
    result = await db.execute(query.order_by(Slot.start_time).limit(1))
    return result.scalar_one_or_none()


async def create_slot(
    db: AsyncSession,
    day_of_week: int,
    start_time: time,
    end_time: time,
    capacities: Optional[dict[str, int]] = None,
) -> Slot:
    """
    Create an active slot and configure every activity on it.

    Activities missing from `capacities` get their catalog default.
    """
    if day_of_week < 1 or day_of_week > 7:
        raise ValidationError("Day of week must be between 1 (Monday) and 7 (Sunday)", day_of_week=day_of_week)
    _validate_times(start_time, end_time)

    overlapping = await find_overlapping_slot(db, day_of_week, start_time, end_time)
    if overlapping is not None:
        raise ValidationError(
            f"Slot overlaps existing slot {overlapping.id} "
            f"({overlapping.start_time.isoformat()}-{overlapping.end_time.isoformat()})",
            overlapping_slot_id=overlapping.id,
        )

    capacities = {getattr(k, "value", k): v for k, v in (capacities or {}).items()}
    unknown = sorted(set(capacities) - {a.value for a in ActivityType})
    if unknown:
        raise ValidationError(f"Unknown activity types: {unknown}", activity_types=unknown)

    slot = Slot(day_of_week=day_of_week, start_time=start_time, end_time=end_time, is_active=True)
    db.add(slot)
    await db.flush()

    for activity, info in ACTIVITY_TYPES.items():
        max_capacity = capacities.get(activity.value, info.default_capacity)
        if max_capacity < 0:
            raise ValidationError("Capacity cannot be negative", activity_type=activity.value)
        db.add(ActivityCapacity(slot_id=slot.id, activity_type=activity.value, max_capacity=max_capacity))
    await db.flush()
    await db.refresh(slot, ["activities"])

    logger.info(
        "slot_created",
        slot_id=slot.id,
        day_of_week=day_of_week,
        start_time=start_time.isoformat(),
        end_time=end_time.isoformat(),
    )
    return slot


async def update_slot(
    db: AsyncSession,
    slot_id: int,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    is_active: Optional[bool] = None,
) -> Slot:
    slot = await get_slot(db, slot_id)
    new_start = slot.start_time if start_time is None else start_time
    new_end = slot.end_time if end_time is None else end_time
    new_active = slot.is_active if is_active is None else is_active
    _validate_times(new_start, new_end)

    if new_active:
        overlapping = await find_overlapping_slot(db, slot.day_of_week, new_start, new_end, exclude_id=slot.id)
        if overlapping is not None:
            raise ValidationError(
                f"Slot overlaps existing slot {overlapping.id}",
                overlapping_slot_id=overlapping.id,
            )

    slot.start_time = new_start
    slot.end_time = new_end
    slot.is_active = new_active
    await db.flush()
    logger.info("slot_updated", slot_id=slot.id, is_active=new_active)
    return slot


async def deactivate_slot(db: AsyncSession, slot_id: int) -> Slot:
    """Soft delete. Existing bookings keep pointing at the slot."""
    slot = await get_slot(db, slot_id)
    slot.is_active = False
    await db.flush()
    logger.info("slot_deactivated", slot_id=slot.id)
    return slot


def capacity_config_query(slot_id: int, activity_type: str):
    return (
        select(ActivityCapacity)
        .where(
            ActivityCapacity.slot_id == slot_id,
            ActivityCapacity.activity_type == activity_type,
        )
        .with_for_update()
    )


async def set_activity_capacity(db: AsyncSession, slot_id: int, activity_type: str, max_capacity: int) -> ActivityCapacity:
    """
    Create or change the ceiling for (slot, activity).

    A ceiling below the head count already booked on some date is rejected so
    booked_count never ends up above max_capacity.
    """
    activity = ActivityType(activity_type).value
    if max_capacity < 0:
        raise ValidationError("Capacity cannot be negative", max_capacity=max_capacity)
    await get_slot(db, slot_id)

    # Locked before the booked count is read; claims hold it FOR SHARE
    config = (await db.execute(capacity_config_query(slot_id, activity))).scalar_one_or_none()

    highest_booked = (
        await db.execute(
            select(func.max(SlotActivityAvailability.booked_count)).where(
                SlotActivityAvailability.slot_id == slot_id,
                SlotActivityAvailability.activity_type == activity,
            )
        )
    ).scalar()
    if highest_booked is not None and highest_booked > max_capacity:
        raise ValidationError(
            f"{activity} already has {highest_booked} people booked on slot {slot_id}; "
            f"capacity cannot drop to {max_capacity}",
            slot_id=slot_id,
            activity_type=activity,
            booked_count=highest_booked,
        )

    if config is None:
        config = ActivityCapacity(slot_id=slot_id, activity_type=activity, max_capacity=max_capacity)
        db.add(config)
    else:
        config.max_capacity = max_capacity
    await db.flush()

    logger.info("activity_capacity_set", slot_id=slot_id, activity=activity, max_capacity=max_capacity)
    return config


async def weekly_schedule(db: AsyncSession) -> list[Slot]:
    result = await db.execute(select(Slot).order_by(Slot.day_of_week, Slot.start_time, Slot.id))
    return list(result.scalars().all())


async def slot_activity_config(db: AsyncSession, slot_id: int) -> list[ActivityCapacity]:
    slot = await get_slot(db, slot_id)
    return list(slot.activities)


async def _active_slots_for(db: AsyncSession, on_date: date) -> list[Slot]:
    result = await db.execute(
        select(Slot)
        .where(Slot.day_of_week == on_date.isoweekday(), Slot.is_active.is_(True))
        .order_by(Slot.start_time, Slot.id)
    )
    return list(result.scalars().all())


async def list_slot_availability(db: AsyncSession, on_date: date, people_count: int = 1) -> list[dict]:
    """Active slots on the date's weekday with per-activity remaining capacity."""
    slots = await _active_slots_for(db, on_date)
    remaining = await capacity_ledger.remaining_by_slot(db, on_date, [s.id for s in slots])

    listing = []
    for slot in slots:
        activities = remaining.get(slot.id, [])
        listing.append(
            {
                "slot_id": slot.id,
                "date": on_date,
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "activities": [
                    {
                        "activity_type": a.activity_type,
                        "max_capacity": a.max_capacity,
                        "booked_count": a.booked_count,
                        "available_spots": a.available_spots,
                    }
                    for a in activities
                ],
                "can_book": capacity_ledger.fits_single_activity(activities, people_count),
            }
        )
    return listing


async def list_activity_slots(
    db: AsyncSession, on_date: date, activity_type: str, people_count: int = 1
) -> list[dict]:
    """Slots offering one activity on a date, with utilisation."""
    activity = ActivityType(activity_type).value
    slots = await _active_slots_for(db, on_date)
    remaining = await capacity_ledger.remaining_by_slot(db, on_date, [s.id for s in slots])

    listing = []
    for slot in slots:
        match = next((a for a in remaining.get(slot.id, []) if a.activity_type == activity), None)
        if match is None:
            continue
        utilisation = _utilisation(match)
        listing.append(
            {
                "slot_id": slot.id,
                "date": on_date,
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "activity_type": activity,
                "max_capacity": match.max_capacity,
                "booked_count": match.booked_count,
                "available_spots": match.available_spots,
                "utilization_percent": utilisation,
                "can_book": match.available_spots >= people_count,
            }
        )
    return listing


def booking_window(today: date) -> dict:
    """Dates from today up to, not including, the next Monday."""
    days_until_monday = (8 - today.isoweekday()) % 7 or 7
    window_end = today + timedelta(days=days_until_monday)
    dates = [
        {
            "date": today + timedelta(days=offset),
            "day_name": (today + timedelta(days=offset)).strftime("%A"),
            "is_today": offset == 0,
            "is_weekend": (today + timedelta(days=offset)).isoweekday() in (6, 7),
        }
        for offset in range(days_until_monday)
    ]
    return {"dates": dates, "window_end": window_end, "days_available": len(dates)}


def _utilisation(remaining: capacity_ledger.ActivityRemaining) -> float:
    # A zero ceiling counts as fully used
    if not remaining.max_capacity:
        return 100.0
    return round(remaining.booked_count * 100 / remaining.max_capacity, 2)


def activity_catalog() -> list[dict]:
    return [
        {
            "type": activity.value,
            "name": info.name,
            "description": info.description,
            "default_capacity": info.default_capacity,
            "price_per_person": info.price_per_person,
        }
        for activity, info in ACTIVITY_TYPES.items()
    ]


async def availability_report(db: AsyncSession, start_date: date, end_date: date) -> dict:
    """Per-day slot availability over an inclusive date range, for staff planning."""
    if end_date < start_date:
        raise ValidationError(
            "end_date must not be before start_date",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
    span = (end_date - start_date).days + 1
    if span > MAX_REPORT_DAYS:
        raise ValidationError(
            f"Availability report covers at most {MAX_REPORT_DAYS} days", days_requested=span
        )

    days = []
    for offset in range(span):
        on_date = start_date + timedelta(days=offset)
        days.append(
            {
                "date": on_date,
                "day_name": on_date.strftime("%A"),
                "slots": await list_slot_availability(db, on_date),
            }
        )
    return {"start_date": start_date, "end_date": end_date, "days": days}


async def utilization_stats(db: AsyncSession, on_date: date) -> list[dict]:
    """Every (slot, activity) on the date, busiest first."""
    slots = await _active_slots_for(db, on_date)
    remaining = await capacity_ledger.remaining_by_slot(db, on_date, [s.id for s in slots])

    rows = [
        {
            "slot_id": slot.id,
            "date": on_date,
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "activity_type": activity.activity_type,
            "max_capacity": activity.max_capacity,
            "booked_count": activity.booked_count,
            "utilization_percent": _utilisation(activity),
        }
        for slot in slots
        for activity in remaining.get(slot.id, [])
    ]
    rows.sort(key=lambda r: (-r["utilization_percent"], r["start_time"], r["slot_id"], r["activity_type"]))
    return rows
