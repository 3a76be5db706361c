"""
Slot endpoints: availability for customers, schedule management for staff.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.api.dependencies import get_db
from surfclub.core.catalog import ActivityType
from surfclub.schemas.slot import (
    ActivityCapacityResponse,
    ActivityCapacitySet,
    ActivitySlotAvailability,
    BookingWindowResponse,
    SlotAvailability,
    SlotCreate,
    SlotResponse,
    SlotUpdate,
)
from surfclub.services import slot_service

router = APIRouter(prefix="/slots", tags=["Slots"])


@router.get("/availability", response_model=list[SlotAvailability])
async def slot_availability(
    on_date: date = Query(..., alias="date"),
    people_count: int = Query(1, ge=1, le=40),
    db: AsyncSession = Depends(get_db),
):
    """
    Active slots for the date's weekday with remaining capacity per activity.

    can_book uses the single-activity rule: one activity must seat the group.
    """
    return await slot_service.list_slot_availability(db, on_date, people_count)


@router.get("/activities/{activity_type}/availability", response_model=list[ActivitySlotAvailability])
async def activity_availability(
    activity_type: ActivityType,
    on_date: date = Query(..., alias="date"),
    people_count: int = Query(1, ge=1, le=40),
    db: AsyncSession = Depends(get_db),
):
    return await slot_service.list_activity_slots(db, on_date, activity_type.value, people_count)


@router.get("/bookable-dates", response_model=BookingWindowResponse)
async def bookable_dates():
    """Dates from today until next Monday. Informational only."""
    return slot_service.booking_window(date.today())


@router.get("/", response_model=list[SlotResponse])
async def weekly_schedule(db: AsyncSession = Depends(get_db)):
    return await slot_service.weekly_schedule(db)


@router.post("/", response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
async def create_slot(slot_data: SlotCreate, db: AsyncSession = Depends(get_db)):
    """Create a weekly slot; every activity is configured with its default capacity unless given."""
    return await slot_service.create_slot(
        db,
        slot_data.day_of_week,
        slot_data.start_time,
        slot_data.end_time,
        {activity.value: capacity for activity, capacity in slot_data.capacities.items()},
    )


@router.patch("/{slot_id}", response_model=SlotResponse)
async def update_slot(slot_id: int, slot_data: SlotUpdate, db: AsyncSession = Depends(get_db)):
    return await slot_service.update_slot(
        db, slot_id, slot_data.start_time, slot_data.end_time, slot_data.is_active
    )


@router.delete("/{slot_id}", response_model=SlotResponse)
async def deactivate_slot(slot_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete: the slot stops accepting bookings, existing ones are kept."""
    return await slot_service.deactivate_slot(db, slot_id)


@router.get("/{slot_id}/activities", response_model=list[ActivityCapacityResponse])
async def slot_activity_config(slot_id: int, db: AsyncSession = Depends(get_db)):
    return await slot_service.slot_activity_config(db, slot_id)


@router.put("/{slot_id}/activities/{activity_type}", response_model=ActivityCapacityResponse)
async def set_activity_capacity(
    slot_id: int,
    activity_type: ActivityType,
    capacity: ActivityCapacitySet,
    db: AsyncSession = Depends(get_db),
):
    return await slot_service.set_activity_capacity(db, slot_id, activity_type.value, capacity.max_capacity)
