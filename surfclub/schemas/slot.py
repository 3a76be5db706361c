"""
Pydantic schemas for the slot schedule and availability listings.
"""

import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from surfclub.core.catalog import ActivityType


class SlotCreate(BaseModel):
    day_of_week: int = Field(..., ge=1, le=7)
    start_time: datetime.time
    end_time: datetime.time
    # Activities left out get their default capacity
    capacities: dict[ActivityType, int] = Field(default_factory=dict)


class SlotUpdate(BaseModel):
    start_time: Optional[datetime.time] = None
    end_time: Optional[datetime.time] = None
    is_active: Optional[bool] = None


class ActivityCapacitySet(BaseModel):
    max_capacity: int = Field(..., ge=0, le=1000)


class ActivityCapacityResponse(BaseModel):
    slot_id: int
    activity_type: str
    max_capacity: int

    model_config = {"from_attributes": True}


class SlotResponse(BaseModel):
    id: int
    day_of_week: int
    start_time: datetime.time
    end_time: datetime.time
    is_active: bool
    activities: list[ActivityCapacityResponse]

    model_config = {"from_attributes": True}


class ActivityAvailability(BaseModel):
    activity_type: str
    max_capacity: int
    booked_count: int
    available_spots: int


class SlotAvailability(BaseModel):
    slot_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    activities: list[ActivityAvailability]
    can_book: bool


class ActivitySlotAvailability(BaseModel):
    slot_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    activity_type: str
    max_capacity: int
    booked_count: int
    available_spots: int
    utilization_percent: float
    can_book: bool


class BookableDate(BaseModel):
    date: datetime.date
    day_name: str
    is_today: bool
    is_weekend: bool


class BookingWindowResponse(BaseModel):
    dates: list[BookableDate]
    window_end: datetime.date
    days_available: int


class ActivityTypeInfo(BaseModel):
    type: str
    name: str
    description: str
    default_capacity: int
    price_per_person: Decimal


class AvailabilityReportDay(BaseModel):
    date: datetime.date
    day_name: str
    slots: list[SlotAvailability]


class AvailabilityReportResponse(BaseModel):
    start_date: datetime.date
    end_date: datetime.date
    days: list[AvailabilityReportDay]


class SlotUtilization(BaseModel):
    slot_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    activity_type: str
    max_capacity: int
    booked_count: int
    utilization_percent: float
