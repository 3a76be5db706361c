"""
Pydantic schemas for booking requests and booking views.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from surfclub.core.catalog import (
    MAX_PERSON_AGE,
    MIN_PERSON_AGE,
    AccommodationType,
    ActivityType,
    PackageType,
    PaymentStatus,
)
from surfclub.core.config import get_settings

MAX_PEOPLE = get_settings().MAX_PEOPLE_PER_BOOKING


class CustomerInfo(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=5, max_length=32)


class PersonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=MIN_PERSON_AGE, le=MAX_PERSON_AGE)


class ActivityPersonCreate(PersonCreate):
    # Falls back to the booking's activity_type when omitted
    activity_type: Optional[ActivityType] = None


class ActivityBookingCreate(CustomerInfo):
    activity_type: Optional[ActivityType] = None
    session_date: date
    slot_id: int = Field(..., gt=0)
    people: list[ActivityPersonCreate] = Field(..., min_length=1, max_length=MAX_PEOPLE)


class PersonActivity(BaseModel):
    person_index: int
    # Checked by the session planner, after the schedule itself
    activity_type: str


class PackageSessionCreate(BaseModel):
    session_date: date
    slot_id: Optional[int] = Field(None, gt=0)
    people_activities: list[PersonActivity] = Field(default_factory=list)


class PackageBookingCreate(CustomerInfo):
    package_type: PackageType
    accommodation_type: AccommodationType
    check_in_date: date
    people: list[PersonCreate] = Field(..., min_length=1, max_length=MAX_PEOPLE)
    sessions: list[PackageSessionCreate] = Field(..., min_length=1)


class StayBookingCreate(CustomerInfo):
    accommodation_type: AccommodationType
    check_in_date: date
    check_out_date: date
    includes_meals: bool = False
    extended_stay: bool = False
    people: list[PersonCreate] = Field(..., min_length=1, max_length=MAX_PEOPLE)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus
    payment_reference: Optional[str] = Field(None, max_length=100)


class BookingFilters(BaseModel):
    booking_type: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    booking_status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = Field(None, max_length=100)
    limit: int = Field(100, ge=1, le=100)


class CustomerView(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]


class BookingPersonView(BaseModel):
    person_index: int
    name: str
    age: int
    activity_type: Optional[str] = None


class ActivityDetailView(BaseModel):
    slot_id: int
    session_date: date
    start_time: time
    end_time: time
    activity_type: Optional[str]
    activity_counts: dict[str, int]


class SessionPersonView(BaseModel):
    person_index: int
    name: str
    activity_type: str


class PackageSessionView(BaseModel):
    session_number: int
    session_date: date
    slot_id: int
    start_time: time
    end_time: time
    auto_allocated: bool
    activity_counts: dict[str, int]
    people_activities: list[SessionPersonView]


class PackageDetailView(BaseModel):
    package_type: str
    package_name: str
    accommodation_type: str
    check_in_date: date
    check_out_date: date
    nights_count: int
    units_needed: int
    sessions: list[PackageSessionView]


class StayDetailView(BaseModel):
    accommodation_type: str
    check_in_date: date
    check_out_date: date
    nights_count: int
    includes_meals: bool
    is_extended_stay: bool
    units_needed: int


class BookingView(BaseModel):
    id: int
    booking_reference: str
    booking_type: str
    booking_status: str
    payment_status: str
    payment_reference: Optional[str] = None
    total_people: int
    base_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    customer: CustomerView
    people: list[BookingPersonView]
    activity: Optional[ActivityDetailView] = None
    package: Optional[PackageDetailView] = None
    stay: Optional[StayDetailView] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class BookingCreatedResponse(BaseModel):
    booking_id: int
    booking: BookingView


class ReleasedCapacity(BaseModel):
    slot_id: int
    session_date: date
    activity_type: str
    count: int


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str
    released: list[ReleasedCapacity]
