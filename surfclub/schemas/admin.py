"""
Pydantic schemas for the staff dashboard and customer administration.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from surfclub.schemas.booking import BookingView


class DashboardStatistics(BaseModel):
    total_bookings: int
    total_revenue: Decimal
    pending_payments: int
    todays_sessions: int


class TodaysSession(BaseModel):
    booking_id: int
    booking_type: str
    customer_name: str
    total_people: int
    session_date: date
    slot_id: int
    start_time: time
    end_time: time


class DashboardResponse(BaseModel):
    statistics: DashboardStatistics
    date_from: date
    date_to: date
    todays_sessions: list[TodaysSession]
    recent_bookings: list[BookingView]


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    limit: int
    offset: int
    total_count: int
    has_more: bool


class CustomerListResponse(BaseModel):
    customers: list[CustomerSummary]
    pagination: Pagination
    search_term: Optional[str] = None


class CustomerStatistics(BaseModel):
    total_bookings: int
    total_spent: Decimal
    first_booking_date: Optional[datetime] = None
    last_booking_date: Optional[datetime] = None


class CustomerDetailResponse(BaseModel):
    customer: CustomerSummary
    booking_history: list[BookingView]
    statistics: CustomerStatistics
