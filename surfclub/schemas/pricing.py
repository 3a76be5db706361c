"""
Pydantic schemas for price quotes and package session previews.
"""

from datetime import date, time
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from surfclub.core.catalog import AccommodationType, PackageType
from surfclub.schemas.booking import MAX_PEOPLE


class ActivityQuoteRequest(BaseModel):
    people_count: int = Field(..., ge=1, le=MAX_PEOPLE)


class PackageQuoteRequest(BaseModel):
    package_type: PackageType
    accommodation_type: AccommodationType
    people_count: int = Field(..., ge=1, le=MAX_PEOPLE)


class StayQuoteRequest(BaseModel):
    accommodation_type: AccommodationType
    people_count: int = Field(..., ge=1, le=MAX_PEOPLE)
    nights_count: int = Field(..., ge=1)
    includes_meals: bool = False
    extended_stay: bool = False


class QuoteResponse(BaseModel):
    booking_type: str
    base_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    pricing_breakdown: dict[str, Any]
    accommodation_requirements: Optional[dict[str, Any]] = None


class PackagePreviewRequest(BaseModel):
    package_type: PackageType
    check_in_date: date
    people_count: int = Field(..., ge=1, le=MAX_PEOPLE)


class PreviewSession(BaseModel):
    session_number: int
    session_date: date
    recommended_slot_id: Optional[int]
    recommended_start_time: Optional[time]
    recommended_end_time: Optional[time]
    allocation_status: str
    is_checkin_day: bool
    is_checkout_day: bool


class PackagePreviewResponse(BaseModel):
    package_type: str
    check_in_date: date
    check_out_date: date
    nights_count: int
    people_count: int
    sessions: list[PreviewSession]
    can_proceed: bool
