"""
Staff views: dashboard, customers and capacity reports.
"""

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.api.dependencies import get_db, get_orchestrator
from surfclub.schemas.admin import CustomerDetailResponse, CustomerListResponse, DashboardResponse
from surfclub.schemas.slot import AvailabilityReportResponse, SlotUtilization
from surfclub.services import customer_service, slot_service
from surfclub.services.booking_service import BookingOrchestrator

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Booking count and completed revenue for the range, pending payments, today's sessions, latest bookings."""
    return await orchestrator.dashboard(date.today(), date_from, date_to)


@router.get("/customers", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    customers, total = await customer_service.list_customers(db, search, limit, offset)
    return {
        "customers": customers,
        "pagination": {
            "limit": limit,
            "offset": offset,
            "total_count": total,
            "has_more": offset + limit < total,
        },
        "search_term": search,
    }


@router.get("/customers/{customer_id}", response_model=CustomerDetailResponse)
async def customer_details(
    customer_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    details = await orchestrator.customer_details(customer_id)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NOT_FOUND", "message": f"Customer {customer_id} not found"},
        )
    return details


@router.get("/availability-report", response_model=AvailabilityReportResponse)
async def availability_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
):
    """Per-day availability; defaults to the coming week."""
    start_date = start_date or date.today()
    end_date = end_date or start_date + timedelta(days=7)
    return await slot_service.availability_report(db, start_date, end_date)


@router.get("/utilization", response_model=list[SlotUtilization])
async def utilization(
    on_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
):
    return await slot_service.utilization_stats(db, on_date)
