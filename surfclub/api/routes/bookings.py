"""
Booking endpoints. Thin adapter over the booking orchestrator.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from surfclub.api.dependencies import get_orchestrator
from surfclub.api.errors import unwrap_or_raise
from surfclub.core.logging import get_logger
from surfclub.schemas.booking import (
    ActivityBookingCreate,
    BookingCancelResponse,
    BookingCreatedResponse,
    BookingFilters,
    BookingView,
    PackageBookingCreate,
    PaymentStatusUpdate,
    StayBookingCreate,
)
from surfclub.services.booking_service import BookingOrchestrator

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


async def _created(orchestrator: BookingOrchestrator, booking_id: int) -> BookingCreatedResponse:
    booking = await orchestrator.get_by_id(booking_id)
    return BookingCreatedResponse(booking_id=booking_id, booking=booking)


@router.post("/activity", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_activity_booking(
    booking_data: ActivityBookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """
    Book one activity session for a group.

    People may pick different activities; each activity's head count is
    claimed against that activity's own capacity in the slot. 409 when any of
    them is full, and nothing is reserved.
    """
    booking_id = unwrap_or_raise(await orchestrator.create_activity_booking(booking_data))
    return await _created(orchestrator, booking_id)


@router.post("/package", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_package_booking(
    booking_data: PackageBookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """
    Book a stay + sessions package.

    Session dates must match the package exactly. Sessions without a slot_id
    get the first slot of the day that can seat the whole group.
    """
    booking_id = unwrap_or_raise(await orchestrator.create_package_booking(booking_data))
    return await _created(orchestrator, booking_id)


@router.post("/stay", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_stay_booking(
    booking_data: StayBookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Book accommodation only. No activity capacity is touched."""
    booking_id = unwrap_or_raise(await orchestrator.create_stay_booking(booking_data))
    return await _created(orchestrator, booking_id)


@router.get("/", response_model=list[BookingView])
async def list_bookings(
    filters: BookingFilters = Depends(),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Staff listing, newest first."""
    return await orchestrator.list_bookings(filters)


@router.get("/{booking_id}", response_model=BookingView)
async def get_booking(
    booking_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    booking = await orchestrator.get_by_id(booking_id)
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NOT_FOUND", "message": f"Booking {booking_id} not found"},
        )
    return booking


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking(
    booking_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Cancel a booking and release the capacity it reserved."""
    released = unwrap_or_raise(await orchestrator.cancel(booking_id))
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking_id,
        status="cancelled",
        released=[asdict(claim) for claim in released],
    )


@router.patch("/{booking_id}/payment", response_model=BookingView)
async def update_payment_status(
    booking_id: int,
    payment: PaymentStatusUpdate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Record the payment outcome reported by the payment provider."""
    return unwrap_or_raise(
        await orchestrator.update_payment_status(booking_id, payment.payment_status, payment.payment_reference)
    )
