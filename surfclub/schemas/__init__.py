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
from surfclub.schemas.slot import SlotCreate, SlotResponse, SlotUpdate, SlotAvailability
from surfclub.schemas.pricing import QuoteResponse, PackagePreviewRequest, PackagePreviewResponse

__all__ = [
    "ActivityBookingCreate", "PackageBookingCreate", "StayBookingCreate",
    "BookingView", "BookingCreatedResponse", "BookingCancelResponse",
    "BookingFilters", "PaymentStatusUpdate",
    "SlotCreate", "SlotUpdate", "SlotResponse", "SlotAvailability",
    "QuoteResponse", "PackagePreviewRequest", "PackagePreviewResponse",
]
