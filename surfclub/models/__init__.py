from surfclub.models.slot import Slot, ActivityCapacity, SlotActivityAvailability
from surfclub.models.customer import Customer
from surfclub.models.booking import (
    Booking,
    BookingPerson,
    ActivityBooking,
    PackageBooking,
    PackageSession,
    PackagePersonSession,
    StayBooking,
)

__all__ = [
    "Slot", "ActivityCapacity", "SlotActivityAvailability",
    "Customer",
    "Booking", "BookingPerson", "ActivityBooking",
    "PackageBooking", "PackageSession", "PackagePersonSession", "StayBooking",
]
