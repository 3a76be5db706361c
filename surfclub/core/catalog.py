"""
Fixed business catalogs: activity types, accommodation inventory, package
definitions and price tables.

Bookings store the amounts they were charged, so editing a table here never
changes a persisted booking. All amounts are INR, before tax.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ActivityType(str, Enum):
    SURF = "surf"
    SUP = "sup"
    KAYAK = "kayak"


class AccommodationType(str, Enum):
    TENT = "tent"
    DORM = "dorm"
    COTTAGE = "cottage"


class PackageType(str, Enum):
    ONE_NIGHT_ONE_SESSION = "1_night_1_session"
    ONE_NIGHT_TWO_SESSIONS = "1_night_2_sessions"
    TWO_NIGHTS_THREE_SESSIONS = "2_nights_3_sessions"


class BookingType(str, Enum):
    ACTIVITY = "activity"
    PACKAGE = "package"
    STAY_ONLY = "stay_only"

    @classmethod
    def normalize(cls, value: str) -> "BookingType":
        """Map stored values, including the legacy ``surf_sup`` alias."""
        if value == LEGACY_ACTIVITY_BOOKING_TYPE:
            return cls.ACTIVITY
        return cls(value)


LEGACY_ACTIVITY_BOOKING_TYPE = "surf_sup"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ActivityInfo:
    name: str
    description: str
    default_capacity: int
    price_per_person: Decimal


ACTIVITY_BASE_PRICE = Decimal("1700")

ACTIVITY_TYPES: dict[ActivityType, ActivityInfo] = {
    ActivityType.SURF: ActivityInfo(
        name="Surfing",
        description="Learn to ride the waves on our surfboards",
        default_capacity=40,
        price_per_person=ACTIVITY_BASE_PRICE,
    ),
    ActivityType.SUP: ActivityInfo(
        name="Stand Up Paddling",
        description="Balance and paddle on a stand-up paddleboard",
        default_capacity=12,
        price_per_person=ACTIVITY_BASE_PRICE,
    ),
    ActivityType.KAYAK: ActivityInfo(
        name="Kayaking",
        description="Paddle through calm waters in a kayak",
        default_capacity=2,
        price_per_person=ACTIVITY_BASE_PRICE,
    ),
}


@dataclass(frozen=True)
class AccommodationInventory:
    max_people_per_unit: int
    total_units: int

    @property
    def max_total_capacity(self) -> int:
        return self.max_people_per_unit * self.total_units


ACCOMMODATION_CAPACITY: dict[AccommodationType, AccommodationInventory] = {
    AccommodationType.TENT: AccommodationInventory(max_people_per_unit=1, total_units=100),
    AccommodationType.DORM: AccommodationInventory(max_people_per_unit=1, total_units=100),
    AccommodationType.COTTAGE: AccommodationInventory(max_people_per_unit=4, total_units=2),
}


@dataclass(frozen=True)
class PackageDefinition:
    name: str
    nights: int
    # Session dates as day offsets from check-in, in session order
    day_offsets: tuple[int, ...]

    @property
    def sessions(self) -> int:
        return len(self.day_offsets)


PACKAGE_DEFINITIONS: dict[PackageType, PackageDefinition] = {
    PackageType.ONE_NIGHT_ONE_SESSION: PackageDefinition(
        name="1 Night 1 Surf Session", nights=1, day_offsets=(1,)
    ),
    PackageType.ONE_NIGHT_TWO_SESSIONS: PackageDefinition(
        name="1 Night 2 Surf Sessions", nights=1, day_offsets=(0, 1)
    ),
    PackageType.TWO_NIGHTS_THREE_SESSIONS: PackageDefinition(
        name="2 Nights 3 Surf Sessions", nights=2, day_offsets=(0, 1, 2)
    ),
}

# Tent/dorm prices are per person; cottage prices are per cottage, keyed by occupancy.
PACKAGE_PRICES: dict[PackageType, dict[str, Decimal]] = {
    PackageType.ONE_NIGHT_ONE_SESSION: {
        "tent": Decimal("3000"),
        "dorm": Decimal("3250"),
        "cottage_1": Decimal("9000"),
        "cottage_2": Decimal("10500"),
        "cottage_3": Decimal("12750"),
        "cottage_4": Decimal("15000"),
    },
    PackageType.ONE_NIGHT_TWO_SESSIONS: {
        "tent": Decimal("5000"),
        "dorm": Decimal("5000"),
        "cottage_1": Decimal("10000"),
        "cottage_2": Decimal("14000"),
        "cottage_3": Decimal("18000"),
        "cottage_4": Decimal("22000"),
    },
    PackageType.TWO_NIGHTS_THREE_SESSIONS: {
        "tent": Decimal("8000"),
        "dorm": Decimal("8000"),
        "cottage_1": Decimal("18000"),
        "cottage_2": Decimal("24000"),
        "cottage_3": Decimal("30000"),
        "cottage_4": Decimal("36000"),
    },
}

# Per person per night for tent/dorm
STAY_PRICES: dict[AccommodationType, dict[str, Decimal]] = {
    AccommodationType.TENT: {"without_meals": Decimal("1000"), "with_meals": Decimal("1500")},
    AccommodationType.DORM: {"without_meals": Decimal("1200"), "with_meals": Decimal("1700")},
}

COTTAGE_STAY_PRICE_PER_NIGHT = Decimal("6000")
COTTAGE_MEAL_PRICE_PER_PERSON = Decimal("500")

# 6 nights / 7 days, dorm only, per person for the whole stay
EXTENDED_STAY_NIGHTS = 6
EXTENDED_STAY_PRICES: dict[str, Decimal] = {
    "without_meals": Decimal("6000"),
    "with_meals": Decimal("11000"),
}

MIN_PERSON_AGE = 5
MAX_PERSON_AGE = 100
