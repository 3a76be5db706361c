"""
Pricing engine.

Composes the accommodation capacity model with the catalog price tables and
a single flat tax rate:

    activity   price_per_person x people (flat across activities)
    package    per person for tent/dorm, per cottage by occupancy tier
    stay       per person per night (tent/dorm), per cottage per night plus an
               optional per-person meal add-on, or the fixed 6-night dorm rate

Multiple cottages are priced by greedy fill: each cottage holds up to 4 and is
charged at the tier of its actual occupancy (6 people -> cottage_4 + cottage_2).
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from surfclub.core.catalog import (
    ACTIVITY_BASE_PRICE,
    COTTAGE_MEAL_PRICE_PER_PERSON,
    COTTAGE_STAY_PRICE_PER_NIGHT,
    EXTENDED_STAY_NIGHTS,
    EXTENDED_STAY_PRICES,
    PACKAGE_DEFINITIONS,
    PACKAGE_PRICES,
    STAY_PRICES,
    AccommodationType,
    BookingType,
    PackageType,
)
from surfclub.core.errors import ValidationError
from surfclub.services.accommodation import AccommodationRequirements, requirements, unit_occupancies

CENTS = Decimal("0.01")
MAX_STAY_NIGHTS = 30


@dataclass(frozen=True)
class PriceBreakdown:
    base_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class Quote:
    booking_type: BookingType
    price: PriceBreakdown
    details: dict = field(default_factory=dict)
    requirements: Optional[AccommodationRequirements] = None

    def as_dict(self, tax_rate: Decimal) -> dict:
        payload = {
            "booking_type": self.booking_type.value,
            "base_amount": self.price.base_amount,
            "tax_rate": tax_rate,
            "tax_amount": self.price.tax_amount,
            "total_amount": self.price.total_amount,
            "pricing_breakdown": self.details,
        }
        if self.requirements is not None:
            payload["accommodation_requirements"] = self.requirements.as_dict()
        return payload


class PricingEngine:
    def __init__(self, tax_rate: Decimal):
        self.tax_rate = Decimal(tax_rate)

    def total_with_tax(self, base_amount) -> PriceBreakdown:
        base = Decimal(base_amount).quantize(CENTS, rounding=ROUND_HALF_UP)
        tax = (base * self.tax_rate).quantize(CENTS, rounding=ROUND_HALF_UP)
        return PriceBreakdown(base_amount=base, tax_amount=tax, total_amount=base + tax)

    def activity_quote(self, people_count: int) -> Quote:
        if people_count < 1:
            raise ValidationError("At least one person is required", people_count=people_count)
        base = ACTIVITY_BASE_PRICE * people_count
        return Quote(
            booking_type=BookingType.ACTIVITY,
            price=self.total_with_tax(base),
            details={
                "pricing_type": "per_person",
                "price_per_person": ACTIVITY_BASE_PRICE,
                "people_count": people_count,
            },
        )

    def package_quote(
        self,
        package_type: PackageType,
        accommodation_type: AccommodationType,
        people_count: int,
    ) -> Quote:
        package_type = PackageType(package_type)
        accommodation_type = AccommodationType(accommodation_type)
        # Capacity first: an impossible group never gets a price
        reqs = requirements(accommodation_type, people_count)
        prices = PACKAGE_PRICES[package_type]

        if accommodation_type is AccommodationType.COTTAGE:
            occupancies = unit_occupancies(reqs)
            base = sum((prices[f"cottage_{n}"] for n in occupancies), Decimal("0"))
            details = {
                "pricing_type": "per_cottage",
                "cottage_occupancies": occupancies,
                "cottage_prices": [prices[f"cottage_{n}"] for n in occupancies],
            }
        else:
            per_person = prices[accommodation_type.value]
            base = per_person * people_count
            details = {"pricing_type": "per_person", "price_per_person": per_person}

        details.update(
            units_needed=reqs.units_needed,
            people_count=people_count,
            nights_count=PACKAGE_DEFINITIONS[package_type].nights,
            sessions_count=PACKAGE_DEFINITIONS[package_type].sessions,
        )
        return Quote(
            booking_type=BookingType.PACKAGE,
            price=self.total_with_tax(base),
            details=details,
            requirements=reqs,
        )

    def stay_quote(
        self,
        accommodation_type: AccommodationType,
        people_count: int,
        nights: int,
        includes_meals: bool = False,
        extended_stay: bool = False,
    ) -> Quote:
        accommodation_type = AccommodationType(accommodation_type)
        if nights < 1 or nights > MAX_STAY_NIGHTS:
            raise ValidationError(
                f"Nights count must be between 1 and {MAX_STAY_NIGHTS}", nights_count=nights
            )
        reqs = requirements(accommodation_type, people_count)
        meal_key = "with_meals" if includes_meals else "without_meals"

        is_extended = extended_stay or (
            accommodation_type is AccommodationType.DORM and nights == EXTENDED_STAY_NIGHTS
        )
        if is_extended:
            if accommodation_type is not AccommodationType.DORM:
                raise ValidationError("The extended adventure stay is available for dorms only")
            if nights != EXTENDED_STAY_NIGHTS:
                raise ValidationError(
                    f"The extended adventure stay is exactly {EXTENDED_STAY_NIGHTS} nights",
                    nights_count=nights,
                )
            per_person = EXTENDED_STAY_PRICES[meal_key]
            base = per_person * people_count
            details = {"pricing_type": "extended_stay_per_person", "price_per_person": per_person}
        elif accommodation_type is AccommodationType.COTTAGE:
            base = COTTAGE_STAY_PRICE_PER_NIGHT * reqs.units_needed * nights
            details = {
                "pricing_type": "per_cottage_per_night",
                "base_price_per_night": COTTAGE_STAY_PRICE_PER_NIGHT,
                "cottage_total": base,
            }
            if includes_meals:
                meal_total = COTTAGE_MEAL_PRICE_PER_PERSON * people_count * nights
                base += meal_total
                details.update(
                    meal_price_per_person_per_night=COTTAGE_MEAL_PRICE_PER_PERSON,
                    meal_total=meal_total,
                )
        else:
            per_night = STAY_PRICES[accommodation_type][meal_key]
            base = per_night * people_count * nights
            details = {"pricing_type": "per_person_per_night", "price_per_person_per_night": per_night}

        details.update(
            units_needed=reqs.units_needed,
            people_count=people_count,
            nights_count=nights,
            includes_meals=includes_meals,
            is_extended_stay=is_extended,
        )
        return Quote(
            booking_type=BookingType.STAY_ONLY,
            price=self.total_with_tax(base),
            details=details,
            requirements=reqs,
        )
