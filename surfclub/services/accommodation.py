"""
Accommodation capacity model.

Turns a head count into the number of physical units (tents, dorm beds,
cottages) it needs, against the fixed inventory in the catalog. This is a
static ceiling: occupancy is not tracked per night.
"""

import math
from dataclasses import dataclass

from surfclub.core.catalog import ACCOMMODATION_CAPACITY, AccommodationType
from surfclub.core.errors import CapacityExceeded, ValidationError


@dataclass(frozen=True)
class AccommodationRequirements:
    accommodation_type: AccommodationType
    people_count: int
    units_needed: int
    max_people_per_unit: int
    total_units: int

    def as_dict(self) -> dict:
        return {
            "accommodation_type": self.accommodation_type.value,
            "people_count": self.people_count,
            "units_needed": self.units_needed,
            "max_people_per_unit": self.max_people_per_unit,
            "total_units_available": self.total_units,
        }


def requirements(accommodation_type: AccommodationType, people_count: int) -> AccommodationRequirements:
    """
    Units needed to house `people_count` people.

    Raises CapacityExceeded when the group is larger than the whole inventory
    or would need more units than exist.
    """
    accommodation_type = AccommodationType(accommodation_type)
    if people_count < 1:
        raise ValidationError("At least one person is required", people_count=people_count)

    inventory = ACCOMMODATION_CAPACITY[accommodation_type]
    if people_count > inventory.max_total_capacity:
        raise CapacityExceeded(
            f"Cannot accommodate {people_count} people in {accommodation_type.value}. "
            f"Maximum capacity is {inventory.max_total_capacity} people.",
            accommodation_type=accommodation_type.value,
            requested=people_count,
            max_total_capacity=inventory.max_total_capacity,
        )

    units_needed = math.ceil(people_count / inventory.max_people_per_unit)
    if units_needed > inventory.total_units:
        raise CapacityExceeded(
            f"Need {units_needed} {accommodation_type.value} units but only {inventory.total_units} available.",
            accommodation_type=accommodation_type.value,
            units_needed=units_needed,
            total_units=inventory.total_units,
        )

    return AccommodationRequirements(
        accommodation_type=accommodation_type,
        people_count=people_count,
        units_needed=units_needed,
        max_people_per_unit=inventory.max_people_per_unit,
        total_units=inventory.total_units,
    )


def unit_occupancies(reqs: AccommodationRequirements) -> list[int]:
    """Greedy fill: every unit takes as many people as it can, in order.

    6 people in cottages of 4 -> [4, 2].
    """
    remaining = reqs.people_count
    occupancies = []
    for _ in range(reqs.units_needed):
        in_unit = min(reqs.max_people_per_unit, remaining)
        occupancies.append(in_unit)
        remaining -= in_unit
    return occupancies
