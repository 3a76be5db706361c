"""
Package session planner.

A package fixes how many activity sessions it has and on which day offsets
from check-in they fall. The planner turns a request's session list into the
exact schedule: dates checked against the package, a slot for every session
(explicit or auto-allocated), and one activity per person per session.

Validation order matters: the schedule (dates) is judged before slots and
before per-person assignments, so a duplicated date is always reported as a
schedule mismatch regardless of anything else in the request.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.core.catalog import ActivityType, PACKAGE_DEFINITIONS, PackageType
from surfclub.core.errors import NotFoundError, ScheduleMismatchError, ValidationError
from surfclub.core.logging import get_logger
from surfclub.core.metrics import record_auto_allocation
from surfclub.models.slot import Slot
from surfclub.services import capacity_ledger
from surfclub.services.capacity_ledger import CapacityClaim

logger = get_logger(__name__)

VALID_ACTIVITIES = {a.value for a in ActivityType}


@dataclass
class PlannedSession:
    session_number: int
    session_date: date
    slot_id: int
    auto_allocated: bool = False
    # person_index -> activity_type
    assignments: dict[int, str] = field(default_factory=dict)

    def activity_groups(self) -> dict[str, int]:
        groups: dict[str, int] = {}
        for activity in self.assignments.values():
            groups[activity] = groups.get(activity, 0) + 1
        return groups

    def claims(self) -> list[CapacityClaim]:
        return [
            CapacityClaim(
                slot_id=self.slot_id,
                session_date=self.session_date,
                activity_type=activity,
                count=count,
            )
            for activity, count in sorted(self.activity_groups().items())
        ]


def expected_dates(package_type: PackageType, check_in: date) -> list[date]:
    definition = PACKAGE_DEFINITIONS[PackageType(package_type)]
    return [check_in + timedelta(days=offset) for offset in definition.day_offsets]


def check_out_date(package_type: PackageType, check_in: date) -> date:
    return check_in + timedelta(days=PACKAGE_DEFINITIONS[PackageType(package_type)].nights)


def validate_session_dates(package_type: PackageType, check_in: date, session_dates: list[date]) -> list[date]:
    """Sorted supplied dates must equal the package's expected dates exactly."""
    expected = expected_dates(package_type, check_in)

    seen = set()
    duplicates = sorted({d for d in session_dates if d in seen or seen.add(d)})
    if duplicates:
        raise ScheduleMismatchError(
            "Duplicate session dates: " + ", ".join(d.isoformat() for d in duplicates),
            duplicates=[d.isoformat() for d in duplicates],
        )

    supplied = sorted(session_dates)
    if supplied != expected:
        raise ScheduleMismatchError(
            f"Package {PackageType(package_type).value} starting {check_in.isoformat()} requires sessions on "
            + ", ".join(d.isoformat() for d in expected)
            + "; got "
            + (", ".join(d.isoformat() for d in supplied) or "none"),
            expected=[d.isoformat() for d in expected],
            supplied=[d.isoformat() for d in supplied],
        )
    return supplied


def validate_assignments(session_number: int, people_activities: list, people_count: int) -> dict[int, str]:
    """
    Every person index 0..people_count-1 exactly once, each with a known activity.

    `people_activities` items expose `person_index` and `activity_type`.
    """
    assignments: dict[int, str] = {}
    for item in people_activities:
        index = item.person_index
        activity = item.activity_type
        if index < 0 or index >= people_count:
            raise ValidationError(
                f"Session {session_number}: person index {index} is out of range (0-{people_count - 1})",
                session_number=session_number,
                person_index=index,
            )
        if index in assignments:
            raise ValidationError(
                f"Session {session_number}: person {index} has more than one activity",
                session_number=session_number,
                person_index=index,
            )
        activity_value = getattr(activity, "value", activity)
        if activity_value not in VALID_ACTIVITIES:
            raise ValidationError(
                f"Session {session_number}: invalid activity {activity_value!r} for person {index}",
                session_number=session_number,
                person_index=index,
            )
        assignments[index] = activity_value

    missing = sorted(set(range(people_count)) - assignments.keys())
    if missing:
        raise ValidationError(
            f"Session {session_number}: no activity chosen for people {missing}",
            session_number=session_number,
            missing=missing,
        )
    return assignments


async def resolve_slot(db: AsyncSession, slot_id: int, session_date: date) -> Slot:
    """An explicit slot must exist, be active and fall on the session's weekday."""
    slot = await db.get(Slot, slot_id)
    if slot is None:
        raise NotFoundError(f"Slot {slot_id} not found", slot_id=slot_id)
    if not slot.is_active:
        raise ValidationError(f"Slot {slot_id} is no longer active", slot_id=slot_id)
    if slot.day_of_week != session_date.isoweekday():
        raise ValidationError(
            f"Slot {slot_id} does not run on {session_date.strftime('%A')} {session_date.isoformat()}",
            slot_id=slot_id,
            session_date=session_date.isoformat(),
        )
    return slot


async def auto_allocate(db: AsyncSession, session_date: date, people_count: int) -> Optional[Slot]:
    slot = await capacity_ledger.first_available_slot(db, session_date, people_count)
    record_auto_allocation(slot is not None)
    if slot is not None:
        logger.info("slot_auto_allocated", date=session_date.isoformat(), slot_id=slot.id, people=people_count)
    return slot


async def plan_sessions(
    db: AsyncSession,
    package_type: PackageType,
    check_in: date,
    sessions: list,
    people_count: int,
) -> list[PlannedSession]:
    """
    Validate a package's session list and fill in missing slots.

    `sessions` items expose `session_date`, `slot_id` (optional) and
    `people_activities`. Returns sessions ordered by date and numbered 1..N.
    """
    validate_session_dates(package_type, check_in, [s.session_date for s in sessions])

    planned: list[PlannedSession] = []
    for number, request in enumerate(sorted(sessions, key=lambda s: s.session_date), start=1):
        if request.slot_id is not None:
            slot = await resolve_slot(db, request.slot_id, request.session_date)
            auto = False
        else:
            slot = await auto_allocate(db, request.session_date, people_count)
            if slot is None:
                raise ValidationError(
                    f"No available slots for session {number} on {request.session_date.isoformat()} "
                    f"for {people_count} people",
                    session_number=number,
                    session_date=request.session_date.isoformat(),
                )
            auto = True
        planned.append(
            PlannedSession(
                session_number=number,
                session_date=request.session_date,
                slot_id=slot.id,
                auto_allocated=auto,
            )
        )

    for session, request in zip(planned, sorted(sessions, key=lambda s: s.session_date)):
        session.assignments = validate_assignments(session.session_number, request.people_activities, people_count)

    return planned


async def preview_sessions(
    db: AsyncSession, package_type: PackageType, check_in: date, people_count: int
) -> dict:
    """Expected sessions with an auto-allocation suggestion each; nothing is reserved."""
    package_type = PackageType(package_type)
    check_out = check_out_date(package_type, check_in)
    sessions = []
    for number, session_date in enumerate(expected_dates(package_type, check_in), start=1):
        slot = await capacity_ledger.first_available_slot(db, session_date, people_count)
        sessions.append(
            {
                "session_number": number,
                "session_date": session_date,
                "recommended_slot_id": slot.id if slot else None,
                "recommended_start_time": slot.start_time if slot else None,
                "recommended_end_time": slot.end_time if slot else None,
                "allocation_status": "allocated" if slot else "no_capacity",
                "is_checkin_day": session_date == check_in,
                "is_checkout_day": session_date == check_out,
            }
        )
    return {
        "package_type": package_type.value,
        "check_in_date": check_in,
        "check_out_date": check_out,
        "nights_count": PACKAGE_DEFINITIONS[package_type].nights,
        "people_count": people_count,
        "sessions": sessions,
        "can_proceed": all(s["recommended_slot_id"] is not None for s in sessions),
    }
