"""
Tests for the booking orchestrator: creation, cancellation and reads.
"""

from datetime import time, timedelta
from decimal import Decimal

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select

from surfclub.core.errors import (
    ActivityNotConfigured,
    CapacityError,
    CapacityExceeded,
    NotFoundError,
    ScheduleMismatchError,
    ValidationError,
)
from surfclub.models.booking import Booking, BookingPerson, PackageBooking, PackagePersonSession, PackageSession
from surfclub.models.customer import Customer
from surfclub.models.slot import ActivityCapacity, Slot
from surfclub.services import booking_service

from conftest import MONDAY, booked_count, customer

TUESDAY = MONDAY + timedelta(days=1)


def activity_request(slot_id, people, activity_type="surf", on=MONDAY, **overrides):
    request = {
        **customer(),
        "activity_type": activity_type,
        "session_date": on.isoformat(),
        "slot_id": slot_id,
        "people": people,
    }
    request.update(overrides)
    return request


def package_request(sessions, people=2, package_type="1_night_2_sessions", accommodation="tent", **overrides):
    request = {
        **customer(),
        "package_type": package_type,
        "accommodation_type": accommodation,
        "check_in_date": MONDAY.isoformat(),
        "people": [{"name": f"Guest {i}", "age": 30} for i in range(people)],
        "sessions": sessions,
    }
    request.update(overrides)
    return request


def assign(*activities):
    return [{"person_index": i, "activity_type": a} for i, a in enumerate(activities)]


# Activity bookings


@pytest.mark.asyncio
async def test_activity_booking_mixed_group(orchestrator, session_factory, slots):
    """People without their own activity take the booking's activity."""
    slot_id = slots[1][0]
    result = await orchestrator.create_activity_booking(
        activity_request(
            slot_id,
            [
                {"name": "Ana", "age": 31},
                {"name": "Ben", "age": 12},
                {"name": "Caro", "age": 45, "activity_type": "sup"},
            ],
        )
    )

    assert result.ok
    booking = await orchestrator.get_by_id(result.value)
    assert booking.booking_type == "activity"
    assert booking.booking_status == "confirmed"
    assert booking.payment_status == "pending"
    assert booking.total_people == 3
    assert booking.base_amount == Decimal("5100.00")
    assert booking.tax_amount == Decimal("918.00")
    assert booking.total_amount == Decimal("6018.00")
    assert booking.activity.activity_counts == {"surf": 2, "sup": 1}
    assert [p.activity_type for p in booking.people] == ["surf", "surf", "sup"]
    assert booking.booking_reference == f"MSC-SUR-{booking.id}-300107"

    assert await booked_count(session_factory, slot_id, MONDAY, "surf") == 2
    assert await booked_count(session_factory, slot_id, MONDAY, "sup") == 1


@pytest.mark.asyncio
async def test_activity_booking_over_capacity_books_nothing(orchestrator, session_factory, slots):
    slot_id = slots[1][0]
    result = await orchestrator.create_activity_booking(
        activity_request(slot_id, [{"name": f"P{i}", "age": 30} for i in range(3)], activity_type="kayak")
    )

    assert not result.ok
    assert isinstance(result.error, CapacityError)
    assert result.error.details["requested"] == 3
    assert result.error.details["available"] == 2
    assert await booked_count(session_factory, slot_id, MONDAY, "kayak") == 0
    assert await orchestrator.list_bookings() == []


@pytest.mark.asyncio
async def test_last_kayaks_go_once(orchestrator, session_factory, slots):
    slot_id = slots[1][0]
    pair = [{"name": "A", "age": 30}, {"name": "B", "age": 30}]

    first = await orchestrator.create_activity_booking(activity_request(slot_id, pair, activity_type="kayak"))
    second = await orchestrator.create_activity_booking(
        activity_request(slot_id, pair[:1], activity_type="kayak", customer_email="other@example.com")
    )

    assert first.ok
    assert isinstance(second.error, CapacityError)
    assert await booked_count(session_factory, slot_id, MONDAY, "kayak") == 2


@pytest.mark.asyncio
async def test_activity_without_any_activity_rejected(orchestrator, slots):
    result = await orchestrator.create_activity_booking(
        activity_request(slots[1][0], [{"name": "Ana", "age": 30}], activity_type=None)
    )
    assert isinstance(result.error, ValidationError)
    assert result.error.details["person_index"] == 0


@pytest.mark.asyncio
async def test_activity_unknown_slot(orchestrator, slots):
    result = await orchestrator.create_activity_booking(activity_request(9999, [{"name": "Ana", "age": 30}]))
    assert isinstance(result.error, NotFoundError)


@pytest.mark.asyncio
async def test_activity_slot_on_wrong_weekday(orchestrator, slots):
    result = await orchestrator.create_activity_booking(
        activity_request(slots[2][0], [{"name": "Ana", "age": 30}], on=MONDAY)
    )
    assert isinstance(result.error, ValidationError)


@pytest.mark.asyncio
async def test_activity_not_offered_in_slot(orchestrator, session_factory, slots):
    async with session_factory() as session, session.begin():
        slot = Slot(day_of_week=1, start_time=time(13, 0), end_time=time(14, 0), is_active=True)
        session.add(slot)
        await session.flush()
        session.add(ActivityCapacity(slot_id=slot.id, activity_type="surf", max_capacity=5))
        slot_id = slot.id

    result = await orchestrator.create_activity_booking(
        activity_request(slot_id, [{"name": "Ana", "age": 30}], activity_type="kayak")
    )
    assert isinstance(result.error, ActivityNotConfigured)


@pytest.mark.asyncio
async def test_raw_request_with_bad_email(orchestrator, slots):
    result = await orchestrator.create_activity_booking(
        activity_request(slots[1][0], [{"name": "Ana", "age": 30}], customer_email="not-an-email")
    )
    assert isinstance(result.error, ValidationError)
    assert any(error["loc"] == ("customer_email",) for error in result.error.details["errors"])


@pytest.mark.asyncio
async def test_returning_email_updates_customer(orchestrator, slots):
    first = await orchestrator.create_activity_booking(activity_request(slots[1][0], [{"name": "Ana", "age": 30}]))
    second = await orchestrator.create_activity_booking(
        activity_request(
            slots[1][1],
            [{"name": "Ana", "age": 30}],
            customer_name="Ana Maria",
            customer_email="ANA@example.com",
            customer_phone="1112223333",
        )
    )

    one = await orchestrator.get_by_id(first.value)
    two = await orchestrator.get_by_id(second.value)
    assert one.customer.id == two.customer.id
    assert two.customer.name == "Ana Maria"
    assert two.customer.phone == "1112223333"
    assert two.customer.email == "ana@example.com"


# Package bookings


@pytest.mark.asyncio
async def test_package_booking_with_auto_allocation(orchestrator, session_factory, slots):
    tuesday_late = slots[2][1]
    result = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": TUESDAY.isoformat(), "slot_id": tuesday_late, "people_activities": assign("kayak", "kayak")},
                {"session_date": MONDAY.isoformat(), "people_activities": assign("surf", "sup")},
            ]
        )
    )

    assert result.ok
    booking = await orchestrator.get_by_id(result.value)
    assert booking.booking_type == "package"
    assert booking.total_amount == Decimal("11800.00")
    assert booking.booking_reference == f"MSC-PKG-{booking.id}-300107"

    package = booking.package
    assert package.check_out_date == TUESDAY
    assert package.nights_count == 1
    assert package.units_needed == 2
    first, second = package.sessions
    assert (first.session_number, first.session_date, first.slot_id, first.auto_allocated) == (
        1,
        MONDAY,
        slots[1][0],
        True,
    )
    assert (second.session_number, second.slot_id, second.auto_allocated) == (2, tuesday_late, False)
    assert [(p.person_index, p.activity_type) for p in first.people_activities] == [(0, "surf"), (1, "sup")]
    assert second.activity_counts == {"kayak": 2}

    assert await booked_count(session_factory, slots[1][0], MONDAY, "surf") == 1
    assert await booked_count(session_factory, slots[1][0], MONDAY, "sup") == 1
    assert await booked_count(session_factory, tuesday_late, TUESDAY, "kayak") == 2


@pytest.mark.asyncio
async def test_package_capacity_failure_rolls_back_every_session(orchestrator, session_factory, slots):
    """The second session is full, so the first session's surf places stay free."""
    result = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": MONDAY.isoformat(), "slot_id": slots[1][0], "people_activities": assign("surf", "surf", "surf")},
                {"session_date": TUESDAY.isoformat(), "slot_id": slots[2][0], "people_activities": assign("kayak", "kayak", "kayak")},
            ],
            people=3,
        )
    )

    assert isinstance(result.error, CapacityError)
    assert "session 2" in result.error.message
    assert await booked_count(session_factory, slots[1][0], MONDAY, "surf") == 0
    assert await booked_count(session_factory, slots[2][0], TUESDAY, "kayak") == 0
    assert await orchestrator.list_bookings() == []


@pytest.mark.asyncio
async def test_package_duplicate_dates(orchestrator, slots):
    result = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": MONDAY.isoformat(), "people_activities": assign("surf", "surf")},
                {"session_date": MONDAY.isoformat(), "people_activities": assign("surf", "surf")},
            ]
        )
    )
    assert isinstance(result.error, ScheduleMismatchError)
    assert result.error.code == "SCHEDULE_MISMATCH"


@pytest.mark.asyncio
async def test_package_cottage_overflow(orchestrator, session_factory, slots):
    sessions = [
        {"session_date": MONDAY.isoformat(), "people_activities": assign(*["surf"] * 9)},
        {"session_date": TUESDAY.isoformat(), "people_activities": assign(*["surf"] * 9)},
    ]
    result = await orchestrator.create_package_booking(package_request(sessions, people=9, accommodation="cottage"))

    assert isinstance(result.error, CapacityExceeded)
    assert await booked_count(session_factory, slots[1][0], MONDAY, "surf") == 0


@pytest.mark.asyncio
async def test_package_missing_person_assignment(orchestrator, slots):
    result = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": MONDAY.isoformat(), "people_activities": assign("surf")},
                {"session_date": TUESDAY.isoformat(), "people_activities": assign("surf", "sup")},
            ]
        )
    )
    assert isinstance(result.error, ValidationError)
    assert result.error.details["missing"] == [1]


# Stay bookings


@pytest.mark.asyncio
async def test_stay_booking(orchestrator):
    result = await orchestrator.create_stay_booking(
        {
            **customer(),
            "accommodation_type": "dorm",
            "check_in_date": MONDAY.isoformat(),
            "check_out_date": (MONDAY + timedelta(days=2)).isoformat(),
            "people": [{"name": "Ana", "age": 30}, {"name": "Ben", "age": 28}],
        }
    )

    booking = await orchestrator.get_by_id(result.unwrap())
    assert booking.booking_type == "stay_only"
    assert booking.base_amount == Decimal("4800.00")
    assert booking.total_amount == Decimal("5664.00")
    assert booking.stay.nights_count == 2
    assert booking.stay.is_extended_stay is False
    assert booking.booking_reference == f"MSC-STY-{booking.id}-300107"


@pytest.mark.asyncio
async def test_extended_stay_forces_dorm(orchestrator):
    result = await orchestrator.create_stay_booking(
        {
            **customer(),
            "accommodation_type": "tent",
            "check_in_date": MONDAY.isoformat(),
            "check_out_date": (MONDAY + timedelta(days=6)).isoformat(),
            "extended_stay": True,
            "includes_meals": True,
            "people": [{"name": "Ana", "age": 30}],
        }
    )

    booking = await orchestrator.get_by_id(result.unwrap())
    assert booking.stay.accommodation_type == "dorm"
    assert booking.stay.is_extended_stay is True
    assert booking.base_amount == Decimal("11000.00")


@pytest.mark.asyncio
async def test_stay_check_out_must_follow_check_in(orchestrator):
    result = await orchestrator.create_stay_booking(
        {
            **customer(),
            "accommodation_type": "tent",
            "check_in_date": MONDAY.isoformat(),
            "check_out_date": MONDAY.isoformat(),
            "people": [{"name": "Ana", "age": 30}],
        }
    )
    assert isinstance(result.error, ValidationError)


# Cancellation, payment and reads


@pytest.mark.asyncio
async def test_cancel_restores_capacity(orchestrator, session_factory, slots):
    slot_id = slots[1][0]
    created = await orchestrator.create_activity_booking(
        activity_request(slot_id, [{"name": "A", "age": 30}, {"name": "B", "age": 30, "activity_type": "kayak"}])
    )

    cancelled = await orchestrator.cancel(created.value)

    assert cancelled.ok
    assert sorted((c.activity_type, c.count) for c in cancelled.value) == [("kayak", 1), ("surf", 1)]
    assert await booked_count(session_factory, slot_id, MONDAY, "surf") == 0
    assert await booked_count(session_factory, slot_id, MONDAY, "kayak") == 0

    booking = await orchestrator.get_by_id(created.value)
    assert booking.booking_status == "cancelled"
    assert booking.cancelled_at is not None


@pytest.mark.asyncio
async def test_cancel_package_releases_every_session(orchestrator, session_factory, slots):
    created = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": MONDAY.isoformat(), "people_activities": assign("surf", "sup")},
                {"session_date": TUESDAY.isoformat(), "people_activities": assign("surf", "surf")},
            ]
        )
    )

    assert (await orchestrator.cancel(created.value)).ok
    assert await booked_count(session_factory, slots[1][0], MONDAY, "surf") == 0
    assert await booked_count(session_factory, slots[1][0], MONDAY, "sup") == 0
    assert await booked_count(session_factory, slots[2][0], TUESDAY, "surf") == 0


@pytest.mark.asyncio
async def test_second_cancel_releases_nothing(orchestrator, session_factory, slots):
    slot_id = slots[1][0]
    first = await orchestrator.create_activity_booking(activity_request(slot_id, [{"name": "A", "age": 30}]))
    await orchestrator.create_activity_booking(
        activity_request(slot_id, [{"name": "B", "age": 30}], customer_email="b@example.com")
    )

    await orchestrator.cancel(first.value)
    again = await orchestrator.cancel(first.value)

    assert isinstance(again.error, ValidationError)
    assert again.error.code == "ALREADY_CANCELLED"
    assert await booked_count(session_factory, slot_id, MONDAY, "surf") == 1


@pytest.mark.asyncio
async def test_cancel_unknown_booking(orchestrator):
    result = await orchestrator.cancel(424242)
    assert isinstance(result.error, NotFoundError)


@pytest.mark.asyncio
async def test_get_missing_booking(orchestrator):
    assert await orchestrator.get_by_id(424242) is None


@pytest.mark.asyncio
async def test_update_payment_status(orchestrator, slots):
    created = await orchestrator.create_activity_booking(activity_request(slots[1][0], [{"name": "A", "age": 30}]))

    updated = await orchestrator.update_payment_status(created.value, "completed", "pay_123")
    assert updated.value.payment_status == "completed"
    assert updated.value.payment_reference == "pay_123"

    bogus = await orchestrator.update_payment_status(created.value, "bogus")
    assert isinstance(bogus.error, ValidationError)

    missing = await orchestrator.update_payment_status(424242, "failed")
    assert isinstance(missing.error, NotFoundError)


@pytest.mark.asyncio
async def test_list_bookings_filters(orchestrator, slots):
    await orchestrator.create_activity_booking(activity_request(slots[1][0], [{"name": "A", "age": 30}]))
    await orchestrator.create_stay_booking(
        {
            **customer(email="zoe@example.com", name="Zoe Paddler"),
            "accommodation_type": "tent",
            "check_in_date": MONDAY.isoformat(),
            "check_out_date": TUESDAY.isoformat(),
            "people": [{"name": "Zoe", "age": 30}],
        }
    )

    everything = await orchestrator.list_bookings()
    assert [b.booking_type for b in everything] == ["stay_only", "activity"]

    activities = await orchestrator.list_bookings({"booking_type": "surf_sup"})
    assert [b.booking_type for b in activities] == ["activity"]

    zoe = await orchestrator.list_bookings({"search": "zoe"})
    assert [b.customer.email for b in zoe] == ["zoe@example.com"]

    with pytest.raises(ValidationError):
        await orchestrator.list_bookings({"booking_type": "cruise"})


# Atomic guard and metrics


@pytest.mark.asyncio
async def test_claim_rejected_after_rows_written_leaves_nothing(orchestrator, session_factory, slots, monkeypatch):
    """With the early check out of the way, the conditional claim still undoes the whole booking."""

    async def no_precheck(*args, **kwargs):
        return None

    monkeypatch.setattr(booking_service, "_precheck", no_precheck)

    result = await orchestrator.create_package_booking(
        package_request(
            [
                {"session_date": MONDAY.isoformat(), "slot_id": slots[1][0], "people_activities": assign("surf", "surf", "surf")},
                {"session_date": TUESDAY.isoformat(), "slot_id": slots[2][0], "people_activities": assign("kayak", "kayak", "kayak")},
            ],
            people=3,
        )
    )

    assert isinstance(result.error, CapacityError)
    assert result.error.details["activity_type"] == "kayak"
    async with session_factory() as session:
        for model in (Customer, Booking, BookingPerson, PackageBooking, PackageSession, PackagePersonSession):
            assert (await session.execute(select(func.count()).select_from(model))).scalar_one() == 0
    assert await booked_count(session_factory, slots[1][0], MONDAY, "surf") == 0


@pytest.mark.asyncio
async def test_cancel_and_payment_use_operation_metrics(orchestrator, slots):
    def sample(name, **labels):
        return REGISTRY.get_sample_value(name, labels) or 0

    created = await orchestrator.create_activity_booking(activity_request(slots[1][0], [{"name": "A", "age": 30}]))
    cancels = sample("booking_operations_total", operation="cancel", status="success")
    payments = sample("booking_operations_total", operation="payment_update", status="success")

    await orchestrator.update_payment_status(created.value, "failed")
    await orchestrator.cancel(created.value)

    assert sample("booking_operations_total", operation="cancel", status="success") == cancels + 1
    assert sample("booking_operations_total", operation="payment_update", status="success") == payments + 1
    assert REGISTRY.get_sample_value("booking_attempts_total", {"booking_type": "cancellation", "status": "success"}) is None
    assert REGISTRY.get_sample_value("booking_attempts_total", {"booking_type": "payment", "status": "success"}) is None
