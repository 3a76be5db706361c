"""
Tests for slot schedule management and availability endpoints.
"""

from datetime import date

import pytest
from httpx import AsyncClient

from surfclub.services import slot_service

from conftest import MONDAY


@pytest.mark.asyncio
async def test_create_slot_with_defaults(client: AsyncClient):
    response = await client.post(
        "/api/v1/slots/",
        json={"day_of_week": 3, "start_time": "14:00:00", "end_time": "15:30:00", "capacities": {"kayak": 4}},
    )

    assert response.status_code == 201
    capacities = {a["activity_type"]: a["max_capacity"] for a in response.json()["activities"]}
    assert capacities == {"kayak": 4, "sup": 12, "surf": 40}


@pytest.mark.asyncio
async def test_overlapping_slot_rejected(client: AsyncClient, slots):
    response = await client.post(
        "/api/v1/slots/", json={"day_of_week": 1, "start_time": "08:30:00", "end_time": "09:30:00"}
    )
    assert response.status_code == 422
    assert response.json()["detail"]["details"]["overlapping_slot_id"] == slots[1][0]


@pytest.mark.asyncio
async def test_adjacent_slot_allowed(client: AsyncClient, slots):
    response = await client.post(
        "/api/v1/slots/", json={"day_of_week": 1, "start_time": "09:00:00", "end_time": "10:00:00"}
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_weekly_schedule_ordered(client: AsyncClient, slots):
    response = await client.get("/api/v1/slots/")
    ids = [s["id"] for s in response.json()]
    assert ids[:2] == slots[1]
    assert len(ids) == 14


@pytest.mark.asyncio
async def test_update_and_deactivate_slot(client: AsyncClient, slots):
    morning = slots[1][0]

    moved = await client.patch(f"/api/v1/slots/{morning}", json={"end_time": "11:00:00"})
    assert moved.status_code == 422

    shortened = await client.patch(f"/api/v1/slots/{morning}", json={"end_time": "08:00:00"})
    assert shortened.status_code == 200
    assert shortened.json()["end_time"] == "08:00:00"

    deactivated = await client.delete(f"/api/v1/slots/{morning}")
    assert deactivated.json()["is_active"] is False

    listing = await client.get("/api/v1/slots/availability", params={"date": MONDAY.isoformat()})
    assert [s["slot_id"] for s in listing.json()] == [slots[1][1]]


@pytest.mark.asyncio
async def test_unknown_slot_returns_404(client: AsyncClient):
    response = await client.get("/api/v1/slots/9999/activities")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_availability_uses_single_activity_rule(client: AsyncClient, slots):
    response = await client.get("/api/v1/slots/availability", params={"date": MONDAY.isoformat(), "people_count": 13})

    assert response.status_code == 200
    morning = response.json()[0]
    assert morning["slot_id"] == slots[1][0]
    assert {a["activity_type"]: a["available_spots"] for a in morning["activities"]} == {
        "kayak": 2,
        "sup": 12,
        "surf": 40,
    }
    assert morning["can_book"] is True

    whole_group = await client.get("/api/v1/slots/availability", params={"date": MONDAY.isoformat(), "people_count": 40})
    assert all(s["can_book"] for s in whole_group.json())


@pytest.mark.asyncio
async def test_activity_availability(client: AsyncClient, slots):
    await client.post(
        "/api/v1/bookings/activity",
        json={
            "customer_name": "Ana",
            "customer_email": "ana@example.com",
            "customer_phone": "9876543210",
            "activity_type": "kayak",
            "session_date": MONDAY.isoformat(),
            "slot_id": slots[1][0],
            "people": [{"name": "Ana", "age": 30}],
        },
    )

    response = await client.get(
        "/api/v1/slots/activities/kayak/availability", params={"date": MONDAY.isoformat(), "people_count": 2}
    )
    first, second = response.json()
    assert first["slot_id"] == slots[1][0]
    assert first["booked_count"] == 1
    assert first["utilization_percent"] == 50.0
    assert first["can_book"] is False
    assert second["can_book"] is True


@pytest.mark.asyncio
async def test_capacity_cannot_drop_below_booked(client: AsyncClient, slots):
    slot_id = slots[1][0]
    await client.post(
        "/api/v1/bookings/activity",
        json={
            "customer_name": "Ana",
            "customer_email": "ana@example.com",
            "customer_phone": "9876543210",
            "activity_type": "sup",
            "session_date": MONDAY.isoformat(),
            "slot_id": slot_id,
            "people": [{"name": f"P{i}", "age": 30} for i in range(5)],
        },
    )

    rejected = await client.put(f"/api/v1/slots/{slot_id}/activities/sup", json={"max_capacity": 4})
    assert rejected.status_code == 422

    accepted = await client.put(f"/api/v1/slots/{slot_id}/activities/sup", json={"max_capacity": 5})
    assert accepted.status_code == 200
    assert accepted.json()["max_capacity"] == 5


def test_booking_window_until_next_monday():
    # Thursday: Thu, Fri, Sat, Sun
    window = slot_service.booking_window(date(2030, 1, 10))
    assert window["days_available"] == 4
    assert window["window_end"] == date(2030, 1, 14)
    assert [d["is_weekend"] for d in window["dates"]] == [False, False, True, True]


def test_booking_window_on_monday_spans_a_week():
    window = slot_service.booking_window(MONDAY)
    assert window["days_available"] == 7
    assert window["dates"][0]["is_today"] is True


@pytest.mark.asyncio
async def test_bookable_dates_endpoint(client: AsyncClient):
    response = await client.get("/api/v1/slots/bookable-dates")
    assert response.status_code == 200
    assert 1 <= response.json()["days_available"] <= 7
