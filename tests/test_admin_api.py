"""
Tests for the staff dashboard, customer administration, capacity reports and
the activity catalog.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from surfclub.core.errors import ValidationError

from conftest import MONDAY, customer

TUESDAY = MONDAY + timedelta(days=1)
ALL_TIME = {"date_from": "2000-01-01", "date_to": "2100-12-31"}


def kayak_booking(slot_id: int, email: str = "ana@example.com", name: str = "Ana Surfer") -> dict:
    return {
        **customer(email=email, name=name),
        "activity_type": "kayak",
        "session_date": MONDAY.isoformat(),
        "slot_id": slot_id,
        "people": [{"name": name, "age": 30}],
    }


def package_booking(email: str = "ben@example.com") -> dict:
    return {
        **customer(email=email, name="Ben Rider"),
        "package_type": "1_night_2_sessions",
        "accommodation_type": "tent",
        "check_in_date": MONDAY.isoformat(),
        "people": [{"name": "Ben", "age": 30}],
        "sessions": [
            {"session_date": day.isoformat(), "people_activities": [{"person_index": 0, "activity_type": "surf"}]}
            for day in (MONDAY, TUESDAY)
        ],
    }


@pytest.mark.asyncio
async def test_activity_catalog(client: AsyncClient):
    response = await client.get("/api/v1/activities/")

    assert response.status_code == 200
    catalog = {a["type"]: a for a in response.json()}
    assert set(catalog) == {"surf", "sup", "kayak"}
    assert catalog["kayak"]["name"] == "Kayaking"
    assert catalog["kayak"]["default_capacity"] == 2
    assert Decimal(catalog["surf"]["price_per_person"]) == Decimal("1700")


@pytest.mark.asyncio
async def test_dashboard_for_a_session_day(orchestrator, slots):
    activity = await orchestrator.create_activity_booking(kayak_booking(slots[1][1]))
    package = await orchestrator.create_package_booking(package_booking())
    await orchestrator.update_payment_status(activity.value, "completed")

    board = await orchestrator.dashboard(MONDAY, date(2000, 1, 1), date(2100, 12, 31))

    assert board["statistics"]["total_bookings"] == 2
    assert board["statistics"]["pending_payments"] == 1
    assert Decimal(board["statistics"]["total_revenue"]) == Decimal("2006.00")
    # Package session auto-allocated to the 07:00 slot, kayaks at 10:00
    assert [(s["booking_id"], s["slot_id"]) for s in board["todays_sessions"]] == [
        (package.value, slots[1][0]),
        (activity.value, slots[1][1]),
    ]
    assert board["statistics"]["todays_sessions"] == 2
    assert [b.id for b in board["recent_bookings"]] == [package.value, activity.value]


@pytest.mark.asyncio
async def test_dashboard_skips_cancelled_sessions(orchestrator, slots):
    activity = await orchestrator.create_activity_booking(kayak_booking(slots[1][1]))
    await orchestrator.cancel(activity.value)

    board = await orchestrator.dashboard(MONDAY)

    assert board["todays_sessions"] == []
    assert board["date_from"] == date(2030, 1, 1)
    assert board["date_to"] == MONDAY


@pytest.mark.asyncio
async def test_dashboard_rejects_reversed_range(orchestrator):
    with pytest.raises(ValidationError):
        await orchestrator.dashboard(MONDAY, MONDAY, MONDAY - timedelta(days=1))


@pytest.mark.asyncio
async def test_dashboard_endpoint(client: AsyncClient, slots):
    await client.post("/api/v1/bookings/activity", json=kayak_booking(slots[1][0]))

    response = await client.get("/api/v1/admin/dashboard", params=ALL_TIME)
    assert response.status_code == 200
    data = response.json()
    assert data["statistics"]["total_bookings"] == 1
    assert Decimal(data["statistics"]["total_revenue"]) == Decimal("0")
    assert len(data["recent_bookings"]) == 1

    reversed_range = await client.get(
        "/api/v1/admin/dashboard", params={"date_from": "2030-02-01", "date_to": "2030-01-01"}
    )
    assert reversed_range.status_code == 422


@pytest.mark.asyncio
async def test_customer_listing(client: AsyncClient, slots):
    for email, name in (("ana@example.com", "Ana"), ("ben@example.com", "Ben"), ("caro@example.com", "Caro")):
        await client.post("/api/v1/bookings/stay", json={
            **customer(email=email, name=name),
            "accommodation_type": "tent",
            "check_in_date": MONDAY.isoformat(),
            "check_out_date": TUESDAY.isoformat(),
            "people": [{"name": name, "age": 30}],
        })

    page = await client.get("/api/v1/admin/customers", params={"limit": 2})
    assert page.status_code == 200
    assert len(page.json()["customers"]) == 2
    assert page.json()["pagination"] == {"limit": 2, "offset": 0, "total_count": 3, "has_more": True}

    found = await client.get("/api/v1/admin/customers", params={"search": "ben@"})
    assert [c["name"] for c in found.json()["customers"]] == ["Ben"]
    assert found.json()["search_term"] == "ben@"


@pytest.mark.asyncio
async def test_customer_details(client: AsyncClient, slots):
    first = await client.post("/api/v1/bookings/activity", json=kayak_booking(slots[1][0]))
    second = await client.post("/api/v1/bookings/activity", json=kayak_booking(slots[1][1]))
    customer_id = first.json()["booking"]["customer"]["id"]

    response = await client.get(f"/api/v1/admin/customers/{customer_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["customer"]["email"] == "ana@example.com"
    assert [b["id"] for b in data["booking_history"]] == [second.json()["booking_id"], first.json()["booking_id"]]
    assert data["statistics"]["total_bookings"] == 2
    assert Decimal(data["statistics"]["total_spent"]) == Decimal("4012.00")

    missing = await client.get("/api/v1/admin/customers/424242")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_availability_report(client: AsyncClient, slots):
    await client.post("/api/v1/bookings/activity", json=kayak_booking(slots[1][0]))

    response = await client.get(
        "/api/v1/admin/availability-report",
        params={"start_date": MONDAY.isoformat(), "end_date": TUESDAY.isoformat()},
    )

    assert response.status_code == 200
    monday, tuesday = response.json()["days"]
    assert monday["day_name"] == "Monday"
    assert [s["slot_id"] for s in monday["slots"]] == slots[1]
    assert [s["slot_id"] for s in tuesday["slots"]] == slots[2]
    kayak = next(a for a in monday["slots"][0]["activities"] if a["activity_type"] == "kayak")
    assert kayak["available_spots"] == 1


@pytest.mark.asyncio
async def test_availability_report_range_checks(client: AsyncClient):
    backwards = await client.get(
        "/api/v1/admin/availability-report",
        params={"start_date": TUESDAY.isoformat(), "end_date": MONDAY.isoformat()},
    )
    assert backwards.status_code == 422

    too_long = await client.get(
        "/api/v1/admin/availability-report",
        params={"start_date": MONDAY.isoformat(), "end_date": (MONDAY + timedelta(days=40)).isoformat()},
    )
    assert too_long.status_code == 422
    assert too_long.json()["detail"]["details"]["days_requested"] == 41


@pytest.mark.asyncio
async def test_utilization_busiest_first(client: AsyncClient, slots):
    await client.post("/api/v1/bookings/activity", json=kayak_booking(slots[1][1]))

    response = await client.get("/api/v1/admin/utilization", params={"date": MONDAY.isoformat()})

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 6
    assert (rows[0]["slot_id"], rows[0]["activity_type"], rows[0]["utilization_percent"]) == (
        slots[1][1],
        "kayak",
        50.0,
    )
    assert all(r["utilization_percent"] == 0 for r in rows[1:])
