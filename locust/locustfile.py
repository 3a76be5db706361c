"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking of one slot
  locust -f locustfile.py --tags throughput   # Availability reads
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, time, timedelta

from locust import HttpUser, task, between, tag, events

# Shared state
CONCURRENCY_SLOT_ID = None
CONCURRENCY_DATE = None
KAYAK_CAPACITY = 2


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def random_name():
    return "Guest " + "".join(random.choices(string.ascii_uppercase, k=5))


def next_weekday(day_of_week: int) -> date:
    today = date.today()
    return today + timedelta(days=(day_of_week - today.isoweekday()) % 7 or 7)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: Creating concurrency test slot...")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - every user wants kayaks in the same slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT booked_count FROM slot_activity_availability
       WHERE slot_id = X AND activity_type = 'kayak';
    Should be <= 2 (the kayak capacity), and equal the confirmed kayak head count.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if CONCURRENCY_SLOT_ID:
            return
        start_hour = random.randint(0, 20)
        resp = self.client.post(
            "/api/v1/slots/",
            json={
                "day_of_week": 3,
                "start_time": time(start_hour, 0).isoformat(),
                "end_time": time(start_hour + 1, 0).isoformat(),
                "capacities": {"kayak": KAYAK_CAPACITY},
            },
        )
        if resp.status_code == 201:
            globals()["CONCURRENCY_SLOT_ID"] = resp.json()["id"]
            globals()["CONCURRENCY_DATE"] = next_weekday(3).isoformat()
            print(f"\n✓ Created slot {CONCURRENCY_SLOT_ID} with {KAYAK_CAPACITY} kayaks\n")

    @tag("concurrency")
    @task
    def book_last_kayak(self):
        """All users fight for the same kayaks."""
        if not CONCURRENCY_SLOT_ID:
            return

        with self.client.post(
            "/api/v1/bookings/activity",
            json={
                "customer_name": random_name(),
                "customer_email": random_email(),
                "customer_phone": "9999999999",
                "activity_type": "kayak",
                "session_date": CONCURRENCY_DATE,
                "slot_id": CONCURRENCY_SLOT_ID,
                "people": [{"name": random_name(), "age": random.randint(18, 60)}],
            },
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: full
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - availability and quote reads

    Run: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def slot_availability(self):
        day = date.today() + timedelta(days=random.randint(0, 6))
        self.client.get(
            f"/api/v1/slots/availability?date={day.isoformat()}&people_count={random.randint(1, 6)}",
            name="/api/v1/slots/availability",
        )

    @tag("throughput", "read")
    @task(3)
    def package_quote(self):
        self.client.post(
            "/api/v1/pricing/package",
            json={
                "package_type": random.choice(["1_night_1_session", "1_night_2_sessions", "2_nights_3_sessions"]),
                "accommodation_type": random.choice(["tent", "dorm", "cottage"]),
                "people_count": random.randint(1, 8),
            },
            name="/api/v1/pricing/package",
        )

    @tag("throughput")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def unknown_slot(self):
        """Book a slot that does not exist."""
        with self.client.post(
            "/api/v1/bookings/activity",
            json={
                "customer_name": random_name(),
                "customer_email": random_email(),
                "customer_phone": "9999999999",
                "activity_type": "surf",
                "session_date": date.today().isoformat(),
                "slot_id": 999999,
                "people": [{"name": random_name(), "age": 30}],
            },
            catch_response=True,
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def underage_person(self):
        with self.client.post(
            "/api/v1/bookings/stay",
            json={
                "customer_name": random_name(),
                "customer_email": random_email(),
                "customer_phone": "9999999999",
                "accommodation_type": "tent",
                "check_in_date": date.today().isoformat(),
                "check_out_date": (date.today() + timedelta(days=1)).isoformat(),
                "people": [{"name": random_name(), "age": 2}],
            },
            catch_response=True,
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def cottage_overflow(self):
        """Nine people never fit in two cottages of four."""
        with self.client.post(
            "/api/v1/pricing/package",
            json={"package_type": "1_night_1_session", "accommodation_type": "cottage", "people_count": 9},
            catch_response=True,
        ) as resp:
            if resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Expected 409, got {resp.status_code}")
