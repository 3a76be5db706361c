"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['booking_type', 'status']  # status: success, capacity, validation, schedule, not_found, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking creation latency',
    ['booking_type'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Bookings cancelled',
    ['booking_type']
)

# Operations on existing bookings (cancel, payment updates)
booking_operations = Counter(
    'booking_operations_total',
    'Operations on existing bookings',
    ['operation', 'status']
)

booking_operation_latency = Histogram(
    'booking_operation_latency_seconds',
    'Latency of operations on existing bookings',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Capacity ledger metrics
capacity_claims = Counter(
    'capacity_claims_total',
    'Capacity ledger operations per (slot, date, activity) tuple',
    ['activity_type', 'result']  # reserved, rejected, released
)

capacity_seats = Counter(
    'capacity_seats_total',
    'Head count moved through the capacity ledger',
    ['activity_type', 'direction']  # reserve, release
)

auto_allocations = Counter(
    'package_slot_auto_allocations_total',
    'Package sessions whose slot was chosen automatically',
    ['result']  # allocated, none_available
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(booking_type: str, status: str):
    """Record booking attempt outcome."""
    booking_attempts.labels(booking_type=booking_type, status=status).inc()


def record_capacity_claim(activity_type: str, result: str, seats: int = 0):
    """Record a ledger operation. Result: reserved, rejected, released"""
    capacity_claims.labels(activity_type=activity_type, result=result).inc()
    if seats and result in ("reserved", "released"):
        direction = "reserve" if result == "reserved" else "release"
        capacity_seats.labels(activity_type=activity_type, direction=direction).inc(seats)


def record_cancellation(booking_type: str):
    booking_cancellations.labels(booking_type=booking_type).inc()


def record_auto_allocation(allocated: bool):
    auto_allocations.labels(result="allocated" if allocated else "none_available").inc()


def record_booking_operation(operation: str, status: str):
    booking_operations.labels(operation=operation, status=status).inc()
