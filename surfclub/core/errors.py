"""
Booking error taxonomy and the Result container returned by the orchestrator.

Components below the orchestrator raise these exceptions. The orchestrator
catches them at its transaction boundary (after rollback) and hands them back
as values, so callers branch on the class or ``code`` instead of parsing
messages. Storage exceptions are never wrapped here.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class BookingError(Exception):
    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None, **details: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BookingError):
    """Malformed, missing or out-of-range input. Detected before any mutation."""

    code = "VALIDATION_ERROR"
    status_code = 422


class ScheduleMismatchError(BookingError):
    """Package session dates do not match the package's day offsets."""

    code = "SCHEDULE_MISMATCH"
    status_code = 422


class CapacityError(BookingError):
    """A (slot, date, activity) tuple cannot take the requested head count."""

    code = "CAPACITY_UNAVAILABLE"
    status_code = 409


class CapacityExceeded(CapacityError):
    """Physical accommodation inventory cannot hold the group."""

    code = "ACCOMMODATION_CAPACITY_EXCEEDED"


class ActivityNotConfigured(CapacityError):
    code = "ACTIVITY_NOT_CONFIGURED"


class NotFoundError(BookingError):
    code = "NOT_FOUND"
    status_code = 404


class InternalError(BookingError):
    code = "INTERNAL_ERROR"
    status_code = 500


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[BookingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BookingError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value
