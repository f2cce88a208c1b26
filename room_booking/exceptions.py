"""
Custom exceptions for booking operations.

Provides structured error handling with retryable flags.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from uuid import UUID

from room_booking.formatting import format_date, format_time


@dataclass(frozen=True)
class ConflictDetail:
    """Snapshot of a blocking booking, safe to read after the session is gone."""

    id: UUID
    room_id: UUID
    group_id: Optional[UUID]
    owner_id: str
    title: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    status: str

    @classmethod
    def from_booking(cls, booking: Any) -> "ConflictDetail":
        return cls(
            id=booking.id,
            room_id=booking.room_id,
            group_id=booking.group_id,
            owner_id=booking.owner_id,
            title=booking.title,
            date=booking.date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
        )


class BookingError(Exception):
    """Base exception for booking operations."""

    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(BookingError):
    """
    Malformed or incomplete request.

    Causes:
    - End time not after start time
    - No weekday enabled for a weekly schedule
    - Missing or out-of-order repeat end date

    Never retried automatically.
    """

    retryable = False


class ConflictError(BookingError):
    """
    Overlapping reservation found.

    Carries snapshots of the blocking bookings so callers can present the exact
    date and time range that caused the rejection.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        conflicts: Optional[Sequence[Any]] = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.conflicts = list(conflicts or [])

    @classmethod
    def from_bookings(cls, conflicts: Sequence[Any]) -> "ConflictError":
        """Build an error whose message describes the first blocking booking."""
        first = conflicts[0]
        message = (
            f"Conflict with booking {format_date(first.date)} "
            f"{format_time(first.start_time)}-{format_time(first.end_time)}"
        )
        if len(conflicts) > 1:
            message += f" (and {len(conflicts) - 1} more)"
        return cls(message, conflicts=[ConflictDetail.from_booking(b) for b in conflicts])


class NotFoundError(BookingError):
    """
    Referenced booking, group or room does not exist.
    """

    retryable = False


class StorageError(BookingError):
    """
    Underlying store unavailable or write failed.

    The whole request has been rolled back; callers may retry it.
    """

    retryable = True


class NotificationDeliveryError(BookingError):
    """
    Notification could not be delivered.

    Retryable for timeouts, rate limiting and server errors.
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.retryable = retryable
