"""
Conflict detection service.

Provides:
- overlaps(): half-open interval overlap test for date-anchored time ranges
- blocking_statuses(): which booking states block new reservations
- find_conflicts(): existing bookings of a room that overlap any candidate
"""

import logging
from collections import defaultdict
from datetime import date, time
from typing import Collection, Iterable, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from room_booking.models.bookings import Booking, BookingStatus
from room_booking.services.repository import BookingRepository

logger = logging.getLogger(__name__)


class Interval(Protocol):
    """Anything anchored to a date with a start and end time of day."""

    date: date
    start_time: time
    end_time: time


def overlaps(a: Interval, b: Interval) -> bool:
    """
    Check whether two date-anchored intervals overlap.

    Intervals are half-open ranges [start, end) on the same calendar date,
    so touching boundaries (09:00-10:00 and 10:00-11:00) do not overlap.
    """
    return (
        a.date == b.date
        and a.start_time < b.end_time
        and b.start_time < a.end_time
    )


def blocking_statuses(strict: bool = False) -> tuple[BookingStatus, ...]:
    """
    Statuses that count toward conflict detection.

    Approved bookings always block. Pending bookings block only in strict mode.
    """
    if strict:
        return (BookingStatus.APPROVED, BookingStatus.PENDING)
    return (BookingStatus.APPROVED,)


def find_conflicts(
    session: Session,
    room_id: UUID,
    candidates: Iterable[Interval],
    exclude_ids: Collection[UUID] = (),
    strict: bool = False,
) -> list[Booking]:
    """
    Find existing bookings that would collide with the candidates.

    Performs no mutation; creation, approval and edit flows call this
    before writing.

    Args:
        session: Database session
        room_id: Room the candidates are for
        candidates: Proposed intervals
        exclude_ids: Bookings to ignore (the booking being edited, or the
            group being approved)
        strict: Also treat pending bookings as blocking

    Returns:
        Overlapping bookings, deduplicated, ordered by date and start time
    """
    by_date: dict[date, list[Interval]] = defaultdict(list)
    for candidate in candidates:
        by_date[candidate.date].append(candidate)

    if not by_date:
        return []

    existing = BookingRepository(session).find_by_room(
        room_id,
        statuses=blocking_statuses(strict),
        date_from=min(by_date),
        date_to=max(by_date),
        exclude_ids=exclude_ids,
    )

    conflicts = [
        booking
        for booking in existing
        if any(overlaps(booking, candidate) for candidate in by_date.get(booking.date, ()))
    ]

    if conflicts:
        logger.info(
            f"Found {len(conflicts)} conflicting booking(s) for room {room_id} "
            f"(strict={strict})"
        )
    return conflicts
