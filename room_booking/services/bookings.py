"""
Booking service.

Implements the booking lifecycle on top of the engine components:
- check_availability(): expand a request and report blocking bookings
- create_booking(): expand, check conflicts, persist as pending
- decide_booking(): approve or reject one booking or its whole group
- edit_booking(): change one booking's details after a strict conflict check
- delete_booking(): remove one booking or its whole group

Every write runs in one transaction while the room is locked, and
notifications are sent only after the transaction has committed.
"""

import datetime as dt
import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from room_booking.config import Settings, get_settings
from room_booking.exceptions import ConflictError, ValidationError
from room_booking.formatting import format_date
from room_booking.models.bookings import Booking, BookingStatus
from room_booking.models.notifications import NotificationKind
from room_booking.models.rooms import Room
from room_booking.services.conflicts import find_conflicts
from room_booking.services.groups import (
    BookingRequest,
    GroupAction,
    GroupActionResult,
    Scope,
    apply_group_action,
    materialize,
    resolve_targets,
)
from room_booking.services.locking import RoomLocks, get_room_locks
from room_booking.services.notifications import NotificationSink
from room_booking.services.recurrence import expand, validate_time_range
from room_booking.services.repository import BookingRepository, transaction

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

# Statuses an admin decision may set
DECISION_STATUSES = (BookingStatus.APPROVED, BookingStatus.REJECTED)


@dataclass(frozen=True)
class BookingPatch:
    """Fields an edit may change; None keeps the current value."""

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None


@dataclass
class CreatedBooking:
    """Result of a successful creation."""

    bookings: list[Booking]
    group_id: Optional[UUID] = None


@dataclass(frozen=True)
class _PendingNotification:
    """Notification content captured inside a transaction, sent after commit."""

    recipient_id: str
    kind: NotificationKind
    title: str
    message: str
    related_booking_id: Optional[UUID] = None
    related_group_id: Optional[UUID] = None
    sender_id: Optional[str] = None


def validate_details(title: Optional[str], description: Optional[str]) -> None:
    """
    Check booking title and description.

    Raises:
        ValidationError: If the title is missing or either field is too long
    """
    if not title or not title.strip():
        raise ValidationError("Please provide a booking title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title cannot be more than {MAX_TITLE_LENGTH} characters")
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description cannot be more than {MAX_DESCRIPTION_LENGTH} characters"
        )


def summarize_bookings(room: Room, bookings: Sequence[Booking], verb: str) -> str:
    """
    Describe affected bookings for a notification.

    A single booking names its date; several name the inclusive date range.
    """
    first = min(bookings, key=lambda b: (b.date, b.start_time))
    last = max(bookings, key=lambda b: (b.date, b.start_time))

    if len(bookings) > 1:
        return (
            f"Your {len(bookings)} recurring bookings for {room.label} ({first.title}) "
            f"from {format_date(first.date)} to {format_date(last.date)} have been {verb}"
        )
    return f"Your booking for {room.label} ({first.title}) on {format_date(first.date)} has been {verb}"


class BookingService:
    """
    Booking lifecycle operations over one database session.

    States: pending (initial), approved, rejected. An admin may re-decide a
    booking at any time; deletion is separate from status.
    """

    def __init__(
        self,
        session: Session,
        notifier: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
        room_locks: Optional[RoomLocks] = None,
    ):
        self._session = session
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._locks = room_locks or get_room_locks()
        self._repository = BookingRepository(session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_booking(self, booking_id: UUID) -> Booking:
        """
        Get a booking by ID.

        Raises:
            NotFoundError: If the booking does not exist
        """
        return self._repository.get_booking(booking_id)

    def list_bookings(self, **filters) -> tuple[Sequence[Booking], int]:
        """List bookings; see BookingRepository.list_bookings for filters."""
        return self._repository.list_bookings(**filters)

    def check_availability(self, request: BookingRequest) -> list[Booking]:
        """
        Report existing bookings that would block a request.

        Uses the same blocking rules as create_booking. Performs no writes.

        Raises:
            ValidationError: If the request is malformed
        """
        candidates = list(
            expand(request.recurrence, max_occurrences=self._settings.max_occurrences_per_request)
        )
        return find_conflicts(
            self._session,
            request.room_id,
            candidates,
            strict=self._settings.strict_creation_check,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def create_booking(self, request: BookingRequest) -> CreatedBooking:
        """
        Create the bookings for a request, all pending.

        By default only approved bookings block creation, so overlapping
        pending requests may coexist until an admin decides. Set
        STRICT_CREATION_CHECK to block on pending bookings too.

        Raises:
            ValidationError: If the request is malformed (nothing is written)
            NotFoundError: If the room does not exist
            ConflictError: If any occurrence overlaps a blocking booking
            StorageError: If persisting fails (nothing is written)
        """
        validate_details(request.title, request.description)
        candidates = list(
            expand(request.recurrence, max_occurrences=self._settings.max_occurrences_per_request)
        )

        with self._locks.hold(request.room_id):
            with transaction(self._session):
                room = self._repository.lock_room(request.room_id)
                conflicts = find_conflicts(
                    self._session,
                    request.room_id,
                    candidates,
                    strict=self._settings.strict_creation_check,
                )
                if conflicts:
                    raise ConflictError.from_bookings(conflicts)

                result = materialize(self._session, request, candidates)
                pending = self._request_notification(room, request, result.bookings, result.group_id)

        logger.info(
            f"Created {len(result.bookings)} pending booking(s) for room {request.room_id} "
            f"by {request.owner_id}"
        )
        if pending:
            self._notify(pending)
        return CreatedBooking(bookings=result.bookings, group_id=result.group_id)

    def decide_booking(
        self,
        booking_id: UUID,
        status: BookingStatus,
        scope: Scope = Scope.GROUP,
        notify_user: bool = True,
        decided_by: Optional[str] = None,
    ) -> GroupActionResult:
        """
        Approve or reject a booking, or every booking in its group.

        Approval re-checks the affected bookings against other approved
        bookings of the room so two approved bookings never overlap.

        Raises:
            ValidationError: If status is not 'approved' or 'rejected'
            NotFoundError: If the booking does not exist
            ConflictError: If approving would overlap an approved booking
            StorageError: If the update fails (no booking is changed)
        """
        try:
            new_status = BookingStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown booking status: {status!r}") from None
        if new_status not in DECISION_STATUSES:
            raise ValidationError("A decision must approve or reject the booking")

        anchor = self._repository.get_booking(booking_id)
        room_id = anchor.room_id

        with self._locks.hold(room_id):
            with transaction(self._session):
                room = self._repository.lock_room(room_id)

                if new_status is BookingStatus.APPROVED:
                    targets = resolve_targets(self._session, anchor, scope)
                    conflicts = find_conflicts(
                        self._session,
                        room_id,
                        targets,
                        exclude_ids={b.id for b in targets},
                        strict=False,
                    )
                    if conflicts:
                        raise ConflictError.from_bookings(conflicts)

                result = apply_group_action(
                    self._session, booking_id, GroupAction.set_status(new_status), scope
                )

                pending = None
                if result.affected_count and notify_user:
                    verb = new_status.value
                    pending = _PendingNotification(
                        recipient_id=anchor.owner_id,
                        kind=(
                            NotificationKind.BOOKING_APPROVED
                            if new_status is BookingStatus.APPROVED
                            else NotificationKind.BOOKING_REJECTED
                        ),
                        title=f"Booking {verb.capitalize()}",
                        message=summarize_bookings(room, result.affected, verb),
                        related_booking_id=anchor.id,
                        related_group_id=result.group_id,
                        sender_id=decided_by,
                    )

        logger.info(
            f"Booking {booking_id} {new_status.value} "
            f"({result.affected_count} affected, scope {Scope(scope).value})"
        )
        if pending:
            self._notify(pending)
        return result

    def edit_booking(
        self,
        booking_id: UUID,
        patch: BookingPatch,
        editor_id: Optional[str] = None,
    ) -> Booking:
        """
        Change the details of one booking.

        The new interval is checked against every non-rejected booking of
        the room except this one. Date and times change on this booking
        only; a new title or description is applied to its whole group.

        Raises:
            ValidationError: If the resulting booking is malformed
            NotFoundError: If the booking does not exist
            ConflictError: If the new interval overlaps another booking;
                the message names the first conflict's date and times
            StorageError: If the update fails
        """
        booking = self._repository.get_booking(booking_id)
        room_id = booking.room_id

        merged = replace(
            patch,
            title=patch.title if patch.title is not None else booking.title,
            description=patch.description if patch.description is not None else booking.description,
            date=patch.date or booking.date,
            start_time=patch.start_time or booking.start_time,
            end_time=patch.end_time or booking.end_time,
        )
        validate_details(merged.title, merged.description)
        validate_time_range(merged.start_time, merged.end_time)

        with self._locks.hold(room_id):
            with transaction(self._session):
                room = self._repository.lock_room(room_id)
                conflicts = find_conflicts(
                    self._session,
                    room_id,
                    [merged],
                    exclude_ids={booking.id},
                    strict=True,
                )
                if conflicts:
                    raise ConflictError.from_bookings(conflicts)

                details_changed = (merged.title, merged.description) != (
                    booking.title,
                    booking.description,
                )
                if booking.group_id is not None and details_changed:
                    self._repository.update_group_details(
                        booking.group_id, merged.title, merged.description
                    )
                booking.title = merged.title
                booking.description = merged.description
                booking.date = merged.date
                booking.start_time = merged.start_time
                booking.end_time = merged.end_time
                self._session.flush()

                pending = None
                if editor_id != booking.owner_id:
                    pending = _PendingNotification(
                        recipient_id=booking.owner_id,
                        kind=NotificationKind.BOOKING_UPDATED,
                        title="Booking Updated",
                        message=f"Your booking for {room.label} ({merged.title}) was updated",
                        related_booking_id=booking.id,
                        related_group_id=booking.group_id,
                        sender_id=editor_id,
                    )

        logger.info(f"Booking {booking_id} updated by {editor_id}")
        if pending:
            self._notify(pending)
        return booking

    def delete_booking(
        self,
        booking_id: UUID,
        scope: Scope = Scope.SINGLE,
        deleter_id: Optional[str] = None,
    ) -> GroupActionResult:
        """
        Delete a booking, or every booking in its group.

        Raises:
            NotFoundError: If the booking does not exist
            StorageError: If the delete fails (nothing is removed)
        """
        anchor = self._repository.get_booking(booking_id)
        room_id = anchor.room_id
        owner_id = anchor.owner_id

        with self._locks.hold(room_id):
            with transaction(self._session):
                room = self._repository.lock_room(room_id)
                result = apply_group_action(self._session, booking_id, GroupAction.delete(), scope)

                pending = None
                if result.affected_count and deleter_id != owner_id:
                    pending = _PendingNotification(
                        recipient_id=owner_id,
                        kind=NotificationKind.BOOKING_CANCELLED,
                        title="Booking Cancelled",
                        message=summarize_bookings(room, result.affected, "cancelled"),
                        related_group_id=result.group_id,
                        sender_id=deleter_id,
                    )

        logger.info(
            f"Deleted {result.affected_count} booking(s) anchored at {booking_id} "
            f"(scope {Scope(scope).value})"
        )
        if pending:
            self._notify(pending)
        return result

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _request_notification(
        self,
        room: Room,
        request: BookingRequest,
        bookings: Sequence[Booking],
        group_id: Optional[UUID],
    ) -> Optional[_PendingNotification]:
        recipient = self._settings.booking_admin_recipient
        if not recipient:
            return None

        first = min(bookings, key=lambda b: b.date)
        if len(bookings) > 1:
            message = (
                f"{request.owner_id} requested {len(bookings)} recurring bookings for "
                f"{room.label} ({request.title}) starting {format_date(first.date)}"
            )
        else:
            message = (
                f"{request.owner_id} requested {room.label} ({request.title}) "
                f"on {format_date(first.date)}"
            )
        return _PendingNotification(
            recipient_id=recipient,
            kind=NotificationKind.BOOKING_REQUEST,
            title="New Booking Request",
            message=message,
            related_booking_id=first.id,
            related_group_id=group_id,
            sender_id=request.owner_id,
        )

    def _notify(self, pending: _PendingNotification) -> None:
        """Send a notification; failures are logged, never raised."""
        if self._notifier is None:
            return
        try:
            self._notifier.send(
                pending.recipient_id,
                pending.kind,
                pending.title,
                pending.message,
                related_booking_id=pending.related_booking_id,
                related_group_id=pending.related_group_id,
                sender_id=pending.sender_id,
            )
        except Exception as e:
            logger.warning(
                f"Failed to send {pending.kind.value} notification to {pending.recipient_id}: {e}"
            )
