"""
Booking group management.

Provides:
- materialize(): persist the occurrences of one request, grouped when recurring
- resolve_targets(): the bookings a single- or group-scope action addresses
- apply_group_action(): set status or delete at single or group scope

Functions flush but do not commit; callers wrap them in
`room_booking.services.repository.transaction()` so a group action is
all-or-nothing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from room_booking.exceptions import ValidationError
from room_booking.models.bookings import Booking, BookingGroup, BookingStatus, RepeatType
from room_booking.services.recurrence import OccurrenceCandidate, RecurrenceRequest
from room_booking.services.repository import BookingRepository

logger = logging.getLogger(__name__)


class Scope(str, Enum):
    """Whether an action targets one booking or its whole group."""

    SINGLE = "single"
    GROUP = "group"


class ActionKind(str, Enum):
    SET_STATUS = "set_status"
    DELETE = "delete"


@dataclass(frozen=True)
class GroupAction:
    """A status change or a deletion."""

    kind: ActionKind
    status: Optional[BookingStatus] = None

    @classmethod
    def set_status(cls, status: BookingStatus) -> "GroupAction":
        return cls(ActionKind.SET_STATUS, BookingStatus(status))

    @classmethod
    def delete(cls) -> "GroupAction":
        return cls(ActionKind.DELETE)


@dataclass(frozen=True)
class BookingRequest:
    """A user's request to reserve a room, before expansion."""

    room_id: UUID
    owner_id: str
    title: str
    recurrence: RecurrenceRequest
    description: Optional[str] = None


@dataclass
class MaterializedBookings:
    """Bookings persisted for one request."""

    bookings: list[Booking]
    group: Optional[BookingGroup] = None

    @property
    def group_id(self) -> Optional[UUID]:
        return self.group.id if self.group else None


@dataclass
class GroupActionResult:
    """Outcome of a single- or group-scope action."""

    affected_count: int
    affected: list[Booking] = field(default_factory=list)
    group_id: Optional[UUID] = None


def materialize(
    session: Session,
    request: BookingRequest,
    candidates: Sequence[OccurrenceCandidate],
) -> MaterializedBookings:
    """
    Persist the candidates of a request as pending bookings.

    More than one candidate creates a BookingGroup that owns them all;
    a single candidate is stored without a group.

    Args:
        session: Database session
        request: Originating request (room, owner, title, repeat policy)
        candidates: Expanded occurrences

    Returns:
        MaterializedBookings with the new bookings and optional group

    Raises:
        ValidationError: If there are no candidates
    """
    if not candidates:
        raise ValidationError("No occurrences to book")

    repository = BookingRepository(session)
    recurrence = request.recurrence

    group = None
    if len(candidates) > 1:
        group = repository.add_group(
            BookingGroup(
                room_id=request.room_id,
                owner_id=request.owner_id,
                title=request.title,
                description=request.description,
                repeat_type=RepeatType(recurrence.repeat_type).value,
                repeat_end_date=recurrence.repeat_end_date,
                weekly_schedule=(
                    recurrence.weekly_schedule.to_dict()
                    if recurrence.weekly_schedule is not None
                    else None
                ),
            )
        )

    bookings = [
        Booking(
            room_id=request.room_id,
            group_id=group.id if group else None,
            owner_id=request.owner_id,
            title=request.title,
            description=request.description,
            date=candidate.date,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
            status=BookingStatus.PENDING.value,
        )
        for candidate in candidates
    ]
    repository.insert_many(bookings)

    logger.info(
        f"Materialized {len(bookings)} booking(s) for room {request.room_id}"
        + (f" in group {group.id}" if group else "")
    )
    return MaterializedBookings(bookings=bookings, group=group)


def resolve_targets(session: Session, anchor: Booking, scope: Scope) -> list[Booking]:
    """
    Get the bookings an action on `anchor` addresses.

    Group scope on a booking without a group degrades to single scope.
    """
    if Scope(scope) is Scope.GROUP and anchor.group_id is not None:
        return list(BookingRepository(session).find_group_members(anchor.group_id))
    return [anchor]


def apply_group_action(
    session: Session,
    anchor_id: UUID,
    action: GroupAction,
    scope: Scope = Scope.SINGLE,
) -> GroupActionResult:
    """
    Apply a status change or deletion to one booking or its whole group.

    Args:
        session: Database session
        anchor_id: Booking the caller selected
        action: GroupAction.set_status(...) or GroupAction.delete()
        scope: Scope.SINGLE or Scope.GROUP

    Returns:
        GroupActionResult. For status changes, `affected` holds only the
        bookings whose status actually changed.

    Raises:
        NotFoundError: If the anchor booking does not exist
    """
    repository = BookingRepository(session)
    anchor = repository.get_booking(anchor_id)
    group_id = anchor.group_id
    targets = resolve_targets(session, anchor, scope)

    if action.kind is ActionKind.SET_STATUS:
        changed = [b for b in targets if b.status != action.status.value]
        affected_count = repository.update_status(changed, action.status)
        logger.info(
            f"Set status '{action.status.value}' on {affected_count} of "
            f"{len(targets)} booking(s) (anchor {anchor_id}, scope {Scope(scope).value})"
        )
        return GroupActionResult(affected_count=affected_count, affected=changed, group_id=group_id)

    group = anchor.group
    affected_count = repository.delete_many(targets)
    if group is not None and repository.count_group_members(group.id) == 0:
        repository.delete_group(group)
        logger.info(f"Removed empty booking group {group.id}")

    logger.info(
        f"Deleted {affected_count} booking(s) (anchor {anchor_id}, scope {Scope(scope).value})"
    )
    return GroupActionResult(affected_count=affected_count, affected=targets, group_id=group_id)
