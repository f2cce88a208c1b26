"""
Booking storage repository.

SQLAlchemy implementation of the storage collaborator used by the
booking engine. All writes happen inside `transaction()`, which commits
on success and rolls back everything on failure, so a group-wide write
is either fully visible or not at all.

Concurrency contract:
    Conflict checks and the write they guard must run in one transaction
    while the room is locked. `lock_room()` issues SELECT ... FOR UPDATE on
    the room row (effective on PostgreSQL; a no-op on SQLite, where callers
    also hold the in-process lock from `room_booking.services.locking`).
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Collection, Generator, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, and_, func, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from room_booking.exceptions import NotFoundError, StorageError
from room_booking.models.bookings import Booking, BookingGroup, BookingStatus
from room_booking.models.rooms import Room

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """
    Run a unit of work atomically.

    Commits on success. On a storage failure the session is rolled back and
    StorageError is raised; any other exception also rolls back and propagates.

    Raises:
        StorageError: If the database rejects or cannot perform the write
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Storage failure, transaction rolled back: {e}")
        raise StorageError("Storage operation failed", original_error=e) from e
    except Exception:
        session.rollback()
        raise


class BookingRepository:
    """
    Data access for bookings, groups and rooms.

    Methods only flush; the surrounding `transaction()` decides the commit.
    """

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def find_one(self, booking_id: UUID) -> Optional[Booking]:
        """Get a booking by ID."""
        return self._session.get(Booking, booking_id)

    def get_booking(self, booking_id: UUID) -> Booking:
        """
        Get a booking by ID.

        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = self.find_one(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def find_by_room(
        self,
        room_id: UUID,
        statuses: Iterable[str],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        exclude_ids: Collection[UUID] = (),
    ) -> Sequence[Booking]:
        """
        Get bookings of a room with one of the given statuses.

        Args:
            room_id: Room to query
            statuses: Status values to include
            date_from: Earliest booking date (inclusive)
            date_to: Latest booking date (inclusive)
            exclude_ids: Bookings to leave out

        Returns:
            Bookings ordered by date and start time
        """
        conditions = [
            Booking.room_id == room_id,
            Booking.status.in_([BookingStatus(s).value for s in statuses]),
        ]
        if date_from is not None:
            conditions.append(Booking.date >= date_from)
        if date_to is not None:
            conditions.append(Booking.date <= date_to)
        if exclude_ids:
            conditions.append(Booking.id.notin_(list(exclude_ids)))

        stmt = (
            select(Booking)
            .where(and_(*conditions))
            .order_by(Booking.date, Booking.start_time)
        )
        return self._session.scalars(stmt).all()

    def find_group_members(self, group_id: UUID) -> Sequence[Booking]:
        """Get every booking of a group ordered by date."""
        stmt = (
            select(Booking)
            .where(Booking.group_id == group_id)
            .order_by(Booking.date, Booking.start_time)
        )
        return self._session.scalars(stmt).all()

    def count_group_members(self, group_id: UUID) -> int:
        """Count the bookings currently in a group."""
        stmt = select(func.count()).select_from(Booking).where(Booking.group_id == group_id)
        return self._session.scalar(stmt) or 0

    def list_bookings(
        self,
        room_id: Optional[UUID] = None,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[Booking], int]:
        """
        List bookings with optional filters.

        Returns:
            Tuple of (page of bookings ordered by date, total matching count)
        """
        conditions = []
        if room_id is not None:
            conditions.append(Booking.room_id == room_id)
        if owner_id is not None:
            conditions.append(Booking.owner_id == owner_id)
        if status is not None:
            conditions.append(Booking.status == BookingStatus(status).value)
        if date_from is not None:
            conditions.append(Booking.date >= date_from)
        if date_to is not None:
            conditions.append(Booking.date <= date_to)

        where = and_(true(), *conditions)
        total = self._session.scalar(select(func.count()).select_from(Booking).where(where)) or 0
        stmt = (
            select(Booking)
            .where(where)
            .order_by(Booking.date, Booking.start_time)
            .limit(limit)
            .offset(offset)
        )
        return self._session.scalars(stmt).all(), total

    def insert_many(self, bookings: Sequence[Booking]) -> list[UUID]:
        """Add bookings in one flush and return their IDs."""
        self._session.add_all(bookings)
        self._session.flush()
        return [booking.id for booking in bookings]

    def add_group(self, group: BookingGroup) -> BookingGroup:
        """Add a booking group and flush to assign its ID."""
        self._session.add(group)
        self._session.flush()
        return group

    def delete_group(self, group: BookingGroup) -> None:
        """Delete a booking group row."""
        self._session.expire(group, ["bookings"])
        self._session.delete(group)
        self._session.flush()

    def update_group_details(
        self,
        group_id: UUID,
        title: str,
        description: Optional[str],
    ) -> int:
        """
        Set title and description on a group and every one of its bookings.

        Returns:
            Number of member bookings updated
        """
        group = self._session.get(BookingGroup, group_id)
        if group is not None:
            group.title = title
            group.description = description

        members = self.find_group_members(group_id)
        for booking in members:
            booking.title = title
            booking.description = description
        self._session.flush()
        return len(members)

    def update_status(self, bookings: Sequence[Booking], status: BookingStatus) -> int:
        """
        Set the status of the given bookings.

        Returns:
            Number of bookings whose status actually changed
        """
        new_status = BookingStatus(status).value
        modified = 0
        for booking in bookings:
            if booking.status != new_status:
                booking.status = new_status
                modified += 1
        self._session.flush()
        return modified

    def delete_many(self, bookings: Sequence[Booking]) -> int:
        """
        Delete the given bookings.

        Returns:
            Number of bookings deleted
        """
        for booking in bookings:
            self._session.delete(booking)
        self._session.flush()
        return len(bookings)

    def lock_room(self, room_id: UUID) -> Room:
        """
        Load a room with a row lock held until the transaction ends.

        Raises:
            NotFoundError: If the room does not exist
        """
        stmt = select(Room).where(Room.id == room_id).with_for_update()
        room = self._session.scalar(stmt)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        return room
