"""
Booking and BookingGroup models.

Entities:
- Booking: One concrete dated, timed reservation of a room (an occurrence)
- BookingGroup: The set of bookings generated from one recurring request
"""

import datetime as dt
import uuid
from enum import Enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Date, Time, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from room_booking.models.base import BaseModel, get_json_type

if TYPE_CHECKING:
    from room_booking.models.rooms import Room


class BookingStatus(str, Enum):
    """Lifecycle states of a booking."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RepeatType(str, Enum):
    """Repeat policy of a booking request."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


class BookingGroup(BaseModel):
    """
    Owns every booking created from a single recurring request.

    Group-scope approvals, rejections and deletions address exactly the
    bookings in `bookings`. Members share room, owner, title, description
    and repeat policy; they differ only in date, times and status.
    """

    __tablename__ = "booking_groups"

    room_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("rooms.id"),
        nullable=False,
        doc="Room every member reserves"
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who requested the bookings"
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Title shared by all members"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Description shared by all members"
    )

    repeat_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RepeatType.NONE.value,
        doc="Repeat policy: 'none', 'daily', 'weekly'"
    )

    repeat_end_date: Mapped[Optional[dt.date]] = mapped_column(
        Date,
        nullable=True,
        doc="Last date (inclusive) the request repeats on"
    )

    weekly_schedule: Mapped[Optional[dict]] = mapped_column(
        get_json_type(),
        nullable=True,
        doc="Per-weekday schedule snapshot for weekly groups"
    )

    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="Booking.date",
        doc="Member bookings ordered by date"
    )

    __table_args__ = (
        Index("idx_booking_group_room", "room_id"),
        Index("idx_booking_group_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        """String representation showing title and repeat policy."""
        return f"<BookingGroup(title='{self.title}', repeat_type='{self.repeat_type}')>"


class Booking(BaseModel):
    """
    Represents one reservation of a room on a date between two times of day.

    Key features:
    - Time-of-day interval anchored to a calendar date (end > start)
    - Status workflow (pending -> approved/rejected)
    - Optional membership in a BookingGroup
    """

    __tablename__ = "bookings"

    room_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("rooms.id"),
        nullable=False,
        doc="Room being reserved"
    )

    group_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("booking_groups.id"),
        nullable=True,
        doc="Group this booking belongs to (NULL for single bookings)"
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who requested the booking"
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Booking title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Booking description"
    )

    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        doc="Calendar date of the booking"
    )

    start_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
        doc="Start time of day"
    )

    end_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
        doc="End time of day (strictly after start_time)"
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=BookingStatus.PENDING.value,
        doc="Booking status: 'pending', 'approved', 'rejected'"
    )

    room: Mapped["Room"] = relationship(
        "Room",
        back_populates="bookings",
        doc="Room being reserved"
    )

    group: Mapped[Optional["BookingGroup"]] = relationship(
        "BookingGroup",
        back_populates="bookings",
        doc="Group this booking belongs to"
    )

    # Indexes for conflict queries (critical for performance)
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_booking_time_order"),
        Index("idx_booking_room_date_status", "room_id", "date", "status"),
        Index("idx_booking_owner_status", "owner_id", "status"),
        Index("idx_booking_group", "group_id"),
    )

    def __repr__(self) -> str:
        """String representation showing date, times and status."""
        return (
            f"<Booking(room_id={self.room_id}, date={self.date}, "
            f"{self.start_time}-{self.end_time}, status='{self.status}')>"
        )
