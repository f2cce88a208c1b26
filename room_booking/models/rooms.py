"""
Room model.

Entities:
- Room: A bookable classroom, uniquely identified by building and number
"""

from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from room_booking.models.base import BaseModel, get_json_type

if TYPE_CHECKING:
    from room_booking.models.bookings import Booking


class Room(BaseModel):
    """
    Represents a shared classroom that can be reserved.

    Key features:
    - Unique (building, number) pair
    - Capacity in seats (at least 1)
    - Free-form feature list (projector, whiteboard, ...)
    """

    __tablename__ = "rooms"

    name: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        doc="Display name (e.g., 'Lecture Hall A')"
    )

    number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Room number within its building"
    )

    building: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Building the room belongs to"
    )

    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Number of seats"
    )

    features: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="Room features (e.g., ['projector', 'whiteboard'])"
    )

    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="room",
        doc="Bookings for this room"
    )

    __table_args__ = (
        UniqueConstraint("building", "number", name="uq_room_building_number"),
        CheckConstraint("capacity >= 1", name="ck_room_capacity_positive"),
        Index("idx_room_building", "building"),
    )

    @property
    def label(self) -> str:
        """Name used in user-facing messages."""
        return self.name or self.number or "a room"

    def __repr__(self) -> str:
        """String representation showing building and number."""
        return f"<Room(building='{self.building}', number='{self.number}', capacity={self.capacity})>"
