"""
Unit tests for Room, Booking, BookingGroup and Notification models.

Tests:
- GUID primary keys and audit timestamps
- Table constraints (time order, unique room number, capacity)
- Relationships between rooms, groups and bookings
"""

import uuid
from datetime import date, time

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from room_booking.models import (
    Booking,
    BookingGroup,
    BookingStatus,
    Notification,
    NotificationKind,
    RepeatType,
    Room,
)


class TestRoom:
    """Test the Room model."""

    def test_guid_and_timestamps(self, sample_room: Room):
        assert isinstance(sample_room.id, uuid.UUID)
        assert sample_room.created_at is not None
        assert sample_room.updated_at is None

    def test_features_json(self, sample_room: Room):
        assert sample_room.features == ["projector", "whiteboard"]

    def test_label_prefers_name(self):
        assert Room(name="Lecture Hall A", number="101").label == "Lecture Hall A"
        assert Room(name="", number="101").label == "101"
        assert Room(name="", number="").label == "a room"

    def test_unique_building_number(self, db_session: Session, sample_room: Room):
        db_session.add(Room(name="Dup", number="101", building="Science Building", capacity=5))

        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_capacity_check(self, db_session: Session):
        db_session.add(Room(name="Closet", number="0", building="Annex", capacity=0))

        with pytest.raises(IntegrityError):
            db_session.commit()


class TestBooking:
    """Test the Booking model."""

    def test_defaults(self, db_session: Session, sample_room: Room):
        booking = Booking(
            room_id=sample_room.id,
            owner_id="teacher1",
            title="Algebra",
            date=date(2024, 3, 1),
            start_time=time(9, 0),
            end_time=time(10, 0),
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)

        assert booking.status == BookingStatus.PENDING.value
        assert booking.group_id is None
        assert booking.room is sample_room
        assert booking.start_time == time(9, 0)

    def test_end_must_follow_start(self, db_session: Session, sample_room: Room):
        db_session.add(
            Booking(
                room_id=sample_room.id,
                owner_id="teacher1",
                title="Backwards",
                date=date(2024, 3, 1),
                start_time=time(10, 0),
                end_time=time(9, 0),
            )
        )

        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_room_must_exist(self, db_session: Session):
        db_session.add(
            Booking(
                room_id=uuid.uuid4(),
                owner_id="teacher1",
                title="Nowhere",
                date=date(2024, 3, 1),
                start_time=time(9, 0),
                end_time=time(10, 0),
            )
        )

        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_repr(self, make_booking):
        booking = make_booking()

        assert "status='approved'" in repr(booking)


class TestBookingGroup:
    """Test the BookingGroup model."""

    def test_members_ordered_by_date(self, db_session: Session, sample_room: Room, make_booking):
        group = BookingGroup(
            room_id=sample_room.id,
            owner_id="teacher1",
            title="Algebra",
            repeat_type=RepeatType.DAILY.value,
            repeat_end_date=date(2024, 3, 3),
        )
        db_session.add(group)
        db_session.commit()

        make_booking(day=date(2024, 3, 3), group=group)
        make_booking(day=date(2024, 3, 1), group=group)
        db_session.refresh(group)

        assert [b.date for b in group.bookings] == [date(2024, 3, 1), date(2024, 3, 3)]
        assert group.bookings[0].group is group


class TestNotification:
    """Test the Notification model."""

    def test_defaults(self, db_session: Session):
        notification = Notification(
            recipient_id="teacher1",
            kind=NotificationKind.BOOKING_APPROVED.value,
            title="Booking Approved",
            message="Approved",
        )
        db_session.add(notification)
        db_session.commit()

        assert notification.is_read is False
        assert notification.related_booking_id is None
        assert "booking_approved" in repr(notification)
