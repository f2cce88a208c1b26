"""
Unit tests for API request and response models.
"""

import uuid
from datetime import date, time

import pytest
from pydantic import ValidationError

from room_booking.api.models import (
    CreateBookingRequest,
    DecideBookingRequest,
    ErrorResponse,
    UpdateBookingRequest,
)
from room_booking.models.bookings import RepeatType
from room_booking.services.recurrence import Weekday


ROOM_ID = uuid.uuid4()


class TestCreateBookingRequest:
    """Test CreateBookingRequest validation and conversion."""

    def test_defaults_to_single_booking(self):
        request = CreateBookingRequest(room_id=ROOM_ID, title="Algebra", date=date(2024, 3, 1))

        assert request.repeat_type == "none"
        assert request.weekly_schedule is None

    def test_title_is_stripped(self):
        request = CreateBookingRequest(room_id=ROOM_ID, title="  Algebra  ", date=date(2024, 3, 1))

        assert request.title == "Algebra"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError, match="Please provide a booking title"):
            CreateBookingRequest(room_id=ROOM_ID, title="   ", date=date(2024, 3, 1))

    def test_long_title_rejected(self):
        with pytest.raises(ValidationError):
            CreateBookingRequest(room_id=ROOM_ID, title="x" * 101, date=date(2024, 3, 1))

    def test_unknown_repeat_type_rejected(self):
        with pytest.raises(ValidationError):
            CreateBookingRequest(
                room_id=ROOM_ID, title="Algebra", date=date(2024, 3, 1), repeat_type="monthly"
            )

    def test_to_booking_request(self):
        request = CreateBookingRequest(
            room_id=ROOM_ID,
            title="Algebra",
            date=date(2024, 3, 1),
            repeat_type="weekly",
            repeat_end_date=date(2024, 3, 31),
            weekly_schedule={"wednesday": {"enabled": True, "start_time": "14:00", "end_time": "15:30"}},
        )

        converted = request.to_booking_request("teacher1")

        assert converted.room_id == ROOM_ID
        assert converted.owner_id == "teacher1"
        assert converted.recurrence.repeat_type is RepeatType.WEEKLY
        assert converted.recurrence.repeat_end_date == date(2024, 3, 31)
        schedule = converted.recurrence.weekly_schedule
        wednesday = schedule[Weekday.WEDNESDAY]
        assert wednesday.enabled is True
        assert wednesday.start_time == time(14, 0)
        assert wednesday.end_time == time(15, 30)
        assert schedule.enabled_days == [Weekday.WEDNESDAY]


class TestDecideBookingRequest:
    def test_defaults_to_group_scope(self):
        request = DecideBookingRequest(status="approved")

        assert request.scope == "group"
        assert request.notify_user is True

    def test_pending_is_not_a_decision(self):
        with pytest.raises(ValidationError):
            DecideBookingRequest(status="pending")


class TestUpdateBookingRequest:
    def test_to_patch_keeps_omitted_fields_empty(self):
        patch = UpdateBookingRequest(start_time="08:00").to_patch()

        assert patch.start_time == time(8, 0)
        assert patch.title is None
        assert patch.date is None


class TestErrorResponse:
    def test_excludes_empty_conflicts(self):
        body = ErrorResponse(error_type="not_found", message="Booking not found")

        assert body.model_dump(exclude_none=True) == {
            "error_type": "not_found",
            "message": "Booking not found",
            "retryable": False,
        }

    def test_unknown_error_type_rejected(self):
        with pytest.raises(ValidationError):
            ErrorResponse(error_type="oops", message="x")
