"""
Pydantic request and response models for the Room Booking API.
"""

import datetime as dt
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from room_booking.models.bookings import RepeatType
from room_booking.services.bookings import BookingPatch
from room_booking.services.groups import BookingRequest
from room_booking.services.recurrence import DaySchedule, RecurrenceRequest, WeeklySchedule


# =============================================================================
# Request Models
# =============================================================================


class CreateRoomRequest(BaseModel):
    """Request to register a room."""

    name: str = Field(..., min_length=1, max_length=60, examples=["Lecture Hall A"])
    number: str = Field(..., min_length=1, max_length=20, examples=["101"])
    building: str = Field(..., min_length=1, max_length=100, examples=["Science Building"])
    capacity: int = Field(..., ge=1, description="Number of seats")
    features: list[str] = Field(default_factory=list, examples=[["projector", "whiteboard"]])


class UpdateRoomRequest(BaseModel):
    """Request to change room details; omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=60)
    number: Optional[str] = Field(None, min_length=1, max_length=20)
    building: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, ge=1)
    features: Optional[list[str]] = None


class DayScheduleModel(BaseModel):
    """Time slot for one weekday of a weekly booking."""

    enabled: bool = False
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None


class CreateBookingRequest(BaseModel):
    """
    Request to book a room once or repeatedly.

    'none' and 'daily' use start_time/end_time; 'weekly' uses
    weekly_schedule, keyed by lowercase weekday name.
    """

    room_id: UUID = Field(..., description="Room to book")
    title: str = Field(..., max_length=100, description="Booking title")
    description: Optional[str] = Field(None, max_length=500)
    date: dt.date = Field(..., description="First (or only) booking date")
    repeat_type: Literal["none", "daily", "weekly"] = Field(
        default="none",
        description="Repeat policy",
    )
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    repeat_end_date: Optional[dt.date] = Field(
        None,
        description="Last date the booking repeats on (inclusive)",
    )
    weekly_schedule: Optional[dict[str, DayScheduleModel]] = Field(
        None,
        examples=[{"monday": {"enabled": True, "start_time": "09:00", "end_time": "10:00"}}],
    )
    user_id: Optional[str] = Field(
        None,
        description="User making request (defaults to X-User-ID header)",
    )

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please provide a booking title")
        return v.strip()

    def to_booking_request(self, owner_id: str) -> BookingRequest:
        """Convert to the service-layer request."""
        schedule = None
        if self.weekly_schedule is not None:
            schedule = WeeklySchedule.from_mapping(
                {
                    name: DaySchedule(
                        enabled=slot.enabled,
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                    )
                    for name, slot in self.weekly_schedule.items()
                }
            )
        return BookingRequest(
            room_id=self.room_id,
            owner_id=owner_id,
            title=self.title,
            description=self.description,
            recurrence=RecurrenceRequest(
                date=self.date,
                repeat_type=RepeatType(self.repeat_type),
                start_time=self.start_time,
                end_time=self.end_time,
                repeat_end_date=self.repeat_end_date,
                weekly_schedule=schedule,
            ),
        )


class DecideBookingRequest(BaseModel):
    """Admin decision on a booking."""

    status: Literal["approved", "rejected"]
    scope: Literal["single", "group"] = Field(
        default="group",
        description="Apply to this booking only or to its whole group",
    )
    notify_user: bool = Field(default=True, description="Notify the booking owner")


class UpdateBookingRequest(BaseModel):
    """Request to edit one booking; omitted fields are unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None

    def to_patch(self) -> BookingPatch:
        return BookingPatch(
            title=self.title,
            description=self.description,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
        )


# =============================================================================
# Response Models
# =============================================================================


class RoomResponse(BaseModel):
    """A bookable room."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    number: str
    building: str
    capacity: int
    features: list[str] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class BookingResponse(BaseModel):
    """One dated, timed reservation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    room_id: UUID
    group_id: Optional[UUID] = None
    owner_id: str
    title: str
    description: Optional[str] = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    status: Literal["pending", "approved", "rejected"]
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class AvailabilityResponse(BaseModel):
    """Result of an availability check."""

    available: bool = Field(..., description="True when nothing blocks the request")
    conflicts: list[BookingResponse] = Field(
        default_factory=list,
        description="Existing bookings that block the request",
    )


class CreateBookingResponse(BaseModel):
    """Bookings created for one request."""

    group_id: Optional[UUID] = Field(None, description="Set when more than one booking was created")
    count: int = Field(..., description="Number of bookings created")
    bookings: list[BookingResponse]


class BookingListResponse(BaseModel):
    """Response for listing bookings."""

    bookings: list[BookingResponse] = Field(..., description="Page of bookings")
    total: int = Field(..., description="Total number of matching bookings")
    limit: int = Field(..., description="Limit used in query")
    offset: int = Field(..., description="Offset used in query")


class GroupActionResponse(BaseModel):
    """Outcome of a decision or deletion."""

    booking_id: UUID = Field(..., description="Booking the action was requested on")
    scope: Literal["single", "group"]
    affected_count: int = Field(..., description="Number of bookings changed or removed")
    group_id: Optional[UUID] = None


class ErrorResponse(BaseModel):
    """Error information for failed requests."""

    error_type: Literal[
        "validation_error",
        "conflict",
        "not_found",
        "storage_error",
        "http_error",
        "internal_error",
    ] = Field(..., description="Type of error")
    message: str = Field(..., description="Human-readable error message")
    conflicts: Optional[list[BookingResponse]] = Field(
        None,
        description="Blocking bookings (conflict errors only)",
    )
    retryable: bool = Field(default=False, description="Whether request can be retried")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
