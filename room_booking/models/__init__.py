"""
SQLAlchemy models for Room Booking.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

from room_booking.models.base import Base, BaseModel, GUID, get_json_type

# Import all models (must be imported for Alembic autogenerate)
from room_booking.models.rooms import Room
from room_booking.models.bookings import Booking, BookingGroup, BookingStatus, RepeatType
from room_booking.models.notifications import Notification, NotificationKind

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "get_json_type",
    # Room model
    "Room",
    # Booking models
    "Booking",
    "BookingGroup",
    "BookingStatus",
    "RepeatType",
    # Notification model
    "Notification",
    "NotificationKind",
]
