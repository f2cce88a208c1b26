"""
Room Booking API module.

Provides FastAPI HTTP endpoints for rooms and bookings.
"""

from room_booking.api.main import app, run_server

__all__ = ["app", "run_server"]
