"""
Room management service.

Provides functions for:
- Registering rooms
- Looking up and listing rooms
- Updating room details
"""

import logging
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from room_booking.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from room_booking.models.rooms import Room
from room_booking.services.repository import transaction

logger = logging.getLogger(__name__)

# Column limits of the rooms table
FIELD_LIMITS = {"name": 60, "number": 20, "building": 100}

UPDATABLE_FIELDS = ("name", "number", "building", "capacity", "features")


def _validate_room_fields(fields: dict[str, Any]) -> None:
    for key, limit in FIELD_LIMITS.items():
        if key not in fields:
            continue
        value = fields[key]
        if not value or not str(value).strip():
            raise ValidationError(f"Room {key} is required")
        if len(value) > limit:
            raise ValidationError(f"Room {key} cannot be more than {limit} characters")

    if "capacity" in fields and (fields["capacity"] is None or fields["capacity"] < 1):
        raise ValidationError("Room capacity must be at least 1")


def _is_duplicate(error: StorageError) -> bool:
    return isinstance(error.original_error, IntegrityError)


def _find_by_location(
    session: Session,
    building: str,
    number: str,
) -> Optional[Room]:
    stmt = select(Room).where(Room.building == building, Room.number == number)
    return session.scalar(stmt)


def create_room(
    session: Session,
    name: str,
    number: str,
    building: str,
    capacity: int,
    features: Optional[Sequence[str]] = None,
) -> Room:
    """
    Register a room.

    Args:
        session: Database session
        name: Display name
        number: Room number within its building
        building: Building name
        capacity: Number of seats (at least 1)
        features: Feature tags such as 'projector'

    Returns:
        The created Room

    Raises:
        ValidationError: If a field is missing or out of range
        ConflictError: If the building already has a room with this number
    """
    _validate_room_fields(
        {"name": name, "number": number, "building": building, "capacity": capacity}
    )
    if _find_by_location(session, building, number) is not None:
        raise ConflictError(f"Room {number} already exists in {building}")

    room = Room(
        name=name,
        number=number,
        building=building,
        capacity=capacity,
        features=list(features or []),
    )
    try:
        with transaction(session):
            session.add(room)
    except StorageError as e:
        if _is_duplicate(e):
            raise ConflictError(f"Room {number} already exists in {building}", original_error=e) from e
        raise

    logger.info(f"Created room {building}/{number} ({room.id})")
    return room


def get_room(session: Session, room_id: UUID) -> Room:
    """
    Get a room by ID.

    Raises:
        NotFoundError: If the room does not exist
    """
    room = session.get(Room, room_id)
    if room is None:
        raise NotFoundError(f"Room {room_id} not found")
    return room


def list_rooms(session: Session, building: Optional[str] = None) -> Sequence[Room]:
    """List rooms ordered by building and number, optionally for one building."""
    stmt = select(Room).order_by(Room.building, Room.number)
    if building is not None:
        stmt = stmt.where(Room.building == building)
    return session.scalars(stmt).all()


def update_room(session: Session, room_id: UUID, **changes: Any) -> Room:
    """
    Update room details.

    Only name, number, building, capacity and features may change;
    None values are ignored.

    Raises:
        NotFoundError: If the room does not exist
        ValidationError: If a new value is invalid or a field is unknown
        ConflictError: If the new building/number pair is taken
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update room field(s): {', '.join(sorted(unknown))}")

    changes = {key: value for key, value in changes.items() if value is not None}
    _validate_room_fields(changes)

    room = get_room(session, room_id)
    building = changes.get("building", room.building)
    number = changes.get("number", room.number)
    existing = _find_by_location(session, building, number)
    if existing is not None and existing.id != room.id:
        raise ConflictError(f"Room {number} already exists in {building}")

    try:
        with transaction(session):
            for key, value in changes.items():
                setattr(room, key, list(value) if key == "features" else value)
    except StorageError as e:
        if _is_duplicate(e):
            raise ConflictError(f"Room {number} already exists in {building}", original_error=e) from e
        raise

    logger.info(f"Updated room {room_id}: {', '.join(sorted(changes)) or 'no changes'}")
    return room
