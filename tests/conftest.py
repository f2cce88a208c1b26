"""
Pytest configuration and fixtures for Room Booking tests.

Provides database session fixtures, sample rooms and booking factories.
"""

from datetime import date, time
from typing import Callable, Generator, Optional
from unittest.mock import MagicMock

import pytest
import sqlalchemy as sa
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from room_booking.config import Settings
from room_booking.models.base import Base
from room_booking.models.bookings import Booking, BookingGroup, BookingStatus, RepeatType
from room_booking.models.notifications import Notification  # noqa: F401
from room_booking.models.rooms import Room
from room_booking.services.bookings import BookingService
from room_booking.services.groups import BookingRequest
from room_booking.services.locking import RoomLocks
from room_booking.services.recurrence import RecurrenceRequest, WeeklySchedule


# Configure SQLite to enforce foreign key constraints in tests
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="function")
def db_engine() -> Generator[Engine, None, None]:
    """
    In-memory SQLite engine shared across threads.

    StaticPool keeps a single connection so API tests (which run endpoints
    in a worker thread) see the same database as the test body.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    try:
        yield engine
    finally:
        with engine.begin() as connection:
            connection.execute(sa.text("PRAGMA foreign_keys=OFF"))
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """
    Create a clean database session for each test.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def settings() -> Settings:
    """Settings with default booking policy and no notification targets."""
    return Settings(
        _env_file=None,
        strict_creation_check=False,
        booking_admin_recipient="",
        notification_webhook_url="",
    )


@pytest.fixture
def notifier() -> MagicMock:
    """Notification sink double recording send() calls."""
    return MagicMock(spec=["send"])


@pytest.fixture
def service(db_session: Session, notifier: MagicMock, settings: Settings) -> BookingService:
    """Booking service with a private lock registry."""
    return BookingService(db_session, notifier=notifier, settings=settings, room_locks=RoomLocks())


@pytest.fixture
def sample_room(db_session: Session) -> Room:
    """
    Create a sample Room for testing.

    Returns:
        Room: A persisted room named "Lecture Hall A"
    """
    room = Room(
        name="Lecture Hall A",
        number="101",
        building="Science Building",
        capacity=40,
        features=["projector", "whiteboard"],
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def other_room(db_session: Session) -> Room:
    """Create a second room in the same building."""
    room = Room(name="Seminar Room", number="102", building="Science Building", capacity=12)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def make_booking(db_session: Session, sample_room: Room) -> Callable[..., Booking]:
    """
    Factory inserting a booking directly, bypassing the service.

    Defaults to an approved 09:00-10:00 booking in sample_room on 2024-03-01.
    """

    def _make(
        day: date = date(2024, 3, 1),
        start: time = time(9, 0),
        end: time = time(10, 0),
        status: BookingStatus = BookingStatus.APPROVED,
        room: Optional[Room] = None,
        owner_id: str = "teacher1",
        title: str = "Algebra",
        group: Optional[BookingGroup] = None,
    ) -> Booking:
        booking = Booking(
            room_id=(room or sample_room).id,
            group_id=group.id if group else None,
            owner_id=owner_id,
            title=title,
            date=day,
            start_time=start,
            end_time=end,
            status=BookingStatus(status).value,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def make_request(sample_room: Room) -> Callable[..., BookingRequest]:
    """Factory for service-level booking requests against sample_room."""

    def _make(
        day: date = date(2024, 3, 1),
        start: Optional[time] = time(9, 0),
        end: Optional[time] = time(10, 0),
        repeat_type: RepeatType = RepeatType.NONE,
        repeat_end_date: Optional[date] = None,
        weekly_schedule: Optional[WeeklySchedule] = None,
        owner_id: str = "teacher1",
        title: str = "Algebra",
        description: Optional[str] = None,
        room: Optional[Room] = None,
    ) -> BookingRequest:
        return BookingRequest(
            room_id=(room or sample_room).id,
            owner_id=owner_id,
            title=title,
            description=description,
            recurrence=RecurrenceRequest(
                date=day,
                repeat_type=repeat_type,
                start_time=start,
                end_time=end,
                repeat_end_date=repeat_end_date,
                weekly_schedule=weekly_schedule,
            ),
        )

    return _make
