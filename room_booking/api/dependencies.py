"""
FastAPI dependency injection providers.

Provides database sessions, the booking service, and user context.
"""

from typing import Generator, Optional
import logging

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from room_booking.config import get_settings
from room_booking.database import SessionLocal
from room_booking.services.bookings import BookingService
from room_booking.services.notifications import NotificationSink, build_notification_sink

logger = logging.getLogger(__name__)


def get_db_session() -> Generator[Session, None, None]:
    """
    Dependency injection for database session.

    Yields a database session and ensures cleanup. Services commit their
    own units of work.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_notifier(db: Session = Depends(get_db_session)) -> NotificationSink:
    """Dependency injection for the configured notification sink."""
    return build_notification_sink(db, get_settings())


def get_booking_service(
    db: Session = Depends(get_db_session),
    notifier: NotificationSink = Depends(get_notifier),
) -> BookingService:
    """Dependency injection for the booking service."""
    return BookingService(db, notifier=notifier, settings=get_settings())


def get_user_id(
    x_user_id: Optional[str] = Header(None, description="User ID"),
) -> str:
    """
    Extract the acting user from the X-User-ID header.

    Returns:
        User ID, or "default_user" when the header is absent
    """
    return x_user_id or "default_user"


def resolve_user_id(
    request_user_id: Optional[str],
    header_user_id: Optional[str],
) -> str:
    """
    Resolve user ID from request body or header.

    Priority: request body > header > default

    Args:
        request_user_id: User ID from request body
        header_user_id: User ID from header

    Returns:
        Resolved user ID
    """
    return request_user_id or header_user_id or "default_user"
