"""
Notification model.

Entities:
- Notification: A message emitted as a side effect of a booking transition
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from room_booking.models.base import BaseModel, GUID


class NotificationKind(str, Enum):
    """Notification type tags."""

    BOOKING_REQUEST = "booking_request"
    BOOKING_APPROVED = "booking_approved"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_CANCELLED = "booking_cancelled"
    ROOM_UPDATE = "room_update"
    SYSTEM = "system"


class Notification(BaseModel):
    """
    Stores a notification for a user.

    Written only by the notification sink; related booking and group ids
    are plain references because the booking may be deleted afterwards.
    """

    __tablename__ = "notifications"

    recipient_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who receives the notification"
    )

    sender_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="User whose action triggered the notification"
    )

    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Notification type, see NotificationKind"
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Short title"
    )

    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Message body (up to 500 characters)"
    )

    related_booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID,
        nullable=True,
        doc="Booking that triggered the notification"
    )

    related_group_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID,
        nullable=True,
        doc="Booking group that triggered the notification"
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the recipient has read the notification"
    )

    __table_args__ = (
        Index("idx_notification_recipient_read", "recipient_id", "is_read", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation showing kind and recipient."""
        return f"<Notification(kind='{self.kind}', recipient_id='{self.recipient_id}')>"
