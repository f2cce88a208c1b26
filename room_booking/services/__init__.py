"""
Service layer for Room Booking.

Provides the booking engine and room management:
- Recurrence expansion (dateutil rrule)
- Conflict detection
- Booking groups and group-scope actions
- Booking lifecycle (create, decide, edit, delete)
- Notification delivery
"""

from room_booking.services.recurrence import (
    DaySchedule,
    OccurrenceCandidate,
    RecurrenceExpansion,
    RecurrenceRequest,
    Weekday,
    WeeklySchedule,
    expand,
    validate_recurrence,
    validate_time_range,
)

from room_booking.services.conflicts import (
    blocking_statuses,
    find_conflicts,
    overlaps,
)

from room_booking.services.groups import (
    BookingRequest,
    GroupAction,
    GroupActionResult,
    Scope,
    apply_group_action,
    materialize,
    resolve_targets,
)

from room_booking.services.bookings import (
    BookingPatch,
    BookingService,
    CreatedBooking,
)

from room_booking.services.notifications import (
    DatabaseNotificationSink,
    FanOutNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
    build_notification_sink,
)

from room_booking.services.repository import BookingRepository, transaction

from room_booking.services.rooms import (
    create_room,
    get_room,
    list_rooms,
    update_room,
)

__all__ = [
    # Recurrence
    "DaySchedule",
    "OccurrenceCandidate",
    "RecurrenceExpansion",
    "RecurrenceRequest",
    "Weekday",
    "WeeklySchedule",
    "expand",
    "validate_recurrence",
    "validate_time_range",
    # Conflicts
    "blocking_statuses",
    "find_conflicts",
    "overlaps",
    # Groups
    "BookingRequest",
    "GroupAction",
    "GroupActionResult",
    "Scope",
    "apply_group_action",
    "materialize",
    "resolve_targets",
    # Bookings
    "BookingPatch",
    "BookingService",
    "CreatedBooking",
    # Notifications
    "DatabaseNotificationSink",
    "FanOutNotificationSink",
    "NotificationSink",
    "WebhookNotificationSink",
    "build_notification_sink",
    # Storage
    "BookingRepository",
    "transaction",
    # Rooms
    "create_room",
    "get_room",
    "list_rooms",
    "update_room",
]
