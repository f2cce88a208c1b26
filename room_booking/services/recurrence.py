"""
Recurrence expansion service.

Turns a booking request's repeat policy into concrete occurrences:
- none: a single occurrence on the anchor date
- daily: every day from the anchor date through the repeat end date
- weekly: every enabled weekday in that range, each with its own times

Uses python-dateutil rrule for date iteration.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import IntEnum
from typing import Any, Iterator, Mapping, Optional

from dateutil.rrule import rrule, DAILY

from room_booking.exceptions import ValidationError
from room_booking.models.bookings import RepeatType

DEFAULT_MAX_OCCURRENCES = 366


class Weekday(IntEnum):
    """Days of the week, numbered like date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        """
        Look up a weekday by its English name (case-insensitive).

        Raises:
            ValidationError: If the name is not a weekday
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValidationError(f"Unknown weekday: {name!r}") from None


@dataclass(frozen=True)
class DaySchedule:
    """Time slot for one weekday of a weekly schedule."""

    enabled: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None


@dataclass(frozen=True)
class WeeklySchedule:
    """
    Seven-slot weekly schedule indexed by Weekday.

    Each slot says whether the day is booked and with which times.
    """

    slots: tuple[DaySchedule, ...] = field(
        default_factory=lambda: tuple(DaySchedule() for _ in Weekday)
    )

    def __post_init__(self):
        if len(self.slots) != len(Weekday):
            raise ValidationError(
                f"Weekly schedule needs exactly {len(Weekday)} days, got {len(self.slots)}"
            )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "WeeklySchedule":
        """
        Build a schedule from a weekday-name mapping.

        Values may be DaySchedule instances or dicts with
        'enabled', 'start_time' and 'end_time' keys. Missing days are disabled.

        Raises:
            ValidationError: If a key is not a weekday name
        """
        slots = [DaySchedule() for _ in Weekday]
        for name, value in mapping.items():
            day = Weekday.from_name(name)
            if not isinstance(value, DaySchedule):
                value = DaySchedule(
                    enabled=bool(value.get("enabled", False)),
                    start_time=value.get("start_time"),
                    end_time=value.get("end_time"),
                )
            slots[day] = value
        return cls(slots=tuple(slots))

    def __getitem__(self, day: Weekday) -> DaySchedule:
        return self.slots[day]

    @property
    def enabled_days(self) -> list[Weekday]:
        """Enabled weekdays in week order."""
        return [day for day in Weekday if self.slots[day].enabled]

    def to_dict(self) -> dict[str, dict]:
        """Serialize to a JSON-compatible weekday-name mapping."""
        return {
            day.name.lower(): {
                "enabled": slot.enabled,
                "start_time": slot.start_time.isoformat() if slot.start_time else None,
                "end_time": slot.end_time.isoformat() if slot.end_time else None,
            }
            for day, slot in zip(Weekday, self.slots)
        }


@dataclass(frozen=True)
class OccurrenceCandidate:
    """A concrete (date, start, end) interval that has not been persisted."""

    date: date
    start_time: time
    end_time: time


@dataclass(frozen=True)
class RecurrenceRequest:
    """
    Repeat policy of a booking request.

    `start_time`/`end_time` apply to 'none' and 'daily'; 'weekly' takes its
    times from `weekly_schedule`.
    """

    date: date
    repeat_type: RepeatType = RepeatType.NONE
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    repeat_end_date: Optional[date] = None
    weekly_schedule: Optional[WeeklySchedule] = None


def validate_time_range(start_time: Optional[time], end_time: Optional[time]) -> None:
    """
    Check a time-of-day pair.

    Comparison is on time-of-day only; the calendar date is supplied
    separately by each occurrence.

    Raises:
        ValidationError: If a time is missing or end is not after start
    """
    if start_time is None or end_time is None:
        raise ValidationError("Start time and end time are required")
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")


def validate_recurrence(request: RecurrenceRequest) -> None:
    """
    Validate a recurrence request without expanding it.

    Raises:
        ValidationError: On any malformed or incomplete field
    """
    repeat_type = RepeatType(request.repeat_type)

    if repeat_type is not RepeatType.NONE:
        if request.repeat_end_date is None:
            raise ValidationError("Repeat end date is required for repeating bookings")
        if request.repeat_end_date <= request.date:
            raise ValidationError("Repeat end date must be after the booking date")

    if repeat_type is RepeatType.WEEKLY:
        schedule = request.weekly_schedule
        if schedule is None or not schedule.enabled_days:
            raise ValidationError("No day selected for weekly booking")
        for day in schedule.enabled_days:
            slot = schedule[day]
            try:
                validate_time_range(slot.start_time, slot.end_time)
            except ValidationError as e:
                raise ValidationError(f"{day.name.capitalize()}: {e.message}") from None
    else:
        validate_time_range(request.start_time, request.end_time)


class RecurrenceExpansion:
    """
    Lazy, finite, restartable sequence of occurrences.

    Each iteration re-runs the expansion from the start, so the same
    request always yields the same ordered candidates.
    """

    def __init__(self, request: RecurrenceRequest):
        self._request = request
        self._repeat_type = RepeatType(request.repeat_type)

    @property
    def request(self) -> RecurrenceRequest:
        return self._request

    def _rule(self) -> rrule:
        request = self._request
        kwargs = {}
        if self._repeat_type is RepeatType.WEEKLY:
            kwargs["byweekday"] = [int(day) for day in request.weekly_schedule.enabled_days]
        return rrule(
            DAILY,
            dtstart=datetime.combine(request.date, time.min),
            until=datetime.combine(request.repeat_end_date, time.min),
            **kwargs,
        )

    def __iter__(self) -> Iterator[OccurrenceCandidate]:
        request = self._request

        if self._repeat_type is RepeatType.NONE:
            yield OccurrenceCandidate(request.date, request.start_time, request.end_time)
            return

        for occurrence in self._rule():
            day = occurrence.date()
            if self._repeat_type is RepeatType.WEEKLY:
                slot = request.weekly_schedule[Weekday(day.weekday())]
                yield OccurrenceCandidate(day, slot.start_time, slot.end_time)
            else:
                yield OccurrenceCandidate(day, request.start_time, request.end_time)

    def count(self) -> int:
        """Number of occurrences without materializing them."""
        if self._repeat_type is RepeatType.NONE:
            return 1
        return self._rule().count()


def expand(
    request: RecurrenceRequest,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> RecurrenceExpansion:
    """
    Expand a recurrence request into its occurrences.

    Validation runs immediately; the returned expansion is iterated lazily.

    Args:
        request: Anchor date, repeat policy and times
        max_occurrences: Safety limit on the number of occurrences

    Returns:
        RecurrenceExpansion yielding OccurrenceCandidate objects by ascending date

    Raises:
        ValidationError: If the request is malformed, yields nothing,
            or exceeds max_occurrences
    """
    validate_recurrence(request)
    expansion = RecurrenceExpansion(request)

    total = expansion.count()
    if total == 0:
        raise ValidationError("Repeat range contains none of the selected days")
    if total > max_occurrences:
        raise ValidationError(
            f"Request expands to {total} occurrences; the limit is {max_occurrences}"
        )

    return expansion
