"""
Human-readable date and time formatting for messages.
"""

from datetime import date, time


def format_date(value: date) -> str:
    """Format a date as 'Mar 1, 2024'."""
    return f"{value:%b} {value.day}, {value.year}"


def format_time(value: time) -> str:
    """Format a time of day as '9:00 AM'."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"

