"""Date and time utility functions.

All persisted instants are epoch milliseconds. Display happens in the
event's local time zone (UTC+08:00).
"""
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

EVENT_TZ = timezone(timedelta(hours=8))


def now_millis() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


def to_millis(value: datetime) -> int:
    """
    Convert a datetime to epoch milliseconds.

    Args:
        value: datetime; naive values are taken as event local time

    Returns:
        int: epoch milliseconds
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=EVENT_TZ)
    return int(value.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware datetime in event local time."""
    return datetime.fromtimestamp(millis / 1000, tz=EVENT_TZ)


def format_millis(millis: Optional[int], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """
    Format epoch milliseconds for display.

    Returns:
        Formatted string, or "-" when the value is missing or unusable
    """
    if millis is None:
        return "-"
    try:
        return from_millis(int(millis)).strftime(fmt)
    except (TypeError, ValueError, OverflowError, OSError):
        return "-"


def parse_deadline(date_str: str, time_str: str = "18:00") -> int:
    """
    Parse a deadline entered as local date and time.

    Args:
        date_str: Date in YYYY-MM-DD format
        time_str: Time in HH:MM format (default "18:00")

    Returns:
        int: epoch milliseconds

    Raises:
        ValueError: If date or time format is invalid
    """
    try:
        value = datetime.strptime(f"{date_str.strip()} {time_str.strip()}", "%Y-%m-%d %H:%M")
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid deadline: {date_str} {time_str}") from e
    return to_millis(value)


def is_past(deadline_millis: int, now: Optional[int] = None) -> bool:
    """Check whether the current instant is strictly after the deadline."""
    current = now_millis() if now is None else now
    return current > deadline_millis
