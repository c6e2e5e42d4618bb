"""Centralized datetime utilities for the operational timezone.

Scheduling decisions (execution windows, reporting periods, weekday
alignment) are made in the operational timezone, Asia/Tokyo by default.
Timestamps are persisted as naive UTC for database compatibility.

Usage:
    from brokerage.core.datetime_utils import operational_now, to_naive_utc

    now = operational_now()
    stmt = select(Setting).where(Setting.next_execution_date <= to_naive_utc(now))
"""

from datetime import UTC, date, datetime, time
from functools import lru_cache
from zoneinfo import ZoneInfo

from brokerage.config import get_settings


@lru_cache
def operational_tz() -> ZoneInfo:
    """Get the configured operational timezone."""
    return ZoneInfo(get_settings().timezone)


def operational_now() -> datetime:
    """Get current time as an aware datetime in the operational timezone."""
    return datetime.now(operational_tz())


def utc_now() -> datetime:
    """Get current UTC time as naive datetime.

    Returns naive datetime for database compatibility.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to naive UTC.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive UTC datetime for database compatibility
    """
    if dt.tzinfo is None:
        # Already naive, assume it's UTC
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def as_operational(dt: datetime) -> datetime:
    """Convert a stored timestamp into the operational timezone.

    Args:
        dt: Naive UTC datetime (as read from the database) or aware datetime

    Returns:
        Aware datetime in the operational timezone
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(operational_tz())


def parse_execution_time(execution_time: str) -> time:
    """Parse an execution time string (HH:MM) into a time object.

    Raises:
        ValueError: If the string is not a valid 24h HH:MM time
    """
    parts = execution_time.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid execution time: {execution_time!r}")
    return time(hour=int(parts[0]), minute=int(parts[1]))



def sunday_weekday(day: date) -> int:
    """Day of week with 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7
