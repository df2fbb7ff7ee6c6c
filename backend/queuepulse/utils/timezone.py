"""
Timezone utilities for converting UTC timestamps to local times.

All database timestamps are stored in UTC. Historical time slots are
keyed by the location's local day of week and hour, so these helpers
convert stored UTC timestamps into that local wall-clock bucket.
"""

from datetime import datetime

import pytz

UTC_TZ = pytz.UTC


def utc_now() -> datetime:
    """Get current time in UTC as a naive datetime (database convention)."""
    return datetime.now(UTC_TZ).replace(tzinfo=None)


def from_utc(utc_dt: datetime, timezone: str = "UTC") -> datetime:
    """
    Convert a UTC datetime to local timezone.

    Args:
        utc_dt: Datetime in UTC (can be naive or aware)
        timezone: Target timezone name

    Returns:
        Timezone-aware datetime in local timezone
    """
    tz = pytz.timezone(timezone)

    if utc_dt.tzinfo is None:
        # Naive datetime - assume it's UTC
        utc_dt = UTC_TZ.localize(utc_dt)

    return utc_dt.astimezone(tz)


def local_time_slot(utc_dt: datetime, timezone: str = "UTC") -> tuple[int, int]:
    """
    Get the (day_of_week, hour) bucket of a UTC timestamp in a local timezone.

    Days are numbered 0=Sunday through 6=Saturday, the convention the
    mobile client uses when rendering the weekly heatmap.

    Args:
        utc_dt: Datetime in UTC (can be naive or aware)
        timezone: Timezone name of the location

    Returns:
        Tuple of (day_of_week, hour)
    """
    local_dt = from_utc(utc_dt, timezone)
    # Python's weekday() is 0=Monday
    day_of_week = (local_dt.weekday() + 1) % 7
    return day_of_week, local_dt.hour


def is_valid_timezone(timezone: str) -> bool:
    """Check whether a timezone name is known to pytz."""
    return timezone in pytz.all_timezones_set
