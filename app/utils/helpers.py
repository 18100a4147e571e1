"""
Helper Functions
================

Common utility functions used across the application.
"""

from datetime import datetime, timezone

# Indexed by datetime.weekday()
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def utc_now() -> datetime:
    """Get current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive values (SQLite drops tzinfo) are taken to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def time_of_day(dt: datetime) -> str:
    """Bucket an hour (UTC) into morning, afternoon, evening or night."""
    hour = as_utc(dt).hour
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"


def weekday_name(dt: datetime) -> str:
    """Lowercase English weekday name of a datetime (UTC)."""
    return WEEKDAYS[as_utc(dt).weekday()]
