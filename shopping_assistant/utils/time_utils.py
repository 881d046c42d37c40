"""
Time and date utilities for expiration and recency checks.

Key concepts:
  - All entity timestamps are timezone-aware UTC datetimes. Naive values
    coming from persistence or JSON are interpreted as UTC.
  - Hour spans (recommendation expiry, age) are fractional floats.
  - Day spans (interaction recency) are whole calendar days.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

SECONDS_PER_HOUR = 3600.0


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC; aware datetimes are
    converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` normalized to UTC, or the current time when ``None``."""
    return utcnow() if now is None else ensure_utc(now)


def hours_between(start: datetime, end: datetime) -> float:
    """Return the signed number of hours from ``start`` to ``end``.

    Positive when ``end`` is after ``start``.
    """
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_HOUR


def calendar_days_between(start: datetime, end: datetime) -> int:
    """Return the absolute number of calendar days between two datetimes.

    Both values are converted to UTC and truncated to their dates before
    subtracting, so 23:59 -> 00:01 the next day counts as one day.

    Args:
        start: First datetime.
        end: Second datetime.

    Returns:
        Non-negative integer day count.
    """
    return abs((ensure_utc(end).date() - ensure_utc(start).date()).days)


def add_hours(value: datetime, hours: float) -> datetime:
    """Shift ``value`` by a signed number of hours."""
    return value + timedelta(hours=hours)
