"""UTC timestamp helpers used for wire payloads."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as extended RFC3339 with microsecond precision.

    Naive datetimes are assumed to already be in UTC; aware datetimes are
    converted to UTC first.

    Parameters:
        dt: The datetime to format.

    Returns:
        A string such as ``"2024-01-01T12:00:00.000000Z"``.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
