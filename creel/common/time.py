"""Common time utilities."""

from __future__ import annotations

import datetime as dt


class NaiveDatetimeError(ValueError):
    """Raised when a datetime lacks timezone information."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        super().__init__(f"{context} must be timezone aware")


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def as_utc(value: dt.datetime, *, context: str = "timestamp") -> dt.datetime:
    """Convert an aware datetime to UTC, rejecting naive values."""
    if value.tzinfo is None:
        raise NaiveDatetimeError(context)
    return value.astimezone(dt.UTC)
