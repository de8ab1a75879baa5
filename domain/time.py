"""
Domain time utilities (pure).

Centralized timestamp helpers shared by the Sale aggregate and the
persistence layer. All timestamps stored on the aggregate are UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""

    return datetime.now(timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that a timestamp is UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware datetimes are converted."""

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_unset_timestamp(value: Optional[datetime]) -> bool:
    """True for None and for the zero value (datetime.min, naive or aware)."""

    if value is None:
        return True
    return value.replace(tzinfo=None) == datetime.min
