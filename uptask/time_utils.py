"""
Time utilities for the UpTask application.

This module provides a single source of truth for time operations,
ensuring consistency across all endpoints and preventing clock drift issues.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time.
    Single source of truth for "now" throughout the application.

    Returns:
        timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Attach UTC to a naive datetime.

    Some backends (SQLite) drop tzinfo on round trip; stored values are
    always written in UTC so reattaching it is lossless.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def expires_in(minutes: int) -> datetime:
    """Return the instant ``minutes`` from now."""
    return utc_now() + timedelta(minutes=minutes)


def is_expired(expires_at: Optional[datetime]) -> bool:
    """
    Check if an expiry timestamp has passed.

    A missing expiry counts as expired, so a token without one can never be used.
    """
    if expires_at is None:
        return True
    return as_utc(expires_at) <= utc_now()
