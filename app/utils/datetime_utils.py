"""
Centralized datetime utilities.

All timestamps are stored and transmitted as UTC with explicit timezone indicators.
SQLite hands back naive datetimes, so anything read from the store goes through
ensure_utc() before it is compared or serialized.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        datetime: Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure datetime is UTC timezone-aware.

    Naive datetimes are assumed to already be UTC; aware ones are converted.

    Example:
        >>> ensure_utc(datetime(2025, 12, 16, 11, 30)).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def not_before(dt: datetime | None) -> datetime:
    """
    Current UTC time, clamped so it never precedes ``dt``.

    Used to stamp new messages: a chat's creation timestamps must not go
    backwards even if the wall clock does.
    """
    now = utc_now()
    floor = ensure_utc(dt)
    if floor is not None and floor > now:
        return floor
    return now
