"""
Shared model helpers.

DESIGN DECISION: All timestamps inside the system are timezone-aware UTC.
Naive datetimes coming from callers (forms, spreadsheets) are interpreted
as UTC so that comparisons never mix naive and aware values.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
