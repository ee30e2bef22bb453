"""
Domain time utilities (pure).

Centralized timestamp validation and month arithmetic.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

# Content freshness is measured in fixed 30-day months.
DAYS_PER_MONTH: int = 30


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None for anything that does not parse. Naive values are read as UTC.
    """

    text = (value or "").strip()
    if not text:
        return None
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def whole_months_between(start: datetime, end: datetime) -> int:
    """
    Whole 30-day months elapsed from start to end.

    months = floor((end - start) / 30 days), never negative.
    """

    require_utc_timestamp("start", start)
    require_utc_timestamp("end", end)

    if end <= start:
        return 0
    return int((end - start) // timedelta(days=DAYS_PER_MONTH))
