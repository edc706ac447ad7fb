"""Calendar-day windows used by the daily send limit."""

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def calendar_day_bounds(now: datetime, tz_name: str = "UTC") -> tuple[datetime, datetime]:
    """Return the half-open [start, end) of the calendar day containing now.

    The day is taken in the given timezone, so "today" follows local
    midnights rather than a rolling 24 hours. Both bounds come back in UTC.

    Args:
        now: Reference instant. Naive values are treated as UTC.
        tz_name: IANA timezone name defining the day boundaries.

    Returns:
        tuple[datetime, datetime]: UTC start (inclusive) and end (exclusive).
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    tz = ZoneInfo(tz_name)
    local_date = now.astimezone(tz).date()
    start = datetime.combine(local_date, time.min, tzinfo=tz)
    end = datetime.combine(local_date + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def seconds_until_next_day(now: datetime, tz_name: str = "UTC") -> int:
    """Seconds from now until the next local midnight, rounded up."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    _, end = calendar_day_bounds(now, tz_name)
    remaining = (end - now).total_seconds()
    return max(1, int(remaining) + (1 if remaining % 1 else 0))


def to_timestamp(value: datetime) -> str:
    """Format a datetime the way timestamptz columns are written."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
