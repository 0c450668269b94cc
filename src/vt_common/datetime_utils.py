"""UTC datetime utilities."""

from datetime import datetime, timezone

SECONDS_PER_HOUR = 3600
DAYS_PER_MONTH = 30


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def months_between(start: datetime, end: datetime) -> float:
    """Elapsed game months, where one month is 30 days."""
    return (end - start).total_seconds() / (SECONDS_PER_HOUR * 24 * DAYS_PER_MONTH)
