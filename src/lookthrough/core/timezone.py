"""Time helpers. Cache timestamps are stored and compared in UTC."""

from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser

UTC = pytz.utc


def now_utc() -> datetime:
    """Return current time in UTC."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC."""
    if dt.tzinfo is None:
        # Naive timestamps written by older cache files are assumed UTC
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def parse_datetime_utc(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-ish datetime string and return it in UTC.

    Returns None for empty or unparseable input.
    """
    if not value:
        return None
    try:
        dt = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    return to_utc(dt)


def age_seconds(fetched_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Seconds elapsed since fetched_at, or None if the timestamp is unknown."""
    if fetched_at is None:
        return None
    now = now or now_utc()
    return (now - to_utc(fetched_at)).total_seconds()
