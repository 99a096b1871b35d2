"""Core utilities and shared functionality."""

from lookthrough.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    age_seconds,
    UTC,
)
from lookthrough.core.exceptions import (
    AppError,
    ValidationError,
    InvalidHoldingError,
    NotFoundError,
    CacheWriteError,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "age_seconds",
    "UTC",
    "AppError",
    "ValidationError",
    "InvalidHoldingError",
    "NotFoundError",
    "CacheWriteError",
]
