"""Clock injection and datetime normalization."""

from collections.abc import Callable
from datetime import datetime

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local wall-clock time (naive)."""
    return datetime.now()


def to_local_naive(dt: datetime) -> datetime:
    """Convert a timezone-aware datetime to naive local time.

    Naive datetimes are assumed to already be local and are returned as-is.
    """
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt
