"""Injectable time source.

Services never read the system clock directly; they receive a ``Clock``
so overdue derivation and recurrence can be exercised with a frozen time.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to timezone-aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock."""
    return utcnow
