"""
Time source used by the filter engine and the impression store.

Everything that needs "now" takes a `Clock` (a zero-arg callable returning an
aware datetime) so tests can pin the current instant.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from hgtracker.core.config import settings

Clock = Callable[[], datetime]


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def system_clock() -> datetime:
    """Current instant in the configured day-boundary timezone."""
    return datetime.now(tz=local_zone())


def fixed_clock(instant: datetime) -> Clock:
    """Clock that always returns `instant`."""
    def _now() -> datetime:
        return instant
    return _now


def get_clock() -> Clock:
    """FastAPI dependency; override in tests with `fixed_clock(...)`."""
    return system_clock


def as_aware(value: datetime, tz) -> datetime:
    """Attach `tz` to naive datetimes (SQLite hands them back without offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value
