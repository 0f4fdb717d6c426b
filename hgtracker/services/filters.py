"""
Impression filter engine.

Rules:
- Pure: no DB, no HTTP, never mutates its input.
- Total: every FilterSpec yields a result, nothing is raised.
- Output keeps the relative order of the input.

Public API
----------
filter_impressions(impressions, spec, clock)  -> list
compute_date_window(date_range, now)          -> (start, end) | None

Impressions are duck-typed: anything with `description`, `categories`
(iterable of category ids) and `created_at` works, so both the ORM-backed
ImpressionOut schema and plain test doubles can be filtered.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Sequence, TypeVar

from hgtracker.core.clock import Clock, as_aware, system_clock
from hgtracker.schemas.filters import DatePreset, FilterSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BEGINNING_OF_TIME = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _add_months(dt: datetime, months: int) -> datetime:
    y = dt.year + (dt.month - 1 + months) // 12
    m = (dt.month - 1 + months) % 12 + 1
    last_day = calendar.monthrange(y, m)[1]
    return dt.replace(year=y, month=m, day=min(dt.day, last_day))


def _preset_window(preset, now: datetime) -> tuple[datetime, datetime]:
    today = _midnight(now)
    end_of_today = today + timedelta(days=1)

    try:
        preset = DatePreset(preset)
    except ValueError:
        logger.warning("Unknown date preset %r; not filtering by date", preset)
        return _BEGINNING_OF_TIME, end_of_today

    if preset == DatePreset.today:
        return today, end_of_today
    if preset == DatePreset.yesterday:
        return today - timedelta(days=1), today
    if preset == DatePreset.last7days:
        return now - timedelta(days=7), end_of_today
    if preset == DatePreset.last30days:
        return now - timedelta(days=30), end_of_today
    if preset == DatePreset.last3months:
        return _add_months(today, -3), end_of_today
    if preset == DatePreset.last6months:
        return _add_months(today, -6), end_of_today
    # lastYear
    return _add_months(today, -12), end_of_today


def _custom_bound(value, now: datetime, end_of_day: bool) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end_of_day else time.min)
    return as_aware(value, now.tzinfo)


def compute_date_window(date_range, now: datetime) -> Optional[tuple[datetime, datetime]]:
    """
    Concrete [start, end] window for a date range, both bounds inclusive.
    Returns None when the range does not restrict dates ("all").
    """
    kind = getattr(date_range, "type", "all")
    if kind == "all":
        return None

    end_of_today = _midnight(now) + timedelta(days=1)

    if kind == "preset":
        return _preset_window(getattr(date_range, "preset", None), now)

    if kind == "custom":
        start = _custom_bound(getattr(date_range, "from_", None), now, end_of_day=False)
        end = _custom_bound(getattr(date_range, "to", None), now, end_of_day=True)
        return start or _BEGINNING_OF_TIME, end or end_of_today

    logger.warning("Unknown date range type %r; not filtering by date", kind)
    return _BEGINNING_OF_TIME, end_of_today


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _matches_description(impression, needle: str) -> bool:
    return needle in (impression.description or "").casefold()


def _matches_categories(impression, wanted: set[int]) -> bool:
    return not wanted.isdisjoint(impression.categories or ())


def _in_window(impression, start: datetime, end: datetime) -> bool:
    created = as_aware(impression.created_at, end.tzinfo)
    return start <= created <= end


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def filter_impressions(
    impressions: Iterable[T],
    spec: FilterSpec,
    clock: Optional[Clock] = None,
) -> list[T]:
    """Return the impressions matching every active constraint of `spec`."""
    result: Sequence[T] = list(impressions)

    needle = spec.description.strip().casefold()
    if needle:
        result = [i for i in result if _matches_description(i, needle)]

    if spec.categories:
        wanted = set(spec.categories)
        result = [i for i in result if _matches_categories(i, wanted)]

    window = compute_date_window(spec.date_range, (clock or system_clock)())
    if window is not None:
        start, end = window
        result = [i for i in result if _in_window(i, start, end)]

    return list(result)
