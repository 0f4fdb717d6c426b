"""
Impression service: CRUD over the impressions table.

Rules:
- created_at / updated_at come from the injected clock, not the DB.
- date_time may never be later than clock() at create or update time.
- Category ids must exist; unknown ids are rejected, not ignored.
- db.commit() only at the public functions.

Public API
----------
create_impression(db, description, date_time, category_ids, clock) -> Impression
list_impressions(db)                                               -> list[Impression]
get_impression(db, impression_id)                                  -> Impression
update_impression(db, impression_id, ..., clock)                   -> Impression
delete_impression(db, impression_id)                               -> None
get_last_impression(db)                                            -> Impression | None
elapsed_since(impression, clock)                                   -> int
format_duration(seconds)                                           -> str
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from hgtracker.core.clock import Clock, as_aware, system_clock
from hgtracker.core.errors import (
    ImpressionInFutureError,
    ImpressionNotFoundError,
    UnknownCategoryError,
)
from hgtracker.models.category import Category
from hgtracker.models.impression import Impression


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _new_id() -> str:
    return uuid.uuid4().hex


def _check_not_future(date_time: datetime, now: datetime) -> datetime:
    aware = as_aware(date_time, now.tzinfo)
    if aware > now:
        raise ImpressionInFutureError(date_time=aware.isoformat())
    # SQLite keeps wall-clock time only; store in the clock's zone
    return aware.astimezone(now.tzinfo)


def _resolve_categories(db: Session, category_ids: list[int]) -> list[Category]:
    wanted = list(dict.fromkeys(category_ids))
    if not wanted:
        return []
    found = db.query(Category).filter(Category.id.in_(wanted)).all()
    by_id = {c.id: c for c in found}
    missing = [cid for cid in wanted if cid not in by_id]
    if missing:
        raise UnknownCategoryError(missing)
    return [by_id[cid] for cid in wanted]


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def create_impression(
    db: Session,
    description: str,
    date_time: Optional[datetime] = None,
    category_ids: Optional[list[int]] = None,
    clock: Clock = system_clock,
) -> Impression:
    now = clock()
    impression = Impression(
        id=_new_id(),
        description=description,
        date_time=_check_not_future(date_time, now) if date_time else now,
        created_at=now,
        updated_at=now,
        categories=_resolve_categories(db, category_ids or []),
    )
    db.add(impression)
    db.commit()
    db.refresh(impression)
    return impression


def list_impressions(db: Session) -> list[Impression]:
    """All impressions, most recent date_time first."""
    return (
        db.query(Impression)
        .options(selectinload(Impression.categories))
        .order_by(Impression.date_time.desc(), Impression.created_at.desc())
        .all()
    )


def get_impression(db: Session, impression_id: str) -> Impression:
    impression = db.get(Impression, impression_id)
    if impression is None:
        raise ImpressionNotFoundError(impression_id)
    return impression


def update_impression(
    db: Session,
    impression_id: str,
    description: Optional[str] = None,
    date_time: Optional[datetime] = None,
    category_ids: Optional[list[int]] = None,
    clock: Clock = system_clock,
) -> Impression:
    impression = get_impression(db, impression_id)
    now = clock()

    if description is not None:
        impression.description = description
    if date_time is not None:
        impression.date_time = _check_not_future(date_time, now)
    if category_ids is not None:
        impression.categories = _resolve_categories(db, category_ids)
    impression.updated_at = now

    db.commit()
    db.refresh(impression)
    return impression


def delete_impression(db: Session, impression_id: str) -> None:
    impression = get_impression(db, impression_id)
    db.delete(impression)
    db.commit()


def get_last_impression(db: Session) -> Optional[Impression]:
    return (
        db.query(Impression)
        .order_by(Impression.date_time.desc(), Impression.created_at.desc())
        .first()
    )


def elapsed_since(impression: Impression, clock: Clock = system_clock) -> int:
    """Whole seconds since the impression happened; clamped at zero for clock skew."""
    now = clock()
    delta = now - as_aware(impression.date_time, now.tzinfo)
    return max(0, int(delta.total_seconds()))


def format_duration(seconds: int) -> str:
    total_minutes = max(0, seconds) // 60
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
