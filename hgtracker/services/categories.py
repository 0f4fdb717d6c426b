"""
Category service.

Rules:
- Ids are max(id) + 1, assigned here rather than by the database.
- The defaults are seeded the first time categories are listed and none exist.
- Default (not_removable) categories cannot be deleted or renamed.
- Deleting a category strips it from every impression (cascade).
- db.commit() only at the public functions.

Public API
----------
list_categories(db)                        -> list[Category]
get_category(db, category_id)              -> Category
create_category(db, name, color)           -> Category
update_category(db, category_id, ...)      -> Category
delete_category(db, category_id, clock)    -> None
reset_categories(db, clock)                -> list[Category]
category_labels(db)                        -> dict[int, str]
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hgtracker.core.clock import Clock, system_clock
from hgtracker.core.errors import CategoryNotFoundError, CategoryNotRemovableError
from hgtracker.models.category import Category, CategoryColor
from hgtracker.models.impression import Impression

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: list[tuple[int, str, CategoryColor]] = [
    (1, "Church", CategoryColor.blue),
    (2, "BYU", CategoryColor.brown),
]


def _seed_defaults(db: Session) -> None:
    for cid, name, color in DEFAULT_CATEGORIES:
        db.add(Category(id=cid, name=name, color=color, not_removable=True))
    db.flush()


def _next_id(db: Session) -> int:
    current = db.query(func.max(Category.id)).scalar()
    return (current or 0) + 1


def list_categories(db: Session) -> list[Category]:
    if db.query(Category).count() == 0:
        logger.info("No categories found, seeding defaults")
        _seed_defaults(db)
        db.commit()
    return db.query(Category).order_by(Category.id).all()


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


def create_category(db: Session, name: str, color: str = CategoryColor.blue) -> Category:
    category = Category(id=_next_id(db), name=name, color=color, not_removable=False)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(
    db: Session,
    category_id: int,
    name: Optional[str] = None,
    color: Optional[str] = None,
) -> Category:
    category = get_category(db, category_id)
    if name is not None and name != category.name:
        if category.not_removable:
            raise CategoryNotRemovableError(category_id, action="renamed")
        category.name = name
    if color is not None:
        category.color = color
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int, clock: Clock = system_clock) -> None:
    category = get_category(db, category_id)
    if category.not_removable:
        raise CategoryNotRemovableError(category_id, action="deleted")

    now = clock()
    touched = list(category.impressions)
    for impression in touched:
        impression.categories.remove(category)
        impression.updated_at = now
    db.delete(category)
    db.commit()
    logger.info("Deleted category %d, removed from %d impressions", category_id, len(touched))


def reset_categories(db: Session, clock: Clock = system_clock) -> list[Category]:
    """Drop every category, untag every impression, and re-seed the defaults."""
    now = clock()
    for impression in db.query(Impression).all():
        if impression.categories:
            impression.categories = []
            impression.updated_at = now
    for category in db.query(Category).all():
        db.delete(category)
    db.flush()
    _seed_defaults(db)
    db.commit()
    logger.info("Categories reset to defaults")
    return db.query(Category).order_by(Category.id).all()


def category_labels(db: Session) -> dict[int, str]:
    return {c.id: c.name for c in list_categories(db)}
