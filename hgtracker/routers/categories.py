"""
Categories router.

GET    /categories          — list (seeds the defaults on first use)
POST   /categories          — create
POST   /categories/reset    — restore defaults, untag every impression
PATCH  /categories/{id}     — rename / recolor
DELETE /categories/{id}     — delete and strip from impressions
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from hgtracker.core.clock import Clock, get_clock
from hgtracker.db.base import get_db
from hgtracker.schemas.common import ERROR_RESPONSES
from hgtracker.schemas.categories import CategoryCreate, CategoryOut, CategoryUpdate
from hgtracker.services.categories import (
    create_category,
    delete_category,
    list_categories,
    reset_categories,
    update_category,
)

router = APIRouter(prefix="/categories", tags=["categories"], responses=ERROR_RESPONSES)


@router.get("", response_model=list[CategoryOut], summary="List categories")
def categories_list(db: Session = Depends(get_db)):
    """Return all categories ordered by id. Seeds the defaults when there are none."""
    return [CategoryOut.model_validate(c) for c in list_categories(db)]


@router.post(
    "",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
def categories_create(payload: CategoryCreate, db: Session = Depends(get_db)):
    list_categories(db)  # make sure the defaults own ids 1..n before assigning max + 1
    return CategoryOut.model_validate(create_category(db, payload.name, payload.color))


@router.post(
    "/reset",
    response_model=list[CategoryOut],
    summary="Reset categories to the defaults",
)
def categories_reset(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Delete every custom category and remove all category tags from impressions."""
    return [CategoryOut.model_validate(c) for c in reset_categories(db, clock)]


@router.patch(
    "/{category_id}",
    response_model=CategoryOut,
    responses={
        404: {"description": "Category not found."},
        409: {"description": "Default categories cannot be renamed."},
    },
)
def categories_update(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    category = update_category(db, category_id, name=payload.name, color=payload.color)
    return CategoryOut.model_validate(category)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "Category not found."},
        409: {"description": "Default categories cannot be deleted."},
    },
)
def categories_delete(
    category_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Delete a category; every impression tagged with it loses the tag."""
    delete_category(db, category_id, clock)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
