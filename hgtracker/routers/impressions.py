"""
Impressions router.

GET    /impressions           — list, optionally filtered via query params
POST   /impressions/filter    — list filtered by a full FilterSpec body
GET    /impressions/last      — most recent impression + time since
POST   /impressions           — create
GET    /impressions/{id}      — read
PATCH  /impressions/{id}      — partial update
DELETE /impressions/{id}      — delete
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from hgtracker.core.clock import Clock, get_clock
from hgtracker.db.base import get_db
from hgtracker.schemas.common import ERROR_RESPONSES
from hgtracker.schemas.filters import AllRange, CustomRange, DatePreset, FilterSpec, PresetRange
from hgtracker.schemas.impressions import (
    ImpressionCreate,
    ImpressionListResponse,
    ImpressionOut,
    ImpressionUpdate,
    LastImpressionResponse,
)
from hgtracker.services.filters import filter_impressions
from hgtracker.services.impressions import (
    create_impression,
    delete_impression,
    elapsed_since,
    format_duration,
    get_impression,
    get_last_impression,
    list_impressions,
    update_impression,
)

router = APIRouter(prefix="/impressions", tags=["impressions"], responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _query_error(field: str, message: str) -> RequestValidationError:
    return RequestValidationError([{"loc": ("query", field), "msg": message, "type": "value_error"}])


def _spec_from_query(
    q: str,
    category: list[int],
    preset: Optional[DatePreset],
    date_from: Optional[str],
    date_to: Optional[str],
) -> FilterSpec:
    if preset is not None and (date_from or date_to):
        raise _query_error("preset", "preset cannot be combined with date_from / date_to")

    if preset is not None:
        date_range = PresetRange(preset=preset)
    elif date_from or date_to:
        try:
            date_range = CustomRange.model_validate({"from": date_from, "to": date_to})
        except ValidationError as exc:
            raise RequestValidationError(exc.errors()) from exc
    else:
        date_range = AllRange()

    return FilterSpec(categories=category, date_range=date_range, description=q)


def _filtered_response(db: Session, spec: FilterSpec, clock: Clock) -> ImpressionListResponse:
    items = [ImpressionOut.model_validate(i) for i in list_impressions(db)]
    matched = filter_impressions(items, spec, clock)
    return ImpressionListResponse(
        total=len(items),
        matched=len(matched),
        filtered=spec.is_active(),
        items=matched,
    )


# ---------------------------------------------------------------------------
# Listing / filtering
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ImpressionListResponse,
    summary="List impressions",
    responses={422: {"description": "Invalid preset or date bound."}},
)
def impressions_list(
    q: str = Query(default="", max_length=500, description="Case-insensitive text search."),
    category: list[int] = Query(default=[], description="Category id; repeat for several (OR)."),
    preset: Optional[DatePreset] = Query(default=None, description="Named date window."),
    date_from: Optional[str] = Query(default=None, description="ISO date or datetime.", examples=["2026-01-01"]),
    date_to: Optional[str] = Query(default=None, description="ISO date (inclusive) or datetime.", examples=["2026-01-31"]),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Return impressions (most recent first) matching every given constraint."""
    spec = _spec_from_query(q, category, preset, date_from, date_to)
    return _filtered_response(db, spec, clock)


@router.post(
    "/filter",
    response_model=ImpressionListResponse,
    summary="Filter impressions with a FilterSpec",
)
def impressions_filter(
    spec: FilterSpec,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Apply category (any-of), date-range and description constraints.
    An empty body returns every impression.
    """
    return _filtered_response(db, spec, clock)


@router.get(
    "/last",
    response_model=LastImpressionResponse,
    summary="Most recent impression and time elapsed since",
)
def impressions_last(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    last = get_last_impression(db)
    if last is None:
        return LastImpressionResponse()
    seconds = elapsed_since(last, clock)
    return LastImpressionResponse(
        impression=ImpressionOut.model_validate(last),
        elapsed_seconds=seconds,
        elapsed_display=format_duration(seconds),
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ImpressionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Record an impression",
    responses={422: {"description": "Empty description, future date or unknown category."}},
)
def impressions_create(
    payload: ImpressionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    impression = create_impression(
        db,
        description=payload.description,
        date_time=payload.date_time,
        category_ids=payload.categories,
        clock=clock,
    )
    return ImpressionOut.model_validate(impression)


@router.get(
    "/{impression_id}",
    response_model=ImpressionOut,
    responses={404: {"description": "Impression not found."}},
)
def impressions_get(impression_id: str, db: Session = Depends(get_db)):
    return ImpressionOut.model_validate(get_impression(db, impression_id))


@router.patch(
    "/{impression_id}",
    response_model=ImpressionOut,
    responses={
        404: {"description": "Impression not found."},
        422: {"description": "Future date or unknown category."},
    },
)
def impressions_update(
    impression_id: str,
    payload: ImpressionUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    impression = update_impression(
        db,
        impression_id,
        description=payload.description,
        date_time=payload.date_time,
        category_ids=payload.categories,
        clock=clock,
    )
    return ImpressionOut.model_validate(impression)


@router.delete(
    "/{impression_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Impression not found."}},
)
def impressions_delete(impression_id: str, db: Session = Depends(get_db)):
    delete_impression(db, impression_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
