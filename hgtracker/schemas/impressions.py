"""
Impression request / response schemas.

POST   /impressions          → ImpressionCreate → ImpressionOut
GET    /impressions          → ImpressionListResponse
POST   /impressions/filter   → FilterSpec       → ImpressionListResponse
GET    /impressions/last     → LastImpressionResponse
GET    /impressions/{id}     → ImpressionOut
PATCH  /impressions/{id}     → ImpressionUpdate → ImpressionOut
DELETE /impressions/{id}
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_description(v):
    stripped = v.strip() if isinstance(v, str) else v
    if stripped == "":
        raise ValueError("description must not be empty after stripping whitespace")
    return stripped


class ImpressionCreate(BaseModel):
    """A new journal entry."""
    description: Annotated[str, Field(
        min_length=1,
        max_length=10_000,
        description="What was felt. Stripped of leading/trailing whitespace.",
        examples=["Felt peace during prayer"],
    )]
    date_time: Optional[datetime] = Field(
        default=None,
        description="When it happened. Defaults to now; must not be in the future.",
        examples=["2026-02-20T08:30:00Z"],
    )
    categories: list[int] = Field(
        default_factory=list,
        description="Category ids to tag the impression with.",
    )

    @field_validator("description", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        return _strip_description(v)


class ImpressionUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    description: Optional[Annotated[str, Field(min_length=1, max_length=10_000)]] = None
    date_time: Optional[datetime] = None
    categories: Optional[list[int]] = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        return v if v is None else _strip_description(v)


class ImpressionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    date_time: datetime
    created_at: datetime
    updated_at: datetime
    categories: list[int] = Field(default_factory=list, description="Category ids.")

    @field_validator("categories", mode="before")
    @classmethod
    def category_ids(cls, v):
        return [c.id if hasattr(c, "id") else c for c in (v or [])]


class ImpressionListResponse(BaseModel):
    total: int = Field(description="Impressions stored.")
    matched: int = Field(description="Impressions returned after filtering.")
    filtered: bool = Field(description="True when any filter constraint was active.")
    items: list[ImpressionOut]


class LastImpressionResponse(BaseModel):
    impression: Optional[ImpressionOut] = None
    elapsed_seconds: Optional[int] = Field(
        default=None,
        description="Seconds since the last impression's date_time (never negative).",
    )
    elapsed_display: Optional[str] = Field(default=None, examples=["2d 3h 15m"])
