"""
Filter constraints consumed by the impression filter engine.

POST /impressions/filter  → FilterSpec → ImpressionListResponse
GET  /impressions         → query params folded into a FilterSpec
"""
from __future__ import annotations

import enum
from datetime import date, datetime, time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DatePreset(str, enum.Enum):
    today = "today"
    yesterday = "yesterday"
    last7days = "last7days"
    last30days = "last30days"
    last3months = "last3months"
    last6months = "last6months"
    lastYear = "lastYear"


def _parse_bound(v, end_of_day: bool):
    """Turn a date-only value into a datetime at the start or end of that day."""
    if isinstance(v, str) and len(v.strip()) == 10:
        v = date.fromisoformat(v.strip())
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime.combine(v, time.max if end_of_day else time.min)
    return v


class AllRange(BaseModel):
    type: Literal["all"] = "all"


class PresetRange(BaseModel):
    type: Literal["preset"] = "preset"
    preset: DatePreset = Field(description="Named window relative to now.", examples=["last7days"])


class CustomRange(BaseModel):
    """Caller-supplied window. A date-only `to` covers that whole day."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["custom"] = "custom"
    from_: Optional[datetime] = Field(
        default=None,
        alias="from",
        description="Start instant or ISO date. Omitted means the beginning of time.",
        examples=["2026-01-01"],
    )
    to: Optional[datetime] = Field(
        default=None,
        description="End instant or ISO date (inclusive through end of day). Omitted means end of today.",
        examples=["2026-01-31"],
    )

    @field_validator("from_", mode="before")
    @classmethod
    def from_date_starts_day(cls, v):
        return _parse_bound(v, end_of_day=False)

    @field_validator("to", mode="before")
    @classmethod
    def to_date_ends_day(cls, v):
        return _parse_bound(v, end_of_day=True)


DateRange = Annotated[Union[AllRange, PresetRange, CustomRange], Field(discriminator="type")]


class FilterSpec(BaseModel):
    """Category / date / text constraints, combined with AND."""
    categories: list[int] = Field(
        default_factory=list,
        description="Category ids; an impression matches if it has any of them. Empty disables.",
    )
    date_range: DateRange = Field(default_factory=AllRange)
    description: str = Field(
        default="",
        max_length=500,
        description="Case-insensitive substring of the description. Blank disables.",
    )

    def is_active(self) -> bool:
        return bool(
            self.categories
            or self.date_range.type != "all"
            or self.description.strip()
        )
