"""
Category request / response schemas.

GET    /categories        → list[CategoryOut]  (seeds defaults when empty)
POST   /categories        → CategoryCreate     → CategoryOut
PATCH  /categories/{id}   → CategoryUpdate     → CategoryOut
DELETE /categories/{id}
POST   /categories/reset  → list[CategoryOut]
"""
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hgtracker.models.category import CategoryColor


def _strip_name(v):
    stripped = v.strip() if isinstance(v, str) else v
    if stripped == "":
        raise ValueError("name must not be empty after stripping whitespace")
    return stripped


class CategoryCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Annotated[str, Field(min_length=1, max_length=64, examples=["Temple"])]
    color: CategoryColor = Field(default=CategoryColor.blue, examples=["purple"])

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[Annotated[str, Field(min_length=1, max_length=64)]] = None
    color: Optional[CategoryColor] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v if v is None else _strip_name(v)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str
    not_removable: bool = False

    @field_validator("color", mode="before")
    @classmethod
    def enum_value(cls, v):
        return v.value if hasattr(v, "value") else v
