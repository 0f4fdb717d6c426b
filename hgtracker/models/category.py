from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hgtracker.db.base import Base

if TYPE_CHECKING:
    from hgtracker.models.impression import Impression


class CategoryColor(str, enum.Enum):
    brown = "brown"
    green = "green"
    blue = "blue"
    purple = "purple"
    red = "red"
    orange = "orange"
    yellow = "yellow"


class Category(Base):
    """User-defined label attachable to impressions.

    Ids are assigned by the service as max(id) + 1, never by the database.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    color: Mapped[str] = mapped_column(
        Enum(CategoryColor, name="category_color_enum"),
        nullable=False,
        default=CategoryColor.blue,
    )
    not_removable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    impressions: Mapped[list["Impression"]] = relationship(
        secondary="impression_categories",
        back_populates="categories",
    )
