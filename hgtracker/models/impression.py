from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hgtracker.db.base import Base
from hgtracker.models.category import Category


impression_categories = Table(
    "impression_categories",
    Base.metadata,
    Column(
        "impression_id",
        String(32),
        ForeignKey("impressions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Impression(Base):
    """A single journal entry: what was felt, and when."""

    __tablename__ = "impressions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # When the user says it happened; editable, never in the future.
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    categories: Mapped[list[Category]] = relationship(
        secondary=impression_categories,
        back_populates="impressions",
        order_by=Category.id,
    )

    @property
    def category_ids(self) -> list[int]:
        return [c.id for c in self.categories]
