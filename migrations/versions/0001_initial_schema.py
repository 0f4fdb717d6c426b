"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_COLORS = ("brown", "green", "blue", "purple", "red", "orange", "yellow")


def upgrade() -> None:
    # --- ENUM types ---
    category_color_enum = sa.Enum(*_COLORS, name="category_color_enum")
    category_color_enum.create(op.get_bind(), checkfirst=True)

    # --- categories ---
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("color", sa.Enum(*_COLORS, name="category_color_enum", create_type=False), nullable=False),
        sa.Column("not_removable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- impressions ---
    op.create_table(
        "impressions",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_impressions_date_time", "impressions", ["date_time"])

    # --- impression_categories ---
    op.create_table(
        "impression_categories",
        sa.Column("impression_id", sa.String(32), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["impression_id"], ["impressions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("impression_id", "category_id"),
    )

    # --- Seed default categories ---
    categories = sa.table(
        "categories",
        sa.column("id", sa.Integer),
        sa.column("name", sa.String),
        sa.column("color", sa.String),
        sa.column("not_removable", sa.Boolean),
    )
    op.bulk_insert(categories, [
        {"id": 1, "name": "Church", "color": "blue", "not_removable": True},
        {"id": 2, "name": "BYU", "color": "brown", "not_removable": True},
    ])


def downgrade() -> None:
    op.drop_table("impression_categories")
    op.drop_index("ix_impressions_date_time", table_name="impressions")
    op.drop_table("impressions")
    op.drop_table("categories")
    sa.Enum(name="category_color_enum").drop(op.get_bind(), checkfirst=True)
