"""create catalog tables

Revision ID: 4f1a2c9d7e01
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates `categories`, `websites` and the `website_categories` association
matching CategoryORM, WebsiteORM and WebsiteCategoryORM.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "4f1a2c9d7e01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False, comment="Display name of the category."),
        sa.Column("slug", sa.Text(), nullable=False, comment="Unique URL token of the category."),
        sa.Column("parent_id", sa.Integer(), nullable=True, comment="Parent category, NULL for top-level."),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False, comment="Ascending display position."),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("categories_slug_idx", "categories", ["slug"])
    op.create_index("categories_parent_id_idx", "categories", ["parent_id"])

    op.create_table(
        "websites",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("tagline", sa.Text(), nullable=True),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("visits", sa.Integer(), server_default="0", nullable=False),
        sa.Column("likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("quality_score", sa.Integer(), server_default="50", nullable=False),
        sa.Column("is_trusted", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_featured", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), server_default="{}", nullable=False),
        sa.Column("pricing_model", sa.Text(), server_default="free", nullable=False),
        sa.Column("has_free_version", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
        sa.UniqueConstraint("url"),
    )
    op.create_index("websites_status_idx", "websites", ["status"])
    op.create_index("websites_quality_score_idx", "websites", ["quality_score"])
    op.create_index("websites_created_at_idx", "websites", ["created_at"])
    op.create_index("websites_status_active_idx", "websites", ["status", "active"])

    op.create_table(
        "website_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("website_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["website_id"], ["websites.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("website_id", "category_id", name="website_categories_website_id_category_id_key"),
    )
    op.create_index("website_categories_website_id_idx", "website_categories", ["website_id"])
    op.create_index("website_categories_category_id_idx", "website_categories", ["category_id"])
    op.create_index("website_categories_website_primary_idx", "website_categories", ["website_id", "is_primary"])


def downgrade() -> None:
    op.drop_table("website_categories")
    op.drop_table("websites")
    op.drop_table("categories")
