"""
SQLAlchemy ORM model for the 'categories' table.
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, TIMESTAMP
from sqlalchemy.sql import func

from .base import Base


class CategoryORM(Base):
    """
    SQLAlchemy ORM model representing a catalog category.

    Categories form a shallow tree through ``parent_id``: a NULL parent marks a
    top-level category, and a child's parent is itself top-level.

    Attributes:
        id (int): Primary key.
        name (str): Display name.
        slug (str): Unique URL token used by filters.
        parent_id (int, optional): Parent category id, NULL for top-level.
        sort_order (int): Position in category listings (ascending).
        created_at (datetime): Creation timestamp.
        updated_at (datetime): Last modification timestamp.
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, comment="Display name of the category.")
    slug = Column(Text, nullable=False, unique=True, comment="Unique URL token of the category.")
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, comment="Parent category, NULL for top-level.")
    sort_order = Column(Integer, nullable=False, server_default="0", comment="Ascending display position.")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("categories_slug_idx", "slug"),
        Index("categories_parent_id_idx", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<CategoryORM(id={self.id}, slug='{self.slug}', parent_id={self.parent_id})>"
