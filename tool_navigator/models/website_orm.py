"""
SQLAlchemy ORM models for the 'websites' and 'website_categories' tables.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Text, TIMESTAMP, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class WebsiteORM(Base):
    """
    SQLAlchemy ORM model representing one catalog entry.

    Counters (``visits``, ``likes``) and moderation fields (``quality_score``,
    ``is_trusted``, ``is_featured``, ``status``, ``active``) are written by other
    services; the query engine only reads them.

    Attributes:
        id (int): Primary key.
        title, description, tagline (str): Searchable text fields.
        status (str): 'pending', 'approved' or 'rejected'.
        active (bool): False once the site is found unreachable.
        visits, likes (int): Non-negative interaction counters.
        quality_score (int): Moderation score, default 50.
        pricing_model (str): Pricing token, see PricingModel.
        has_free_version (bool): Free tier offered regardless of pricing_model.
        created_at (datetime): Submission timestamp, immutable.
        category_links (list[WebsiteCategoryORM]): Category memberships.
    """
    __tablename__ = "websites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    url = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=False)
    tagline = Column(Text, nullable=True)
    thumbnail = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    status = Column(Text, nullable=False, server_default="pending")
    active = Column(Boolean, nullable=False, server_default="true")
    visits = Column(Integer, nullable=False, server_default="0")
    likes = Column(Integer, nullable=False, server_default="0")
    quality_score = Column(Integer, nullable=False, server_default="50")
    is_trusted = Column(Boolean, nullable=False, server_default="false")
    is_featured = Column(Boolean, nullable=False, server_default="false")
    tags = Column(ARRAY(Text), nullable=False, server_default="{}")
    pricing_model = Column(Text, nullable=False, server_default="free")
    has_free_version = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    category_links = relationship(
        "WebsiteCategoryORM",
        back_populates="website",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("websites_status_idx", "status"),
        Index("websites_quality_score_idx", "quality_score"),
        Index("websites_created_at_idx", "created_at"),
        Index("websites_status_active_idx", "status", "active"),
    )

    def __repr__(self) -> str:
        return f"<WebsiteORM(id={self.id}, slug='{self.slug}', status='{self.status}')>"


class WebsiteCategoryORM(Base):
    """
    Association between a website and one of its categories.

    Exactly one link per website carries ``is_primary``.
    """
    __tablename__ = "website_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    website_id = Column(Integer, ForeignKey("websites.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    is_primary = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    website = relationship("WebsiteORM", back_populates="category_links")

    __table_args__ = (
        UniqueConstraint("website_id", "category_id", name="website_categories_website_id_category_id_key"),
        Index("website_categories_website_id_idx", "website_id"),
        Index("website_categories_category_id_idx", "category_id"),
        Index("website_categories_website_primary_idx", "website_id", "is_primary"),
    )

    def __repr__(self) -> str:
        return (
            f"<WebsiteCategoryORM(website_id={self.website_id}, category_id={self.category_id}, "
            f"is_primary={self.is_primary})>"
        )
