"""
Models package for the Tool Navigator service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from . import base
from . import category_orm
from . import website_orm

# Import Base and ORM models for easy access
from .base import Base
from .category_orm import CategoryORM
from .website_orm import WebsiteCategoryORM, WebsiteORM

# Import DTOs for easy access
from .dtos import (
    CategoryDTO,
    CategoryTreeNodeDTO,
    CategoryTreeResponse,
    EntryDTO,
    LeaderEntryDTO,
    LeadersResponse,
    PagedResult,
    PaginationDTO,
    RecommendationsResponse,
    SearchResponse,
)

# Define what is exported with 'from tool_navigator.models import *'
__all__ = [
    # Base
    "Base",
    # ORMs
    "CategoryORM",
    "WebsiteCategoryORM",
    "WebsiteORM",
    # DTOs
    "CategoryDTO",
    "CategoryTreeNodeDTO",
    "CategoryTreeResponse",
    "EntryDTO",
    "LeaderEntryDTO",
    "LeadersResponse",
    "PagedResult",
    "PaginationDTO",
    "RecommendationsResponse",
    "SearchResponse",
]
