"""
Pydantic Data Transfer Objects (DTOs) for the Tool Navigator service.

These models are used for API responses and for moving catalog records
between the storage collaborator and the query engine. Field names are
snake_case in Python and camelCase on the wire.
"""

import math
from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tool_navigator.models.enums import EntryStatus


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EntryDTO(CamelModel):
    """
    DTO for one catalog entry ("website").

    Mirrors WebsiteORM plus its category memberships. The query engine treats
    instances as read-only.
    """
    id: int
    title: str
    slug: str = ""
    url: str = ""
    description: str = ""
    tagline: Optional[str] = None
    category_ids: List[int] = Field(default_factory=list)
    primary_category_id: Optional[int] = None
    status: EntryStatus = EntryStatus.PENDING
    active: bool = True
    visits: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    quality_score: int = 50
    # Kept as a plain string: rows may carry pricing tokens newer than the enum.
    pricing_model: str = "free"
    has_free_version: bool = False
    is_trusted: bool = False
    is_featured: bool = False
    created_at: AwareDatetime
    thumbnail: Optional[str] = None
    logo_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class LeaderEntryDTO(EntryDTO):
    """An entry placed in the category-leaders listing."""
    category_rank: int = Field(..., ge=1)
    category_name: str


class CategoryDTO(CamelModel):
    """DTO for a catalog category. ``parent_id`` is None for top-level categories."""
    id: int
    slug: str
    name: str = ""
    parent_id: Optional[int] = None
    sort_order: int = 0


class CategoryTreeNodeDTO(CategoryDTO):
    """Category with its direct children and approved entry count."""
    entry_count: int = 0
    children: List["CategoryTreeNodeDTO"] = Field(default_factory=list)


class PaginationDTO(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PagedResult(CamelModel):
    """One page of ranked entries plus exact pagination metadata."""
    items: List[EntryDTO]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, items: List[EntryDTO], page: int, page_size: int, total: int) -> "PagedResult":
        total_pages = math.ceil(total / page_size) if total else 0
        return cls(
            items=items,
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    def pagination(self) -> PaginationDTO:
        return PaginationDTO(
            page=self.page,
            limit=self.page_size,
            total=self.total,
            total_pages=self.total_pages,
            has_next=self.has_next,
            has_prev=self.has_prev,
        )


class SearchResponse(CamelModel):
    """Response body of the paginated list endpoints."""
    items: List[EntryDTO]
    pagination: PaginationDTO

    @classmethod
    def from_result(cls, result: PagedResult) -> "SearchResponse":
        return cls(items=result.items, pagination=result.pagination())


class LeadersResponse(CamelModel):
    """Response body of the category-leaders endpoint."""
    items: List[LeaderEntryDTO]


class CategoryTreeResponse(CamelModel):
    items: List[CategoryTreeNodeDTO]


class RecommendationsResponse(CamelModel):
    """Response body of the recommendations endpoint."""
    items: List[EntryDTO]
    count: int

    @classmethod
    def from_items(cls, items: List[EntryDTO]) -> "RecommendationsResponse":
        return cls(items=items, count=len(items))
