"""
The normalized query and the raw criteria it is built from.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from tool_navigator.models.enums import PricingModel, SortKey, SortOrder, TimeRange

# Raw, unvalidated filter input as received from a request handler
# (query-string parameters or a JSON body).
RawCriteria = Mapping[str, Any]


@dataclass(frozen=True)
class QuerySpec:
    """
    Normalized criteria for one catalog query.

    Built fresh per request by the normalizer and discarded afterwards.
    ``featured_first`` is set only when the caller supplied neither an
    explicit sort nor a search term; it selects the default
    featured-then-quality ordering.
    """
    text: Optional[str] = None
    category_slug: Optional[str] = None
    pricing_models: Tuple[PricingModel, ...] = ()
    min_quality: int = 0
    trusted_only: bool = False
    featured_only: bool = False
    free_only: bool = False
    time_range: TimeRange = TimeRange.ALL
    sort_key: SortKey = SortKey.QUALITY
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 20
    featured_first: bool = False

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class RecommendationSpec:
    """Normalized criteria for a recommendations query (no paging, fixed ordering)."""
    category_slug: Optional[str] = None
    exclude_id: Optional[int] = None
    limit: int = 6
