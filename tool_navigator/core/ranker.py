"""
Selector/Ranker for the catalog query engine.

Turns a QuerySpec into an ordered list of sort terms, asks the storage
collaborator for the matching page and its exact count, and assembles the
PagedResult. Also implements the category-leaders and recommendations modes.

Every ordering ends with ``id`` ascending so identical queries against an
unchanged catalog always return the same sequence, which keeps pages
disjoint.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from tool_navigator.core.predicates import PredicateSet
from tool_navigator.core.types import QuerySpec, RecommendationSpec
from tool_navigator.models.dtos import CategoryDTO, EntryDTO, LeaderEntryDTO, PagedResult
from tool_navigator.models.enums import SortKey, SortOrder

if TYPE_CHECKING:
    from tool_navigator.core.storage import CatalogStorage

logger = logging.getLogger(__name__)

TRENDING_VISITS_WEIGHT = 0.7
TRENDING_LIKES_WEIGHT = 0.3


class SortField(str, Enum):
    TITLE_MATCH = "title_match"
    FEATURED = "featured"
    QUALITY = "quality"
    VISITS = "visits"
    LIKES = "likes"
    CREATED = "created"
    TITLE = "title"
    TRENDING = "trending"
    ID = "id"


@dataclass(frozen=True)
class SortTerm:
    field: SortField
    descending: bool = True
    # Search text, only used by TITLE_MATCH.
    text: Optional[str] = None


OrderBy = Tuple[SortTerm, ...]

_FIELD_FOR_KEY = {
    SortKey.VISITS: SortField.VISITS,
    SortKey.LIKES: SortField.LIKES,
    SortKey.QUALITY: SortField.QUALITY,
    SortKey.CREATED: SortField.CREATED,
    SortKey.TITLE: SortField.TITLE,
    SortKey.TRENDING: SortField.TRENDING,
}

ID_TIE_BREAK = SortTerm(SortField.ID, descending=False)

FEATURED_THEN_QUALITY: OrderBy = (
    SortTerm(SortField.FEATURED, descending=True),
    SortTerm(SortField.QUALITY, descending=True),
    ID_TIE_BREAK,
)


def trending_score(entry: EntryDTO) -> float:
    """Monthly-hot composite: 0.7 x visits + 0.3 x likes, recomputed on every query."""
    return TRENDING_VISITS_WEIGHT * entry.visits + TRENDING_LIKES_WEIGHT * entry.likes


def order_for(spec: QuerySpec) -> OrderBy:
    """
    Sort terms for ``spec``, always ending with the ``id`` tie-break.

    - relevance (with text): title match first, then quality, both descending
    - default (no explicit sort, no text): featured first, then quality descending
    - any other key: that field in ``spec.sort_order``
    """
    if spec.sort_key is SortKey.RELEVANCE and spec.text:
        terms = [
            SortTerm(SortField.TITLE_MATCH, descending=True, text=spec.text),
            SortTerm(SortField.QUALITY, descending=True),
        ]
    elif spec.featured_first or spec.sort_key is SortKey.RELEVANCE:
        terms = [
            SortTerm(SortField.FEATURED, descending=True),
            SortTerm(SortField.QUALITY, descending=True),
        ]
    else:
        terms = [SortTerm(_FIELD_FOR_KEY[spec.sort_key], descending=spec.sort_order is SortOrder.DESC)]
    terms.append(ID_TIE_BREAK)
    return tuple(terms)


def sort_value(entry: EntryDTO, term: SortTerm) -> Any:
    """Value of ``entry`` under ``term``, mirroring the SQL translation."""
    field = term.field
    if field is SortField.TITLE_MATCH:
        return int((term.text or "").lower() in entry.title.lower())
    if field is SortField.FEATURED:
        return int(entry.is_featured)
    if field is SortField.QUALITY:
        return entry.quality_score
    if field is SortField.VISITS:
        return entry.visits
    if field is SortField.LIKES:
        return entry.likes
    if field is SortField.CREATED:
        return entry.created_at
    if field is SortField.TITLE:
        return entry.title.lower()
    if field is SortField.TRENDING:
        return trending_score(entry)
    return entry.id


def sort_entries(entries: Iterable[EntryDTO], order_by: OrderBy) -> List[EntryDTO]:
    """Order ``entries`` by ``order_by`` in memory (stable multi-pass sort, last term first)."""
    ordered = list(entries)
    for term in reversed(order_by):
        ordered.sort(key=lambda entry: sort_value(entry, term), reverse=term.descending)
    return ordered


async def select(predicates: PredicateSet, spec: QuerySpec, storage: "CatalogStorage") -> PagedResult:
    """
    Fetch one ranked page for ``predicates``.

    ``total`` comes from a separate count against the same predicate set; the
    two round-trips are not transactionally linked. A page past the end
    yields no items but keeps the exact ``total`` and ``total_pages``.
    """
    order_by = order_for(spec)
    if predicates.matches_nothing:
        logger.info("Category filter resolved to no categories; returning an empty page")
        return PagedResult.build([], spec.page, spec.page_size, 0)

    total = await storage.count_candidates(predicates)
    items: List[EntryDTO] = []
    if spec.offset < total:
        items = await storage.fetch_candidates(predicates, order_by, spec.offset, spec.page_size)
    return PagedResult.build(items, spec.page, spec.page_size, total)


async def category_leaders(
    predicates: PredicateSet,
    spec: QuerySpec,
    storage: "CatalogStorage",
    categories: Sequence[CategoryDTO],
    per_category: int = 3,
) -> List[LeaderEntryDTO]:
    """
    Top ``per_category`` entries for each of ``categories``, flattened.

    Entries are grouped by direct category membership and ranked with the
    same ordering as the list mode. The category predicate is dropped from
    ``predicates``: grouping replaces it. No paging is applied.
    """
    if not categories:
        return []

    order_by = order_for(spec)
    candidates = await storage.fetch_candidates(predicates.without_category(), order_by, 0, None)

    wanted = {category.id for category in categories}
    by_category: Dict[int, List[EntryDTO]] = defaultdict(list)
    for entry in candidates:
        for category_id in entry.category_ids:
            if category_id in wanted and len(by_category[category_id]) < per_category:
                by_category[category_id].append(entry)

    leaders: List[LeaderEntryDTO] = []
    for category in categories:
        for rank, entry in enumerate(by_category.get(category.id, []), start=1):
            leaders.append(
                LeaderEntryDTO(
                    **entry.model_dump(),
                    category_rank=rank,
                    category_name=category.name,
                )
            )
    logger.info(f"Category leaders: {len(leaders)} slots across {len(categories)} categories")
    return leaders


async def recommend(predicates: PredicateSet, spec: RecommendationSpec, storage: "CatalogStorage") -> List[EntryDTO]:
    """Up to ``spec.limit`` entries in featured-then-quality order. No count, no paging."""
    if predicates.matches_nothing:
        return []
    return await storage.fetch_candidates(predicates, FEATURED_THEN_QUALITY, 0, spec.limit)
