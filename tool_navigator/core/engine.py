"""
Catalog Query Engine.

Wires the three pure stages (normalize -> build -> select) to an injected
storage collaborator. The engine is stateless per call: it holds only the
storage handle and a clock, and never caches, retries or swallows storage
failures.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from tool_navigator.config.settings import settings
from tool_navigator.core import normalizer, predicates, ranker
from tool_navigator.core.errors import StorageError
from tool_navigator.core.predicates import CategoryIn, CategoryIndex, PredicateSet
from tool_navigator.core.storage import CatalogStorage
from tool_navigator.core.types import QuerySpec, RawCriteria
from tool_navigator.models.dtos import CategoryDTO, CategoryTreeNodeDTO, EntryDTO, LeaderEntryDTO, PagedResult
from tool_navigator.models.enums import RankingType
from tool_navigator.monitoring.metrics import QueryTimer, record_query, record_storage_error

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CatalogQueryEngine:
    """
    Answers catalog queries against a CatalogStorage.

    Args:
        storage: The storage collaborator. Any StorageError it raises
            propagates to the caller after being logged.
        clock: Returns the reference time for time-range filters.
        leaders_per_category: Slots per category in category-leaders mode.
    """

    def __init__(
        self,
        storage: CatalogStorage,
        clock: Callable[[], datetime] = utc_now,
        leaders_per_category: int = settings.LEADERS_PER_CATEGORY,
    ):
        self.storage = storage
        self.clock = clock
        self.leaders_per_category = leaders_per_category

    async def _category_index(self, slug: Optional[str]) -> CategoryIndex:
        """Fetch the requested category and its direct children, once per call."""
        if slug is None:
            return CategoryIndex()
        category = await self.storage.resolve_category(slug)
        if category is None:
            logger.info(f"Unknown category slug {slug!r}; query will match nothing")
            return CategoryIndex()
        children = await self.storage.list_category_children(category.id)
        return CategoryIndex([category, *children])

    async def _leader_categories(self, slug: Optional[str]) -> List[CategoryDTO]:
        if slug is None:
            return await self.storage.list_categories()
        category = await self.storage.resolve_category(slug)
        if category is None:
            return []
        if category.parent_id is not None:
            return [category]
        return [category, *await self.storage.list_category_children(category.id)]

    def _failed(self, e: StorageError) -> None:
        record_storage_error(e.operation)
        logger.error(f"Catalog query failed: {e}", exc_info=True)

    async def query(self, raw: Optional[RawCriteria] = None) -> PagedResult:
        """Normalize ``raw`` and return one ranked, paginated page."""
        return await self.run(normalizer.normalize(raw))

    async def run(
        self,
        spec: QuerySpec,
        mode: str = "search",
        categories: Optional[CategoryIndex] = None,
    ) -> PagedResult:
        """
        Execute an already-normalized QuerySpec.

        ``categories`` may be supplied when the caller already fetched the
        requested category; otherwise it is fetched here.
        """
        logger.debug(f"Running {mode} query: {spec}")
        with QueryTimer(mode):
            try:
                if categories is None:
                    categories = await self._category_index(spec.category_slug)
                predicate_set = predicates.build(spec, self.clock(), categories)
                result = await ranker.select(predicate_set, spec, self.storage)
            except StorageError as e:
                self._failed(e)
                raise
        record_query(mode, len(result.items))
        logger.info(
            f"{mode} query returned {len(result.items)} of {result.total} entries "
            f"(page {result.page}/{result.total_pages})"
        )
        return result

    async def category_page(self, slug: str, raw: Optional[RawCriteria] = None) -> Optional[PagedResult]:
        """
        Listing for one category page: default ordering, hierarchical scope.

        Only paging is taken from ``raw``. Returns None when ``slug`` names no
        category, so the caller can tell "unknown" apart from "empty".
        """
        raw = raw or {}
        spec = normalizer.normalize({"category": slug, "page": raw.get("page"), "limit": raw.get("limit")})
        try:
            categories = await self._category_index(slug)
        except StorageError as e:
            self._failed(e)
            raise
        if categories.resolve(slug) is None:
            return None
        return await self.run(spec, mode="category", categories=categories)

    async def category_leaders(
        self,
        raw: Optional[RawCriteria] = None,
        spec: Optional[QuerySpec] = None,
    ) -> List[LeaderEntryDTO]:
        """
        Top entries per category, flattened in category order.

        Without a category every category is included; with a top-level
        category that category and its children; with a child category only
        that category; an unknown slug yields an empty list.
        """
        if spec is None:
            spec = normalizer.apply_ranking_preset(RankingType.CATEGORY_LEADERS, raw)
        mode = RankingType.CATEGORY_LEADERS.value
        with QueryTimer(mode):
            try:
                categories = await self._leader_categories(spec.category_slug)
                predicate_set = predicates.build(spec, self.clock(), CategoryIndex(categories))
                leaders = await ranker.category_leaders(
                    predicate_set,
                    spec,
                    self.storage,
                    categories,
                    per_category=self.leaders_per_category,
                )
            except StorageError as e:
                self._failed(e)
                raise
        record_query(mode, len(leaders))
        return leaders

    async def ranking(
        self,
        ranking_type: Union[RankingType, str],
        raw: Optional[RawCriteria] = None,
    ) -> Union[PagedResult, List[LeaderEntryDTO]]:
        """
        Run a ranking preset. Raises UnknownRankingType for unrecognized tokens.

        ``category-leaders`` returns a flat list of LeaderEntryDTO; every other
        preset returns a PagedResult.
        """
        if not isinstance(ranking_type, RankingType):
            ranking_type = normalizer.resolve_ranking_type(ranking_type)
        spec = normalizer.apply_ranking_preset(ranking_type, raw)
        if ranking_type is RankingType.CATEGORY_LEADERS:
            return await self.category_leaders(spec=spec)
        return await self.run(spec, mode=f"ranking:{ranking_type.value}")

    async def recommendations(self, raw: Optional[RawCriteria] = None) -> List[EntryDTO]:
        """
        Entries worth recommending: featured, high quality, or both visited
        and liked enough. Optionally scoped to a category and excluding one
        entry (typically the one being viewed).
        """
        spec = normalizer.normalize_recommendations(raw)
        mode = "recommendations"
        with QueryTimer(mode):
            try:
                categories = await self._category_index(spec.category_slug)
                predicate_set = predicates.build_recommendations(spec, categories)
                items = await ranker.recommend(predicate_set, spec, self.storage)
            except StorageError as e:
                self._failed(e)
                raise
        record_query(mode, len(items))
        logger.info(f"Recommendations returned {len(items)} entries (limit {spec.limit})")
        return items

    async def category_tree(self) -> List[CategoryTreeNodeDTO]:
        """Top-level categories with their children and approved, active entry counts."""
        try:
            categories = await self.storage.list_categories()
            base = predicates.base_predicates()
            counts = {}
            for category in categories:
                counts[category.id] = await self.storage.count_candidates(
                    PredicateSet(base + (CategoryIn(frozenset({category.id})),))
                )
        except StorageError as e:
            self._failed(e)
            raise

        nodes = {
            category.id: CategoryTreeNodeDTO(**category.model_dump(), entry_count=counts[category.id])
            for category in categories
        }
        roots: List[CategoryTreeNodeDTO] = []
        for category in categories:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id) if category.parent_id is not None else None
            if parent is not None:
                parent.children.append(node)
            elif category.parent_id is None:
                roots.append(node)
        return roots
