"""
Storage collaborator interface for the catalog query engine, plus an
in-memory implementation.

The engine never imports a concrete storage; it receives one at
construction time. ``InMemoryCatalogStorage`` backs the unit tests and the
CLI ``--fixture`` mode; ``tool_navigator.storage.sql_storage`` provides the
database-backed implementation.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from pydantic import ValidationError

from tool_navigator.core.errors import StorageError
from tool_navigator.core.predicates import PredicateSet
from tool_navigator.core.ranker import OrderBy, sort_entries
from tool_navigator.models.dtos import CategoryDTO, EntryDTO

logger = logging.getLogger(__name__)


class CatalogStorage(Protocol):
    """Read-only access to entries and categories. Every call may raise StorageError."""

    async def fetch_candidates(
        self,
        predicates: PredicateSet,
        order_by: OrderBy,
        offset: int,
        limit: Optional[int],
    ) -> List[EntryDTO]:
        ...

    async def count_candidates(self, predicates: PredicateSet) -> int:
        ...

    async def resolve_category(self, slug: str) -> Optional[CategoryDTO]:
        ...

    async def list_category_children(self, category_id: int) -> List[CategoryDTO]:
        ...

    async def list_categories(self) -> List[CategoryDTO]:
        ...


def category_sort_key(category: CategoryDTO):
    return (category.sort_order, category.name.lower(), category.id)


class InMemoryCatalogStorage:
    """
    List-backed CatalogStorage.

    Evaluates predicates with ``PredicateSet.matches`` and orders with
    ``sort_entries``, so it honours exactly the same semantics as the SQL
    translation.
    """

    def __init__(self, entries: Iterable[EntryDTO] = (), categories: Iterable[CategoryDTO] = ()):
        self.entries: List[EntryDTO] = list(entries)
        self.categories: List[CategoryDTO] = list(categories)

    @classmethod
    def from_fixture(cls, path: Union[str, Path]) -> "InMemoryCatalogStorage":
        """
        Load a JSON fixture of the form ``{"categories": [...], "entries": [...]}``.

        Field names may be camelCase or snake_case.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            categories = [CategoryDTO.model_validate(item) for item in data.get("categories", [])]
            entries = [EntryDTO.model_validate(item) for item in data.get("entries", [])]
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            raise StorageError("load_fixture", f"Could not read fixture {path}: {e}", e) from e
        logger.info(f"Loaded fixture {path}: {len(entries)} entries, {len(categories)} categories")
        return cls(entries, categories)

    def _matching(self, predicates: PredicateSet) -> List[EntryDTO]:
        return [entry for entry in self.entries if predicates.matches(entry)]

    async def fetch_candidates(
        self,
        predicates: PredicateSet,
        order_by: OrderBy,
        offset: int,
        limit: Optional[int],
    ) -> List[EntryDTO]:
        ordered = sort_entries(self._matching(predicates), order_by)
        if limit is None:
            return ordered[offset:]
        return ordered[offset:offset + limit]

    async def count_candidates(self, predicates: PredicateSet) -> int:
        return len(self._matching(predicates))

    async def resolve_category(self, slug: str) -> Optional[CategoryDTO]:
        for category in self.categories:
            if category.slug == slug:
                return category
        return None

    async def list_category_children(self, category_id: int) -> List[CategoryDTO]:
        children = [c for c in self.categories if c.parent_id == category_id]
        return sorted(children, key=category_sort_key)

    async def list_categories(self) -> List[CategoryDTO]:
        return sorted(self.categories, key=category_sort_key)
