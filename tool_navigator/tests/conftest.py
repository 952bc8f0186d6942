"""
Shared fixtures for the Tool Navigator test suite.

Everything here runs against InMemoryCatalogStorage; no database is needed.
"""

from datetime import datetime, timezone
from itertools import count

import pytest

from tool_navigator.core.engine import CatalogQueryEngine
from tool_navigator.core.storage import InMemoryCatalogStorage
from tool_navigator.models.dtos import CategoryDTO, EntryDTO
from tool_navigator.models.enums import EntryStatus

NOW = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def categories():
    """
    ai-writing (top-level) with children copywriting and blog-writing,
    plus an unrelated top-level image-generation.
    """
    return [
        CategoryDTO(id=1, slug="ai-writing", name="AI Writing", sort_order=1),
        CategoryDTO(id=2, slug="copywriting", name="Copywriting", parent_id=1, sort_order=1),
        CategoryDTO(id=3, slug="blog-writing", name="Blog Writing", parent_id=1, sort_order=2),
        CategoryDTO(id=4, slug="image-generation", name="Image Generation", sort_order=2),
    ]


@pytest.fixture
def make_entry():
    """Factory for approved, active entries; any field can be overridden."""
    ids = count(1)

    def _make(**overrides) -> EntryDTO:
        entry_id = overrides.pop("id", None) or next(ids)
        fields = dict(
            id=entry_id,
            title=f"Tool {entry_id}",
            slug=f"tool-{entry_id}",
            url=f"https://tool-{entry_id}.example.com",
            description="An AI tool",
            status=EntryStatus.APPROVED,
            active=True,
            quality_score=50,
            pricing_model="paid",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return EntryDTO(**fields)

    return _make


@pytest.fixture
def storage(categories):
    return InMemoryCatalogStorage([], categories)


@pytest.fixture
def engine(storage, now):
    return CatalogQueryEngine(storage, clock=lambda: now)
