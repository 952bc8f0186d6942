from datetime import timedelta

import pytest

from tool_navigator.core.engine import CatalogQueryEngine
from tool_navigator.core.errors import StorageError, UnknownRankingType
from tool_navigator.core.storage import InMemoryCatalogStorage
from tool_navigator.models.dtos import PagedResult
from tool_navigator.models.enums import RankingType


def ids(entries):
    return [entry.id for entry in entries]


@pytest.fixture
def populate(storage):
    def _populate(*entries):
        storage.entries.extend(entries)
        return storage
    return _populate


class TestQuery:
    """End-to-end behaviour of CatalogQueryEngine.query."""

    async def test_default_ordering_scenario(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, quality_score=70, is_featured=True),
            make_entry(id=2, quality_score=90),
            make_entry(id=3, quality_score=50),
        )
        result = await engine.query({})
        assert ids(result.items) == [1, 2, 3]

    async def test_default_ordering_invariant(self, engine, populate, make_entry):
        populate(*[
            make_entry(quality_score=(i * 37) % 101, is_featured=(i % 4 == 0)) for i in range(1, 41)
        ])
        items = (await engine.query({"limit": "200"})).items
        assert len(items) == 40
        for a, b in zip(items, items[1:]):
            assert a.is_featured >= b.is_featured
            if a.is_featured == b.is_featured:
                assert a.quality_score >= b.quality_score

    async def test_title_match_beats_quality(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, title="Helper", description="Great for chat", quality_score=99),
            make_entry(id=2, title="ChatMate", description="Assistant", quality_score=10),
        )
        result = await engine.query({"q": "chat", "sortBy": "relevance"})
        assert ids(result.items) == [2, 1]

    async def test_relevance_scenario(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, title="Paint studio", description="Helps a writer", quality_score=95),
            make_entry(id=2, title="Writer Pro", quality_score=40),
            make_entry(id=3, title="AI Writer", quality_score=60),
            make_entry(id=4, title="Unrelated", description="Nothing here", quality_score=99),
        )
        result = await engine.query({"q": "writer"})
        assert ids(result.items) == [3, 2, 1]
        assert result.total == 3

    async def test_determinism(self, engine, populate, make_entry):
        populate(*[make_entry(quality_score=50, visits=7) for _ in range(12)])
        first = await engine.query({"sortBy": "visits", "limit": "5", "page": "2"})
        second = await engine.query({"sortBy": "visits", "limit": "5", "page": "2"})
        assert ids(first.items) == ids(second.items)

    async def test_hierarchical_expansion(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, category_ids=[1]),
            make_entry(id=2, category_ids=[2]),
            make_entry(id=3, category_ids=[3]),
            make_entry(id=4, category_ids=[4]),
        )
        top = await engine.query({"category": "ai-writing"})
        child = await engine.query({"category": "copywriting"})
        assert sorted(ids(top.items)) == [1, 2, 3]
        assert ids(child.items) == [2]
        assert set(ids(child.items)) <= set(ids(top.items))

    async def test_unknown_category_is_empty_not_unfiltered(self, engine, populate, make_entry):
        populate(make_entry(id=1, category_ids=[1]))
        result = await engine.query({"category": "no-such-category"})
        assert result.items == [] and result.total == 0

    async def test_free_pricing_or_semantics(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, pricing_model="free"),
            make_entry(id=2, pricing_model="subscription", has_free_version=True),
            make_entry(id=3, pricing_model="paid"),
        )
        result = await engine.query({"freeOnly": "true"})
        assert sorted(ids(result.items)) == [1, 2]

    async def test_time_range_uses_injected_clock(self, engine, populate, make_entry, now):
        populate(
            make_entry(id=1, created_at=now - timedelta(hours=1)),
            make_entry(id=2, created_at=now - timedelta(days=40)),
        )
        assert ids((await engine.query({"timeRange": "month"})).items) == [1]
        assert sorted(ids((await engine.query({"timeRange": "year"})).items)) == [1, 2]

    async def test_invalid_values_never_raise(self, engine, populate, make_entry):
        populate(make_entry(id=1))
        result = await engine.query({
            "page": "x", "limit": "-3", "timeRange": "eon", "sortBy": "?", "minQualityScore": "lots",
        })
        assert result.page == 1 and result.page_size == 1
        assert ids(result.items) == [1]

    async def test_storage_error_propagates(self, mocker, now):
        storage = mocker.AsyncMock()
        storage.count_candidates.side_effect = StorageError("count_candidates", "connection reset")
        engine = CatalogQueryEngine(storage, clock=lambda: now)
        with pytest.raises(StorageError):
            await engine.query({})

    async def test_category_fetched_once_per_call(self, engine, storage, mocker):
        resolve = mocker.spy(storage, "resolve_category")
        children = mocker.spy(storage, "list_category_children")
        await engine.query({"category": "ai-writing"})
        assert resolve.call_count == 1
        assert children.call_count == 1


class TestRanking:
    """Ranking presets through the engine."""

    async def test_popular(self, engine, populate, make_entry):
        populate(make_entry(id=1, visits=5), make_entry(id=2, visits=50), make_entry(id=3, visits=20))
        result = await engine.ranking("popular")
        assert isinstance(result, PagedResult)
        assert ids(result.items) == [2, 3, 1]

    async def test_free_preset(self, engine, populate, make_entry):
        populate(make_entry(id=1, pricing_model="paid"), make_entry(id=2, pricing_model="free"))
        assert ids((await engine.ranking(RankingType.FREE)).items) == [2]

    async def test_monthly_hot(self, engine, populate, make_entry):
        populate(make_entry(id=1, visits=100, likes=0), make_entry(id=2, visits=0, likes=200))
        assert ids((await engine.ranking("monthly-hot")).items) == [1, 2]

    async def test_unknown_type(self, engine):
        with pytest.raises(UnknownRankingType):
            await engine.ranking("hottest")

    async def test_category_leaders_type_returns_list(self, engine, populate, make_entry):
        populate(make_entry(id=1, category_ids=[4]))
        result = await engine.ranking("category-leaders")
        assert isinstance(result, list)
        assert [(e.id, e.category_name) for e in result] == [(1, "Image Generation")]


class TestCategoryLeaders:
    """Leader scope selection by category slug."""

    @pytest.fixture
    def filled(self, populate, make_entry):
        return populate(
            make_entry(id=1, quality_score=90, category_ids=[1]),
            make_entry(id=2, quality_score=80, category_ids=[2]),
            make_entry(id=3, quality_score=70, category_ids=[3]),
            make_entry(id=4, quality_score=60, category_ids=[4]),
        )

    async def test_all_categories_in_display_order(self, engine, filled):
        leaders = await engine.category_leaders({})
        assert [(e.id, e.category_name) for e in leaders] == [
            (1, "AI Writing"),
            (2, "Copywriting"),
            (3, "Blog Writing"),
            (4, "Image Generation"),
        ]

    async def test_top_level_slug_includes_children(self, engine, filled):
        leaders = await engine.category_leaders({"category": "ai-writing"})
        assert [e.category_name for e in leaders] == ["AI Writing", "Copywriting", "Blog Writing"]

    async def test_child_slug_only_itself(self, engine, filled):
        leaders = await engine.category_leaders({"category": "blog-writing"})
        assert [(e.id, e.category_rank) for e in leaders] == [(3, 1)]

    async def test_unknown_slug_is_empty(self, engine, filled):
        assert await engine.category_leaders({"category": "nope"}) == []

    async def test_leaders_per_category(self, storage, make_entry, now):
        storage.entries.extend(make_entry(id=i, quality_score=i, category_ids=[4]) for i in range(1, 6))
        engine = CatalogQueryEngine(storage, clock=lambda: now, leaders_per_category=2)
        leaders = await engine.category_leaders({"category": "image-generation"})
        assert [(e.id, e.category_rank) for e in leaders] == [(5, 1), (4, 2)]


class TestCategoryPages:
    """Category tree and category page listings."""

    async def test_category_tree_counts_direct_members(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, category_ids=[1]),
            make_entry(id=2, category_ids=[2]),
            make_entry(id=3, category_ids=[2], active=False),
        )
        tree = await engine.category_tree()
        assert [node.slug for node in tree] == ["ai-writing", "image-generation"]
        ai_writing = tree[0]
        assert ai_writing.entry_count == 1
        assert [(child.slug, child.entry_count) for child in ai_writing.children] == [
            ("copywriting", 1),
            ("blog-writing", 0),
        ]

    async def test_category_page_uses_default_ordering(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, quality_score=60, category_ids=[2]),
            make_entry(id=2, quality_score=40, is_featured=True, category_ids=[3]),
            make_entry(id=3, quality_score=99, category_ids=[4]),
        )
        result = await engine.category_page("ai-writing", {"sortBy": "title", "limit": "10"})
        assert ids(result.items) == [2, 1]
        assert result.page_size == 10

    async def test_category_page_unknown_slug(self, engine):
        assert await engine.category_page("missing") is None


class TestRecommendations:
    """Recommendations through the engine."""

    async def test_bars_and_ordering(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, quality_score=40, visits=60, likes=12),
            make_entry(id=2, quality_score=80),
            make_entry(id=3, quality_score=30, is_featured=True),
            make_entry(id=4, quality_score=65, visits=100, likes=5),
            make_entry(id=5, quality_score=95, active=False),
        )
        assert ids(await engine.recommendations({})) == [3, 2, 1]

    async def test_category_exclude_and_limit(self, engine, populate, make_entry):
        populate(
            make_entry(id=1, quality_score=90, category_ids=[2]),
            make_entry(id=2, quality_score=80, category_ids=[3]),
            make_entry(id=3, quality_score=85, category_ids=[1]),
            make_entry(id=4, quality_score=99, category_ids=[4]),
        )
        assert ids(await engine.recommendations({"category": "ai-writing", "exclude": "1"})) == [3, 2]
        assert ids(await engine.recommendations({"category": "ai-writing", "limit": "1"})) == [1]

    async def test_default_limit(self, engine, populate, make_entry):
        populate(*[make_entry(quality_score=80) for _ in range(8)])
        assert len(await engine.recommendations()) == 6

    async def test_unknown_category_skips_fetch(self, engine, storage, populate, make_entry, mocker):
        populate(make_entry(id=1, quality_score=90))
        fetch = mocker.spy(storage, "fetch_candidates")
        assert await engine.recommendations({"category": "nope"}) == []
        fetch.assert_not_called()

    async def test_storage_error_propagates(self, mocker, now):
        storage = mocker.AsyncMock()
        storage.fetch_candidates.side_effect = StorageError("fetch_candidates", "connection reset")
        engine = CatalogQueryEngine(storage, clock=lambda: now)
        with pytest.raises(StorageError):
            await engine.recommendations({})

async def test_fixture_storage_round_trip(tmp_path, now):
    fixture = tmp_path / "catalog.json"
    fixture.write_text(
        '{"categories": [{"id": 1, "slug": "chat", "name": "Chat"}],'
        ' "entries": [{"id": 7, "title": "Chatty", "status": "approved", "categoryIds": [1],'
        ' "createdAt": "2026-01-01T00:00:00Z"}]}'
    )
    engine = CatalogQueryEngine(InMemoryCatalogStorage.from_fixture(fixture), clock=lambda: now)
    result = await engine.query({"category": "chat"})
    assert ids(result.items) == [7]


def test_missing_fixture_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        InMemoryCatalogStorage.from_fixture(tmp_path / "missing.json")


def test_fixture_with_invalid_row_raises_storage_error(tmp_path):
    fixture = tmp_path / "catalog.json"
    fixture.write_text('{"entries": [{"id": 1, "title": "x", "createdAt": "2026-01-01T00:00:00"}]}')
    with pytest.raises(StorageError):
        InMemoryCatalogStorage.from_fixture(fixture)
