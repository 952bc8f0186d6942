import dataclasses

import pytest

from tool_navigator.core.errors import UnknownRankingType
from tool_navigator.core.normalizer import (
    apply_ranking_preset,
    normalize,
    normalize_recommendations,
    resolve_ranking_type,
)
from tool_navigator.core.types import QuerySpec, RecommendationSpec
from tool_navigator.models.enums import PricingModel, RankingType, SortKey, SortOrder, TimeRange


def test_empty_input_gives_defaults():
    """No criteria at all: page 1 of 20, default featured-then-quality ordering."""
    spec = normalize({})
    assert spec.text is None
    assert spec.category_slug is None
    assert spec.pricing_models == ()
    assert spec.min_quality == 0
    assert not spec.trusted_only and not spec.featured_only and not spec.free_only
    assert spec.time_range is TimeRange.ALL
    assert spec.sort_key is SortKey.QUALITY
    assert spec.sort_order is SortOrder.DESC
    assert spec.featured_first is True
    assert (spec.page, spec.page_size) == (1, 20)


def test_none_input_is_accepted():
    assert normalize(None) == normalize({})


def test_text_is_trimmed_and_blank_becomes_none():
    assert normalize({"q": "  writer  "}).text == "writer"
    assert normalize({"q": "   "}).text is None


def test_text_switches_default_sort_to_relevance():
    spec = normalize({"q": "writer"})
    assert spec.sort_key is SortKey.RELEVANCE
    assert spec.featured_first is False


def test_relevance_without_text_degrades_to_default_ordering():
    spec = normalize({"sortBy": "relevance"})
    assert spec.sort_key is SortKey.QUALITY
    assert spec.featured_first is True


@pytest.mark.parametrize("token,expected", [
    ("visits", SortKey.VISITS),
    ("likes", SortKey.LIKES),
    ("quality", SortKey.QUALITY),
    ("qualityScore", SortKey.QUALITY),
    ("createdAt", SortKey.CREATED),
    ("newest", SortKey.CREATED),
    ("title", SortKey.TITLE),
])
def test_explicit_sort_tokens(token, expected):
    spec = normalize({"sortBy": token})
    assert spec.sort_key is expected
    assert spec.featured_first is False


def test_unknown_sort_falls_back_to_default():
    spec = normalize({"sortBy": "bogus"})
    assert spec.sort_key is SortKey.QUALITY
    assert spec.featured_first is True


def test_trending_is_not_reachable_from_sort_param():
    assert normalize({"sortBy": "trending"}).sort_key is not SortKey.TRENDING


def test_sort_order_parsing():
    assert normalize({"sortOrder": "ASC"}).sort_order is SortOrder.ASC
    assert normalize({"sortOrder": "sideways"}).sort_order is SortOrder.DESC


@pytest.mark.parametrize("value", ["all", "ALL", "", "  "])
def test_category_all_or_blank_is_none(value):
    assert normalize({"category": value}).category_slug is None


def test_category_slug_kept():
    assert normalize({"category": "ai-writing"}).category_slug == "ai-writing"


def test_unknown_time_range_is_all():
    assert normalize({"timeRange": "decade"}).time_range is TimeRange.ALL
    assert normalize({"timeRange": "Week"}).time_range is TimeRange.WEEK


@pytest.mark.parametrize("page,expected", [("3", 3), ("0", 1), ("-2", 1), ("abc", 1), (None, 1)])
def test_page_normalization(page, expected):
    assert normalize({"page": page}).page == expected


@pytest.mark.parametrize("limit,expected", [
    ("50", 50),
    ("0", 1),
    ("-5", 1),
    ("5000", 200),
    ("lots", 20),
])
def test_limit_clamped(limit, expected):
    assert normalize({"limit": limit}).page_size == expected


def test_custom_page_size_bounds():
    spec = normalize({"limit": "80"}, default_page_size=10, max_page_size=50)
    assert spec.page_size == 50
    assert normalize({}, default_page_size=10).page_size == 10


def test_boolean_flags():
    spec = normalize({"isTrusted": "true", "isFeatured": "1", "freeOnly": "yes"})
    assert spec.trusted_only and spec.featured_only and spec.free_only
    spec = normalize({"isTrusted": "false", "isFeatured": "nope", "freeOnly": "0"})
    assert not spec.trusted_only and not spec.featured_only and not spec.free_only


def test_has_free_plan_alias():
    assert normalize({"hasFreePlan": True}).free_only is True


def test_pricing_price_and_list_are_merged_without_duplicates():
    spec = normalize({"price": "freemium", "pricingModel": ["paid", "freemium", "nonsense"]})
    assert spec.pricing_models == (PricingModel.PAID, PricingModel.FREEMIUM)


def test_pricing_comma_separated_and_all():
    assert normalize({"pricingModel": "free,paid"}).pricing_models == (PricingModel.FREE, PricingModel.PAID)
    assert normalize({"price": "all"}).pricing_models == ()


@pytest.mark.parametrize("value,expected", [
    ("70", 70), ("-1", 0), ("high", 0), (None, 0), ("100", 100), ("101", 100), (str(10**20), 100),
])
def test_min_quality(value, expected):
    assert normalize({"minQualityScore": value}).min_quality == expected


def test_repeated_query_params_use_first_scalar():
    spec = normalize({"q": ["first", "second"], "page": ["2", "9"]})
    assert spec.text == "first"
    assert spec.page == 2


def test_spec_is_immutable():
    spec = normalize({})
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.page = 2


def test_offset():
    assert QuerySpec(page=3, page_size=20).offset == 40


class TestRankingPresets:
    """Ranking type presets layered over normalized criteria."""

    @pytest.mark.parametrize("ranking_type,sort_key", [
        (RankingType.POPULAR, SortKey.VISITS),
        (RankingType.TOP_RATED, SortKey.QUALITY),
        (RankingType.TRENDING, SortKey.LIKES),
        (RankingType.NEW, SortKey.CREATED),
        (RankingType.MONTHLY_HOT, SortKey.TRENDING),
    ])
    def test_preset_sort(self, ranking_type, sort_key):
        spec = apply_ranking_preset(ranking_type, {"sortBy": "title", "sortOrder": "asc"})
        assert spec.sort_key is sort_key
        assert spec.sort_order is SortOrder.DESC
        assert spec.featured_first is False

    def test_free_preset_sets_free_only(self):
        spec = apply_ranking_preset(RankingType.FREE)
        assert spec.free_only is True
        assert spec.sort_key is SortKey.QUALITY

    def test_preset_keeps_other_filters(self):
        spec = apply_ranking_preset(
            RankingType.POPULAR, {"category": "ai-writing", "timeRange": "month", "page": "2"}
        )
        assert spec.category_slug == "ai-writing"
        assert spec.time_range is TimeRange.MONTH
        assert spec.page == 2

    def test_resolve_ranking_type(self):
        assert resolve_ranking_type("Top-Rated") is RankingType.TOP_RATED
        assert resolve_ranking_type("category-leaders") is RankingType.CATEGORY_LEADERS

    def test_unknown_ranking_type(self):
        with pytest.raises(UnknownRankingType) as exc_info:
            resolve_ranking_type("hottest")
        assert exc_info.value.ranking_type == "hottest"


class TestRecommendationCriteria:
    """normalize_recommendations never raises either."""

    def test_defaults(self):
        assert normalize_recommendations({}) == RecommendationSpec(limit=6)
        assert normalize_recommendations(None) == RecommendationSpec(limit=6)

    def test_category(self):
        assert normalize_recommendations({"category": "copywriting"}).category_slug == "copywriting"
        assert normalize_recommendations({"category": "all"}).category_slug is None

    @pytest.mark.parametrize("value,expected", [
        ("7", 7), (["9", "3"], 9), ("0", None), ("-3", None), (str(2**31), None), ("x", None),
    ])
    def test_exclude(self, value, expected):
        assert normalize_recommendations({"exclude": value}).exclude_id == expected

    @pytest.mark.parametrize("value,expected", [("3", 3), ("0", 1), ("1000", 200), ("lots", 6)])
    def test_limit(self, value, expected):
        assert normalize_recommendations({"limit": value}).limit == expected
