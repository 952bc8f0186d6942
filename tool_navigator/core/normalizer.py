"""
Criteria Normalizer for the catalog query engine.

Turns raw filter input (query-string parameters or a JSON body) into a
strict QuerySpec. Normalization is total: unknown or malformed values fall
back to documented defaults instead of raising, so handlers never need
bespoke error paths for filter combinations.
"""

import dataclasses
import logging
from typing import Any, Iterable, List, Optional

from tool_navigator.config.settings import settings
from tool_navigator.core.errors import UnknownRankingType
from tool_navigator.core.types import QuerySpec, RawCriteria, RecommendationSpec
from tool_navigator.models.enums import PricingModel, RankingType, SortKey, SortOrder, TimeRange

logger = logging.getLogger(__name__)

ALL_TOKEN = "all"

# Quality scores are moderated on a 0-100 scale.
MAX_QUALITY_SCORE = 100

# Entry ids are 32-bit serials.
MAX_ENTRY_ID = 2**31 - 1

# Sort tokens accepted from callers, lower-cased. TRENDING is deliberately
# absent: it is only reachable through the monthly-hot preset.
_SORT_ALIASES = {
    "relevance": SortKey.RELEVANCE,
    "visits": SortKey.VISITS,
    "popular": SortKey.VISITS,
    "likes": SortKey.LIKES,
    "quality": SortKey.QUALITY,
    "qualityscore": SortKey.QUALITY,
    "quality_score": SortKey.QUALITY,
    "created": SortKey.CREATED,
    "createdat": SortKey.CREATED,
    "created_at": SortKey.CREATED,
    "newest": SortKey.CREATED,
    "title": SortKey.TITLE,
}

_TRUE_TOKENS = {"true", "1", "yes", "on"}
_FALSE_TOKENS = {"false", "0", "no", "off", ""}

# (sort key, free_only) per ranking type. Every preset sorts descending.
_RANKING_PRESETS = {
    RankingType.POPULAR: (SortKey.VISITS, False),
    RankingType.TOP_RATED: (SortKey.QUALITY, False),
    RankingType.TRENDING: (SortKey.LIKES, False),
    RankingType.FREE: (SortKey.QUALITY, True),
    RankingType.NEW: (SortKey.CREATED, False),
    RankingType.MONTHLY_HOT: (SortKey.TRENDING, False),
    RankingType.CATEGORY_LEADERS: (SortKey.QUALITY, False),
}


def _first(raw: RawCriteria, *keys: str) -> Any:
    """Return the first present value among ``keys``, unwrapping single-item lists."""
    for key in keys:
        if key in raw and raw[key] is not None:
            value = raw[key]
            if isinstance(value, (list, tuple)):
                if not value:
                    continue
                return value[0]
            return value
    return None


def _all_values(raw: RawCriteria, *keys: str) -> List[Any]:
    values: List[Any] = []
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            values.extend(value)
        else:
            values.append(value)
    return values


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token not in _FALSE_TOKENS:
        logger.debug(f"Unrecognized boolean token {value!r}, treating as false")
    return False


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _split_tokens(values: Iterable[Any]) -> List[str]:
    tokens: List[str] = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip().lower()
            if part:
                tokens.append(part)
    return tokens


def _pricing_models(raw: RawCriteria) -> tuple:
    models: List[PricingModel] = []
    for token in _split_tokens(_all_values(raw, "pricingModel", "pricing_model", "price")):
        if token == ALL_TOKEN:
            continue
        try:
            model = PricingModel(token)
        except ValueError:
            logger.debug(f"Dropping unknown pricing token {token!r}")
            continue
        if model not in models:
            models.append(model)
    return tuple(models)


def _enum_or_default(enum_cls, value: Any, default):
    text = _to_text(value)
    if text is None:
        return default
    try:
        return enum_cls(text.lower())
    except ValueError:
        return default


def normalize(
    raw: Optional[RawCriteria] = None,
    *,
    default_page_size: int = settings.DEFAULT_PAGE_SIZE,
    max_page_size: int = settings.MAX_PAGE_SIZE,
) -> QuerySpec:
    """
    Canonicalize raw criteria into a QuerySpec.

    Args:
        raw: Mapping of request parameters. List values (repeated query
            parameters) are accepted for every key.
        default_page_size: Page size used when ``limit`` is missing or not an integer.
        max_page_size: Upper clamp for ``limit``.

    Returns:
        QuerySpec: The normalized criteria. Never raises on bad input.
    """
    raw = raw or {}

    text = _to_text(_first(raw, "q", "query", "text"))

    category_slug = _to_text(_first(raw, "category", "categorySlug", "category_slug"))
    if category_slug is not None and category_slug.lower() == ALL_TOKEN:
        category_slug = None

    min_quality = _to_int(_first(raw, "minQualityScore", "minQuality", "min_quality"))
    if min_quality is None:
        min_quality = 0
    min_quality = max(0, min(min_quality, MAX_QUALITY_SCORE))

    sort_token = _to_text(_first(raw, "sortBy", "sortKey", "sort_by", "sort"))
    explicit_sort = _SORT_ALIASES.get(sort_token.lower()) if sort_token else None
    if explicit_sort is None:
        sort_key = SortKey.RELEVANCE if text else SortKey.QUALITY
    else:
        sort_key = explicit_sort
    featured_first = False
    if sort_key is SortKey.RELEVANCE and not text:
        sort_key = SortKey.QUALITY
        featured_first = True
    elif explicit_sort is None and not text:
        featured_first = True

    page = _to_int(_first(raw, "page"))
    if page is None or page < 1:
        page = 1

    page_size = _to_int(_first(raw, "limit", "pageSize", "page_size"))
    if page_size is None:
        page_size = default_page_size
    page_size = max(1, min(page_size, max_page_size))

    spec = QuerySpec(
        text=text,
        category_slug=category_slug,
        pricing_models=_pricing_models(raw),
        min_quality=min_quality,
        trusted_only=_to_bool(_first(raw, "isTrusted", "trustedOnly", "trusted_only")),
        featured_only=_to_bool(_first(raw, "isFeatured", "featuredOnly", "featured_only")),
        free_only=_to_bool(_first(raw, "freeOnly", "hasFreePlan", "free_only")),
        time_range=_enum_or_default(TimeRange, _first(raw, "timeRange", "time_range"), TimeRange.ALL),
        sort_key=sort_key,
        sort_order=_enum_or_default(SortOrder, _first(raw, "sortOrder", "sort_order"), SortOrder.DESC),
        page=page,
        page_size=page_size,
        featured_first=featured_first,
    )
    logger.debug(f"Normalized criteria: {spec}")
    return spec


def resolve_ranking_type(token: str) -> RankingType:
    """Map a ranking type token to its enum member, raising UnknownRankingType."""
    try:
        return RankingType((token or "").strip().lower())
    except ValueError:
        raise UnknownRankingType(token)


def apply_ranking_preset(
    ranking_type: RankingType,
    raw: Optional[RawCriteria] = None,
    **normalize_kwargs: Any,
) -> QuerySpec:
    """
    Normalize ``raw`` and overlay the sort (and pricing) of a ranking preset.

    The preset replaces any caller-provided sort; every other filter the
    caller passed (category, time range, paging...) is kept.
    """
    sort_key, free_only = _RANKING_PRESETS[ranking_type]
    spec = normalize(raw, **normalize_kwargs)
    return dataclasses.replace(
        spec,
        sort_key=sort_key,
        sort_order=SortOrder.DESC,
        featured_first=False,
        free_only=spec.free_only or free_only,
    )


def normalize_recommendations(
    raw: Optional[RawCriteria] = None,
    *,
    default_limit: int = settings.RECOMMENDATION_LIMIT,
    max_limit: int = settings.MAX_PAGE_SIZE,
) -> RecommendationSpec:
    """
    Canonicalize raw recommendation criteria: ``category``, ``exclude`` and ``limit``.

    An ``exclude`` that cannot name an entry is dropped rather than rejected.
    """
    raw = raw or {}

    category_slug = _to_text(_first(raw, "category", "categorySlug", "category_slug"))
    if category_slug is not None and category_slug.lower() == ALL_TOKEN:
        category_slug = None

    exclude_id = _to_int(_first(raw, "exclude", "excludeId", "exclude_id"))
    if exclude_id is not None and not 1 <= exclude_id <= MAX_ENTRY_ID:
        exclude_id = None

    limit = _to_int(_first(raw, "limit"))
    if limit is None:
        limit = default_limit
    limit = max(1, min(limit, max_limit))

    spec = RecommendationSpec(category_slug=category_slug, exclude_id=exclude_id, limit=limit)
    logger.debug(f"Normalized recommendation criteria: {spec}")
    return spec
