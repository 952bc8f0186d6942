"""
Predicate Builder for the catalog query engine.

Expands a QuerySpec into a conjunction of independent predicates over
catalog entries. The builder is a pure function of its inputs: the current
time and the category hierarchy are passed in, never looked up here.

Each predicate is a small frozen value object. The in-memory storage
evaluates them with ``matches``; the SQL storage translates them into
SQLAlchemy clauses.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from tool_navigator.core.types import QuerySpec, RecommendationSpec
from tool_navigator.models.dtos import CategoryDTO, EntryDTO
from tool_navigator.models.enums import EntryStatus, PricingModel, TimeRange

# Entry fields searched by the free-text predicate.
TEXT_FIELDS = ("title", "description", "tagline")

# Bars an entry must clear to be recommended.
RECOMMEND_MIN_QUALITY = 70
RECOMMEND_MIN_VISITS = 50
RECOMMEND_MIN_LIKES = 10


@dataclass(frozen=True)
class FieldEquals:
    """``entry.<field> == value`` for status and boolean flags."""
    field: str
    value: Union[str, bool]

    def matches(self, entry: EntryDTO) -> bool:
        return getattr(entry, self.field) == self.value


@dataclass(frozen=True)
class TextMatches:
    """Case-insensitive substring match on any of TEXT_FIELDS."""
    text: str
    fields: Tuple[str, ...] = TEXT_FIELDS

    def matches(self, entry: EntryDTO) -> bool:
        needle = self.text.lower()
        return any(needle in (getattr(entry, name) or "").lower() for name in self.fields)


@dataclass(frozen=True)
class CategoryIn:
    """Entry belongs to at least one of ``category_ids``. Empty ids match nothing."""
    category_ids: FrozenSet[int]

    def matches(self, entry: EntryDTO) -> bool:
        return not self.category_ids.isdisjoint(entry.category_ids)

    @property
    def matches_nothing(self) -> bool:
        return not self.category_ids


@dataclass(frozen=True)
class PricingIn:
    models: FrozenSet[str]

    def matches(self, entry: EntryDTO) -> bool:
        return entry.pricing_model in self.models


@dataclass(frozen=True)
class FreeAvailable:
    """Free pricing model OR a free tier on any other model."""

    def matches(self, entry: EntryDTO) -> bool:
        return entry.pricing_model == PricingModel.FREE.value or entry.has_free_version


@dataclass(frozen=True)
class MinQuality:
    threshold: int

    def matches(self, entry: EntryDTO) -> bool:
        return entry.quality_score >= self.threshold


@dataclass(frozen=True)
class CreatedSince:
    bound: datetime

    def matches(self, entry: EntryDTO) -> bool:
        return entry.created_at >= self.bound


@dataclass(frozen=True)
class IdNot:
    entry_id: int

    def matches(self, entry: EntryDTO) -> bool:
        return entry.id != self.entry_id


@dataclass(frozen=True)
class Recommendable:
    """Featured, OR quality at least ``min_quality``, OR both visited and liked enough."""
    min_quality: int = RECOMMEND_MIN_QUALITY
    min_visits: int = RECOMMEND_MIN_VISITS
    min_likes: int = RECOMMEND_MIN_LIKES

    def matches(self, entry: EntryDTO) -> bool:
        if entry.is_featured or entry.quality_score >= self.min_quality:
            return True
        return entry.visits >= self.min_visits and entry.likes >= self.min_likes


Predicate = Union[
    FieldEquals, TextMatches, CategoryIn, PricingIn, FreeAvailable, MinQuality, CreatedSince, IdNot, Recommendable,
]


@dataclass(frozen=True)
class PredicateSet:
    """Logical AND of predicates. Iteration yields them in build order."""
    predicates: Tuple[Predicate, ...]

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    def matches(self, entry: EntryDTO) -> bool:
        return all(predicate.matches(entry) for predicate in self.predicates)

    @property
    def category(self) -> Optional[CategoryIn]:
        for predicate in self.predicates:
            if isinstance(predicate, CategoryIn):
                return predicate
        return None

    @property
    def matches_nothing(self) -> bool:
        """True when the set is unsatisfiable (unknown category)."""
        category = self.category
        return category is not None and category.matches_nothing

    def without_category(self) -> "PredicateSet":
        return PredicateSet(tuple(p for p in self.predicates if not isinstance(p, CategoryIn)))


class CategoryIndex:
    """
    In-memory view of the category hierarchy needed for one query.

    Children are resolved through ``parent_id == category.id``; nothing here
    assumes a fixed depth.
    """

    def __init__(self, categories: Iterable[CategoryDTO] = ()):
        self._by_slug: Dict[str, CategoryDTO] = {}
        self._children: Dict[int, List[CategoryDTO]] = {}
        for category in categories:
            self._by_slug[category.slug] = category
            if category.parent_id is not None:
                self._children.setdefault(category.parent_id, []).append(category)

    def resolve(self, slug: str) -> Optional[CategoryDTO]:
        return self._by_slug.get(slug)

    def children_of(self, category_id: int) -> List[CategoryDTO]:
        return list(self._children.get(category_id, []))

    def scope(self, slug: str) -> FrozenSet[int]:
        """
        Category ids selected by ``slug``.

        A top-level category selects itself and its direct children; a child
        category selects only itself; an unknown slug selects nothing.
        """
        category = self.resolve(slug)
        if category is None:
            return frozenset()
        if category.parent_id is not None:
            return frozenset({category.id})
        return frozenset({category.id} | {child.id for child in self.children_of(category.id)})


def resolve_time_bound(time_range: TimeRange, now: datetime) -> Optional[datetime]:
    """Lower ``created_at`` bound for ``time_range`` relative to ``now``, None for ALL."""
    if time_range is TimeRange.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range is TimeRange.WEEK:
        return now - timedelta(days=7)
    if time_range is TimeRange.MONTH:
        return now - relativedelta(months=1)
    if time_range is TimeRange.QUARTER:
        return now - relativedelta(months=3)
    if time_range is TimeRange.YEAR:
        return now - relativedelta(years=1)
    return None


def base_predicates() -> Tuple[Predicate, ...]:
    """Predicates every query carries: approved and active entries only."""
    return (
        FieldEquals("status", EntryStatus.APPROVED.value),
        FieldEquals("active", True),
    )


def build(spec: QuerySpec, now: datetime, categories: Optional[CategoryIndex] = None) -> PredicateSet:
    """
    Expand ``spec`` into a PredicateSet.

    Args:
        spec: Normalized criteria.
        now: Reference time for time-range bounds.
        categories: Hierarchy containing at least the requested category and
            its children. Required only when ``spec.category_slug`` is set.

    Returns:
        PredicateSet: Conjunction of the base predicates and every filter in ``spec``.
    """
    predicates: List[Predicate] = list(base_predicates())

    if spec.text:
        predicates.append(TextMatches(spec.text))

    if spec.category_slug is not None:
        index = categories or CategoryIndex()
        predicates.append(CategoryIn(index.scope(spec.category_slug)))

    if spec.free_only:
        predicates.append(FreeAvailable())
    elif spec.pricing_models:
        predicates.append(PricingIn(frozenset(model.value for model in spec.pricing_models)))

    if spec.min_quality > 0:
        predicates.append(MinQuality(spec.min_quality))

    if spec.trusted_only:
        predicates.append(FieldEquals("is_trusted", True))

    if spec.featured_only:
        predicates.append(FieldEquals("is_featured", True))

    bound = resolve_time_bound(spec.time_range, now)
    if bound is not None:
        predicates.append(CreatedSince(bound))

    return PredicateSet(tuple(predicates))


def build_recommendations(spec: RecommendationSpec, categories: Optional[CategoryIndex] = None) -> PredicateSet:
    """Base predicates, the optional category scope and exclusion, then the Recommendable bar."""
    predicates: List[Predicate] = list(base_predicates())
    if spec.category_slug is not None:
        index = categories or CategoryIndex()
        predicates.append(CategoryIn(index.scope(spec.category_slug)))
    if spec.exclude_id is not None:
        predicates.append(IdNot(spec.exclude_id))
    predicates.append(Recommendable())
    return PredicateSet(tuple(predicates))
