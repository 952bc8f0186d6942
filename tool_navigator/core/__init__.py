"""
Core components of the catalog query engine.
"""

from .engine import CatalogQueryEngine
from .normalizer import apply_ranking_preset, normalize, normalize_recommendations, resolve_ranking_type
from .predicates import CategoryIndex, PredicateSet, build, build_recommendations
from .ranker import category_leaders, order_for, recommend, select
from .storage import CatalogStorage, InMemoryCatalogStorage
from .types import QuerySpec, RawCriteria, RecommendationSpec

__all__ = [
    "CatalogQueryEngine",
    "apply_ranking_preset",
    "normalize",
    "normalize_recommendations",
    "resolve_ranking_type",
    "CategoryIndex",
    "PredicateSet",
    "build",
    "build_recommendations",
    "category_leaders",
    "order_for",
    "recommend",
    "select",
    "CatalogStorage",
    "InMemoryCatalogStorage",
    "QuerySpec",
    "RawCriteria",
    "RecommendationSpec",
]
