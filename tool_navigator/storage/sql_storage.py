"""
SQLAlchemy implementation of the CatalogStorage collaborator.

Predicates and sort terms produced by the core are translated into
SQLAlchemy 2.0 ``select`` statements over WebsiteORM. The session is
injected by the caller (a FastAPI dependency or the CLI) and is only read
from; this module never commits.
"""

import asyncio
import logging
from functools import singledispatch
from typing import List, Optional

from sqlalchemy import Select, and_, case, false, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from tool_navigator.core.errors import StorageError
from tool_navigator.core.predicates import (
    CategoryIn,
    CreatedSince,
    FieldEquals,
    FreeAvailable,
    IdNot,
    MinQuality,
    PredicateSet,
    PricingIn,
    Recommendable,
    TextMatches,
)
from tool_navigator.core.ranker import (
    TRENDING_LIKES_WEIGHT,
    TRENDING_VISITS_WEIGHT,
    OrderBy,
    SortField,
    SortTerm,
)
from tool_navigator.models import CategoryDTO, CategoryORM, EntryDTO, WebsiteCategoryORM, WebsiteORM
from tool_navigator.models.enums import PricingModel

logger = logging.getLogger(__name__)

# Errors raised by the driver or the connection that mean "storage unavailable".
DRIVER_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@singledispatch
def to_clause(predicate) -> ColumnElement:
    """Translate one predicate into a SQLAlchemy boolean clause."""
    raise TypeError(f"No SQL translation for predicate {predicate!r}")


@to_clause.register
def _(predicate: FieldEquals) -> ColumnElement:
    column = getattr(WebsiteORM, predicate.field)
    if isinstance(predicate.value, bool):
        return column.is_(predicate.value)
    return column == predicate.value


@to_clause.register
def _(predicate: TextMatches) -> ColumnElement:
    pattern = f"%{_escape_like(predicate.text)}%"
    return or_(*(getattr(WebsiteORM, name).ilike(pattern, escape="\\") for name in predicate.fields))


@to_clause.register
def _(predicate: CategoryIn) -> ColumnElement:
    if predicate.matches_nothing:
        return false()
    member_ids = select(WebsiteCategoryORM.website_id).where(
        WebsiteCategoryORM.category_id.in_(sorted(predicate.category_ids))
    )
    return WebsiteORM.id.in_(member_ids)


@to_clause.register
def _(predicate: PricingIn) -> ColumnElement:
    return WebsiteORM.pricing_model.in_(sorted(predicate.models))


@to_clause.register
def _(predicate: FreeAvailable) -> ColumnElement:
    return or_(
        WebsiteORM.pricing_model == PricingModel.FREE.value,
        WebsiteORM.has_free_version.is_(True),
    )


@to_clause.register
def _(predicate: MinQuality) -> ColumnElement:
    return WebsiteORM.quality_score >= predicate.threshold


@to_clause.register
def _(predicate: CreatedSince) -> ColumnElement:
    return WebsiteORM.created_at >= predicate.bound


@to_clause.register
def _(predicate: IdNot) -> ColumnElement:
    return WebsiteORM.id != predicate.entry_id


@to_clause.register
def _(predicate: Recommendable) -> ColumnElement:
    return or_(
        WebsiteORM.is_featured.is_(True),
        WebsiteORM.quality_score >= predicate.min_quality,
        and_(WebsiteORM.visits >= predicate.min_visits, WebsiteORM.likes >= predicate.min_likes),
    )


def sort_expression(term: SortTerm) -> ColumnElement:
    field = term.field
    if field is SortField.TITLE_MATCH:
        matched = func.lower(WebsiteORM.title).contains((term.text or "").lower(), autoescape=True)
        return case((matched, 1), else_=0)
    if field is SortField.FEATURED:
        return WebsiteORM.is_featured
    if field is SortField.QUALITY:
        return WebsiteORM.quality_score
    if field is SortField.VISITS:
        return WebsiteORM.visits
    if field is SortField.LIKES:
        return WebsiteORM.likes
    if field is SortField.CREATED:
        return WebsiteORM.created_at
    if field is SortField.TITLE:
        return func.lower(WebsiteORM.title)
    if field is SortField.TRENDING:
        return WebsiteORM.visits * TRENDING_VISITS_WEIGHT + WebsiteORM.likes * TRENDING_LIKES_WEIGHT
    return WebsiteORM.id


def order_clauses(order_by: OrderBy) -> List[ColumnElement]:
    return [sort_expression(t).desc() if t.descending else sort_expression(t).asc() for t in order_by]


def candidates_statement(
    predicates: PredicateSet,
    order_by: OrderBy,
    offset: int = 0,
    limit: Optional[int] = None,
) -> Select:
    stmt = (
        select(WebsiteORM)
        .where(*(to_clause(p) for p in predicates))
        .order_by(*order_clauses(order_by))
    )
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def count_statement(predicates: PredicateSet) -> Select:
    return select(func.count()).select_from(WebsiteORM).where(*(to_clause(p) for p in predicates))


def category_order():
    return (CategoryORM.sort_order.asc(), func.lower(CategoryORM.name).asc(), CategoryORM.id.asc())


def to_entry(row: WebsiteORM) -> EntryDTO:
    """Map a WebsiteORM row (with its category links loaded) to an EntryDTO."""
    links = list(row.category_links or [])
    primary = next((link.category_id for link in links if link.is_primary), None)
    return EntryDTO(
        id=row.id,
        title=row.title,
        slug=row.slug,
        url=row.url,
        description=row.description or "",
        tagline=row.tagline,
        category_ids=sorted(link.category_id for link in links),
        primary_category_id=primary,
        status=row.status,
        active=row.active,
        visits=row.visits,
        likes=row.likes,
        quality_score=row.quality_score,
        pricing_model=row.pricing_model,
        has_free_version=row.has_free_version,
        is_trusted=row.is_trusted,
        is_featured=row.is_featured,
        created_at=row.created_at,
        thumbnail=row.thumbnail,
        logo_url=row.logo_url,
        tags=list(row.tags or []),
    )


class SqlAlchemyCatalogStorage:
    """CatalogStorage reading from PostgreSQL through an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _execute(self, operation: str, stmt):
        try:
            return await self.session.execute(stmt)
        except DRIVER_ERRORS as e:
            logger.error(f"Database error during {operation}: {e}")
            raise StorageError(operation, str(e) or type(e).__name__, e) from e

    async def fetch_candidates(
        self,
        predicates: PredicateSet,
        order_by: OrderBy,
        offset: int,
        limit: Optional[int],
    ) -> List[EntryDTO]:
        result = await self._execute(
            "fetch_candidates", candidates_statement(predicates, order_by, offset, limit)
        )
        return [to_entry(row) for row in result.scalars().all()]

    async def count_candidates(self, predicates: PredicateSet) -> int:
        result = await self._execute("count_candidates", count_statement(predicates))
        return result.scalar_one()

    async def resolve_category(self, slug: str) -> Optional[CategoryDTO]:
        result = await self._execute(
            "resolve_category", select(CategoryORM).where(CategoryORM.slug == slug)
        )
        row = result.scalar_one_or_none()
        return CategoryDTO.model_validate(row) if row is not None else None

    async def list_category_children(self, category_id: int) -> List[CategoryDTO]:
        result = await self._execute(
            "list_category_children",
            select(CategoryORM).where(CategoryORM.parent_id == category_id).order_by(*category_order()),
        )
        return [CategoryDTO.model_validate(row) for row in result.scalars().all()]

    async def list_categories(self) -> List[CategoryDTO]:
        result = await self._execute(
            "list_categories", select(CategoryORM).order_by(*category_order())
        )
        return [CategoryDTO.model_validate(row) for row in result.scalars().all()]
