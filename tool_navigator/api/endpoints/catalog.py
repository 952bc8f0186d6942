"""
Catalog API endpoints.

Search, ranking presets, recommendations and category listings over
the catalog query engine. Filter parameters are passed to the engine untouched: malformed
values are normalized there, never rejected here.
"""

import json
import logging
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tool_navigator.core.engine import CatalogQueryEngine
from tool_navigator.core.errors import InvalidRequestBody, UnknownRankingType
from tool_navigator.core.storage import CatalogStorage
from tool_navigator.models.dtos import CategoryTreeResponse, LeadersResponse, RecommendationsResponse, SearchResponse
from tool_navigator.storage.sql_storage import SqlAlchemyCatalogStorage
from tool_navigator.utils.db_session import get_db_session

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_catalog_storage(session: AsyncSession = Depends(get_db_session)) -> CatalogStorage:
    """Storage collaborator bound to the request's database session."""
    return SqlAlchemyCatalogStorage(session)


async def get_query_engine(storage: CatalogStorage = Depends(get_catalog_storage)) -> CatalogQueryEngine:
    return CatalogQueryEngine(storage)


def query_criteria(request: Request) -> Dict[str, Any]:
    """
    Raw criteria from the query string.

    Repeated parameters (``?pricingModel=free&pricingModel=paid``) become lists.
    """
    criteria: Dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        if key not in criteria:
            criteria[key] = value
        elif isinstance(criteria[key], list):
            criteria[key].append(value)
        else:
            criteria[key] = [criteria[key], value]
    return criteria


async def body_criteria(request: Request) -> Dict[str, Any]:
    """Raw criteria from a JSON request body. An empty body means no criteria."""
    raw_body = await request.body()
    if not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body)
    except ValueError as e:
        raise InvalidRequestBody(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise InvalidRequestBody("Request body must be a JSON object")
    return body


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search the catalog",
    description="Filter, rank and paginate approved catalog entries.",
)
async def search(
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> SearchResponse:
    result = await engine.query(query_criteria(request))
    return SearchResponse.from_result(result)


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search the catalog (JSON body)",
)
async def search_with_body(
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> SearchResponse:
    try:
        criteria = await body_criteria(request)
    except InvalidRequestBody as e:
        logger.warning(f"Rejected search body: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    result = await engine.query(criteria)
    return SearchResponse.from_result(result)


@router.get(
    "/rankings/category-leaders",
    response_model=LeadersResponse,
    summary="Top entries per category",
)
async def category_leaders(
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> LeadersResponse:
    leaders = await engine.category_leaders(query_criteria(request))
    return LeadersResponse(items=leaders)


@router.get(
    "/rankings/{ranking_type}",
    response_model=None,
    summary="Preset rankings",
    description="popular, top-rated, trending, free, new, monthly-hot or category-leaders.",
)
async def ranking(
    ranking_type: str,
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> Union[SearchResponse, LeadersResponse]:
    try:
        result = await engine.ranking(ranking_type, query_criteria(request))
    except UnknownRankingType as e:
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(result, list):
        return LeadersResponse(items=result)
    return SearchResponse.from_result(result)


@router.get(
    "/categories",
    response_model=CategoryTreeResponse,
    summary="Category tree with entry counts",
)
async def list_categories(engine: CatalogQueryEngine = Depends(get_query_engine)) -> CategoryTreeResponse:
    return CategoryTreeResponse(items=await engine.category_tree())


@router.get(
    "/categories/{slug}/websites",
    response_model=SearchResponse,
    summary="Entries listed on a category page",
)
async def category_websites(
    slug: str,
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> SearchResponse:
    result = await engine.category_page(slug, query_criteria(request))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Category not found: {slug}")
    return SearchResponse.from_result(result)


@router.get(
    "/recommendations",
    response_model=RecommendationsResponse,
    summary="Recommended entries",
    description="Featured or well-rated entries, optionally scoped by `category` and skipping `exclude`.",
)
async def recommendations(
    request: Request,
    engine: CatalogQueryEngine = Depends(get_query_engine),
) -> RecommendationsResponse:
    items = await engine.recommendations(query_criteria(request))
    return RecommendationsResponse.from_items(items)
