"""Command-line interface for the Tool Navigator catalog."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
from typing_extensions import Annotated

from tool_navigator.config.settings import settings
from tool_navigator.core.engine import CatalogQueryEngine
from tool_navigator.core.errors import StorageError, UnknownRankingType
from tool_navigator.core.storage import InMemoryCatalogStorage
from tool_navigator.models.dtos import LeadersResponse, RecommendationsResponse, SearchResponse
from tool_navigator.utils.logging_utils import setup_logging

app = typer.Typer(help="AI Tool Navigator - query the tool catalog")

logger = logging.getLogger(__name__)

T = TypeVar("T")

FixtureOption = Annotated[
    Optional[Path],
    typer.Option("--fixture", "-f", help="JSON catalog fixture to query instead of the database"),
]


async def _with_engine(fixture: Optional[Path], action: Callable[[CatalogQueryEngine], Awaitable[T]]) -> T:
    """Run ``action`` against an engine backed by the fixture or the configured database."""
    if fixture is not None:
        return await action(CatalogQueryEngine(InMemoryCatalogStorage.from_fixture(fixture)))

    from tool_navigator.storage.sql_storage import SqlAlchemyCatalogStorage
    from tool_navigator.utils.db_session import catalog_session, dispose_engine

    try:
        async with catalog_session() as session:
            return await action(CatalogQueryEngine(SqlAlchemyCatalogStorage(session)))
    finally:
        await dispose_engine()


def _run(fixture: Optional[Path], action: Callable[[CatalogQueryEngine], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_with_engine(fixture, action))
    except StorageError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _echo_json(model) -> None:
    typer.echo(json.dumps(model.model_dump(mode="json", by_alias=True), indent=2))


def _criteria(**options: Any) -> Dict[str, Any]:
    """Drop unset options so the normalizer applies its defaults."""
    return {key: value for key, value in options.items() if value not in (None, [], False)}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log engine activity at DEBUG level")] = False,
) -> None:
    if verbose:
        setup_logging(level="DEBUG")


@app.command()
def search(
    q: Annotated[Optional[str], typer.Option("--q", "-q", help="Free-text query")] = None,
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Category slug")] = None,
    pricing_model: Annotated[Optional[List[str]], typer.Option("--pricing-model", help="Pricing model (repeatable)")] = None,
    min_quality: Annotated[Optional[int], typer.Option("--min-quality", help="Minimum quality score")] = None,
    trusted: Annotated[bool, typer.Option("--trusted", help="Trusted entries only")] = False,
    featured: Annotated[bool, typer.Option("--featured", help="Featured entries only")] = False,
    free_only: Annotated[bool, typer.Option("--free-only", help="Free or free-tier entries only")] = False,
    time_range: Annotated[Optional[str], typer.Option("--time-range", help="all, today, week, month, quarter or year")] = None,
    sort_by: Annotated[Optional[str], typer.Option("--sort-by", help="relevance, visits, likes, quality, created or title")] = None,
    sort_order: Annotated[Optional[str], typer.Option("--sort-order", help="asc or desc")] = None,
    page: Annotated[int, typer.Option("--page", help="Page number")] = 1,
    limit: Annotated[Optional[int], typer.Option("--limit", help="Page size")] = None,
    fixture: FixtureOption = None,
) -> None:
    """
    Search the catalog and print one page as JSON.
    """
    raw = _criteria(
        q=q,
        category=category,
        pricingModel=pricing_model,
        minQualityScore=min_quality,
        isTrusted=trusted,
        isFeatured=featured,
        freeOnly=free_only,
        timeRange=time_range,
        sortBy=sort_by,
        sortOrder=sort_order,
        page=page,
        limit=limit,
    )
    result = _run(fixture, lambda engine: engine.query(raw))
    _echo_json(SearchResponse.from_result(result))


@app.command()
def ranking(
    ranking_type: Annotated[str, typer.Argument(help="popular, top-rated, trending, free, new, monthly-hot or category-leaders")],
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Category slug")] = None,
    time_range: Annotated[Optional[str], typer.Option("--time-range", help="Time range filter")] = None,
    page: Annotated[int, typer.Option("--page", help="Page number")] = 1,
    limit: Annotated[Optional[int], typer.Option("--limit", help="Page size")] = None,
    fixture: FixtureOption = None,
) -> None:
    """
    Print a preset ranking as JSON.
    """
    raw = _criteria(category=category, timeRange=time_range, page=page, limit=limit)
    try:
        result = _run(fixture, lambda engine: engine.ranking(ranking_type, raw))
    except UnknownRankingType as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)
    if isinstance(result, list):
        _echo_json(LeadersResponse(items=result))
    else:
        _echo_json(SearchResponse.from_result(result))


@app.command()
def leaders(
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Restrict to a category and its children")] = None,
    time_range: Annotated[Optional[str], typer.Option("--time-range", help="Time range filter")] = None,
    fixture: FixtureOption = None,
) -> None:
    """
    Print the top entries of every category as JSON.
    """
    raw = _criteria(category=category, timeRange=time_range)
    result = _run(fixture, lambda engine: engine.category_leaders(raw))
    _echo_json(LeadersResponse(items=result))


@app.command()
def recommend(
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Category slug")] = None,
    exclude: Annotated[Optional[int], typer.Option("--exclude", help="Entry id to leave out")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", help="Maximum number of entries")] = None,
    fixture: FixtureOption = None,
) -> None:
    """
    Print recommended entries as JSON.
    """
    raw = _criteria(category=category, exclude=exclude, limit=limit)
    items = _run(fixture, lambda engine: engine.recommendations(raw))
    _echo_json(RecommendationsResponse.from_items(items))


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = settings.API_HOST,
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = settings.API_PORT,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """
    Run the HTTP API with uvicorn.
    """
    import uvicorn

    logger.info(f"Serving {settings.APP_NAME} on {host}:{port}")
    uvicorn.run("tool_navigator.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
