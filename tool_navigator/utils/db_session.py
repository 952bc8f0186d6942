"""
Async engine and session helpers for the catalog database.

The catalog is only read through these sessions, so nothing here commits.
"""
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tool_navigator.config.settings import settings

logger = logging.getLogger(__name__)


@lru_cache
def get_async_engine() -> AsyncEngine:
    """Cached engine bound to ``settings.DATABASE_URL``."""
    logger.debug("Creating catalog database engine")
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS},
    )


@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=get_async_engine(), autoflush=False, expire_on_commit=False)


@asynccontextmanager
async def catalog_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a read-only session, rolled back if the caller fails."""
    async with get_async_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping ``catalog_session``."""
    async with catalog_session() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections, if an engine was ever created."""
    if get_async_engine.cache_info().currsize == 0:
        return
    await get_async_engine().dispose()
    get_async_session_factory.cache_clear()
    get_async_engine.cache_clear()
    logger.info("Catalog database engine disposed")
