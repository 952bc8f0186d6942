"""
FastAPI application for the Tool Navigator service.

This module initializes and configures the FastAPI application that serves
the catalog search, ranking and category endpoints.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tool_navigator.api.endpoints import catalog
from tool_navigator.config.settings import settings
from tool_navigator.core.errors import StorageError
from tool_navigator.utils.db_health import test_db_connection
from tool_navigator.utils.db_session import dispose_engine
from tool_navigator.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Configures logging on startup and disposes of the database engine on
    shutdown.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    yield

    logger.info("Shutting down application")
    await dispose_engine()


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Storage failures are reported as 503, never as an empty result."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Catalog storage unavailable"})


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Catalog API for the AI Tool Navigator.

        This API provides endpoints for:
        - Filtered, ranked and paginated catalog search
        - Preset rankings (popular, top-rated, trending, free, new, monthly-hot)
        - Category leaders and category listings
        - Health and metrics""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {
                "name": "catalog",
                "description": "Catalog search, rankings and categories"
            },
            {
                "name": "health",
                "description": "Health check and monitoring"
            }
        ]
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS if not settings.DEBUG else ["*"]
    )

    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(
        catalog.router,
        prefix="/api/v1",
        tags=["catalog"]
    )

    @app.get("/health", tags=["health"], summary="Health Check", description="Get application and database status")
    async def health_check():
        """
        Health check endpoint.

        Returns:
            dict: Service status, version, timestamp and database connectivity.
        """
        db_ok = await test_db_connection()
        return {
            "status": "healthy" if db_ok else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if db_ok else "unavailable",
            "debug_mode": settings.DEBUG,
        }

    @app.get("/metrics", tags=["health"], summary="Prometheus metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Create the application instance
app = create_app()
