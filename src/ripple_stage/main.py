# src/ripple_stage/main.py
"""Main entry point for the Ripple application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ripple_stage.api.v1 import (
    auth_router,
    notifications_router,
    posts_router,
    users_router,
)
from ripple_stage.core.settings import settings
from ripple_stage.db.session import Database
from ripple_stage.errors import RippleError

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from settings."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.log_format)


async def ripple_error_handler(request: Request, exc: RippleError) -> JSONResponse:
    """Render domain errors as ``{"error", "message"}`` bodies."""
    logger.debug("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and hide their details from clients."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "Internal server error"},
    )


def create_app(database: Database | None = None) -> FastAPI:
    """Build the application around one shared database pool.

    Args:
        database: Pool to serve requests from. When omitted one is built from
            settings and disposed on shutdown.

    Returns:
        Configured FastAPI application.
    """
    owns_database = database is None
    database = database or Database(settings.database_url, echo=settings.sql_debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.auto_create_tables:
            database.create_tables()
        logger.info("%s %s started", settings.app_name, settings.app_version)
        try:
            yield
        finally:
            if owns_database:
                database.dispose()
            logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title="Ripple API",
        description="Posts, threaded comments, and notifications for a small social network",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.database = database

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    app.add_exception_handler(RippleError, ripple_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, internal_error_handler)

    # Include API routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(posts_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
