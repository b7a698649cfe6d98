"""
Search Service Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- One rate limiter per application, owned by app.state
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from .config import Settings, settings as default_settings
from .core.errors import (
    SearchError,
    request_validation_handler,
    search_error_handler,
    unhandled_exception_handler,
)
from .core.rate_limiter import RateLimiter
from .db import init_models
from .search.indexes import log_index_recommendations
from .search.models import SearchConfig

from .api import (
    search_routes,
    health_routes,
)


logger = logging.getLogger("search.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration for this instance. Defaults to the process-wide
        settings loaded from the environment.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="collection-search",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.rate_limiter = RateLimiter(
        limit=settings.rate_limit_requests_per_minute,
        window_ms=settings.rate_limit_window_ms,
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(SearchError, search_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)

    # --------------------------------------------------------------
    # Startup Hook
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup() -> None:
        """
        Create tables and log configuration-derived guidance before the
        first request is served.
        """
        logger.info("Starting collection-search")

        config = SearchConfig.from_settings(settings)
        if not config.searchable_fields:
            logger.error(
                "SEARCHABLE_FIELDS is empty; every search will fail with a configuration error"
            )

        await init_models()
        log_index_recommendations(config)

        logger.info(
            "Rate limit: %s requests per %d minute(s)",
            settings.rate_limit_requests_per_minute or "unlimited",
            settings.rate_limit_window_minutes,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Shutting down collection-search")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
