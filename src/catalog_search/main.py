"""
Catalog Search Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Fail-fast configuration validation
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .core.errors import (
    CatalogSearchError,
    catalog_error_handler,
    unhandled_exception_handler,
)
from .db import async_engine

from .api import (
    search_routes,
    health_routes,
    embedding_routes,
)
from .api.dependencies import get_embedding_config


logger = logging.getLogger("catalog.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Validate critical configuration before the first request is served and
    release the connection pool on shutdown.
    """
    logger.info("Starting catalog-search")

    # Raises ConfigurationError (and aborts startup) if the key is missing
    config = get_embedding_config()
    logger.info("Configuration validated (embedding model: %s)", config.model)

    yield

    logger.info("Shutting down catalog-search")
    await async_engine.dispose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="catalog-search",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(CatalogSearchError, catalog_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)
    app.include_router(embedding_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
