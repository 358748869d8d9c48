# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

Run with:
    uvicorn course_sync.api.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from course_sync import __version__
from course_sync.api.routes import health
from course_sync.api.v1 import router as v1_router
from course_sync.core.config import get_settings
from course_sync.infrastructure.background.broker import setup_dramatiq, shutdown_dramatiq
from course_sync.infrastructure.database.connection import close_database, init_database
from course_sync.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Logging
    - Database connections
    - Dramatiq broker

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info("Starting course sync API (environment: %s)", settings.environment)

    # =========================================================================
    # Startup
    # =========================================================================
    try:
        await init_database(settings)
        logger.info("Database connection initialized")
    except Exception as e:
        logger.error("Failed to initialize database connection: %s", str(e))

    try:
        setup_dramatiq()
        logger.info("Dramatiq broker initialized")
    except Exception as e:
        logger.error("Failed to initialize Dramatiq broker: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    try:
        shutdown_dramatiq()
        logger.info("Dramatiq broker shutdown")
    except Exception as e:
        logger.warning("Error shutting down Dramatiq: %s", str(e))

    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down course sync API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Course Sync API",
        description="Course hierarchy import and sync jobs",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
