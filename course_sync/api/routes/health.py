# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel, Field

from course_sync import __version__
from course_sync.core.config import get_settings
from course_sync.infrastructure.database.connection import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    database: str = Field(description="Database status")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, str] = Field(description="Individual check results")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report API health and database reachability."""
    settings = get_settings()
    database_ok = await check_database_connection()

    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        database="healthy" if database_ok else "unhealthy",
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic."""
    database_ok = await check_database_connection()
    return ReadinessResponse(
        ready=database_ok,
        checks={"database": "healthy" if database_ok else "unhealthy"},
    )
