# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course job trigger endpoints.

Endpoints:
- POST /group - Group migrated import rows into course records
- POST /import - Run a sync pass over pending course records
- POST /fixes - Run the corrective pass over completed courses
- POST /retire - Retire synchronized courses and requeue them

Every endpoint dispatches a background task and returns immediately.

Example:
    POST /api/v1/courses/import?limit=5
"""

import logging

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

router = APIRouter()


class JobTriggerResponse(BaseModel):
    """Response for a job trigger."""

    status: str = Field(description="Job status: scheduled")
    message: str = Field(description="Status message")


@router.post(
    "/group",
    response_model=JobTriggerResponse,
    summary="Group import rows",
    description="Group migrated import rows into one course record per title and language.",
)
async def trigger_grouping() -> JobTriggerResponse:
    """Dispatch the import grouping job."""
    from course_sync.infrastructure.background.tasks import group_import_rows

    group_import_rows.send()
    logger.info("Import grouping triggered")
    return JobTriggerResponse(status="scheduled", message="Import row grouping scheduled")


@router.post(
    "/import",
    response_model=JobTriggerResponse,
    summary="Sync pending courses",
    description="Synchronize pending course records with the content service.",
)
async def trigger_sync(
    limit: int | None = Query(None, ge=1, description="Maximum records to process"),
) -> JobTriggerResponse:
    """Dispatch a sync pass."""
    from course_sync.infrastructure.background.tasks import sync_pending_courses

    sync_pending_courses.send(limit)
    logger.info("Course sync triggered (limit: %s)", limit)
    return JobTriggerResponse(
        status="scheduled",
        message=f"Course sync scheduled for up to {limit} records" if limit else "Course sync scheduled",
    )


@router.post(
    "/fixes",
    response_model=JobTriggerResponse,
    summary="Fix published courses",
    description="Normalize the program of completed courses and publish them again.",
)
async def trigger_fixes(
    limit: int = Query(50, ge=1, description="Maximum records to process"),
) -> JobTriggerResponse:
    """Dispatch the corrective pass."""
    from course_sync.infrastructure.background.tasks import apply_course_fixes

    apply_course_fixes.send(limit)
    logger.info("Course fixes triggered (limit: %d)", limit)
    return JobTriggerResponse(status="scheduled", message=f"Course fixes scheduled for up to {limit} records")


@router.post(
    "/retire",
    response_model=JobTriggerResponse,
    summary="Retire synced courses",
    description="Retire synchronized courses and reset their records to pending.",
)
async def trigger_retire(
    limit: int = Query(1000, ge=1, description="Maximum records to process"),
) -> JobTriggerResponse:
    """Dispatch the retire pass."""
    from course_sync.infrastructure.background.tasks import retire_synced_courses

    retire_synced_courses.send(limit)
    logger.info("Course retire triggered (limit: %d)", limit)
    return JobTriggerResponse(status="scheduled", message=f"Course retire scheduled for up to {limit} records")
