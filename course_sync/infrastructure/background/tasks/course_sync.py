# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course sync background tasks.

Tasks:
    - group_import_rows: Group migrated import rows into course records
    - sync_pending_courses: Run one sync pass over pending course records
    - apply_course_fixes: Normalize the program of published courses
    - retire_synced_courses: Retire published courses and requeue them

Example:
    >>> from course_sync.infrastructure.background.tasks import sync_pending_courses
    >>> sync_pending_courses.send(5)
"""

import logging
from typing import Any

import dramatiq

from course_sync.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from course_sync.infrastructure.background.tasks.base import run_async

setup_dramatiq()

logger = logging.getLogger(__name__)


@dramatiq.actor(
    queue_name=Queues.COURSES,
    max_retries=0,
    time_limit=1800000,  # 30 minutes
    priority=Priority.NORMAL,
)
def group_import_rows() -> dict[str, Any]:
    """Group migrated import rows into pending course records.

    Returns:
        Number of records written.
    """
    logger.info("Starting import row grouping")

    async def _group() -> dict[str, Any]:
        from course_sync.core.config import get_settings
        from course_sync.domains.sync.import_service import CourseImportService
        from course_sync.infrastructure.database.connection import worker_session
        from course_sync.infrastructure.database.repository import CourseRecordStore

        settings = get_settings()
        async with worker_session(settings) as session:
            service = CourseImportService(CourseRecordStore(session), settings.sync.max_levels)
            written = await service.group_import_rows()
        return {"status": "success", "records_written": written}

    try:
        return run_async(_group())
    except Exception as e:
        logger.error("Import row grouping failed: %s", str(e), exc_info=True)
        return {"status": "failed", "error": str(e)}


@dramatiq.actor(
    queue_name=Queues.COURSES,
    max_retries=0,
    time_limit=3600000,  # 60 minutes (retries back off per remote call)
    priority=Priority.NORMAL,
)
def sync_pending_courses(limit: int | None = None) -> dict[str, Any]:
    """Synchronize pending course records with the content service.

    Args:
        limit: Maximum records to process, defaults to the batch limit.

    Returns:
        Counts of the sync run.
    """
    logger.info("Starting course sync run (limit: %s)", limit)

    async def _sync() -> dict[str, Any]:
        from course_sync.core.config import get_settings
        from course_sync.domains.sync.orchestrator import CourseSyncOrchestrator
        from course_sync.infrastructure.database.connection import worker_session
        from course_sync.infrastructure.database.repository import CourseRecordStore
        from course_sync.infrastructure.remote import AssetUploader, ContentServiceClient

        settings = get_settings()
        async with worker_session(settings) as session, ContentServiceClient(settings.content_service) as client:
            orchestrator = CourseSyncOrchestrator(
                CourseRecordStore(session),
                client,
                AssetUploader(client),
                settings.sync,
            )
            result = await orchestrator.run(limit)

        return {
            "status": "success",
            "selected": result.selected,
            "completed": result.completed,
            "failed": result.failed,
            "skipped": result.skipped,
            "unpublished": result.unpublished,
            "duration_seconds": result.duration_seconds,
        }

    try:
        return run_async(_sync())
    except Exception as e:
        logger.error("Course sync run failed: %s", str(e), exc_info=True)
        return {"status": "failed", "error": str(e)}


def _maintenance_result(result: Any) -> dict[str, Any]:
    return {
        "status": "success",
        "selected": result.selected,
        "succeeded": result.succeeded,
        "skipped": result.skipped,
        "failed": result.failed,
    }


@dramatiq.actor(
    queue_name=Queues.MAINTENANCE,
    max_retries=0,
    time_limit=1800000,  # 30 minutes
    priority=Priority.LOW,
)
def apply_course_fixes(limit: int = 50) -> dict[str, Any]:
    """Run the corrective pass over completed courses.

    Args:
        limit: Maximum records to process.
    """
    logger.info("Starting course fixes (limit: %d)", limit)

    async def _fix() -> dict[str, Any]:
        from course_sync.core.config import get_settings
        from course_sync.domains.sync.fixes import CourseFixService
        from course_sync.domains.sync.retry import RetryPolicies
        from course_sync.infrastructure.database.connection import worker_session
        from course_sync.infrastructure.database.repository import CourseRecordStore
        from course_sync.infrastructure.remote import ContentServiceClient

        settings = get_settings()
        async with worker_session(settings) as session, ContentServiceClient(settings.content_service) as client:
            service = CourseFixService(
                CourseRecordStore(session),
                client,
                RetryPolicies.from_settings(settings.sync),
            )
            return _maintenance_result(await service.apply_fixes(limit))

    try:
        return run_async(_fix())
    except Exception as e:
        logger.error("Course fixes failed: %s", str(e), exc_info=True)
        return {"status": "failed", "error": str(e)}


@dramatiq.actor(
    queue_name=Queues.MAINTENANCE,
    max_retries=0,
    time_limit=1800000,  # 30 minutes
    priority=Priority.LOW,
)
def retire_synced_courses(limit: int = 1000) -> dict[str, Any]:
    """Retire published courses and reset their records to pending.

    Args:
        limit: Maximum records to process.
    """
    logger.info("Starting course retire (limit: %d)", limit)

    async def _retire() -> dict[str, Any]:
        from course_sync.core.config import get_settings
        from course_sync.domains.sync.fixes import CourseFixService
        from course_sync.domains.sync.retry import RetryPolicies
        from course_sync.infrastructure.database.connection import worker_session
        from course_sync.infrastructure.database.repository import CourseRecordStore
        from course_sync.infrastructure.remote import ContentServiceClient

        settings = get_settings()
        async with worker_session(settings) as session, ContentServiceClient(settings.content_service) as client:
            service = CourseFixService(
                CourseRecordStore(session),
                client,
                RetryPolicies.from_settings(settings.sync),
            )
            return _maintenance_result(await service.retire_courses(limit))

    try:
        return run_async(_retire())
    except Exception as e:
        logger.error("Course retire failed: %s", str(e), exc_info=True)
        return {"status": "failed", "error": str(e)}


def get_course_actors() -> list[dramatiq.Actor]:
    """Get all course sync actors."""
    return [
        group_import_rows,
        sync_pending_courses,
        apply_course_fixes,
        retire_synced_courses,
    ]
