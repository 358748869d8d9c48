# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Maintenance passes over already synchronized courses.

- apply_fixes: Restate the root metadata of published courses with the
  program normalized into a list, then review and publish again.
- retire_courses: Retire published courses and queue their records for a
  fresh sync.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from course_sync.domains.hierarchy.compiler import restate_hierarchy
from course_sync.domains.hierarchy.merge import clean_remote_metadata
from course_sync.domains.hierarchy.models import HierarchyPayload, StoredCourse, split_csv
from course_sync.domains.sync.retry import RetryPolicies
from course_sync.infrastructure.remote.client import ContentServiceClient
from course_sync.infrastructure.remote.exceptions import ContentNotFoundError, ContentServiceError

logger = logging.getLogger(__name__)


class MaintenanceStore(Protocol):
    """Persistence operations used by the maintenance passes."""

    async def fetch_unfixed(self, limit: int) -> list[StoredCourse]: ...

    async def mark_fix_applied(self, record_id: int) -> None: ...

    async def fetch_synced(self, limit: int) -> list[StoredCourse]: ...

    async def reset_record(self, record_id: int) -> None: ...


@dataclass
class MaintenanceResult:
    """Counts of a maintenance pass.

    Attributes:
        selected: Records selected.
        succeeded: Records processed successfully.
        skipped: Records whose remote content is missing.
        failed: Records that failed.
    """

    selected: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0


def normalize_program(value: Any) -> list[str]:
    """Turn a stored program value into a list of program names."""
    return split_csv(value)


def build_fix_payload(content: dict[str, Any]) -> HierarchyPayload:
    """Restate a fetched course with its program normalized.

    The root keeps all of its existing metadata apart from the structural
    fields; the hierarchy is resubmitted in its current order.
    """
    metadata = clean_remote_metadata(content)
    metadata["program"] = normalize_program(content.get("program"))
    return HierarchyPayload(
        nodes_modified={
            content["identifier"]: {
                "metadata": metadata,
                "isNew": False,
                "objectType": "Content",
                "root": True,
            }
        },
        hierarchy=restate_hierarchy(content),
    )


class CourseFixService:
    """Corrective and retire passes over synchronized courses.

    Attributes:
        _store: Course record store.
        _client: Content service client.
        _policies: Retry policies per remote call.
    """

    def __init__(
        self,
        store: MaintenanceStore,
        client: ContentServiceClient,
        policies: RetryPolicies,
    ) -> None:
        self._store = store
        self._client = client
        self._policies = policies

    async def apply_fixes(self, limit: int) -> MaintenanceResult:
        """Normalize the program of completed courses not yet fixed.

        Args:
            limit: Maximum records to process.
        """
        records = await self._store.fetch_unfixed(limit)
        result = MaintenanceResult(selected=len(records))
        if not records:
            logger.info("No courses left to fix")
            return result

        for record in records:
            course_id = record.remote_course_id
            if not course_id:
                result.skipped += 1
                continue

            logger.info("Fixing course '%s' (%s)", record.course_title, course_id)
            try:
                content = await self._policies.fetch.call(
                    self._client.fetch_hierarchy,
                    course_id,
                    None,
                    label="fetch hierarchy",
                )
            except ContentNotFoundError:
                logger.warning("Skipping %s, content not found", course_id)
                result.skipped += 1
                continue
            except ContentServiceError as e:
                logger.error("Failed to fetch %s: %s", course_id, str(e))
                result.failed += 1
                continue

            try:
                payload = build_fix_payload(content)
                await self._policies.hierarchy.call(
                    self._client.update_hierarchy,
                    payload,
                    label="restate hierarchy",
                )
                await self._policies.publish.call(self._client.review, course_id, label="review course")
                await self._policies.publish.call(self._client.publish, course_id, label="publish course")
            except ContentServiceError as e:
                logger.error("Failed to fix %s: %s", course_id, str(e))
                result.failed += 1
                continue

            await self._store.mark_fix_applied(record.record_id)
            result.succeeded += 1
            logger.info("Fixed program of '%s' (%s)", record.course_title, course_id)

        logger.info(
            "Course fixes finished: selected=%d, fixed=%d, skipped=%d, failed=%d",
            result.selected,
            result.succeeded,
            result.skipped,
            result.failed,
        )
        return result

    async def retire_courses(self, limit: int) -> MaintenanceResult:
        """Retire synchronized courses and reset their records to pending.

        Args:
            limit: Maximum records to process.
        """
        records = await self._store.fetch_synced(limit)
        result = MaintenanceResult(selected=len(records))

        for record in records:
            course_id = record.remote_course_id
            if not course_id:
                result.skipped += 1
                continue
            try:
                await self._policies.retire.call(self._client.retire, course_id, label="retire course")
            except ContentServiceError as e:
                logger.error("Giving up on retiring %s: %s", course_id, str(e))
                result.failed += 1
                continue

            await self._store.reset_record(record.record_id)
            result.succeeded += 1

        logger.info(
            "Course retire finished: selected=%d, retired=%d, failed=%d",
            result.selected,
            result.succeeded,
            result.failed,
        )
        return result
