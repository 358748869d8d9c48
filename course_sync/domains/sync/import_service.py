# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Import grouping job.

Reads the migrated import rows, groups them into one course tree per
(course title, language) and stores the result as pending course records.
"""

import logging
from typing import Protocol

from course_sync.domains.hierarchy.grouper import group_rows
from course_sync.domains.hierarchy.models import CourseRecord, ImportRow

logger = logging.getLogger(__name__)


class ImportStore(Protocol):
    """Persistence operations used by the grouping job."""

    async def fetch_import_rows(self, max_levels: int = 10) -> list[ImportRow]: ...

    async def save_grouped(self, records: list[CourseRecord]) -> int: ...


class CourseImportService:
    """Groups import rows into course records.

    Attributes:
        _store: Course record store.
        _max_levels: Number of set levels read from each row.
    """

    def __init__(self, store: ImportStore, max_levels: int = 10) -> None:
        self._store = store
        self._max_levels = max_levels

    async def group_import_rows(self) -> int:
        """Group all migrated rows and store the course records.

        Returns:
            Number of course records written.
        """
        rows = await self._store.fetch_import_rows(self._max_levels)
        if not rows:
            logger.info("No migrated import rows found")
            return 0

        courses = group_rows(rows, max_levels=self._max_levels)
        empty = [key for key, record in courses.items() if not record.tree.has_content]
        for title, language in empty:
            logger.warning("Course '%s' [%s] has no sets or content", title, language)

        written = await self._store.save_grouped(list(courses.values()))
        logger.info("Stored %d course records from %d import rows", written, len(rows))
        return written
