# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course record store.

Persists grouped course records and their sync state. Every write commits
immediately so that each checkpoint of a sync run survives a crash of the
run that follows it.

Example:
    async with get_session() as session:
        store = CourseRecordStore(session)
        for stored in await store.fetch_pending(limit=5):
            ...
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from course_sync.domains.hierarchy.models import (
    CourseRecord,
    ImportRow,
    SetNode,
    StoredCourse,
    SyncStatus,
    encode_sets,
)
from course_sync.infrastructure.database.connection import DatabaseError
from course_sync.infrastructure.database.models import CourseImportRecord, content_imports

logger = logging.getLogger(__name__)


def _to_stored(row: CourseImportRecord) -> StoredCourse:
    return StoredCourse(
        record_id=row.id,
        course_title=row.course_title,
        language=row.language,
        remote_course_id=row.course_do_id,
        status=row.status,
        sets_json=row.sets_do_id,
        metadata_json=row.course_metadata,
        fix_applied=row.fix_applied,
    )


class CourseRecordStore:
    """Relational store of course records and import rows.

    Attributes:
        _session: Async database session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _update(self, record_id: int, **values: Any) -> None:
        """Write one checkpoint, leaving the session usable if it fails.

        Raises:
            DatabaseError: If the write or the commit failed.
        """
        stmt = update(CourseImportRecord).where(CourseImportRecord.id == record_id).values(**values)
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error("Update of course record %d failed: %s", record_id, str(e))
            raise DatabaseError(f"Update of course record {record_id} failed", e) from e

    async def fetch_pending(
        self,
        limit: int,
        statuses: Sequence[SyncStatus] = SyncStatus.selectable(),
    ) -> list[StoredCourse]:
        """Select records that still need a sync, oldest first."""
        stmt = (
            select(CourseImportRecord)
            .where(CourseImportRecord.status.in_([status.value for status in statuses]))
            .order_by(CourseImportRecord.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_stored(row) for row in result.scalars().all()]

    async def update_status(self, record_id: int, status: SyncStatus) -> None:
        """Set the sync status of a record."""
        await self._update(record_id, status=status.value)

    async def update_remote_id(self, record_id: int, remote_id: str) -> None:
        """Record the remote course identifier."""
        await self._update(record_id, course_do_id=remote_id)

    async def persist_tree(self, record_id: int, tree: SetNode) -> None:
        """Store the tree with its reconciled identifiers."""
        await self._update(record_id, sets_do_id=encode_sets(tree))

    async def fetch_import_rows(self, max_levels: int = 10) -> list[ImportRow]:
        """Read migrated import rows in ascending id order."""
        stmt = (
            select(content_imports)
            .where(content_imports.c.migrated.is_(True))
            .order_by(content_imports.c.id)
        )
        result = await self._session.execute(stmt)
        return [
            ImportRow.from_mapping(row, max_levels=max_levels, default_first_level=True)
            for row in result.mappings().all()
        ]

    async def save_grouped(self, records: Iterable[CourseRecord]) -> int:
        """Insert or refresh grouped course records.

        Existing records get the new tree and metadata and go back to
        pending; a known remote identifier is kept so the next sync merges
        into the published course.

        Returns:
            Number of records written.
        """
        written = 0
        for record in records:
            stmt = select(CourseImportRecord).where(
                CourseImportRecord.course_title == record.title,
                CourseImportRecord.language == record.language,
            )
            result = await self._session.execute(stmt)
            existing = result.scalar_one_or_none()

            sets_json = encode_sets(record.tree)
            metadata_json = record.metadata.model_dump_json()

            if existing:
                existing.sets_do_id = sets_json
                existing.course_metadata = metadata_json
                existing.status = SyncStatus.PENDING.value
            else:
                self._session.add(
                    CourseImportRecord(
                        course_title=record.title,
                        language=record.language,
                        sets_do_id=sets_json,
                        course_metadata=metadata_json,
                        status=SyncStatus.PENDING.value,
                    )
                )
            written += 1
            logger.debug("Saved course record '%s' [%s]", record.title, record.language)

        await self._session.commit()
        return written

    async def fetch_unfixed(self, limit: int) -> list[StoredCourse]:
        """Select completed records the corrective pass has not touched."""
        stmt = (
            select(CourseImportRecord)
            .where(
                CourseImportRecord.status == SyncStatus.COMPLETED.value,
                CourseImportRecord.fix_applied.is_(False),
                CourseImportRecord.course_do_id.is_not(None),
            )
            .order_by(CourseImportRecord.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_stored(row) for row in result.scalars().all()]

    async def mark_fix_applied(self, record_id: int) -> None:
        """Flag a record as corrected."""
        await self._update(record_id, fix_applied=True)

    async def fetch_synced(self, limit: int) -> list[StoredCourse]:
        """Select records that have a remote course."""
        stmt = (
            select(CourseImportRecord)
            .where(CourseImportRecord.course_do_id.is_not(None))
            .order_by(CourseImportRecord.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_stored(row) for row in result.scalars().all()]

    async def reset_record(self, record_id: int) -> None:
        """Forget the remote course and queue the record again."""
        await self._update(
            record_id,
            course_do_id=None,
            status=SyncStatus.PENDING.value,
            fix_applied=False,
        )
