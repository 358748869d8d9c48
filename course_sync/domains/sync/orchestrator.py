# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course sync orchestration.

Drives one sync run over the stored course records. Each record moves
through pending -> in_progress -> completed | failed; records that are
pending, in progress (abandoned) or failed are all picked up again by the
next run, so every record is synchronized at least once.

Per record:
1. Decode the stored tree and metadata
2. Create the remote course, or fetch and merge the published hierarchy
3. Upload icons of new sets
4. Compile and send the hierarchy, reconcile identifiers, persist the tree
5. Associate leaf content
6. Review and publish

Failures are isolated per record: an error marks that record failed and
the run continues with the next one.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from course_sync.core.config.settings import SyncSettings
from course_sync.domains.hierarchy.compiler import (
    MetadataDefaults,
    build_root_metadata,
    compile_hierarchy,
)
from course_sync.domains.hierarchy.exceptions import MalformedRecordError
from course_sync.domains.hierarchy.grouper import prune_empty
from course_sync.domains.hierarchy.icons import IconUploader, upload_icons
from course_sync.domains.hierarchy.identifiers import TemporaryIdGenerator
from course_sync.domains.hierarchy.merge import (
    merge_trees,
    overlay_root_metadata,
    tree_from_remote,
)
from course_sync.domains.hierarchy.models import (
    CourseRecord,
    SetNode,
    StoredCourse,
    SyncStatus,
)
from course_sync.domains.hierarchy.reconciler import (
    assign_temporary_identifiers,
    reconcile_identifiers,
)
from course_sync.domains.hierarchy.taxonomy import FrameworkTaxonomy, TaxonomyIds
from course_sync.domains.sync.associator import ContentAssociator
from course_sync.domains.sync.exceptions import CourseSyncError
from course_sync.domains.sync.retry import RetryPolicies
from course_sync.infrastructure.database.connection import DatabaseError
from course_sync.infrastructure.remote.client import ContentServiceClient
from course_sync.infrastructure.remote.exceptions import ContentServiceError
from course_sync.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class RecordStore(Protocol):
    """Persistence operations used by a sync run."""

    async def fetch_pending(self, limit: int) -> list[StoredCourse]: ...

    async def update_status(self, record_id: int, status: SyncStatus) -> None: ...

    async def update_remote_id(self, record_id: int, remote_id: str) -> None: ...

    async def persist_tree(self, record_id: int, tree: SetNode) -> None: ...


class RecordOutcome(str, Enum):
    """Result of processing one record."""

    COMPLETED = "completed"
    UNPUBLISHED = "unpublished"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class SyncRunResult:
    """Result of a sync run.

    Attributes:
        selected: Records selected for the run.
        completed: Records that reached the completed state.
        failed: Records marked failed.
        skipped: Records without any sets or content.
        unpublished: Completed records whose review or publish failed.
        started_at: When the run started.
        completed_at: When the run finished.
    """

    selected: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    unpublished: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add(self, outcome: RecordOutcome) -> None:
        """Count the outcome of one record."""
        if outcome is RecordOutcome.FAILED:
            self.failed += 1
        elif outcome is RecordOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.completed += 1
            if outcome is RecordOutcome.UNPUBLISHED:
                self.unpublished += 1


class CourseSyncOrchestrator:
    """Synchronizes stored course records with the content service.

    Records are processed one after another on the running event loop.

    Attributes:
        _store: Course record store.
        _client: Content service client.
        _uploader: Icon uploader.
        _settings: Sync configuration.
        _policies: Retry policies per remote call.
        _id_seed: Seed of the temporary identifier generator.

    Example:
        >>> orchestrator = CourseSyncOrchestrator(store, client, uploader, settings.sync)
        >>> result = await orchestrator.run(limit=5)
        >>> result.completed
        5
    """

    def __init__(
        self,
        store: RecordStore,
        client: ContentServiceClient,
        uploader: IconUploader,
        settings: SyncSettings,
        id_seed: str | None = None,
        policies: RetryPolicies | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._uploader = uploader
        self._settings = settings
        self._policies = policies or RetryPolicies.from_settings(settings)
        self._associator = ContentAssociator(client, self._policies.associate)
        self._id_seed = id_seed
        self._defaults = MetadataDefaults(
            author=settings.default_author,
            copyright=settings.default_copyright,
            copyright_year=settings.default_copyright_year,
        )

    async def run(self, limit: int | None = None) -> SyncRunResult:
        """Run one sync pass.

        Args:
            limit: Maximum records to process, defaults to the batch limit.

        Returns:
            Counts of the run.
        """
        result = SyncRunResult(started_at=datetime.now(timezone.utc))
        taxonomy = await self._load_taxonomy()

        records = await self._store.fetch_pending(limit or self._settings.batch_limit)
        result.selected = len(records)
        if not records:
            logger.info("no_pending_courses")

        next_id = TemporaryIdGenerator(self._id_seed)
        for stored in records:
            bind_context(
                record_id=stored.record_id,
                course_title=stored.course_title,
                language=stored.language,
            )
            try:
                result.add(await self._process(stored, taxonomy, next_id))
            finally:
                clear_context()

        result.completed_at = datetime.now(timezone.utc)
        logger.info(
            "sync_run_finished",
            selected=result.selected,
            completed=result.completed,
            failed=result.failed,
            skipped=result.skipped,
            unpublished=result.unpublished,
            duration_seconds=result.duration_seconds,
        )
        return result

    async def _load_taxonomy(self) -> FrameworkTaxonomy:
        try:
            framework = await self._policies.fetch.call(self._client.read_framework, label="read framework")
        except ContentServiceError as e:
            logger.warning("framework_unavailable", error=str(e))
            return FrameworkTaxonomy()
        return FrameworkTaxonomy.from_framework(framework)

    async def _process(
        self,
        stored: StoredCourse,
        taxonomy: FrameworkTaxonomy,
        next_id: Callable[[], str],
    ) -> RecordOutcome:
        try:
            record = CourseRecord.from_stored(stored)
        except MalformedRecordError as e:
            logger.error("malformed_course_record", field=e.field, error=str(e))
            await self._set_status(stored.record_id, SyncStatus.FAILED)
            return RecordOutcome.FAILED

        record.tree.children = prune_empty(record.tree.children)
        if not record.tree.has_content:
            logger.warning("course_has_no_sets")
            return RecordOutcome.SKIPPED

        if not await self._set_status(stored.record_id, SyncStatus.IN_PROGRESS):
            return RecordOutcome.FAILED

        try:
            published = await self.sync_record(record, taxonomy, next_id)
        except Exception as e:
            logger.error("course_sync_failed", error=str(e), error_type=type(e).__name__, exc_info=True)
            await self._set_status(stored.record_id, SyncStatus.FAILED)
            return RecordOutcome.FAILED

        if not await self._set_status(stored.record_id, SyncStatus.COMPLETED):
            return RecordOutcome.FAILED
        logger.info("course_sync_completed", course_id=record.remote_course_id, published=published)
        return RecordOutcome.COMPLETED if published else RecordOutcome.UNPUBLISHED

    async def _set_status(self, record_id: int, status: SyncStatus) -> bool:
        """Write a status checkpoint; a store error is logged, not raised."""
        try:
            await self._store.update_status(record_id, status)
        except DatabaseError as e:
            logger.error("status_update_failed", status=status.value, error=str(e))
            return False
        return True

    async def sync_record(
        self,
        record: CourseRecord,
        taxonomy: FrameworkTaxonomy,
        next_id: Callable[[], str],
    ) -> bool:
        """Synchronize one decoded record.

        Returns:
            Whether review and publish succeeded.

        Raises:
            ContentServiceError: When a remote call exhausts its retries.
            PayloadCompileError: When the tree cannot be compiled.
        """
        taxonomy_ids = taxonomy.resolve(record.metadata)
        if taxonomy_ids.is_empty:
            logger.warning(
                "taxonomy_not_resolved",
                domain=record.metadata.domain,
                sub_domain=record.metadata.sub_domain,
                subjects=record.metadata.subjects,
            )

        if record.remote_course_id is None and self._settings.lookup_existing_courses:
            await self._lookup_existing(record)

        if record.remote_course_id is None:
            root_metadata = await self._create_course(record, taxonomy_ids, next_id)
        else:
            root_metadata = await self._merge_remote(record, taxonomy_ids, next_id)

        course_id = record.remote_course_id
        if course_id is None:
            raise CourseSyncError("Course has no remote identifier", course_title=record.title)

        await upload_icons(record.tree.children, self._uploader)

        payload = compile_hierarchy(record.tree, root_metadata)
        identifiers = await self._policies.hierarchy.call(
            self._client.update_hierarchy,
            payload,
            label="update hierarchy",
        )
        reconcile_identifiers(record.tree, identifiers)
        unconfirmed = [node.name for node in record.tree.walk() if node.is_new]
        if unconfirmed:
            logger.warning("identifiers_not_confirmed", sets=unconfirmed)
        if record.record_id is not None:
            await self._store.persist_tree(record.record_id, record.tree)

        await self._associator.associate(course_id, record.tree)
        return await self._review_and_publish(course_id)

    async def _lookup_existing(self, record: CourseRecord) -> None:
        course_id = await self._policies.fetch.call(
            self._client.search_course,
            record.title,
            record.metadata,
            label="search course",
        )
        if course_id:
            logger.info("existing_course_found", course_id=course_id)
            record.remote_course_id = course_id
            if record.record_id is not None:
                await self._store.update_remote_id(record.record_id, course_id)

    async def _upload_course_icon(self, record: CourseRecord) -> str | None:
        if not record.metadata.course_thumb:
            return None
        return await self._uploader.upload(record.metadata.course_thumb)

    async def _create_course(
        self,
        record: CourseRecord,
        taxonomy_ids: TaxonomyIds,
        next_id: Callable[[], str],
    ) -> dict[str, Any]:
        icon_url = await self._upload_course_icon(record)
        course_id = await self._policies.create.call(
            self._client.create_course,
            record.title,
            icon_url or "",
            label="create course",
        )
        record.remote_course_id = course_id
        if record.record_id is not None:
            await self._store.update_remote_id(record.record_id, course_id)

        # Identifiers from an earlier course are meaningless for a new one
        for node in record.tree.children:
            for descendant in node.walk():
                descendant.identifier = None
                descendant.is_new = True
        record.tree.identifier = course_id
        record.tree.is_new = False
        assign_temporary_identifiers(record.tree, next_id)

        return build_root_metadata(record, taxonomy_ids, icon_url, self._defaults)

    async def _merge_remote(
        self,
        record: CourseRecord,
        taxonomy_ids: TaxonomyIds,
        next_id: Callable[[], str],
    ) -> dict[str, Any]:
        course_id = record.remote_course_id
        content = await self._policies.fetch.call(
            self._client.fetch_hierarchy,
            course_id,
            label="fetch hierarchy",
        )
        remote = tree_from_remote(content, record.language)
        record.tree = merge_trees(remote, record.tree, next_id)

        icon_url = await self._upload_course_icon(record)
        root_metadata = overlay_root_metadata(content, record.metadata, icon_url)
        if not taxonomy_ids.is_empty:
            root_metadata.update(
                targetDomainIds=taxonomy_ids.domain_ids,
                targetSubDomainIds=taxonomy_ids.sub_domain_ids,
                targetSubjectIds=taxonomy_ids.subject_ids,
            )
        return root_metadata

    async def _review_and_publish(self, course_id: str) -> bool:
        if not self._settings.review_and_publish:
            return True
        try:
            await self._policies.publish.call(self._client.review, course_id, label="review course")
            await self._policies.publish.call(self._client.publish, course_id, label="publish course")
        except ContentServiceError as e:
            logger.warning("course_publish_failed", course_id=course_id, error=str(e))
            return False
        return True
