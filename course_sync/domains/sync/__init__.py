# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course synchronization domain.

Orchestrates sync runs against the content service, associates content,
applies bounded retries and runs the maintenance passes.
"""

from course_sync.domains.sync.associator import ContentAssociator
from course_sync.domains.sync.exceptions import CourseSyncError
from course_sync.domains.sync.fixes import CourseFixService, MaintenanceResult
from course_sync.domains.sync.import_service import CourseImportService
from course_sync.domains.sync.orchestrator import (
    CourseSyncOrchestrator,
    RecordOutcome,
    SyncRunResult,
)
from course_sync.domains.sync.retry import (
    RetryPolicies,
    RetryPolicy,
    is_service_error,
    is_transient_error,
)

__all__ = [
    "ContentAssociator",
    "CourseFixService",
    "CourseImportService",
    "CourseSyncError",
    "CourseSyncOrchestrator",
    "MaintenanceResult",
    "RecordOutcome",
    "RetryPolicies",
    "RetryPolicy",
    "SyncRunResult",
    "is_service_error",
    "is_transient_error",
]
