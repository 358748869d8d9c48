# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course hierarchy domain.

Builds course trees from flat import rows, merges them into published
trees, compiles hierarchy payloads and reconciles identifiers.
"""

from course_sync.domains.hierarchy.compiler import (
    MetadataDefaults,
    build_root_metadata,
    compile_hierarchy,
    restate_hierarchy,
)
from course_sync.domains.hierarchy.exceptions import (
    HierarchyError,
    MalformedRecordError,
    PayloadCompileError,
)
from course_sync.domains.hierarchy.grouper import group_rows, prune_empty
from course_sync.domains.hierarchy.identifiers import TemporaryIdGenerator
from course_sync.domains.hierarchy.icons import upload_icons
from course_sync.domains.hierarchy.merge import (
    merge_trees,
    overlay_root_metadata,
    tree_from_remote,
)
from course_sync.domains.hierarchy.models import (
    CourseMetadata,
    CourseRecord,
    HierarchyPayload,
    ImportRow,
    LevelColumns,
    SetNode,
    StoredCourse,
    SyncStatus,
)
from course_sync.domains.hierarchy.reconciler import (
    assign_temporary_identifiers,
    reconcile_identifiers,
)
from course_sync.domains.hierarchy.taxonomy import FrameworkTaxonomy, TaxonomyIds

__all__ = [
    "CourseMetadata",
    "CourseRecord",
    "FrameworkTaxonomy",
    "HierarchyError",
    "HierarchyPayload",
    "ImportRow",
    "LevelColumns",
    "MalformedRecordError",
    "MetadataDefaults",
    "PayloadCompileError",
    "SetNode",
    "StoredCourse",
    "SyncStatus",
    "TaxonomyIds",
    "TemporaryIdGenerator",
    "assign_temporary_identifiers",
    "build_root_metadata",
    "compile_hierarchy",
    "group_rows",
    "merge_trees",
    "overlay_root_metadata",
    "prune_empty",
    "reconcile_identifiers",
    "restate_hierarchy",
    "tree_from_remote",
    "upload_icons",
]
