# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payload compiler.

Flattens a course tree into the two maps accepted by the hierarchy update
endpoint:

- nodesModified: metadata for the root and for every new node
- hierarchy: ordered children (sets first, then leaf content) for every node
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from course_sync.domains.hierarchy.exceptions import PayloadCompileError
from course_sync.domains.hierarchy.models import (
    COLLECTION_MIME_TYPE,
    CourseRecord,
    HierarchyPayload,
    SetNode,
)
from course_sync.domains.hierarchy.taxonomy import TaxonomyIds


@dataclass(frozen=True)
class MetadataDefaults:
    """Fallback values for course metadata missing from the import."""

    author: str = "SCP Channel"
    copyright: str = "SCP Channel"
    copyright_year: int = 2025


def compile_hierarchy(
    tree: SetNode,
    root_metadata: Mapping[str, Any] | None = None,
    root_is_new: bool = False,
) -> HierarchyPayload:
    """Compile a course tree into a hierarchy payload.

    Args:
        tree: Course tree; its root is the course.
        root_metadata: Course metadata block merged into the root entry.
        root_is_new: Value of the root entry's isNew flag.

    Returns:
        The compiled payload.

    Raises:
        PayloadCompileError: If any node has no identifier.
    """
    payload = HierarchyPayload()
    _compile_node(tree, True, payload, dict(root_metadata or {}), root_is_new)
    return payload


def _compile_node(
    node: SetNode,
    is_root: bool,
    payload: HierarchyPayload,
    root_metadata: dict[str, Any],
    root_is_new: bool,
) -> None:
    if not node.identifier:
        raise PayloadCompileError(
            "Node has no identifier",
            details={"name": node.name},
        )
    node_id = node.identifier

    if is_root or node.is_new:
        metadata: dict[str, Any] = {
            "mimeType": COLLECTION_MIME_TYPE,
            "code": node_id,
            "name": node.name,
            "description": node.description,
            "visibility": "Default" if is_root else "Parent",
            "contentType": "Course" if is_root else "CourseUnit",
            "primaryCategory": "Course" if is_root else "Course Unit",
            "appIcon": node.uploaded_icon_url or "",
            "attributions": [],
        }
        if is_root:
            metadata.update(root_metadata)
        payload.nodes_modified[node_id] = {
            "root": is_root,
            "objectType": "Content" if is_root else "Collection",
            "metadata": metadata,
            "isNew": root_is_new if is_root else True,
        }

    child_ids: list[str] = []
    for child in node.children:
        if not child.identifier:
            raise PayloadCompileError(
                "Node has no identifier",
                details={"name": child.name, "parent": node.name},
            )
        child_ids.append(child.identifier)

    payload.hierarchy[node_id] = {
        "name": node.name,
        "children": [*child_ids, *node.leaf_content_ids],
        "root": is_root,
    }

    for child in node.children:
        _compile_node(child, False, payload, root_metadata, root_is_new)


def build_root_metadata(
    record: CourseRecord,
    taxonomy: TaxonomyIds,
    icon_url: str | None,
    defaults: MetadataDefaults | None = None,
) -> dict[str, Any]:
    """Build the course metadata block of the root entry."""
    defaults = defaults or MetadataDefaults()
    metadata = record.metadata
    return {
        "appIcon": icon_url or "",
        "name": record.title,
        "author": metadata.author or defaults.author,
        "copyright": metadata.copyright or defaults.copyright,
        "copyrightYear": metadata.copyright_year or defaults.copyright_year,
        "program": list(metadata.program),
        "keywords": list(metadata.course_keywords),
        "primaryUser": list(metadata.primary_user),
        "targetAgeGroup": list(metadata.target_age_group),
        "contentLanguage": list(metadata.content_language),
        "description": metadata.course_description,
        "contentType": "Course",
        "primaryCategory": "Course",
        "attributions": [],
        "targetDomainIds": list(taxonomy.domain_ids),
        "targetSubDomainIds": list(taxonomy.sub_domain_ids),
        "targetSubjectIds": list(taxonomy.subject_ids),
    }


def restate_hierarchy(content: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Rebuild the hierarchy map of a fetched document, keeping child order.

    Used to resubmit an existing course unchanged apart from root metadata.
    """
    hierarchy: dict[str, dict[str, Any]] = {}

    def visit(node: Mapping[str, Any], is_root: bool) -> None:
        if not node.get("identifier"):
            return
        children = node.get("children") or []
        hierarchy[node["identifier"]] = {
            "name": node.get("name"),
            "children": [child.get("identifier") for child in children if child.get("identifier")],
            "root": is_root,
        }
        for child in children:
            if child.get("mimeType") == COLLECTION_MIME_TYPE:
                visit(child, False)

    visit(content, True)
    return hierarchy
