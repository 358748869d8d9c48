# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tree merge engine.

Merges a locally built course tree into the tree already published on the
content service. The merge is additive: remote sets are never removed or
renamed, matching is by exact set name at each level, and leaf content is
unioned with the remote order first.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from course_sync.domains.hierarchy.models import (
    COLLECTION_MIME_TYPE,
    CourseMetadata,
    SetNode,
)

logger = logging.getLogger(__name__)

# Fields of a fetched hierarchy document that the update endpoint rejects
STRUCTURAL_FIELDS = frozenset(
    {"children", "collections", "childNodes", "leafNodes", "leafNodesCount"}
)


def merge_trees(remote: SetNode, local: SetNode, next_id: Callable[[], str]) -> SetNode:
    """Merge a local tree into a copy of the remote tree.

    Args:
        remote: Tree converted from the fetched remote hierarchy.
        local: Tree rebuilt from the import rows.
        next_id: Temporary identifier factory for inserted nodes.

    Returns:
        A merged copy. The remote tree is left untouched.
    """
    merged = remote.model_copy(deep=True)
    for content_id in local.leaf_content_ids:
        merged.add_leaf(content_id)
    inserted = _merge_children(merged.children, local.children, next_id)
    logger.debug("Merged local tree into %s, %d new sets", merged.identifier, inserted)
    return merged


def _merge_children(existing: list[SetNode], incoming: list[SetNode], next_id: Callable[[], str]) -> int:
    inserted = 0
    for node in incoming:
        match = next((candidate for candidate in existing if candidate.name == node.name), None)
        if match is None:
            subtree = node.model_copy(deep=True)
            for descendant in subtree.walk():
                descendant.identifier = next_id()
                descendant.is_new = True
                inserted += 1
            existing.append(subtree)
            continue

        for content_id in node.leaf_content_ids:
            match.add_leaf(content_id)
        inserted += _merge_children(match.children, node.children, next_id)
    return inserted


def tree_from_remote(content: Mapping[str, Any], language: str | None = None) -> SetNode:
    """Convert a fetched hierarchy document into a course tree.

    Collection children become sets marked as already known to the service;
    every other child is leaf content of its parent.
    """
    node = SetNode(
        name=content.get("name") or "",
        description=content.get("description") or "",
        uploaded_icon_url=content.get("appIcon") or None,
        identifier=content.get("identifier"),
        is_new=False,
        language=language,
    )
    for child in content.get("children") or []:
        if child.get("mimeType") == COLLECTION_MIME_TYPE:
            node.children.append(tree_from_remote(child, language))
        elif child.get("identifier"):
            node.add_leaf(child["identifier"])
    return node


def clean_remote_metadata(content: Mapping[str, Any]) -> dict[str, Any]:
    """Copy a fetched root document without its structural fields."""
    return {key: value for key, value in content.items() if key not in STRUCTURAL_FIELDS}


def overlay_root_metadata(
    remote_root: Mapping[str, Any],
    metadata: CourseMetadata,
    icon_url: str | None = None,
) -> dict[str, Any]:
    """Overlay local course metadata onto the fetched root metadata.

    Only values present locally overwrite the remote ones.

    Args:
        remote_root: Root document returned by the hierarchy fetch.
        metadata: Local course metadata.
        icon_url: Freshly uploaded course icon, if any.

    Returns:
        Root metadata ready for the hierarchy update payload.
    """
    result = clean_remote_metadata(remote_root)
    overlays = {
        "program": metadata.program,
        "keywords": metadata.course_keywords,
        "primaryUser": metadata.primary_user,
        "targetAgeGroup": metadata.target_age_group,
        "contentLanguage": metadata.content_language,
        "description": metadata.course_description,
        "appIcon": icon_url,
    }
    for key, value in overlays.items():
        if value:
            result[key] = value
    return result
