# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Row grouper.

Folds flat import rows into one course tree per (course title, language).
Rows are processed in ascending row id order so that repeated runs over the
same input build structurally identical trees.
"""

import logging
from collections.abc import Iterable

from course_sync.domains.hierarchy.models import (
    CourseMetadata,
    CourseRecord,
    ImportRow,
    SetNode,
)

logger = logging.getLogger(__name__)

CourseKey = tuple[str, str]


def group_rows(rows: Iterable[ImportRow], max_levels: int = 10) -> dict[CourseKey, CourseRecord]:
    """Group import rows into course records.

    Args:
        rows: Import rows in any order.
        max_levels: Deepest level to read from each row.

    Returns:
        Course records keyed by (course title, language), in order of first
        appearance. Empty sets are already pruned.
    """
    courses: dict[CourseKey, CourseRecord] = {}

    for row in sorted(rows, key=lambda r: r.row_id):
        if not row.course_title:
            logger.warning("Skipping import row %s without a course title", row.row_id)
            continue

        for language in row.languages:
            key = (row.course_title, language)
            record = courses.get(key)
            if record is None:
                metadata = CourseMetadata.from_import_columns(row.metadata, language)
                record = CourseRecord.new(row.course_title, language, metadata)
                courses[key] = record

            _place_row(record.tree, row, language, level=1, max_levels=max_levels)

    for record in courses.values():
        record.tree.children = prune_empty(record.tree.children)

    logger.info("Grouped import rows into %d course records", len(courses))
    return courses


def _place_row(parent: SetNode, row: ImportRow, language: str, level: int, max_levels: int) -> None:
    """Descend one row into the tree starting at the given level."""
    name = row.level_name(level) if level <= max_levels else None

    if name is None:
        if row.content_id:
            parent.add_leaf(row.content_id)
        return

    columns = row.levels[level - 1]
    node = parent.find_child(name, language)
    if node is None:
        node = SetNode(
            name=name,
            description=columns.description,
            thumbnail_source=columns.thumb or None,
            language=language,
        )
        parent.children.append(node)

    if level < max_levels and row.level_name(level + 1) is not None:
        _place_row(node, row, language, level + 1, max_levels)
    elif row.content_id:
        node.add_leaf(row.content_id)


def prune_empty(nodes: list[SetNode]) -> list[SetNode]:
    """Remove nodes without leaf content and without surviving children.

    Pruning runs bottom-up and is idempotent: pruning an already pruned
    list returns an equal list.
    """
    kept: list[SetNode] = []
    for node in nodes:
        node.children = prune_empty(node.children)
        if node.has_content:
            kept.append(node)
    return kept
