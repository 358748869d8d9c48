# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content association.

Leaf content is attached to course units with one call per unit. The service
expects every level 1 unit to be populated before any deeper unit, so
association runs in two phases:

1. Every direct child of the course root
2. Depth-first through the subtree of each direct child
"""

import logging
from typing import Protocol

from course_sync.domains.hierarchy.models import SetNode
from course_sync.domains.sync.retry import RetryPolicy

logger = logging.getLogger(__name__)


class AssociationClient(Protocol):
    """Remote side of content association."""

    async def associate_content(self, course_id: str, unit_id: str, content_ids: list[str]) -> None: ...


class ContentAssociator:
    """Attaches the leaf content of a reconciled tree to its units.

    Attributes:
        _client: Content service client.
        _policy: Retry policy for association calls.
    """

    def __init__(self, client: AssociationClient, policy: RetryPolicy) -> None:
        self._client = client
        self._policy = policy

    async def associate(self, course_id: str, tree: SetNode) -> int:
        """Associate all leaf content of a course tree.

        Root-level content is attached through the hierarchy payload and is
        not associated here.

        Args:
            course_id: Remote course identifier.
            tree: Tree whose identifiers are already reconciled.

        Returns:
            Number of association calls issued.
        """
        calls = 0
        for unit in tree.children:
            calls += await self._associate_node(course_id, unit)

        for unit in tree.children:
            for child in unit.children:
                calls += await self._associate_subtree(course_id, child)

        logger.info("Associated content of course %s in %d calls", course_id, calls)
        return calls

    async def _associate_subtree(self, course_id: str, node: SetNode) -> int:
        calls = await self._associate_node(course_id, node)
        for child in node.children:
            calls += await self._associate_subtree(course_id, child)
        return calls

    async def _associate_node(self, course_id: str, node: SetNode) -> int:
        if not node.identifier or not node.leaf_content_ids:
            return 0
        logger.debug(
            "Associating %d contents with set '%s' (%s)",
            len(node.leaf_content_ids),
            node.name,
            node.identifier,
        )
        await self._policy.call(
            self._client.associate_content,
            course_id,
            node.identifier,
            list(node.leaf_content_ids),
            label=f"associate content with {node.identifier}",
        )
        return 1
