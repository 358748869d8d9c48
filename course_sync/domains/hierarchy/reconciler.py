# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identifier reconciliation.

New nodes carry temporary identifiers until the content service answers a
hierarchy update with the identifiers it assigned. The reconciler rewrites
those identifiers in place before content is associated.
"""

import logging
from collections.abc import Callable, Mapping

from course_sync.domains.hierarchy.models import SetNode

logger = logging.getLogger(__name__)


def reconcile_identifiers(tree: SetNode, identifier_map: Mapping[str, str]) -> int:
    """Replace temporary identifiers with the ones assigned by the service.

    Nodes whose identifier is not in the map are left untouched.

    Args:
        tree: Course tree to rewrite in place.
        identifier_map: Temporary identifier -> assigned identifier.

    Returns:
        Number of rewritten nodes.
    """
    rewritten = 0
    for node in tree.walk():
        if node.identifier is not None and node.identifier in identifier_map:
            node.identifier = identifier_map[node.identifier]
            node.is_new = False
            rewritten += 1
    logger.debug("Reconciled %d of %d identifiers", rewritten, len(identifier_map))
    return rewritten


def assign_temporary_identifiers(tree: SetNode, next_id: Callable[[], str]) -> int:
    """Give every identifier-less node a fresh temporary identifier.

    Returns:
        Number of nodes that received an identifier.
    """
    assigned = 0
    for node in tree.walk():
        if not node.identifier:
            node.identifier = next_id()
            node.is_new = True
            assigned += 1
    return assigned
