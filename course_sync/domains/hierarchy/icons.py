# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Icon upload for new tree nodes."""

import asyncio
import logging
from typing import Protocol

from course_sync.domains.hierarchy.models import SetNode

logger = logging.getLogger(__name__)


class IconUploader(Protocol):
    """Anything that turns a source image URL into a hosted icon URL."""

    async def upload(self, source_url: str) -> str | None: ...


async def upload_icons(nodes: list[SetNode], uploader: IconUploader) -> int:
    """Upload thumbnails of new nodes, siblings concurrently.

    Known nodes are left alone but still descended into. A failed upload
    leaves the node with an empty icon. Every upload has completed when this
    coroutine returns.

    Returns:
        Number of icons uploaded.
    """
    if not nodes:
        return 0

    results = await asyncio.gather(*(_upload_node(node, uploader) for node in nodes))
    return sum(results)


async def _upload_node(node: SetNode, uploader: IconUploader) -> int:
    uploaded = 0
    if node.is_new and node.thumbnail_source and not node.uploaded_icon_url:
        try:
            url = await uploader.upload(node.thumbnail_source)
        except Exception as e:
            logger.error("Icon upload raised for set '%s': %s", node.name, str(e))
            url = None
        if url:
            node.uploaded_icon_url = url
            uploaded += 1
        else:
            logger.warning("Icon upload failed for set '%s'", node.name)
            node.uploaded_icon_url = ""
    return uploaded + await upload_icons(node.children, uploader)
