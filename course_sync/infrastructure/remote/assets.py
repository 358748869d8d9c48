# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Icon asset uploader.

Copies an image from its source URL into the content service:

1. Download the image
2. Create an asset node
3. Request a pre-signed upload URL and PUT the file
4. Register the uploaded file with the asset

Upload failures never fail a course sync: they are logged and the node
keeps an empty icon.
"""

import logging
import mimetypes
import posixpath
import uuid
from urllib.parse import urlsplit

from course_sync.infrastructure.remote.client import ContentServiceClient
from course_sync.infrastructure.remote.exceptions import ContentServiceError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


def icon_file_name(source_url: str) -> str:
    """File name of an icon URL, ignoring its query string."""
    name = posixpath.basename(urlsplit(source_url).path)
    return name or f"{uuid.uuid4()}.png"


def detect_mime_type(file_name: str, content_type: str | None) -> str:
    """Pick the image MIME type from the response header or the file name."""
    if content_type:
        mime_type = content_type.split(";")[0].strip()
        if mime_type.startswith("image/"):
            return mime_type
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_MIME_TYPE


class AssetUploader:
    """Uploads icon images as content service assets.

    Attributes:
        _client: Content service client.
    """

    def __init__(self, client: ContentServiceClient) -> None:
        self._client = client

    async def upload(self, source_url: str) -> str | None:
        """Upload an image and return its hosted URL.

        Args:
            source_url: Where to download the image from.

        Returns:
            The asset content URL, or None if any step failed.
        """
        if not source_url:
            return None

        file_name = icon_file_name(source_url)
        try:
            data, content_type = await self._client.download(source_url)
            mime_type = detect_mime_type(file_name, content_type)

            asset_id = await self._client.create_asset(file_name, mime_type)
            upload_url = await self._client.get_upload_url(asset_id, file_name)
            await self._client.put_file(upload_url, data, mime_type)
            content_url = await self._client.register_asset(asset_id, upload_url.split("?")[0], mime_type)
        except ContentServiceError as e:
            logger.warning("Icon upload failed for %s: %s", source_url, str(e))
            return None

        logger.info("Uploaded icon %s as asset %s", file_name, asset_id)
        return content_url
