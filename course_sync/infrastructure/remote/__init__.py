# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote content service integration."""

from course_sync.infrastructure.remote.assets import AssetUploader
from course_sync.infrastructure.remote.client import ContentServiceClient
from course_sync.infrastructure.remote.exceptions import (
    ContentNotFoundError,
    ContentServiceAPIError,
    ContentServiceError,
)

__all__ = [
    "AssetUploader",
    "ContentNotFoundError",
    "ContentServiceAPIError",
    "ContentServiceClient",
    "ContentServiceError",
]
