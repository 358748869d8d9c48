# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for course hierarchy sync.

Example:
    >>> from course_sync.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.sync.batch_limit)
    1
"""

from course_sync.core.config.settings import (
    ContentServiceSettings,
    DatabaseSettings,
    RedisSettings,
    Settings,
    SyncSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "ContentServiceSettings",
    "SyncSettings",
    "RedisSettings",
]
