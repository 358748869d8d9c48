# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors for course sync.

Running Workers:
    dramatiq course_sync.infrastructure.background.tasks --processes 1 --threads 2
"""

from course_sync.infrastructure.background.tasks.course_sync import (
    apply_course_fixes,
    get_course_actors,
    group_import_rows,
    retire_synced_courses,
    sync_pending_courses,
)

__all__ = [
    "apply_course_fixes",
    "get_course_actors",
    "group_import_rows",
    "retire_synced_courses",
    "sync_pending_courses",
]
