# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    courses: Course import, sync and maintenance job triggers.
"""

from fastapi import APIRouter

from course_sync.api.v1 import courses

router = APIRouter(prefix="/api/v1")

router.include_router(courses.router, prefix="/courses", tags=["Courses"])
