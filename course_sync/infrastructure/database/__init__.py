# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

Example:
    from course_sync.infrastructure.database import get_session, CourseRecordStore

    async with get_session() as session:
        store = CourseRecordStore(session)
        records = await store.fetch_pending(limit=5)
"""

from course_sync.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
    worker_session,
)
from course_sync.infrastructure.database.repository import CourseRecordStore

__all__ = [
    "CourseRecordStore",
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "worker_session",
]
