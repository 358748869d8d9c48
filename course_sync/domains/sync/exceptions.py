# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by course synchronization."""


class CourseSyncError(Exception):
    """A course could not be synchronized.

    Attributes:
        message: Human-readable error description.
        course_title: Title of the affected course, if known.
        details: Optional dictionary with additional error context.
    """

    def __init__(
        self,
        message: str,
        course_title: str | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.course_title = course_title
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with the course title if available."""
        base = self.message
        if self.course_title:
            base = f"{base} (course: {self.course_title})"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base
