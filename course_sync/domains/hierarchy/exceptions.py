# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised while building and compiling course trees.

- HierarchyError: Base exception for tree operations
- MalformedRecordError: Persisted tree or metadata JSON cannot be decoded
- PayloadCompileError: A tree cannot be flattened into a hierarchy payload
"""


class HierarchyError(Exception):
    """Base exception for course tree operations.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class MalformedRecordError(HierarchyError):
    """Persisted course record JSON failed to parse or validate.

    Fatal for the affected record. The data has to be corrected upstream,
    parsing is never retried.

    Attributes:
        field: Name of the column that failed to decode.
    """

    def __init__(self, message: str, field: str, details: dict | None = None):
        self.field = field
        super().__init__(message, details)


class PayloadCompileError(HierarchyError):
    """A course tree cannot be compiled into a hierarchy payload."""

    pass
