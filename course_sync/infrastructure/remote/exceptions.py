# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the content service client.

This module defines the exception hierarchy for content service calls:
- ContentServiceError: Base exception for all content service errors
- ContentServiceAPIError: Error responses and transport failures
- ContentNotFoundError: Requested content does not exist
"""


class ContentServiceError(Exception):
    """Base exception for all content service errors.

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


class ContentServiceAPIError(ContentServiceError):
    """Error response from the content service, or no response at all.

    Attributes:
        status_code: HTTP status code, None when the request never got a
            response (connection error, timeout).
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    @property
    def is_transient(self) -> bool:
        """Whether repeating the same call may succeed."""
        return self.status_code is None or self.status_code >= 500

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = f"{self.message}"
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class ContentNotFoundError(ContentServiceAPIError):
    """Requested content does not exist on the content service.

    Attributes:
        content_id: Identifier that was not found.
    """

    def __init__(self, content_id: str, details: dict | None = None):
        self.content_id = content_id
        super().__init__(
            message=f"Content not found: {content_id}",
            status_code=404,
            details=details,
        )
