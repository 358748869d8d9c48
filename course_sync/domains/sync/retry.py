# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bounded retry for remote calls.

Every remote call of a sync run goes through a RetryPolicy: a maximum
number of attempts, a fixed delay between attempts and a predicate that
decides which errors are worth another attempt. When the budget is spent
the last error is raised unchanged.

Example:
    >>> policy = RetryPolicy(max_attempts=3, delay_seconds=2.0)
    >>> course_id = await policy.call(client.create_course, "Science", label="create course")
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from course_sync.core.config.settings import SyncSettings
from course_sync.infrastructure.remote.exceptions import (
    ContentServiceAPIError,
    ContentServiceError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_error(error: BaseException) -> bool:
    """Server errors and transport failures."""
    return isinstance(error, ContentServiceAPIError) and error.is_transient


def is_service_error(error: BaseException) -> bool:
    """Any content service failure, for calls that are safe to repeat."""
    return isinstance(error, ContentServiceError)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one kind of remote call.

    Attributes:
        max_attempts: Total attempts, including the first one.
        delay_seconds: Fixed delay between attempts.
        retryable: Predicate selecting errors that are retried.
    """

    max_attempts: int = 3
    delay_seconds: float = 1.0
    retryable: Callable[[BaseException], bool] = field(default=is_transient_error)

    async def call(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        label: str = "remote call",
        **kwargs: Any,
    ) -> T:
        """Await fn(*args, **kwargs) under this policy.

        Raises:
            Exception: The last error, when it is not retryable or the
                attempt budget is exhausted.
        """

        def log_retry(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            logger.warning(
                "%s failed (attempt %d/%d): %s, retrying in %.1fs",
                label,
                state.attempt_number,
                self.max_attempts,
                error,
                self.delay_seconds,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception(self.retryable),
            before_sleep=log_retry,
            reraise=True,
        )
        return await retrying(fn, *args, **kwargs)


@dataclass(frozen=True)
class RetryPolicies:
    """Retry policies of every remote call made during a sync."""

    create: RetryPolicy
    hierarchy: RetryPolicy
    fetch: RetryPolicy
    associate: RetryPolicy
    publish: RetryPolicy
    retire: RetryPolicy

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "RetryPolicies":
        """Build the policies from the configured budgets.

        Creation, hierarchy updates and fetches only retry transient errors.
        Association, review/publish and retire are idempotent on the service
        and retry any service error.
        """
        return cls(
            create=RetryPolicy(settings.create_attempts, settings.create_delay_seconds),
            hierarchy=RetryPolicy(settings.hierarchy_attempts, settings.hierarchy_delay_seconds),
            fetch=RetryPolicy(settings.fetch_attempts, settings.fetch_delay_seconds),
            associate=RetryPolicy(
                settings.associate_attempts, settings.associate_delay_seconds, is_service_error
            ),
            publish=RetryPolicy(settings.publish_attempts, settings.publish_delay_seconds, is_service_error),
            retire=RetryPolicy(settings.retire_attempts, settings.retire_delay_seconds, is_service_error),
        )
