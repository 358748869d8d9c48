# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base utilities for Dramatiq tasks.

Dramatiq workers process tasks on several threads. Each thread keeps one
persistent event loop that every task on that thread reuses.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_thread_local = threading.local()


def _get_thread_event_loop() -> asyncio.AbstractEventLoop:
    """Get or create the persistent event loop of the current thread."""
    loop = getattr(_thread_local, "event_loop", None)

    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.event_loop = loop
        logger.debug(
            "Created new event loop for thread %s",
            threading.current_thread().name,
        )

    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from a synchronous Dramatiq actor.

    Args:
        coro: Coroutine to run.

    Returns:
        Result of coroutine.

    Example:
        @dramatiq.actor
        def my_task(limit: int):
            async def _process():
                async with worker_session(get_settings()) as session:
                    ...
            return run_async(_process())
    """
    loop = _get_thread_event_loop()
    return loop.run_until_complete(coro)
