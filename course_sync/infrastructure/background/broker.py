# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker configuration for course sync.

Background jobs run on a Redis broker. Setting DRAMATIQ_TEST_MODE=true
switches to an in-memory StubBroker.

Example:
    from course_sync.infrastructure.background.broker import setup_dramatiq, get_broker

    broker = setup_dramatiq()
"""

import logging
import os

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from course_sync.core.config import get_settings

logger = logging.getLogger(__name__)


class Queues:
    """Queue name constants for task routing."""

    DEFAULT = "default"
    COURSES = "courses"
    MAINTENANCE = "maintenance"


class Priority:
    """Task priority levels (lower number = higher priority)."""

    HIGH = 1
    NORMAL = 3
    LOW = 5


class BrokerManager:
    """Manages Dramatiq broker lifecycle.

    Attributes:
        _broker: The Dramatiq broker instance.
        _initialized: Whether the broker has been initialized.
    """

    def __init__(self) -> None:
        self._broker: dramatiq.Broker | None = None
        self._initialized = False

    @property
    def broker(self) -> dramatiq.Broker:
        """Get the configured broker.

        Raises:
            RuntimeError: If broker not initialized.
        """
        if self._broker is None:
            raise RuntimeError("Broker not initialized. Call setup() first.")
        return self._broker

    @property
    def is_initialized(self) -> bool:
        """Check if broker is initialized."""
        return self._initialized

    def setup(self) -> dramatiq.Broker:
        """Setup and configure the Dramatiq broker.

        Returns:
            Configured broker instance.
        """
        if self._initialized:
            return self._broker  # type: ignore

        use_stub = os.getenv("DRAMATIQ_TEST_MODE", "false").lower() == "true"

        if use_stub:
            self._broker = StubBroker()
            self._broker.emit_after("process_boot")
            logger.info("Using StubBroker for testing")
        else:
            redis_url = get_settings().redis.url
            self._broker = RedisBroker(url=redis_url)
            logger.info("Redis broker initialized (url: %s)", redis_url.split("@")[-1])

        dramatiq.set_broker(self._broker)
        self._initialized = True
        return self._broker

    def shutdown(self) -> None:
        """Shutdown the broker."""
        if self._broker is not None:
            self._broker.close()
            self._broker = None
            self._initialized = False
            logger.info("Broker shutdown complete")


_broker_manager: BrokerManager | None = None


def get_broker_manager() -> BrokerManager:
    """Get the singleton broker manager."""
    global _broker_manager
    if _broker_manager is None:
        _broker_manager = BrokerManager()
    return _broker_manager


def setup_dramatiq() -> dramatiq.Broker:
    """Setup Dramatiq with configuration from settings.

    Returns:
        Configured broker.
    """
    return get_broker_manager().setup()


def get_broker() -> dramatiq.Broker:
    """Get the current Dramatiq broker.

    Raises:
        RuntimeError: If broker not initialized.
    """
    return get_broker_manager().broker


def shutdown_dramatiq() -> None:
    """Shutdown the Dramatiq broker."""
    global _broker_manager
    if _broker_manager is not None:
        _broker_manager.shutdown()
        _broker_manager = None
