# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

# Actor modules declare their broker at import time
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

from course_sync.core.config.settings import SyncSettings, clear_settings_cache  # noqa: E402
from course_sync.domains.hierarchy.identifiers import TemporaryIdGenerator  # noqa: E402
from course_sync.domains.hierarchy.models import ImportRow  # noqa: E402
from course_sync.domains.sync.retry import RetryPolicies  # noqa: E402


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reload settings from the environment for every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def sync_settings() -> SyncSettings:
    """Sync settings without delays between attempts."""
    return SyncSettings(
        create_delay_seconds=0,
        hierarchy_delay_seconds=0,
        fetch_delay_seconds=0,
        associate_delay_seconds=0,
        publish_delay_seconds=0,
        retire_delay_seconds=0,
    )


@pytest.fixture
def retry_policies(sync_settings: SyncSettings) -> RetryPolicies:
    """Retry policies without delays between attempts."""
    return RetryPolicies.from_settings(sync_settings)


@pytest.fixture
def next_id() -> TemporaryIdGenerator:
    """Deterministic temporary identifier generator."""
    return TemporaryIdGenerator("test-run")


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


def make_row(
    row_id: int,
    title: str = "Science",
    sets: list[str | None] | None = None,
    content_id: str | None = None,
    languages: str = "Hindi",
    **metadata: Any,
) -> ImportRow:
    """Build an import row from level names."""
    mapping: dict[str, Any] = {
        "id": row_id,
        "course_title": title,
        "do_id": content_id,
        "content_language": languages,
        **metadata,
    }
    for level, name in enumerate(sets or [], start=1):
        mapping[f"set{level}"] = name
    return ImportRow.from_mapping(mapping)


@pytest.fixture
def row_factory():
    """Provide the import row builder."""
    return make_row


@pytest.fixture
def sample_course_metadata() -> dict[str, Any]:
    """Provide sample course metadata columns."""
    return {
        "domain": "Learning for Life",
        "sub_domain": "Health, Wellness",
        "subjects": "Nutrition, Hygiene",
        "course_keywords": "food,water",
        "course_description": "Healthy living\r\n",
        "program": "Open School",
        "target_age_group": "14-18",
        "primary_user": "Learner",
        "copyright_year": "2024",
    }
