# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Temporary identifier generation for new tree nodes."""

import uuid


class TemporaryIdGenerator:
    """Deterministic generator of temporary node identifiers.

    Each generator owns its counter, so one sync run (or one test) never
    shares state with another. The same seed always yields the same
    sequence of identifiers.

    Example:
        >>> next_id = TemporaryIdGenerator("run-1")
        >>> next_id() == TemporaryIdGenerator("run-1")()
        True
    """

    def __init__(self, seed: str | None = None) -> None:
        self._namespace = uuid.uuid5(uuid.NAMESPACE_URL, seed or uuid.uuid4().hex)
        self._counter = 0

    def __call__(self) -> str:
        self._counter += 1
        return str(uuid.uuid5(self._namespace, str(self._counter)))

    @property
    def issued(self) -> int:
        """Number of identifiers issued so far."""
        return self._counter
