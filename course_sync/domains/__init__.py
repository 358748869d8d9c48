# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for course sync.

Domains:
    hierarchy: Course tree building, merging, compilation and reconciliation.
    sync: Sync orchestration, content association, retries and fixes.
"""
