"""Course Hierarchy Sync.

Migrates flat course-catalog import rows into course -> unit -> sub-unit ->
content trees and keeps them synchronized with the remote content service.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
