# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial course sync schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-02

Creates the import row table and the grouped course record table.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MAX_LEVELS = 10


def upgrade() -> None:
    """Create course sync tables."""
    # ==========================================================================
    # 1. content_imports table
    # ==========================================================================
    level_columns = []
    for level in range(1, MAX_LEVELS + 1):
        level_columns.extend(
            [
                sa.Column(f"set{level}", sa.String(500), nullable=True),
                sa.Column(f"set{level}_desc", sa.Text, nullable=True),
                sa.Column(f"set{level}_thumb", sa.String(1000), nullable=True),
            ]
        )

    op.create_table(
        "content_imports",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("course_title", sa.String(500), nullable=False),
        *level_columns,
        sa.Column("do_id", sa.String(255), nullable=True),
        sa.Column("domain", sa.String(255), nullable=True),
        sa.Column("sub_domain", sa.String(500), nullable=True),
        sa.Column("author", sa.String(255), nullable=True),
        sa.Column("copyright", sa.String(255), nullable=True),
        sa.Column("copyright_year", sa.String(10), nullable=True),
        sa.Column("subjects", sa.Text, nullable=True),
        sa.Column("course_keywords", sa.Text, nullable=True),
        sa.Column("course_description", sa.Text, nullable=True),
        sa.Column("course_thumb", sa.String(1000), nullable=True),
        sa.Column("program", sa.String(500), nullable=True),
        sa.Column("content_language", sa.String(255), nullable=True),
        sa.Column("target_age_group", sa.String(255), nullable=True),
        sa.Column("primary_user", sa.String(255), nullable=True),
        sa.Column("migrated", sa.Boolean, nullable=False, server_default="false"),
    )
    op.create_index("ix_content_imports_course_title", "content_imports", ["course_title"])

    # ==========================================================================
    # 2. course_import_records table
    # ==========================================================================
    op.create_table(
        "course_import_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("course_title", sa.String(500), nullable=False),
        sa.Column("language", sa.String(100), nullable=False),
        sa.Column("course_do_id", sa.String(255), nullable=True),
        sa.Column("sets_do_id", sa.Text, nullable=True),
        sa.Column("course_metadata", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("fix_applied", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("course_title", "language", name="uq_course_import_records_title_language"),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'failed')",
            name="valid_course_import_status",
        ),
    )
    op.create_index("ix_course_import_records_status", "course_import_records", ["status"])


def downgrade() -> None:
    """Drop course sync tables."""
    op.drop_index("ix_course_import_records_status", table_name="course_import_records")
    op.drop_table("course_import_records")
    op.drop_index("ix_content_imports_course_title", table_name="content_imports")
    op.drop_table("content_imports")
