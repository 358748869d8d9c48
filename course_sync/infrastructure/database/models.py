# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the course sync database.

Tables:
    content_imports: Flat migrated rows, one per (course, set path, content).
    course_import_records: One grouped course per (course title, language)
        with its serialized tree, metadata and sync state.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MAX_LEVEL_COLUMNS = 10


class Base(DeclarativeBase):
    """Declarative base for all course sync models."""

    pass


def _level_columns(levels: int) -> list[Column]:
    columns: list[Column] = []
    for level in range(1, levels + 1):
        columns.extend(
            [
                Column(f"set{level}", String(500), nullable=True),
                Column(f"set{level}_desc", Text, nullable=True),
                Column(f"set{level}_thumb", String(1000), nullable=True),
            ]
        )
    return columns


content_imports = Table(
    "content_imports",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("course_title", String(500), nullable=False),
    *_level_columns(MAX_LEVEL_COLUMNS),
    Column("do_id", String(255), nullable=True),
    Column("domain", String(255), nullable=True),
    Column("sub_domain", String(500), nullable=True),
    Column("author", String(255), nullable=True),
    Column("copyright", String(255), nullable=True),
    Column("copyright_year", String(10), nullable=True),
    Column("subjects", Text, nullable=True),
    Column("course_keywords", Text, nullable=True),
    Column("course_description", Text, nullable=True),
    Column("course_thumb", String(1000), nullable=True),
    Column("program", String(500), nullable=True),
    Column("content_language", String(255), nullable=True),
    Column("target_age_group", String(255), nullable=True),
    Column("primary_user", String(255), nullable=True),
    Column("migrated", Boolean, nullable=False, server_default="false"),
)


class CourseImportRecord(Base):
    """A grouped course for one language, and its sync state.

    Attributes:
        id: Primary key.
        course_title: Course title.
        language: Language of the course tree.
        course_do_id: Remote course identifier, once created.
        sets_do_id: Serialized sets document ({"sets": [...]}).
        course_metadata: Serialized course metadata.
        status: pending, in_progress, completed or failed.
        fix_applied: Whether the corrective pass has run.
    """

    __tablename__ = "course_import_records"
    __table_args__ = (
        UniqueConstraint("course_title", "language", name="uq_course_import_records_title_language"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_title: Mapped[str] = mapped_column(String(500), nullable=False)
    language: Mapped[str] = mapped_column(String(100), nullable=False)
    course_do_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sets_do_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    course_metadata: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", server_default="pending")
    fix_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CourseImportRecord {self.id} {self.course_title!r} [{self.language}] {self.status}>"
