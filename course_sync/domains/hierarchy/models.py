# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course tree data model.

A course is an n-ary tree. The course itself is the root node, its children
are the level 1 sets (units), their children the level 2 sets, and so on.
Leaf content is never wrapped in a node: every set carries the identifiers of
the content attached directly to it.

Types:
    SetNode: One node of a course tree (owns its children).
    CourseMetadata: Course-level metadata taken from the import rows.
    CourseRecord: In-memory copy of one persisted (title, language) course.
    StoredCourse: Raw persisted columns of a course record.
    HierarchyPayload: Flat node/hierarchy maps sent to the content service.
    ImportRow: One flat, denormalized import row.
"""

import json
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from course_sync.domains.hierarchy.exceptions import MalformedRecordError

logger = logging.getLogger(__name__)

COLLECTION_MIME_TYPE = "application/vnd.ekstep.content-collection"

YEAR_PATTERN = re.compile(r"^\s*(\d{4})(?!\d)")


def split_csv(value: Any) -> list[str]:
    """Split a comma-separated value into trimmed, non-empty items.

    Lists are trimmed item by item; None and empty strings give an empty list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def clean_text(value: Any) -> str:
    """Remove line breaks and surrounding whitespace from a text column."""
    if value is None:
        return ""
    return str(value).replace("\r", "").replace("\n", "").strip()


class SyncStatus(str, Enum):
    """Synchronization state of a course record."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def selectable(cls) -> tuple["SyncStatus", ...]:
        """States picked up by a sync run.

        In-progress records are abandoned attempts and are retried from
        scratch together with failed ones.
        """
        return (cls.PENDING, cls.IN_PROGRESS, cls.FAILED)


class SetNode(BaseModel):
    """One node of a course tree.

    Attributes:
        name: Display name, unique among siblings of the same language.
        description: Node description.
        thumbnail_source: Source URL of the node icon, if any.
        uploaded_icon_url: URL of the icon once uploaded to the service.
        identifier: Remote identifier or temporary token.
        is_new: True until the service confirms the identifier.
        children: Ordered child sets.
        leaf_content_ids: Content attached directly to this node.
        language: Language scope of the node.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    thumbnail_source: str | None = Field(
        default=None,
        validation_alias=AliasChoices("thumbnail_source", "thumb"),
    )
    uploaded_icon_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("uploaded_icon_url", "appIcon"),
    )
    identifier: str | None = Field(
        default=None,
        validation_alias=AliasChoices("identifier", "do_id"),
    )
    is_new: bool = Field(
        default=True,
        validation_alias=AliasChoices("is_new", "isNew"),
    )
    children: list["SetNode"] = Field(default_factory=list)
    leaf_content_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("leaf_content_ids", "content"),
    )
    language: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _infer_is_new(cls, data: Any) -> Any:
        # Legacy documents carry no novelty flag: a node is new until it has an id
        if isinstance(data, dict) and "is_new" not in data and "isNew" not in data:
            data = dict(data)
            data["is_new"] = not (data.get("identifier") or data.get("do_id"))
        return data

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("leaf_content_ids", mode="before")
    @classmethod
    def _dedupe_leaves(cls, value: Any) -> list[str]:
        seen: dict[str, None] = {}
        for item in value or []:
            if item is not None and str(item).strip():
                seen.setdefault(str(item).strip(), None)
        return list(seen)

    @property
    def has_content(self) -> bool:
        """Whether the node holds leaf content or child sets."""
        return bool(self.leaf_content_ids or self.children)

    def add_leaf(self, content_id: str) -> None:
        """Attach a content identifier unless it is already attached."""
        if content_id and content_id not in self.leaf_content_ids:
            self.leaf_content_ids.append(content_id)

    def find_child(self, name: str, language: str | None = None) -> "SetNode | None":
        """Find a direct child by exact name within a language scope."""
        for child in self.children:
            if child.name == name and (language is None or child.language == language):
                return child
        return None

    def walk(self) -> Iterator["SetNode"]:
        """Iterate over this node and all descendants, depth-first pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


def encode_sets(tree: SetNode) -> str:
    """Serialize the sets of a course tree into the persisted JSON document."""
    return json.dumps(
        {"sets": [child.model_dump(mode="json") for child in tree.children]},
        ensure_ascii=False,
    )


def decode_sets(raw: str | Mapping[str, Any] | None) -> list[SetNode]:
    """Decode the persisted sets document.

    Raises:
        MalformedRecordError: If the document is not valid JSON or does not
            match the node shape.
    """
    if raw is None or raw == "":
        return []
    try:
        document = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if not isinstance(document, Mapping):
            raise ValueError("sets document must be a JSON object")
        return [SetNode.model_validate(item) for item in document.get("sets") or []]
    except (ValueError, TypeError, ValidationError) as e:
        raise MalformedRecordError(
            "Invalid JSON in sets document",
            field="sets_do_id",
            details={"error": str(e)},
        ) from e


class CourseMetadata(BaseModel):
    """Course-level metadata collected from the import rows."""

    model_config = ConfigDict(extra="ignore")

    domain: str = ""
    sub_domain: str = ""
    course_thumb: str = ""
    author: str = ""
    copyright: str = ""
    copyright_year: int | None = None
    subjects: list[str] = Field(default_factory=list)
    course_keywords: list[str] = Field(default_factory=list)
    course_description: str = ""
    program: list[str] = Field(default_factory=list)
    content_language: list[str] = Field(default_factory=list)
    target_age_group: list[str] = Field(default_factory=list)
    primary_user: list[str] = Field(default_factory=list)

    @field_validator(
        "subjects",
        "course_keywords",
        "program",
        "content_language",
        "target_age_group",
        "primary_user",
        mode="before",
    )
    @classmethod
    def _split_lists(cls, value: Any) -> list[str]:
        return split_csv(value)

    @field_validator("domain", "sub_domain", "author", "copyright", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("course_thumb", "course_description", mode="before")
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("copyright_year", mode="before")
    @classmethod
    def _parse_year(cls, value: Any) -> int | None:
        """Take the leading four-digit year, so "2024-25" reads as 2024."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        match = YEAR_PATTERN.match(str(value))
        if match is None:
            logger.warning("Ignoring unreadable copyright year %r", value)
            return None
        return int(match.group(1))

    @classmethod
    def from_import_columns(cls, columns: Mapping[str, Any], language: str) -> "CourseMetadata":
        """Build metadata for one language of an import row."""
        return cls.model_validate({**columns, "content_language": [language]})


def decode_metadata(raw: str | Mapping[str, Any] | None) -> CourseMetadata:
    """Decode the persisted metadata document.

    Raises:
        MalformedRecordError: If the document is not valid JSON or fails
            validation.
    """
    if raw is None or raw == "":
        return CourseMetadata()
    try:
        document = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        return CourseMetadata.model_validate(document)
    except (ValueError, TypeError, ValidationError) as e:
        raise MalformedRecordError(
            "Invalid JSON in course_metadata",
            field="course_metadata",
            details={"error": str(e)},
        ) from e


@dataclass
class StoredCourse:
    """Raw persisted columns of one course record."""

    record_id: int
    course_title: str
    language: str | None
    remote_course_id: str | None
    status: str
    sets_json: Any
    metadata_json: Any
    fix_applied: bool = False


@dataclass
class CourseRecord:
    """In-memory copy of one (course title, language) record.

    The engine mutates this copy for the duration of one synchronization
    attempt; the relational store owns the record between runs.
    """

    title: str
    language: str
    tree: SetNode
    metadata: CourseMetadata = field(default_factory=CourseMetadata)
    record_id: int | None = None
    remote_course_id: str | None = None
    sync_status: SyncStatus = SyncStatus.PENDING
    fix_applied: bool = False

    @property
    def key(self) -> tuple[str, str]:
        """Grouping key of the record."""
        return (self.title, self.language)

    @classmethod
    def new(cls, title: str, language: str, metadata: CourseMetadata | None = None) -> "CourseRecord":
        """Create an empty record whose tree root is the course itself."""
        return cls(
            title=title,
            language=language,
            tree=SetNode(name=title, language=language),
            metadata=metadata or CourseMetadata(content_language=[language]),
        )

    @classmethod
    def from_stored(cls, stored: StoredCourse) -> "CourseRecord":
        """Decode a persisted record.

        Raises:
            MalformedRecordError: If the tree or metadata column is malformed.
        """
        metadata = decode_metadata(stored.metadata_json)
        language = stored.language or (metadata.content_language[0] if metadata.content_language else "")
        root = SetNode(
            name=stored.course_title,
            language=language,
            identifier=stored.remote_course_id,
            is_new=stored.remote_course_id is None,
            children=decode_sets(stored.sets_json),
        )
        return cls(
            title=stored.course_title,
            language=language,
            tree=root,
            metadata=metadata,
            record_id=stored.record_id,
            remote_course_id=stored.remote_course_id,
            sync_status=SyncStatus(stored.status),
            fix_applied=stored.fix_applied,
        )


@dataclass
class HierarchyPayload:
    """Flat hierarchy payload accepted by the content service.

    Attributes:
        nodes_modified: Metadata entries for the root and every new node.
        hierarchy: Structural entries (ordered children) for every node.
    """

    nodes_modified: dict[str, dict[str, Any]] = field(default_factory=dict)
    hierarchy: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def root_identifier(self) -> str | None:
        """Identifier of the single root entry."""
        for identifier, entry in self.hierarchy.items():
            if entry.get("root"):
                return identifier
        return None

    def to_request(self, last_updated_by: str) -> dict[str, Any]:
        """Render the request body of the hierarchy update endpoint."""
        return {
            "request": {
                "data": {
                    "nodesModified": self.nodes_modified,
                    "hierarchy": self.hierarchy,
                    "lastUpdatedBy": last_updated_by,
                }
            }
        }


METADATA_COLUMNS = (
    "domain",
    "sub_domain",
    "author",
    "copyright",
    "copyright_year",
    "subjects",
    "course_keywords",
    "course_description",
    "course_thumb",
    "program",
    "target_age_group",
    "primary_user",
)


@dataclass(frozen=True)
class LevelColumns:
    """The (set, description, thumb) columns of one level of an import row."""

    name: str | None
    description: str = ""
    thumb: str = ""


@dataclass
class ImportRow:
    """One flat, denormalized import row.

    Attributes:
        row_id: Stable ordering key (the import table primary key).
        course_title: Course the row belongs to.
        levels: Level columns for levels 1..N, in order.
        content_id: Leaf content identifier, if the row carries one.
        content_language: Comma-separated list of languages.
        metadata: Raw course metadata columns.
    """

    row_id: int
    course_title: str
    levels: list[LevelColumns] = field(default_factory=list)
    content_id: str | None = None
    content_language: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def languages(self) -> list[str]:
        """Individual languages of the row."""
        return split_csv(self.content_language)

    def level_name(self, level: int) -> str | None:
        """Trimmed set name of a 1-based level, or None when absent."""
        if level < 1 or level > len(self.levels):
            return None
        name = self.levels[level - 1].name
        return name.strip() if name and name.strip() else None

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Any],
        max_levels: int = 10,
        default_first_level: bool = False,
    ) -> "ImportRow":
        """Build a row from a column mapping.

        Args:
            mapping: Columns keyed set1..setN, set{n}_desc, set{n}_thumb,
                do_id, course_title, content_language and metadata columns.
            max_levels: Number of level columns to read.
            default_first_level: Use the course title when set1 is empty.
        """
        title = str(mapping.get("course_title") or "").strip()
        levels: list[LevelColumns] = []
        for level in range(1, max_levels + 1):
            name = mapping.get(f"set{level}")
            if level == 1 and default_first_level and not (name and str(name).strip()):
                name = title
            levels.append(
                LevelColumns(
                    name=str(name).strip() if name and str(name).strip() else None,
                    description=clean_text(mapping.get(f"set{level}_desc")),
                    thumb=str(mapping.get(f"set{level}_thumb") or "").strip(),
                )
            )
        content_id = str(mapping.get("do_id") or "").strip() or None
        return cls(
            row_id=int(mapping.get("id") or 0),
            course_title=title,
            levels=levels,
            content_id=content_id,
            content_language=str(mapping.get("content_language") or ""),
            metadata={key: mapping.get(key) for key in METADATA_COLUMNS if key in mapping},
        )
