# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the course tree data model."""

import json

import pytest

from course_sync.domains.hierarchy.exceptions import MalformedRecordError
from course_sync.domains.hierarchy.models import (
    CourseMetadata,
    CourseRecord,
    ImportRow,
    SetNode,
    StoredCourse,
    SyncStatus,
    decode_metadata,
    decode_sets,
    encode_sets,
    split_csv,
)


class TestSplitCsv:
    """Tests for split_csv."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Hindi, English", ["Hindi", "English"]),
            ("Hindi,,", ["Hindi"]),
            ([" a ", "", None], ["a"]),
            (None, []),
            ("", []),
        ],
    )
    def test_split(self, value, expected) -> None:
        """Test items are trimmed and empty ones dropped."""
        assert split_csv(value) == expected


class TestSetNode:
    """Tests for SetNode validation."""

    def test_accepts_legacy_keys(self) -> None:
        """Test documents written with the legacy keys decode."""
        node = SetNode.model_validate(
            {"name": "Unit A", "do_id": "do_a", "thumb": "https://img/a.png", "appIcon": "https://cdn/a.png", "content": ["c1"]}
        )

        assert node.identifier == "do_a"
        assert node.thumbnail_source == "https://img/a.png"
        assert node.uploaded_icon_url == "https://cdn/a.png"
        assert node.leaf_content_ids == ["c1"]

    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"name": "A"}, True),
            ({"name": "A", "do_id": "do_a"}, False),
            ({"name": "A", "do_id": "do_a", "isNew": True}, True),
        ],
    )
    def test_is_new_defaults_to_missing_identifier(self, data, expected) -> None:
        """Test a node without novelty flag is new until it has an identifier."""
        assert SetNode.model_validate(data).is_new is expected

    def test_description_and_leaves_are_cleaned(self) -> None:
        """Test line breaks are stripped and duplicate leaves removed."""
        node = SetNode(name="A", description=" Line one\r\n", leaf_content_ids=["c1", " c1 ", "", "c2"])

        assert node.description == "Line one"
        assert node.leaf_content_ids == ["c1", "c2"]

    def test_find_child_respects_language(self) -> None:
        """Test lookups match the name within a language scope."""
        parent = SetNode(
            name="Science",
            children=[SetNode(name="Unit A", language="Hindi"), SetNode(name="Unit A", language="English")],
        )

        assert parent.find_child("Unit A", "English") is parent.children[1]
        assert parent.find_child("unit a", "Hindi") is None


class TestDocuments:
    """Tests for the persisted JSON documents."""

    def test_encode_then_decode_keeps_tree(self) -> None:
        """Test the sets document restores identifiers and flags."""
        root = SetNode(
            name="Science",
            children=[
                SetNode(name="Unit A", identifier="do_a", is_new=False, children=[SetNode(name="Lesson", leaf_content_ids=["c1"])])
            ],
        )

        decoded = decode_sets(encode_sets(root))

        assert decoded[0].identifier == "do_a"
        assert decoded[0].is_new is False
        assert decoded[0].children[0].leaf_content_ids == ["c1"]
        assert "Science" not in encode_sets(root)

    @pytest.mark.parametrize("raw", ["{bad json", "[1, 2]", json.dumps({"sets": [{"description": "no name"}]})])
    def test_malformed_sets(self, raw) -> None:
        """Test undecodable sets raise MalformedRecordError."""
        with pytest.raises(MalformedRecordError) as exc_info:
            decode_sets(raw)

        assert exc_info.value.field == "sets_do_id"

    def test_empty_sets(self) -> None:
        """Test a missing document decodes to no sets."""
        assert decode_sets(None) == []
        assert decode_sets(json.dumps({"sets": []})) == []

    def test_malformed_metadata(self) -> None:
        """Test undecodable metadata raises MalformedRecordError."""
        with pytest.raises(MalformedRecordError) as exc_info:
            decode_metadata("[1, 2]")

        assert exc_info.value.field == "course_metadata"

    @pytest.mark.parametrize(
        "raw,expected",
        [("2024", 2024), (" 2021 ", 2021), ("2024-25", 2024), (2019, 2019), ("next year", None), ("", None)],
    )
    def test_copyright_year_is_lenient(self, raw, expected) -> None:
        """Test the leading year is kept and unreadable years become None."""
        assert decode_metadata(json.dumps({"copyright_year": raw})).copyright_year == expected

    def test_metadata_lists_from_csv(self) -> None:
        """Test comma-separated metadata columns become lists."""
        metadata = decode_metadata(json.dumps({"subjects": "Math, Science", "program": "Open School"}))

        assert metadata.subjects == ["Math", "Science"]
        assert metadata.program == ["Open School"]


class TestCourseRecord:
    """Tests for CourseRecord."""

    def test_new_record_root_is_course(self) -> None:
        """Test a new record's root is named after the course."""
        record = CourseRecord.new("Science", "Hindi")

        assert record.key == ("Science", "Hindi")
        assert record.tree.name == "Science"
        assert record.tree.is_new is True
        assert record.metadata.content_language == ["Hindi"]

    def test_from_stored(self) -> None:
        """Test a persisted record decodes into a tree rooted at the course."""
        stored = StoredCourse(
            record_id=3,
            course_title="Science",
            language=None,
            remote_course_id="do_course",
            status="failed",
            sets_json=json.dumps({"sets": [{"name": "Unit A", "content": ["c1"]}]}),
            metadata_json=json.dumps({"content_language": "Hindi"}),
        )

        record = CourseRecord.from_stored(stored)

        assert record.language == "Hindi"
        assert record.sync_status is SyncStatus.FAILED
        assert record.tree.identifier == "do_course"
        assert record.tree.is_new is False
        assert record.tree.children[0].leaf_content_ids == ["c1"]


class TestImportRow:
    """Tests for ImportRow.from_mapping."""

    def test_reads_level_columns(self) -> None:
        """Test set, description and thumb columns are read per level."""
        row = ImportRow.from_mapping(
            {
                "id": "4",
                "course_title": " Science ",
                "set1": "Unit A ",
                "set1_desc": "About\nunit",
                "set1_thumb": "https://img/a.png",
                "set2": "  ",
                "do_id": "c1",
                "content_language": "Hindi,English",
                "domain": "Learning for Life",
            },
            max_levels=3,
        )

        assert row.row_id == 4
        assert row.course_title == "Science"
        assert row.level_name(1) == "Unit A"
        assert row.levels[0].description == "Aboutunit"
        assert row.levels[0].thumb == "https://img/a.png"
        assert row.level_name(2) is None
        assert row.level_name(4) is None
        assert row.languages == ["Hindi", "English"]
        assert row.metadata == {"domain": "Learning for Life"}

    def test_metadata_from_import_columns(self) -> None:
        """Test metadata of one language carries only that language."""
        metadata = CourseMetadata.from_import_columns({"program": "Open School", "content_language": "x"}, "Hindi")

        assert metadata.content_language == ["Hindi"]
        assert metadata.program == ["Open School"]
