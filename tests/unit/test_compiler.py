# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the payload compiler."""

import pytest

from course_sync.domains.hierarchy.compiler import (
    MetadataDefaults,
    build_root_metadata,
    compile_hierarchy,
    restate_hierarchy,
)
from course_sync.domains.hierarchy.exceptions import PayloadCompileError
from course_sync.domains.hierarchy.models import COLLECTION_MIME_TYPE, CourseMetadata, CourseRecord, SetNode
from course_sync.domains.hierarchy.taxonomy import TaxonomyIds


@pytest.fixture
def course_tree() -> SetNode:
    """Course with one known unit, one new unit and a root leaf."""
    return SetNode(
        name="Science",
        identifier="do_course",
        is_new=False,
        leaf_content_ids=["c0"],
        children=[
            SetNode(name="Unit A", identifier="do_a", is_new=False, leaf_content_ids=["c1"]),
            SetNode(
                name="Unit B",
                identifier="tmp_b",
                uploaded_icon_url="https://cdn/b.png",
                children=[SetNode(name="Lesson 1", identifier="tmp_l1", leaf_content_ids=["c3"])],
                leaf_content_ids=["c2"],
            ),
        ],
    )


class TestCompileHierarchy:
    """Tests for compile_hierarchy."""

    def test_exactly_one_root(self, course_tree) -> None:
        """Test the payload carries a single root entry."""
        payload = compile_hierarchy(course_tree)

        roots = [key for key, entry in payload.hierarchy.items() if entry["root"]]
        assert roots == ["do_course"]
        assert [key for key, entry in payload.nodes_modified.items() if entry["root"]] == ["do_course"]
        assert payload.root_identifier == "do_course"

    def test_children_list_sets_before_leaves(self, course_tree) -> None:
        """Test each entry lists child sets first, then leaf content."""
        payload = compile_hierarchy(course_tree)

        assert payload.hierarchy["do_course"]["children"] == ["do_a", "tmp_b", "c0"]
        assert payload.hierarchy["tmp_b"]["children"] == ["tmp_l1", "c2"]
        assert payload.hierarchy["do_a"]["children"] == ["c1"]
        assert payload.hierarchy["tmp_l1"] == {"name": "Lesson 1", "children": ["c3"], "root": False}

    def test_only_root_and_new_nodes_are_modified(self, course_tree) -> None:
        """Test known sets are not restated in nodesModified."""
        payload = compile_hierarchy(course_tree)

        assert set(payload.nodes_modified) == {"do_course", "tmp_b", "tmp_l1"}
        unit = payload.nodes_modified["tmp_b"]
        assert unit["isNew"] is True
        assert unit["root"] is False
        assert unit["objectType"] == "Collection"
        assert unit["metadata"]["mimeType"] == COLLECTION_MIME_TYPE
        assert unit["metadata"]["visibility"] == "Parent"
        assert unit["metadata"]["primaryCategory"] == "Course Unit"
        assert unit["metadata"]["appIcon"] == "https://cdn/b.png"
        assert unit["metadata"]["code"] == "tmp_b"

    def test_root_metadata_is_merged(self, course_tree) -> None:
        """Test the course metadata block lands on the root entry."""
        payload = compile_hierarchy(course_tree, {"program": ["Open School"], "name": "Science"}, root_is_new=True)

        root = payload.nodes_modified["do_course"]
        assert root["isNew"] is True
        assert root["objectType"] == "Content"
        assert root["metadata"]["program"] == ["Open School"]
        assert root["metadata"]["visibility"] == "Default"
        assert "program" not in payload.nodes_modified["tmp_b"]["metadata"]

    def test_missing_identifier_raises(self, course_tree) -> None:
        """Test a node without identifier cannot be compiled."""
        course_tree.children[1].children[0].identifier = None

        with pytest.raises(PayloadCompileError) as exc_info:
            compile_hierarchy(course_tree)

        assert exc_info.value.details["name"] == "Lesson 1"

    def test_request_body_shape(self, course_tree) -> None:
        """Test the rendered request carries both maps and the updater."""
        body = compile_hierarchy(course_tree).to_request("user-1")

        data = body["request"]["data"]
        assert data["lastUpdatedBy"] == "user-1"
        assert set(data) == {"nodesModified", "hierarchy", "lastUpdatedBy"}


class TestBuildRootMetadata:
    """Tests for build_root_metadata."""

    def test_defaults_fill_missing_values(self) -> None:
        """Test author, copyright and year fall back to the defaults."""
        record = CourseRecord.new("Science", "Hindi")

        metadata = build_root_metadata(record, TaxonomyIds(), None, MetadataDefaults("Author", "Holder", 2030))

        assert metadata["author"] == "Author"
        assert metadata["copyright"] == "Holder"
        assert metadata["copyrightYear"] == 2030
        assert metadata["appIcon"] == ""
        assert metadata["contentLanguage"] == ["Hindi"]

    def test_uses_record_metadata_and_taxonomy(self) -> None:
        """Test imported metadata and resolved ids are carried over."""
        record = CourseRecord.new(
            "Science",
            "Hindi",
            CourseMetadata(author="Jane", copyright_year=2021, program="Open School", content_language=["Hindi"]),
        )
        taxonomy = TaxonomyIds(domain_ids=["d1"], sub_domain_ids=["s1"], subject_ids=["j1", "j2"])

        metadata = build_root_metadata(record, taxonomy, "https://cdn/course.png")

        assert metadata["name"] == "Science"
        assert metadata["author"] == "Jane"
        assert metadata["copyright"] == "SCP Channel"
        assert metadata["copyrightYear"] == 2021
        assert metadata["program"] == ["Open School"]
        assert metadata["targetDomainIds"] == ["d1"]
        assert metadata["targetSubjectIds"] == ["j1", "j2"]
        assert metadata["appIcon"] == "https://cdn/course.png"


class TestRestateHierarchy:
    """Tests for restate_hierarchy."""

    def test_keeps_original_child_order(self) -> None:
        """Test the fetched order is resubmitted unchanged."""
        content = {
            "identifier": "do_course",
            "name": "Science",
            "children": [
                {"identifier": "c0", "mimeType": "video/mp4"},
                {
                    "identifier": "do_a",
                    "name": "Unit A",
                    "mimeType": COLLECTION_MIME_TYPE,
                    "children": [{"identifier": "c1", "mimeType": "video/mp4"}],
                },
            ],
        }

        hierarchy = restate_hierarchy(content)

        assert hierarchy["do_course"] == {"name": "Science", "children": ["c0", "do_a"], "root": True}
        assert hierarchy["do_a"] == {"name": "Unit A", "children": ["c1"], "root": False}
        assert "c0" not in hierarchy
