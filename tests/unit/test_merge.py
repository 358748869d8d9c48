# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the tree merge engine."""

from typing import Any

import pytest

from course_sync.domains.hierarchy.merge import (
    STRUCTURAL_FIELDS,
    merge_trees,
    overlay_root_metadata,
    tree_from_remote,
)
from course_sync.domains.hierarchy.models import COLLECTION_MIME_TYPE, CourseMetadata, SetNode


def _unit(identifier: str, name: str, children: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "identifier": identifier,
        "name": name,
        "mimeType": COLLECTION_MIME_TYPE,
        "children": children or [],
    }


def _leaf(identifier: str) -> dict[str, Any]:
    return {"identifier": identifier, "mimeType": "video/mp4"}


@pytest.fixture
def remote_content() -> dict[str, Any]:
    """Fetched hierarchy with one unit holding one content."""
    return {
        "identifier": "do_course",
        "name": "Science",
        "description": "Remote description",
        "program": "Open School",
        "childNodes": ["do_unit_a", "c1"],
        "leafNodesCount": 1,
        "children": [_unit("do_unit_a", "Unit A", [_leaf("c1")])],
    }


class TestTreeFromRemote:
    """Tests for tree_from_remote."""

    def test_collections_become_known_sets(self, remote_content) -> None:
        """Test collection children turn into sets, other children into leaves."""
        tree = tree_from_remote(remote_content, "Hindi")

        assert tree.identifier == "do_course"
        assert tree.is_new is False
        unit = tree.children[0]
        assert unit.identifier == "do_unit_a"
        assert unit.is_new is False
        assert unit.language == "Hindi"
        assert unit.leaf_content_ids == ["c1"]


class TestMergeTrees:
    """Tests for merge_trees."""

    def test_adds_content_and_new_unit(self, remote_content, next_id) -> None:
        """Test content is unioned into a matching unit and a new unit is appended."""
        local = SetNode(
            name="Science",
            children=[
                SetNode(name="Unit A", leaf_content_ids=["c2"]),
                SetNode(name="Unit B", leaf_content_ids=["c3"]),
            ],
        )
        remote = tree_from_remote(remote_content)

        merged = merge_trees(remote, local, next_id)

        unit_a, unit_b = merged.children
        assert unit_a.identifier == "do_unit_a"
        assert unit_a.is_new is False
        assert unit_a.leaf_content_ids == ["c1", "c2"]
        assert unit_b.name == "Unit B"
        assert unit_b.is_new is True
        assert unit_b.identifier is not None
        assert unit_b.leaf_content_ids == ["c3"]

    def test_never_removes_remote_sets(self, next_id) -> None:
        """Test remote sets absent locally survive the merge."""
        remote = tree_from_remote(
            {
                "identifier": "do_course",
                "name": "Science",
                "children": [_unit("do_a", "Unit A", [_leaf("c1")]), _unit("do_b", "Unit B", [_leaf("c2")])],
            }
        )
        local = SetNode(name="Science", children=[SetNode(name="Unit C", leaf_content_ids=["c3"])])

        merged = merge_trees(remote, local, next_id)

        assert [child.name for child in merged.children] == ["Unit A", "Unit B", "Unit C"]
        remote_ids = {node.identifier for node in remote.walk()}
        merged_ids = {node.identifier for node in merged.walk()}
        assert remote_ids <= merged_ids
        remote_leaves = {leaf for node in remote.walk() for leaf in node.leaf_content_ids}
        merged_leaves = {leaf for node in merged.walk() for leaf in node.leaf_content_ids}
        assert remote_leaves <= merged_leaves

    def test_keeps_remote_leaf_order(self, next_id) -> None:
        """Test remote leaves keep their order ahead of local additions."""
        remote = tree_from_remote(
            {
                "identifier": "do_course",
                "name": "Science",
                "children": [_unit("do_a", "Unit A", [_leaf("c2"), _leaf("c1")])],
            }
        )
        local = SetNode(name="Science", children=[SetNode(name="Unit A", leaf_content_ids=["c1", "c3"])])

        merged = merge_trees(remote, local, next_id)

        assert merged.children[0].leaf_content_ids == ["c2", "c1", "c3"]

    def test_matching_is_case_sensitive(self, remote_content, next_id) -> None:
        """Test a name differing in case inserts a new set."""
        local = SetNode(name="Science", children=[SetNode(name="unit a", leaf_content_ids=["c9"])])

        merged = merge_trees(tree_from_remote(remote_content), local, next_id)

        assert [child.name for child in merged.children] == ["Unit A", "unit a"]
        assert merged.children[0].leaf_content_ids == ["c1"]

    def test_inserted_subtree_gets_fresh_identifiers(self, remote_content, next_id) -> None:
        """Test every node of an inserted subtree is new with a temporary id."""
        local = SetNode(
            name="Science",
            children=[
                SetNode(
                    name="Unit B",
                    identifier="stale",
                    is_new=False,
                    children=[SetNode(name="Lesson 1", leaf_content_ids=["c5"])],
                )
            ],
        )

        merged = merge_trees(tree_from_remote(remote_content), local, next_id)

        inserted = list(merged.children[1].walk())
        assert [node.name for node in inserted] == ["Unit B", "Lesson 1"]
        assert all(node.is_new for node in inserted)
        assert "stale" not in {node.identifier for node in inserted}
        assert len({node.identifier for node in inserted}) == 2
        assert local.children[0].identifier == "stale"

    def test_merges_nested_levels(self, next_id) -> None:
        """Test matching descends into nested sets."""
        remote = tree_from_remote(
            {
                "identifier": "do_course",
                "name": "Science",
                "children": [_unit("do_a", "Unit A", [_unit("do_l1", "Lesson 1", [_leaf("c1")])])],
            }
        )
        local = SetNode(
            name="Science",
            children=[
                SetNode(
                    name="Unit A",
                    children=[
                        SetNode(name="Lesson 1", leaf_content_ids=["c2"]),
                        SetNode(name="Lesson 2", leaf_content_ids=["c3"]),
                    ],
                )
            ],
        )

        merged = merge_trees(remote, local, next_id)

        lesson_1, lesson_2 = merged.children[0].children
        assert lesson_1.identifier == "do_l1"
        assert lesson_1.leaf_content_ids == ["c1", "c2"]
        assert lesson_2.is_new is True

    def test_does_not_modify_remote_tree(self, remote_content, next_id) -> None:
        """Test the merge works on a copy of the remote tree."""
        remote = tree_from_remote(remote_content)
        before = remote.model_dump()
        local = SetNode(name="Science", children=[SetNode(name="Unit A", leaf_content_ids=["c2"])])

        merge_trees(remote, local, next_id)

        assert remote.model_dump() == before


class TestOverlayRootMetadata:
    """Tests for overlay_root_metadata."""

    def test_strips_structural_fields(self, remote_content) -> None:
        """Test structural fields of the fetched root are dropped."""
        result = overlay_root_metadata(remote_content, CourseMetadata())

        assert not STRUCTURAL_FIELDS & set(result)
        assert result["description"] == "Remote description"
        assert result["program"] == "Open School"

    def test_overlays_present_local_values(self, remote_content) -> None:
        """Test only non-empty local values overwrite the remote ones."""
        metadata = CourseMetadata(
            program="Open School, Skills",
            course_keywords="food",
            content_language=["Hindi"],
        )

        result = overlay_root_metadata(remote_content, metadata, "https://cdn/icon.png")

        assert result["program"] == ["Open School", "Skills"]
        assert result["keywords"] == ["food"]
        assert result["contentLanguage"] == ["Hindi"]
        assert result["appIcon"] == "https://cdn/icon.png"
        assert result["description"] == "Remote description"
        assert "primaryUser" not in result
