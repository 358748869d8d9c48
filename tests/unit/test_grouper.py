# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the row grouper."""

import pytest

from course_sync.domains.hierarchy.grouper import group_rows, prune_empty
from course_sync.domains.hierarchy.models import SetNode, encode_sets


def _shape(node: SetNode) -> tuple:
    return (node.name, tuple(node.leaf_content_ids), tuple(_shape(child) for child in node.children))


class TestGroupRows:
    """Tests for group_rows."""

    def test_rows_with_same_set_share_one_node(self, row_factory) -> None:
        """Test two rows of the same unit end up in a single node."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1"),
            row_factory(2, sets=["Unit A"], content_id="c2"),
        ]

        courses = group_rows(rows)

        record = courses[("Science", "Hindi")]
        assert len(record.tree.children) == 1
        unit = record.tree.children[0]
        assert unit.name == "Unit A"
        assert unit.leaf_content_ids == ["c1", "c2"]
        assert unit.is_new is True
        assert unit.language == "Hindi"

    def test_two_levels_build_nested_sets(self, row_factory) -> None:
        """Test a row with two named levels nests the content two deep."""
        courses = group_rows([row_factory(1, sets=["Unit A", "Lesson 1"], content_id="c1")])

        unit = courses[("Science", "Hindi")].tree.children[0]
        assert unit.name == "Unit A"
        assert unit.leaf_content_ids == []
        assert [child.name for child in unit.children] == ["Lesson 1"]
        assert unit.children[0].leaf_content_ids == ["c1"]

    def test_missing_level_attaches_content_to_parent(self, row_factory) -> None:
        """Test deeper levels are ignored after the first empty level."""
        courses = group_rows([row_factory(1, sets=["Unit A", None, "Orphan"], content_id="c1")])

        unit = courses[("Science", "Hindi")].tree.children[0]
        assert unit.children == []
        assert unit.leaf_content_ids == ["c1"]

    def test_row_without_sets_attaches_to_root(self, row_factory) -> None:
        """Test content of a row without level 1 goes to the course root."""
        courses = group_rows([row_factory(1, sets=[], content_id="c9")])

        root = courses[("Science", "Hindi")].tree
        assert root.children == []
        assert root.leaf_content_ids == ["c9"]

    def test_one_record_per_language(self, row_factory) -> None:
        """Test a multi-language row feeds one record per language."""
        courses = group_rows([row_factory(1, sets=["Unit A"], content_id="c1", languages="Hindi, English")])

        assert list(courses) == [("Science", "Hindi"), ("Science", "English")]
        for (title, language), record in courses.items():
            assert record.tree.name == title
            assert record.tree.children[0].language == language
            assert record.metadata.content_language == [language]

    def test_duplicate_content_is_attached_once(self, row_factory) -> None:
        """Test the same content id never appears twice under a node."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1"),
            row_factory(2, sets=["Unit A"], content_id="c1"),
        ]

        unit = group_rows(rows)[("Science", "Hindi")].tree.children[0]

        assert unit.leaf_content_ids == ["c1"]

    def test_set_names_are_case_sensitive(self, row_factory) -> None:
        """Test names differing only in case are distinct sets."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1"),
            row_factory(2, sets=["unit a"], content_id="c2"),
        ]

        tree = group_rows(rows)[("Science", "Hindi")].tree

        assert [child.name for child in tree.children] == ["Unit A", "unit a"]

    def test_rows_without_title_are_skipped(self, row_factory) -> None:
        """Test a row without course title builds no record."""
        courses = group_rows([row_factory(1, title="", sets=["Unit A"], content_id="c1")])

        assert courses == {}

    def test_sets_without_content_are_pruned(self, row_factory) -> None:
        """Test a set no row attaches content to is dropped."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1"),
            row_factory(2, sets=["Empty", "Also empty"]),
        ]

        tree = group_rows(rows)[("Science", "Hindi")].tree

        assert [child.name for child in tree.children] == ["Unit A"]

    def test_result_is_independent_of_input_order(self, row_factory) -> None:
        """Test rows are placed in row id order whatever their input order."""
        rows = [
            row_factory(1, sets=["Unit B"], content_id="c1"),
            row_factory(2, sets=["Unit A", "Lesson 1"], content_id="c2"),
            row_factory(3, sets=["Unit A"], content_id="c3"),
            row_factory(4, sets=["Unit B"], content_id="c4"),
        ]

        forward = group_rows(rows)[("Science", "Hindi")].tree
        backward = group_rows(list(reversed(rows)))[("Science", "Hindi")].tree

        assert _shape(forward) == _shape(backward)
        assert encode_sets(forward) == encode_sets(backward)
        assert [child.name for child in forward.children] == ["Unit B", "Unit A"]

    def test_metadata_taken_from_first_row(self, row_factory, sample_course_metadata) -> None:
        """Test course metadata is read from the first row of the course."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1", **sample_course_metadata),
            row_factory(2, sets=["Unit A"], content_id="c2", domain="Other"),
        ]

        metadata = group_rows(rows)[("Science", "Hindi")].metadata

        assert metadata.domain == "Learning for Life"
        assert metadata.subjects == ["Nutrition", "Hygiene"]
        assert metadata.course_description == "Healthy living"
        assert metadata.copyright_year == 2024

    def test_unreadable_year_does_not_stop_grouping(self, row_factory) -> None:
        """Test a bad year on one course leaves it and every other course grouped."""
        rows = [
            row_factory(1, sets=["Unit A"], content_id="c1", copyright_year="2024-25"),
            row_factory(2, sets=["Unit A"], content_id="c2", copyright_year="someday"),
            row_factory(3, title="Math", sets=["Algebra"], content_id="c3"),
        ]

        courses = group_rows(rows)

        assert courses[("Science", "Hindi")].metadata.copyright_year == 2024
        assert courses[("Math", "Hindi")].tree.children[0].name == "Algebra"

    @pytest.mark.parametrize("max_levels", [1, 2])
    def test_levels_beyond_limit_are_ignored(self, row_factory, max_levels: int) -> None:
        """Test no node is built deeper than max_levels."""
        rows = [row_factory(1, sets=["L1", "L2", "L3"], content_id="c1")]

        tree = group_rows(rows, max_levels=max_levels)[("Science", "Hindi")].tree

        depth = 0
        node = tree
        while node.children:
            node = node.children[0]
            depth += 1
        assert depth == max_levels
        assert node.leaf_content_ids == ["c1"]


class TestPruneEmpty:
    """Tests for prune_empty."""

    def test_removes_nested_empty_sets(self) -> None:
        """Test a chain of empty sets is removed bottom-up."""
        nodes = [
            SetNode(name="A", children=[SetNode(name="A1", children=[SetNode(name="A1a")])]),
            SetNode(name="B", leaf_content_ids=["c1"], children=[SetNode(name="B1")]),
        ]

        kept = prune_empty(nodes)

        assert [node.name for node in kept] == ["B"]
        assert kept[0].children == []

    def test_is_idempotent(self) -> None:
        """Test pruning a pruned list changes nothing."""
        nodes = [
            SetNode(name="A", children=[SetNode(name="A1", leaf_content_ids=["c1"]), SetNode(name="A2")]),
            SetNode(name="B"),
        ]

        once = prune_empty(nodes)
        twice = prune_empty([node.model_copy(deep=True) for node in once])

        assert [_shape(node) for node in once] == [_shape(node) for node in twice]
