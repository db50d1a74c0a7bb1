"""Tests for plandoc.section_slicer."""
from __future__ import annotations

import logging

import pytest

from plandoc.markdown_tree import MarkdownTreeParser
from plandoc.parsing_types import Node
from plandoc.section_slicer import extract_section_id, slice_sections


def _slice(text: str):
    return slice_sections(MarkdownTreeParser().to_tree(text))


def _shape(nodes) -> list[tuple[str, int, str]]:
    return [(n.type, n.depth, n.text_content()) for n in nodes]


class TestExtractSectionId:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1.2 Status", "1.2"),
            ("4.1 Current Architecture", "4.1"),
            ("10.3 Tenth family", "10.3"),
            ("  2.1 Overview", "2.1"),
            ("4.1.1 Data Models", "4.1"),
            ("Overview", None),
            ("Status 1.2", None),
            ("1 Introduction", None),
        ],
    )
    def test_leading_id(self, text: str, expected: str | None) -> None:
        assert extract_section_id(text) == expected


class TestSliceSections:
    def test_two_sections_in_order(self) -> None:
        sections = _slice(
            "## 1.2 Status\n\n- **Current State:** Not Started\n\n"
            "## 2.1 Overview\n\nA paragraph.\n"
        )
        assert list(sections) == ["1.2", "2.1"]
        assert sections["1.2"].label == "1.2 Status"
        assert [n.type for n in sections["1.2"].body] == ["list"]
        assert sections["2.1"].body[0].text == "A paragraph."

    def test_preamble_is_discarded(self) -> None:
        sections = _slice("# Task 42\n\nIntro text.\n\n## 1.2 Status\n\nBody\n")
        assert list(sections) == ["1.2"]
        assert _shape(sections["1.2"].nodes) == [
            ("heading", 2, "1.2 Status"),
            ("paragraph", 0, "Body"),
        ]

    def test_unnumbered_depth_two_heading_is_content(self) -> None:
        sections = _slice("## 1.2 Status\n\n## Notes\n\nStill status.\n")
        assert list(sections) == ["1.2"]
        assert _shape(sections["1.2"].body) == [
            ("heading", 2, "Notes"),
            ("paragraph", 0, "Still status."),
        ]

    def test_deeper_headings_stay_in_section(self) -> None:
        sections = _slice(
            "## 4.1 Current Architecture\n\n### 4.1.1 Data Models\n\ntext\n\n"
            "#### Detail\n\n## 4.2 Target Architecture\n"
        )
        assert list(sections) == ["4.1", "4.2"]
        assert [n.text for n in sections["4.1"].body if n.is_heading()] == [
            "4.1.1 Data Models", "Detail",
        ]
        assert sections["4.2"].body == ()

    def test_no_qualifying_headings(self) -> None:
        assert _slice("# Title\n\nJust text.\n\n### 1.2 Too deep\n") == {}
        assert slice_sections(Node(type="root")) == {}

    def test_single_section_runs_to_end(self) -> None:
        sections = _slice("## 7.1 Testing Strategy\n\none\n\ntwo\n\nthree\n")
        assert len(sections["7.1"].body) == 3

    def test_duplicate_id_last_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="plandoc.section_slicer"):
            sections = _slice(
                "## 1.2 Status\n\nfirst\n\n## 2.1 Overview\n\nx\n\n## 1.2 Status again\n\nsecond\n"
            )
        assert list(sections) == ["2.1", "1.2"]
        assert sections["1.2"].label == "1.2 Status again"
        assert sections["1.2"].body[0].text == "second"
        assert "Duplicate section ID 1.2" in caplog.text

    def test_custom_depth(self) -> None:
        tree = MarkdownTreeParser().to_tree("# 1.0 Top\n\n## 1.1 Not a boundary here\n")
        sections = slice_sections(tree, depth=1)
        assert list(sections) == ["1.0"]
        assert sections["1.0"].body[0].text == "1.1 Not a boundary here"


class TestRoundTrip:
    def test_reslicing_serialized_section_is_stable(self) -> None:
        text = (
            "## 1.2 Status\n\n"
            "- **Current State:** Not Started\n"
            "- **Priority:** High\n\n"
            "Some paragraph\nover two lines.\n\n"
            "### 1.2.1 Notes\n\n"
            "```text\ncode block\n```\n\n"
            "| A | B |\n|---|---|\n| 1 | 2 |\n"
        )
        original = _slice(text)["1.2"]
        again = _slice(original.to_markdown())
        assert list(again) == ["1.2"]
        assert _shape(again["1.2"].nodes) == _shape(original.nodes)
        assert again["1.2"].to_markdown() == original.to_markdown()
