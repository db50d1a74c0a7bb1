"""Tests for plandoc.validators and the shared payload types."""
from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field, create_model

from plandoc.shared_types import NonEmptyStrList, diagram_with_text, mermaid_diagram
from plandoc.validators import SectionSchema, ValidationIssue


def _nested_model():
    inner = create_model(
        "Inner",
        __config__=ConfigDict(extra="forbid"),
        s_items=(NonEmptyStrList, Field(alias="items")),
    )
    return create_model(
        "Outer",
        __config__=ConfigDict(extra="forbid"),
        s_inner=(Optional[inner], Field(default=None, alias="inner")),
    )


class TestSectionSchema:
    def test_description_is_section_id(self) -> None:
        assert SectionSchema("2.5", NonEmptyStrList).description == "2.5"

    def test_issues_carry_path_and_message(self) -> None:
        outcome = SectionSchema("2.5", NonEmptyStrList).validate(["ok", ""])
        assert not outcome.ok
        (issue,) = outcome.issues
        assert issue.path == ("1",)
        assert issue.section_id == "2.5"
        assert "at least 1 character" in issue.message

    def test_issue_attributed_to_deepest_section(self) -> None:
        schema = SectionSchema(
            "X.1",
            _nested_model(),
            section_paths={"X.1": (), "X.1.1": ("inner",)},
        )
        assert schema.validate({"inner": None}).ok
        outcome = schema.validate({"inner": {"items": []}, "stray": 1})
        by_path = {i.path: i.section_id for i in outcome.issues}
        assert by_path == {("inner", "items"): "X.1.1", ("stray",): "X.1"}

    def test_is_valid(self) -> None:
        schema = SectionSchema("2.5", NonEmptyStrList)
        assert schema.is_valid(["a"])
        assert not schema.is_valid("a")


class TestValidationIssue:
    def test_format_and_dict(self) -> None:
        issue = ValidationIssue(path=("status", "priority"), message="Field required")
        assert issue.format() == "status.priority: Field required"
        assert issue.to_dict() == {"path": ["status", "priority"], "message": "Field required"}
        assert ValidationIssue(path=(), message="bad").format() == "bad"


class TestDiagrams:
    def test_prefix_is_checked(self) -> None:
        schema = SectionSchema("4.1.1", mermaid_diagram("erDiagram"))
        assert schema.is_valid("erDiagram\n  A ||--o{ B : has")
        assert not schema.is_valid("graph TD")

    def test_diagram_or_text_required(self) -> None:
        schema = SectionSchema("4.1.2", diagram_with_text("classDiagram"))
        assert schema.is_valid({"diagram": "classDiagram\n  class Plan"})
        assert schema.is_valid({"text": ["Plans contain tasks"]})
        assert not schema.is_valid({})
        assert not schema.is_valid({"diagram": "classDiagram", "notes": "x"})

    def test_diagram_models_are_reused(self) -> None:
        assert diagram_with_text("graph") is diagram_with_text("graph")
