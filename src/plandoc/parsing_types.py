"""Core types for the section parsing infrastructure.

Every layer in the pipeline shares these types. All dataclasses are frozen
and use slots=True; a parse never mutates a value after handing it on.

Type hierarchy:
  DocumentType   — plan | task, selects section applicability
  Applicability  — required | optional | omitted for one document type
  SectionShape   — payload shape declared by a section definition
  Node           — one block of the generic markdown tree
  RawSection     — heading node plus the nodes up to the next sibling heading
  LintingError   — section-attributed finding (pure value)
  ParseResult    — {data, errors} returned by the document engine
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DocumentType(StrEnum):
    PLAN = "plan"
    TASK = "task"


class Applicability(StrEnum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    OMITTED = "omitted"


class SectionShape(StrEnum):
    """Payload shape of a section.

    ``fieldSet`` and ``diagram`` are leaf shapes like ``freeText``;
    ``nestedObject`` and ``unionOfShapes`` may own child sections.
    """
    FREE_TEXT = "freeText"
    STRING_LIST = "stringList"
    ROW_TABLE = "rowTable"
    FIELD_SET = "fieldSet"
    DIAGRAM = "diagram"
    NESTED_OBJECT = "nestedObject"
    UNION_OF_SHAPES = "unionOfShapes"


CONTAINER_SHAPES: frozenset[SectionShape] = frozenset({
    SectionShape.NESTED_OBJECT,
    SectionShape.UNION_OF_SHAPES,
})


# ---------------------------------------------------------------------------
# Tree types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Node:
    """A node in the generic document tree.

    ``source`` holds the exact markdown lines the block was parsed from, so a
    run of nodes can be re-serialized without a renderer.
    """
    type: str                        # "root" | "heading" | "paragraph" | "list" | "list_item" | "code" | ...
    text: str = ""                   # Inline markdown for headings/paragraphs, body for code
    depth: int = 0                   # Heading level (1-6); 0 for everything else
    children: tuple[Node, ...] = ()
    source: str = ""
    info: str = ""                   # Fence info string ("mermaid", "python", ...)

    def text_content(self) -> str:
        """Concatenated text of this node and all descendants, one block per line."""
        parts: list[str] = []
        if self.text:
            parts.append(self.text)
        for child in self.children:
            content = child.text_content()
            if content:
                parts.append(content)
        return "\n".join(parts)

    def is_heading(self, depth: int | None = None) -> bool:
        if self.type != "heading":
            return False
        return depth is None or self.depth == depth


@dataclass(frozen=True, slots=True)
class RawSection:
    """One ID-tagged slice of a document.

    ``nodes[0]`` is always the heading that opened the section; the rest are
    every following top-level node up to the next slicing heading.
    """
    id: str
    nodes: tuple[Node, ...]

    @property
    def heading(self) -> Node:
        return self.nodes[0]

    @property
    def label(self) -> str:
        """Heading text, e.g. ``"1.2 Status"``."""
        return self.heading.text.strip()

    @property
    def body(self) -> tuple[Node, ...]:
        return self.nodes[1:]

    @property
    def tree(self) -> Node:
        return Node(type="root", children=self.nodes)

    def to_markdown(self) -> str:
        """Re-serialize the section from the source lines of its nodes."""
        return "\n\n".join(n.source for n in self.nodes if n.source) + "\n"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LintingError:
    """A single finding attributed to one section."""
    section: str          # Section ID, e.g. "1.2"
    message: str          # "Missing required field: Priority"
    label: str = ""       # Heading text when known, e.g. "1.2 Status"

    @property
    def display_section(self) -> str:
        return self.label or self.section

    def to_dict(self) -> dict[str, str]:
        return {"section": self.section, "message": self.message}


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of one parse call: best-effort data plus every finding."""
    data: dict[str, Any] | None
    errors: tuple[LintingError, ...] = ()
    sections: tuple[str, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "errors": [e.to_dict() for e in self.errors],
        }
