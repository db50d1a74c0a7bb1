"""Markdown to generic tree conversion.

Thin adapter over markdown-it-py: the token stream is folded into a
``SyntaxTreeNode`` tree and then converted into frozen :class:`Node` values
that carry only what the slicer and processors need (type, heading depth,
inline text, children and the source lines of each block).
"""
from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from plandoc.parsing_types import Node

# Line breaks as markdown-it counts them for token maps; str.splitlines also
# breaks on form feeds and Unicode separators.
_NEWLINE_RE = re.compile(r"\r\n?|\n")

_NODE_TYPES: dict[str, str] = {
    "heading": "heading",
    "paragraph": "paragraph",
    "bullet_list": "list",
    "ordered_list": "list",
    "list_item": "list_item",
    "fence": "code",
    "code_block": "code",
    "table": "table",
    "blockquote": "blockquote",
    "hr": "thematic_break",
    "html_block": "html",
}


def _inline_text(node: SyntaxTreeNode) -> str:
    return "".join(c.content for c in node.children if c.type == "inline").strip()


def _source(node: SyntaxTreeNode, lines: list[str]) -> str:
    line_map = node.map
    if not line_map:
        return ""
    start, end = line_map
    return "\n".join(lines[start:end]).rstrip()


def _table_rows(node: SyntaxTreeNode) -> tuple[Node, ...]:
    rows: list[Node] = []
    for section in node.children:          # thead / tbody
        for tr in section.children:
            cells = tuple(
                Node(type="table_cell", text=_inline_text(cell))
                for cell in tr.children
            )
            rows.append(Node(
                type="table_row",
                children=cells,
                info="header" if section.type == "thead" else "",
            ))
    return tuple(rows)


def _convert(node: SyntaxTreeNode, lines: list[str]) -> Node:
    kind = _NODE_TYPES.get(node.type, node.type)
    source = _source(node, lines)

    if node.type == "heading":
        return Node(
            type=kind, text=_inline_text(node), depth=int(node.tag[1:]), source=source,
        )
    if node.type == "paragraph":
        return Node(type=kind, text=_inline_text(node), source=source)
    if node.type in ("fence", "code_block"):
        return Node(
            type=kind,
            text=node.content.rstrip("\n"),
            info=node.info.strip(),
            source=source,
        )
    if node.type == "table":
        return Node(type=kind, children=_table_rows(node), source=source)
    if node.type == "html_block":
        return Node(type=kind, text=node.content.strip(), source=source)

    children = tuple(
        _convert(child, lines) for child in node.children if child.type != "inline"
    )
    return Node(
        type=kind,
        children=children,
        source=source,
        info="ordered" if node.type == "ordered_list" else "",
    )


class MarkdownTreeParser:
    """Converts markdown text into a root :class:`Node`.

    Uses the CommonMark preset with GFM tables enabled.
    """

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark").enable("table")

    def to_tree(self, text: str) -> Node:
        lines = _NEWLINE_RE.split(text)
        root = SyntaxTreeNode(self._md.parse(text))
        return Node(
            type="root",
            children=tuple(_convert(child, lines) for child in root.children),
        )


def list_items(node: Node) -> list[str]:
    """Return the text of each item of a list node (nested items flattened)."""
    items: list[str] = []
    for item in node.children:
        if item.type != "list_item":
            continue
        own = [c.text for c in item.children if c.type == "paragraph" and c.text]
        if own:
            items.append(" ".join(own))
        for child in item.children:
            if child.type == "list":
                items.extend(list_items(child))
    return items


def table_records(node: Node) -> list[dict[str, str]]:
    """Return the body rows of a table node keyed by header cell text."""
    rows = [r for r in node.children if r.type == "table_row"]
    if not rows:
        return []
    headers = [c.text for c in rows[0].children]
    return [
        {h: cell.text for h, cell in zip(headers, row.children, strict=False)}
        for row in rows[1:]
    ]
