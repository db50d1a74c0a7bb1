"""Section slicer for plan/task documents.

Partitions a document tree into ``{section_id: RawSection}`` in one linear
pass over the root's children:

    1. A heading at SLICE_DEPTH whose text starts with ``\\d+.\\d+`` closes the
       open section (if any) and opens a new one.
    2. Every other node, including deeper sub-headings and depth-2 headings
       without an ID, belongs to the open section.
    3. Nodes before the first qualifying heading are discarded.
    4. End of input finalizes the open section.

Duplicate IDs keep the last occurrence; a warning is logged.
"""
from __future__ import annotations

import logging
import re

from plandoc.parsing_types import Node, RawSection

log = logging.getLogger(__name__)

SLICE_DEPTH = 2

# "1.2 Status", "4.1 Current Architecture" -> "1.2", "4.1".
SECTION_ID_RE = re.compile(r"^\s*(\d+\.\d+)")


def extract_section_id(heading_text: str) -> str | None:
    """Return the leading ``N.N`` ID of a heading, or None."""
    m = SECTION_ID_RE.match(heading_text)
    return m.group(1) if m else None


def _opening_id(node: Node, depth: int) -> str | None:
    if not node.is_heading(depth):
        return None
    return extract_section_id(node.text)


def slice_sections(tree: Node, *, depth: int = SLICE_DEPTH) -> dict[str, RawSection]:
    """Slice a document tree into sections keyed by ID, in document order."""
    sections: dict[str, RawSection] = {}
    current_id: str | None = None
    current_nodes: list[Node] = []

    def _close() -> None:
        if current_id is None:
            return
        if current_id in sections:
            log.warning(
                "Duplicate section ID %s (%r); keeping the later section",
                current_id, current_nodes[0].text,
            )
            # Re-insert so iteration order follows the surviving heading.
            del sections[current_id]
        sections[current_id] = RawSection(id=current_id, nodes=tuple(current_nodes))

    for node in tree.children:
        section_id = _opening_id(node, depth)
        if section_id is not None:
            _close()
            current_id = section_id
            current_nodes = [node]
        elif current_id is not None:
            current_nodes.append(node)

    _close()
    return sections
