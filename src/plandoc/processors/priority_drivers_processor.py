"""Processor for ``1.3 Priority Drivers``: a bullet list of driver strings."""
from __future__ import annotations

from plandoc.markdown_tree import list_items
from plandoc.parsing_types import LintingError, RawSection


def _drivers(section: RawSection) -> list[str]:
    items: list[str] = []
    for node in section.body:
        if node.type == "list":
            items.extend(i.strip() for i in list_items(node) if i.strip())
    return items


class PriorityDriversProcessor:
    section_id = "1.3"

    def lint(self, section: RawSection) -> list[LintingError]:
        if _drivers(section):
            return []
        return [LintingError(
            section=self.section_id,
            message="Priority Drivers must list at least one driver as a bullet item",
            label=section.label,
        )]

    def extract(self, section: RawSection) -> list[str] | None:
        return _drivers(section) or None

    def target_path(self) -> str:
        return "metaGovernance.priorityDrivers"


processor = PriorityDriversProcessor()
