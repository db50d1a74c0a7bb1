"""Processor for ``1.2 Status``.

The section is a bullet list of bold labels::

    ## 1.2 Status
    - **Current State:** 💡 Not Started
    - **Priority:** 🟥 High
    - **Progress:** 25%
    - **Last Updated:** 2025-06-01 09:30

Labels become camel-case keys (``currentState``, ``lastUpdated``); leading
status/priority icons are stripped from values; Progress, Planning Estimate
and Est. Variance are read as integers when they parse as such.
"""
from __future__ import annotations

import re
from typing import Any

from plandoc.family_definition import camel_case
from plandoc.markdown_tree import list_items
from plandoc.parsing_types import LintingError, RawSection
from plandoc.shared_types import PRIORITY_LEVELS, STATUS_KEYS

# "**Current State:** value", "**Current State**: value" or "Current State: value"
_FIELD_RE = re.compile(
    r"^\s*(?:\*\*(?P<bold>[^*]+?):?\*\*:?|(?P<plain>[A-Za-z][^:]*?):)\s*(?P<value>.*)$"
)
_LEADING_ICON_RE = re.compile(r"^[^\w(+-]+")
_INT_RE = re.compile(r"^[+-]?\d+")

_INTEGER_FIELDS = frozenset({"progress", "planningEstimate", "estVariancePts"})
_REQUIRED_LABELS = ("Current State", "Priority")


def _field_lines(section: RawSection) -> list[str]:
    lines: list[str] = []
    for node in section.body:
        if node.type == "list":
            lines.extend(list_items(node))
        elif node.type == "paragraph":
            lines.extend(node.text.splitlines())
    return lines


def _coerce(key: str, raw: str) -> Any:
    value = _LEADING_ICON_RE.sub("", raw).strip()
    if key in _INTEGER_FIELDS:
        m = _INT_RE.match(value)
        if m:
            return int(m.group(0))
    return value


def parse_status_fields(section: RawSection) -> dict[str, Any]:
    """Return ``{camelKey: value}`` for every labelled line of the section."""
    fields: dict[str, Any] = {}
    for line in _field_lines(section):
        m = _FIELD_RE.match(line)
        if not m:
            continue
        label = (m.group("bold") or m.group("plain") or "").strip()
        key = camel_case(label)
        if key:
            fields[key] = _coerce(key, m.group("value"))
    return fields


class StatusProcessor:
    section_id = "1.2"

    def lint(self, section: RawSection) -> list[LintingError]:
        fields = parse_status_fields(section)
        errors: list[LintingError] = []
        for label in _REQUIRED_LABELS:
            if not fields.get(camel_case(label)):
                errors.append(LintingError(
                    section=self.section_id,
                    message=f"Missing required field: {label}",
                    label=section.label,
                ))

        state = fields.get("currentState")
        if state and state not in STATUS_KEYS:
            errors.append(LintingError(
                section=self.section_id,
                message=f"Unknown Current State {state!r}; expected one of {', '.join(STATUS_KEYS)}",
                label=section.label,
            ))
        priority = fields.get("priority")
        if priority and priority not in PRIORITY_LEVELS:
            errors.append(LintingError(
                section=self.section_id,
                message=f"Unknown Priority {priority!r}; expected one of {', '.join(PRIORITY_LEVELS)}",
                label=section.label,
            ))
        return errors

    def extract(self, section: RawSection) -> dict[str, Any] | None:
        return parse_status_fields(section) or None

    def target_path(self) -> str:
        return "metaGovernance.status"


processor = StatusProcessor()
