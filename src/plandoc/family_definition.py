"""Declarative family and section definitions.

A family definition is one JSON document (``families/4-high-level-design.json``)
holding an ordered, possibly nested list of section records::

    {
      "id": 4,
      "name": "High-Level Design",
      "applicability": {"plan": "optional", "task": "optional"},
      "sections": [
        {"id": "4.1", "name": "Current Architecture", "shape": "nestedObject",
         "applicability": {"plan": "optional", "task": "omitted"},
         "sections": [...]}
      ]
    }

Parsing is strict: any structural problem raises SchemaSourceMalformed with
the offending path, so a bad definition can never be silently defaulted.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from plandoc.errors import SchemaSourceMalformed
from plandoc.parsing_types import (
    CONTAINER_SHAPES,
    Applicability,
    DocumentType,
    SectionShape,
)

_WORD_RE = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]|\b|[^A-Za-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def camel_case(name: str) -> str:
    """Lower-camel-case a display name.

    ``"Tech Stack & Deployment"`` -> ``"techStackDeployment"``,
    ``"Est. Variance (pts)"`` -> ``"estVariancePts"``,
    ``"Exposed API"`` -> ``"exposedAPI"`` (acronyms after the first word are kept).
    """
    words = _WORD_RE.findall(name)
    if not words:
        return ""
    first, rest = words[0].lower(), words[1:]
    return first + "".join(w if w.isupper() else w[:1].upper() + w[1:].lower() for w in rest)


@dataclass(frozen=True, slots=True)
class ApplicabilityRule:
    """Applicability of a section (or field) for each document type."""
    plan: Applicability
    task: Applicability

    def for_type(self, doc_type: DocumentType) -> Applicability:
        return self.plan if doc_type == DocumentType.PLAN else self.task


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    """A named field of a ``fieldSet`` section (e.g. Status -> Priority)."""
    name: str
    applicability: ApplicabilityRule
    description: str = ""

    @property
    def key(self) -> str:
        return camel_case(self.name)


@dataclass(frozen=True, slots=True)
class SectionDefinition:
    id: str
    name: str
    applicability: ApplicabilityRule
    shape: SectionShape
    key_override: str = ""
    open: bool = False
    fields: tuple[FieldDefinition, ...] = ()
    sections: tuple[SectionDefinition, ...] = ()
    description: str = ""

    @property
    def key(self) -> str:
        """Key of this section inside its parent's composed object."""
        return self.key_override or camel_case(self.name)

    def walk(self) -> Iterator[SectionDefinition]:
        """Yield this section and every nested section, pre-order."""
        yield self
        for child in self.sections:
            yield from child.walk()


@dataclass(frozen=True, slots=True)
class FamilyDefinition:
    id: str
    name: str
    applicability: ApplicabilityRule
    sections: tuple[SectionDefinition, ...]

    @property
    def key(self) -> str:
        return camel_case(self.name)

    def walk(self) -> Iterator[SectionDefinition]:
        for section in self.sections:
            yield from section.walk()

    def find(self, section_id: str) -> SectionDefinition | None:
        for section in self.walk():
            if section.id == section_id:
                return section
        return None

    def section_ids(self) -> list[str]:
        return [s.id for s in self.walk()]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _require_str(record: dict[str, Any], key: str, where: str) -> str:
    value = record.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise SchemaSourceMalformed(f"{where}: '{key}' must be a non-empty string")
    return value.strip()


def _parse_applicability(raw: Any, where: str) -> ApplicabilityRule:
    if not isinstance(raw, dict):
        raise SchemaSourceMalformed(f"{where}: 'applicability' must be an object")
    try:
        return ApplicabilityRule(
            plan=Applicability(raw.get("plan")),
            task=Applicability(raw.get("task")),
        )
    except ValueError as exc:
        raise SchemaSourceMalformed(
            f"{where}: invalid applicability {raw!r} (expected required|optional|omitted)"
        ) from exc


def _parse_field(raw: Any, where: str) -> FieldDefinition:
    if not isinstance(raw, dict):
        raise SchemaSourceMalformed(f"{where}: field records must be objects")
    name = _require_str(raw, "name", where)
    return FieldDefinition(
        name=name,
        applicability=_parse_applicability(raw.get("applicability"), f"{where} field {name!r}"),
        description=str(raw.get("description") or ""),
    )


def parse_section(raw: Any, where: str) -> SectionDefinition:
    """Parse one section record (recursively)."""
    if not isinstance(raw, dict):
        raise SchemaSourceMalformed(f"{where}: section records must be objects")
    section_id = _require_str(raw, "id", where)
    where = f"{where} section {section_id}"
    name = _require_str(raw, "name", where)

    try:
        shape = SectionShape(raw.get("shape"))
    except ValueError as exc:
        raise SchemaSourceMalformed(f"{where}: unknown shape {raw.get('shape')!r}") from exc

    raw_children = raw.get("sections") or []
    raw_fields = raw.get("fields") or []
    if not isinstance(raw_children, list) or not isinstance(raw_fields, list):
        raise SchemaSourceMalformed(f"{where}: 'sections' and 'fields' must be lists")
    if raw_children and shape not in CONTAINER_SHAPES:
        raise SchemaSourceMalformed(f"{where}: shape {shape} cannot own subsections")
    if shape == SectionShape.NESTED_OBJECT and not raw_children:
        raise SchemaSourceMalformed(f"{where}: nestedObject requires subsections")
    if raw_fields and shape != SectionShape.FIELD_SET:
        raise SchemaSourceMalformed(f"{where}: only fieldSet sections declare fields")

    return SectionDefinition(
        id=section_id,
        name=name,
        applicability=_parse_applicability(raw.get("applicability"), where),
        shape=shape,
        key_override=str(raw.get("key") or ""),
        open=bool(raw.get("open", False)),
        fields=tuple(_parse_field(f, where) for f in raw_fields),
        sections=tuple(parse_section(c, where) for c in raw_children),
        description=str(raw.get("description") or ""),
    )


def parse_family(payload: Any, *, source: str = "<family>") -> FamilyDefinition:
    """Parse a family definition payload into an immutable FamilyDefinition."""
    if not isinstance(payload, dict):
        raise SchemaSourceMalformed(f"{source}: family definition must be a JSON object")
    family_id = _require_str(payload, "id", source)
    where = f"{source} family {family_id}"
    raw_sections = payload.get("sections")
    if not isinstance(raw_sections, list):
        raise SchemaSourceMalformed(f"{where}: 'sections' must be a list")

    raw_applicability = payload.get("applicability")
    applicability = (
        _parse_applicability(raw_applicability, where)
        if raw_applicability is not None
        else ApplicabilityRule(Applicability.REQUIRED, Applicability.REQUIRED)
    )

    family = FamilyDefinition(
        id=family_id,
        name=_require_str(payload, "name", where),
        applicability=applicability,
        sections=tuple(parse_section(s, where) for s in raw_sections),
    )

    seen: set[str] = set()
    for section in family.walk():
        if section.id in seen:
            raise SchemaSourceMalformed(f"{where}: duplicate section ID {section.id}")
        seen.add(section.id)
    return family
