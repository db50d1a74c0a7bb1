"""Validator-construction rules keyed by section ID.

A family definition says *which* sections exist and how applicable they are;
a rule says *what payload* a section accepts. The composer looks up one rule
per non-omitted section and fails with CompositionMismatch when a rule is
missing or declares a different shape than the definition.

Rule kinds:
    FreeText / StringList / RowTable / FieldSet / Diagram  — leaf shapes
    Nested                                                — object over subsections
    UnionOf(SUBSECTIONS, alt, ...)                        — any one alternative
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, create_model

from plandoc.errors import CompositionMismatch
from plandoc.family_definition import SectionDefinition
from plandoc.parsing_types import Applicability, DocumentType, SectionShape
from plandoc.shared_types import NonEmptyStr, NonEmptyStrList, diagram_with_text


def model_name(key: str, suffix: str = "Section") -> str:
    return (key[:1].upper() + key[1:] + suffix) or suffix


def field_name(prefix: str, raw: str) -> str:
    """Python-safe internal field name; the public key is carried as alias."""
    return prefix + "".join(c if c.isalnum() else "_" for c in raw)


class _Subsections:
    """Placeholder for the object composed from a section's own subsections."""

    def __repr__(self) -> str:
        return "SUBSECTIONS"


SUBSECTIONS = _Subsections()


class SectionRule:
    shape: ClassVar[SectionShape]

    def build(
        self,
        definition: SectionDefinition,
        doc_type: DocumentType,
        subsections: type[BaseModel] | None,
    ) -> Any:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class FreeText(SectionRule):
    shape: ClassVar[SectionShape] = SectionShape.FREE_TEXT
    annotation: Any = NonEmptyStr

    def build(self, definition, doc_type, subsections):
        return self.annotation


@dataclass(frozen=True, slots=True)
class StringList(SectionRule):
    shape: ClassVar[SectionShape] = SectionShape.STRING_LIST
    annotation: Any = NonEmptyStrList

    def build(self, definition, doc_type, subsections):
        return self.annotation


@dataclass(frozen=True, slots=True)
class RowTable(SectionRule):
    shape: ClassVar[SectionShape] = SectionShape.ROW_TABLE
    row: type[BaseModel] = BaseModel
    min_rows: int = 1

    def build(self, definition, doc_type, subsections):
        return Annotated[list[self.row], Field(min_length=self.min_rows)]


@dataclass(frozen=True, slots=True)
class Diagram(SectionRule):
    shape: ClassVar[SectionShape] = SectionShape.DIAGRAM
    prefix: str = "graph"

    def build(self, definition, doc_type, subsections):
        return diagram_with_text(self.prefix)


@dataclass(frozen=True, slots=True)
class FieldSet(SectionRule):
    """Record whose fields carry their own per-document-type applicability."""
    shape: ClassVar[SectionShape] = SectionShape.FIELD_SET
    field_types: Mapping[str, Any] = field(default_factory=dict)

    def build(self, definition, doc_type, subsections):
        fields: dict[str, Any] = {}
        for fdef in definition.fields:
            applicability = fdef.applicability.for_type(doc_type)
            if applicability == Applicability.OMITTED:
                continue
            if fdef.key not in self.field_types:
                raise CompositionMismatch(
                    f"No field type for {fdef.key!r} (from {fdef.name!r}) in section "
                    f"{definition.id} {definition.name}; definition and rules are out of sync"
                )
            annotation = self.field_types[fdef.key]
            if applicability == Applicability.OPTIONAL:
                fields[field_name("f_", fdef.key)] = (
                    Optional[annotation], Field(default=None, alias=fdef.key),
                )
            else:
                fields[field_name("f_", fdef.key)] = (annotation, Field(alias=fdef.key))
        return create_model(
            model_name(definition.key),
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )


def _require_any_child(model: type[BaseModel], message: str) -> Callable[[Any], Any]:
    def _check(value: Any) -> Any:
        if not any(getattr(value, name) for name in model.model_fields):
            raise ValueError(message)
        return value

    return _check


@dataclass(frozen=True, slots=True)
class Nested(SectionRule):
    """Object over the section's non-omitted subsections."""
    shape: ClassVar[SectionShape] = SectionShape.NESTED_OBJECT
    require_any: str = ""   # Error message when no subsection carries content

    def build(self, definition, doc_type, subsections):
        if subsections is None:
            raise CompositionMismatch(
                f"Section {definition.id} {definition.name} is nested but has no subsections"
            )
        if self.require_any:
            return Annotated[
                subsections, AfterValidator(_require_any_child(subsections, self.require_any)),
            ]
        return subsections


@dataclass(frozen=True, slots=True, init=False)
class UnionOf(SectionRule):
    """Payload may take any one of several shapes.

    ``SUBSECTIONS`` stands for the object composed from the section's children;
    the children stay addressable by ID whichever branch matches.
    """
    shape: ClassVar[SectionShape] = SectionShape.UNION_OF_SHAPES
    alternatives: tuple[Any, ...]

    def __init__(self, *alternatives: Any) -> None:
        if len(alternatives) < 2:
            raise ValueError("UnionOf needs at least two alternatives")
        object.__setattr__(self, "alternatives", alternatives)

    def build(self, definition, doc_type, subsections):
        resolved: list[Any] = []
        for alt in self.alternatives:
            if alt is SUBSECTIONS:
                if subsections is None:
                    raise CompositionMismatch(
                        f"Section {definition.id} {definition.name} uses its subsections "
                        "in a union but declares none"
                    )
                resolved.append(subsections)
            else:
                resolved.append(alt)
        return Union[tuple(resolved)]


class SectionRules(Mapping[str, SectionRule]):
    """Immutable ``section ID -> SectionRule`` registry."""

    def __init__(self, rules: Mapping[str, SectionRule] | None = None) -> None:
        self._rules: dict[str, SectionRule] = dict(rules or {})

    def __getitem__(self, section_id: str) -> SectionRule:
        return self._rules[section_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def merged(self, other: Mapping[str, SectionRule]) -> SectionRules:
        """Return a new registry with ``other`` overriding these rules."""
        return SectionRules({**self._rules, **other})

    def rule_for(self, definition: SectionDefinition) -> SectionRule:
        rule = self._rules.get(definition.id)
        if rule is None:
            raise CompositionMismatch(
                f"No validator rule registered for section {definition.id} "
                f"{definition.name!r}; definition and rules are out of sync"
            )
        if rule.shape != definition.shape:
            raise CompositionMismatch(
                f"Section {definition.id} {definition.name!r} is declared as "
                f"{definition.shape} but its rule builds {rule.shape}"
            )
        return rule
