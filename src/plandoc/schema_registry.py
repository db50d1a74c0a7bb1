"""Family schema composition and the section-addressable schema registry.

For one family definition and one document type, :func:`compose_family`
produces two views of the same validators:

    composed  — validator for the whole family object, keyed by section keys
    by_id     — flat ``section ID -> SectionSchema`` index for standalone use

Composition is a recursive walk over the definition tree:

    for each section at the current level:
        applicability = section.applicability[doc_type]
        omitted   -> skipped (absent from the object AND from by_id)
        otherwise -> children composed first, then the section's own rule is
                     built over them; optional wraps the result as Optional
        by_id[section.id] is registered before the annotation is embedded
        in the parent object

Because by_id and the parent object embed the very same annotation object
(with the same Optional wrapping), a payload validates standalone exactly
when it validates at its path inside the composed object.

:class:`SchemaRegistry` caches composed indexes per ``CompositionKey`` and
answers ``section_schema(id, doc_type)`` and ``document_schema(doc_type)``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, create_model

from plandoc.errors import CompositionMismatch, UnknownFamily
from plandoc.family_definition import FamilyDefinition, SectionDefinition
from plandoc.family_rules import DEFAULT_RULES
from plandoc.parsing_types import Applicability, DocumentType, LintingError
from plandoc.schema_provider import SchemaProvider, family_of
from plandoc.section_rules import SectionRules, field_name, model_name
from plandoc.validators import SectionSchema

log = logging.getLogger(__name__)

SectionPath: TypeAlias = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CompositionKey:
    """Cache key for one composed family."""
    family_id: str
    doc_type: DocumentType


@dataclass(frozen=True, slots=True)
class FamilySchemaIndex:
    family_id: str
    doc_type: DocumentType
    composed: SectionSchema
    by_id: Mapping[str, SectionSchema]
    paths: Mapping[str, SectionPath] = field(default_factory=dict)

    def __contains__(self, section_id: object) -> bool:
        return section_id in self.by_id

    def get(self, section_id: str) -> SectionSchema | None:
        return self.by_id.get(section_id)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def _section_field(annotation: Any, key: str, section_id: str, optional: bool) -> tuple[Any, Any]:
    if optional:
        return annotation, Field(default=None, alias=key, description=section_id)
    return annotation, Field(alias=key, description=section_id)


class _FamilyComposer:
    """One composition pass; accumulates ``by_id`` and ``paths`` as it walks."""

    def __init__(self, doc_type: DocumentType, rules: SectionRules) -> None:
        self.doc_type = doc_type
        self.rules = rules
        self.by_id: dict[str, SectionSchema] = {}
        self.paths: dict[str, SectionPath] = {}

    def compose_level(
        self,
        name: str,
        sections: Sequence[SectionDefinition],
        path: SectionPath,
        *,
        open_keys: bool = False,
    ) -> type[BaseModel]:
        """Build the object model over the non-omitted sections of one level."""
        fields: dict[str, tuple[Any, Any]] = {}
        owners: dict[str, str] = {}
        for definition in sections:
            applicability = definition.applicability.for_type(self.doc_type)
            if applicability == Applicability.OMITTED:
                continue
            key = definition.key
            if not key:
                raise CompositionMismatch(
                    f"Section {definition.id} {definition.name!r} has no usable key"
                )
            if key in owners:
                raise CompositionMismatch(
                    f"Sections {owners[key]} and {definition.id} both map to key {key!r}"
                )
            owners[key] = definition.id
            optional = applicability == Applicability.OPTIONAL
            annotation = self.compose_section(definition, path + (key,), optional)
            fields[field_name("s_", definition.id)] = _section_field(
                annotation, key, definition.id, optional,
            )
        return create_model(
            name,
            __config__=ConfigDict(extra="allow" if open_keys else "forbid"),
            **fields,
        )

    def compose_section(
        self, definition: SectionDefinition, path: SectionPath, optional: bool,
    ) -> Any:
        """Compose one non-omitted section and register it under its ID.

        Returns the annotation to embed in the parent, already wrapped as
        Optional when the section is optional.
        """
        rule = self.rules.rule_for(definition)
        self.paths[definition.id] = path

        subsections: type[BaseModel] | None = None
        if definition.sections:
            subsections = self.compose_level(
                model_name(definition.key),
                definition.sections,
                path,
                open_keys=definition.open,
            )

        annotation = rule.build(definition, self.doc_type, subsections)
        if optional:
            annotation = Optional[annotation]

        descendants = {
            child.id: self.paths[child.id][len(path):]
            for child in definition.walk()
            if child.id in self.paths
        }
        self.by_id[definition.id] = SectionSchema(
            section_id=definition.id,
            annotation=annotation,
            optional=optional,
            section_paths=descendants,
        )
        return annotation


def compose_family(
    family: FamilyDefinition,
    doc_type: DocumentType | str,
    rules: SectionRules = DEFAULT_RULES,
) -> FamilySchemaIndex:
    """Compose the family validator and the by-ID index for one document type.

    Raises CompositionMismatch when any section of the family has no rule, or
    its rule disagrees with the definition, whatever its applicability.
    """
    doc_type = DocumentType(doc_type)
    for definition in family.walk():
        rules.rule_for(definition)
    composer = _FamilyComposer(doc_type, rules)
    model = composer.compose_level(model_name(family.key, "Family"), family.sections, ())
    composed = SectionSchema(
        section_id=family.id,
        annotation=model,
        section_paths=dict(composer.paths),
    )
    return FamilySchemaIndex(
        family_id=family.id,
        doc_type=doc_type,
        composed=composed,
        by_id=dict(composer.by_id),
        paths=dict(composer.paths),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class SchemaRegistry:
    """Caches composed family schemas and resolves section validators by ID."""

    def __init__(
        self,
        provider: SchemaProvider | None = None,
        rules: SectionRules | None = None,
    ) -> None:
        self.provider = provider if provider is not None else SchemaProvider()
        self.rules = rules if rules is not None else DEFAULT_RULES
        self._families: dict[CompositionKey, FamilySchemaIndex] = {}
        self._documents: dict[DocumentType, SectionSchema] = {}

    def compose(self, family: FamilyDefinition, doc_type: DocumentType | str) -> FamilySchemaIndex:
        """Uncached composition of an already loaded family."""
        return compose_family(family, doc_type, self.rules)

    def family_schema(self, family_id: int | str, doc_type: DocumentType | str) -> FamilySchemaIndex:
        key = CompositionKey(str(family_id), DocumentType(doc_type))
        index = self._families.get(key)
        if index is None:
            index = self.compose(self.provider.load(key.family_id), key.doc_type)
            self._families[key] = index
            log.debug(
                "Composed family %s for %s (%d sections)",
                key.family_id, key.doc_type, len(index.by_id),
            )
        return index

    def section_schema(self, section_id: str, doc_type: DocumentType | str) -> SectionSchema | None:
        """Validator for one section, or None if the section is omitted for
        ``doc_type`` or belongs to no registered family."""
        try:
            index = self.family_schema(family_of(section_id), doc_type)
        except UnknownFamily:
            return None
        return index.get(section_id)

    def document_schema(self, doc_type: DocumentType | str) -> SectionSchema:
        """Validator for a whole document: every family keyed by its camel name."""
        doc_type = DocumentType(doc_type)
        cached = self._documents.get(doc_type)
        if cached is not None:
            return cached

        fields: dict[str, tuple[Any, Any]] = {}
        section_paths: dict[str, SectionPath] = {}
        for family in self.provider.load_all():
            applicability = family.applicability.for_type(doc_type)
            if applicability == Applicability.OMITTED:
                continue
            index = self.family_schema(family.id, doc_type)
            optional = applicability == Applicability.OPTIONAL
            annotation = index.composed.annotation
            if optional:
                annotation = Optional[annotation]
            fields[field_name("s_", family.id)] = _section_field(
                annotation, family.key, family.id, optional,
            )
            section_paths[family.id] = (family.key,)
            for section_id, path in index.paths.items():
                section_paths[section_id] = (family.key, *path)

        model = create_model(
            model_name(doc_type.value, "Document"),
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )
        schema = SectionSchema(
            section_id=doc_type.value,
            annotation=model,
            section_paths=section_paths,
        )
        self._documents[doc_type] = schema
        return schema

    def validate_document(self, data: Any, doc_type: DocumentType | str) -> list[LintingError]:
        """Validate merged document data; one LintingError per issue."""
        outcome = self.document_schema(doc_type).validate(data)
        return [
            LintingError(section=issue.section_id, message=issue.format())
            for issue in outcome.issues
        ]

    def clear_cache(self) -> None:
        self._families.clear()
        self._documents.clear()
