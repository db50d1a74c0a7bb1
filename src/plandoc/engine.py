"""Document engine: slicing, per-section processing and result merging.

Pipeline for one document::

    text -> MarkdownTreeParser -> slice_sections -> for each section in order:
        processor = registry.resolve(id)      (none -> section ignored)
        errors   += processor.lint(section)
        payload   = processor.extract(section)
        data[target_path] = copy of payload  (leaf replaced, never deep-merged)
        errors   += schema issues            (only with a doc type + schema registry)

A processor that raises is reported as one LintingError for its section and
contributes no data; the rest of the document is still processed. Only an
unreadable source raises.
"""
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from plandoc.errors import SourceUnreadable
from plandoc.io_utils import read_text
from plandoc.markdown_tree import MarkdownTreeParser
from plandoc.parsing_types import DocumentType, LintingError, ParseResult, RawSection
from plandoc.processor_registry import ProcessorRegistry, SectionProcessor, default_registry
from plandoc.schema_registry import SchemaRegistry
from plandoc.section_slicer import slice_sections

log = logging.getLogger(__name__)


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a dot path, creating intermediate dicts.

    An existing leaf (or a non-dict on the way) is replaced outright. Existing
    intermediate dicts are copied before descending, so a payload merged by an
    earlier processor is never mutated by a deeper later write.
    """
    parts = [p for p in path.split(".") if p]
    if not parts:
        raise ValueError(f"Invalid target path: {path!r}")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        child = dict(child) if isinstance(child, dict) else {}
        node[part] = child
        node = child
    node[parts[-1]] = value


class DocumentEngine:
    """Parses plan/task documents into merged section data plus findings."""

    def __init__(
        self,
        registry: ProcessorRegistry | None = None,
        schemas: SchemaRegistry | None = None,
        tree_parser: MarkdownTreeParser | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.schemas = schemas
        self.tree_parser = tree_parser if tree_parser is not None else MarkdownTreeParser()

    # -- entry points -----------------------------------------------------

    def parse(self, source: Path | str, doc_type: DocumentType | str | None = None) -> ParseResult:
        """Parse a document; ``Path`` sources are read, ``str`` is document text."""
        if isinstance(source, Path):
            return self.parse_file(source, doc_type)
        return self.parse_text(source, doc_type)

    def parse_file(self, path: Path | str, doc_type: DocumentType | str | None = None) -> ParseResult:
        path = Path(path)
        try:
            text = read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnreadable(f"Cannot read {path}: {exc}") from exc
        return self.parse_text(text, doc_type)

    def parse_text(self, text: str, doc_type: DocumentType | str | None = None) -> ParseResult:
        doc_type = DocumentType(doc_type) if doc_type is not None else None
        sections = slice_sections(self.tree_parser.to_tree(text))

        data: dict[str, Any] = {}
        merged = False
        errors: list[LintingError] = []
        for section_id, section in sections.items():
            processor = self.registry.resolve(section_id)
            if processor is None:
                log.debug("No processor for section %s; skipped", section_id)
                continue
            section_errors, payload = self._run(processor, section, data)
            errors.extend(section_errors)
            if payload is None:
                continue
            merged = True
            if doc_type is not None and self.schemas is not None:
                errors.extend(self._schema_errors(section, payload, doc_type))

        return ParseResult(
            data=data if merged else None,
            errors=tuple(errors),
            sections=tuple(sections),
        )

    # -- internals --------------------------------------------------------

    def _run(
        self, processor: SectionProcessor, section: RawSection, data: dict[str, Any],
    ) -> tuple[list[LintingError], Any]:
        """Lint, extract and merge one section; returns (findings, merged payload)."""
        try:
            errors = list(processor.lint(section))
            payload = processor.extract(section)
            if payload is not None:
                set_path(data, processor.target_path(), copy.deepcopy(payload))
        except Exception as exc:
            log.warning(
                "Processor for section %s failed: %s: %s",
                section.id, type(exc).__name__, exc,
            )
            return [LintingError(
                section=section.id,
                message=f"Processor runtime error: {exc}",
                label=section.label,
            )], None
        return errors, payload

    def _schema_errors(
        self, section: RawSection, payload: Any, doc_type: DocumentType,
    ) -> list[LintingError]:
        assert self.schemas is not None
        schema = self.schemas.section_schema(section.id, doc_type)
        if schema is None:
            log.debug("Section %s has no schema for %s documents", section.id, doc_type)
            return []
        outcome = schema.validate(payload)
        return [
            LintingError(section=section.id, message=issue.format(), label=section.label)
            for issue in outcome.issues
        ]


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------


def parse_document(
    path: Path | str,
    doc_type: DocumentType | str | None = None,
    *,
    registry: ProcessorRegistry | None = None,
    schemas: SchemaRegistry | None = None,
) -> ParseResult:
    """Parse a document file with the built-in processors (or ``registry``).

    With a ``doc_type``, extracted sections are also checked against the
    packaged family schemas unless ``schemas`` is given.
    """
    if doc_type is not None and schemas is None:
        schemas = SchemaRegistry()
    return DocumentEngine(registry, schemas).parse_file(path, doc_type)


def lint_document(
    path: Path | str,
    doc_type: DocumentType | str | None = None,
    *,
    registry: ProcessorRegistry | None = None,
    schemas: SchemaRegistry | None = None,
) -> list[LintingError]:
    """Return only the findings of :func:`parse_document`."""
    return list(parse_document(path, doc_type, registry=registry, schemas=schemas).errors)
