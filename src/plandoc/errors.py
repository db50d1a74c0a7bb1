"""Exception taxonomy for the plandoc engine.

Only source-read and schema-composition defects are raised to callers.
Everything a processor reports (or throws) while handling one section is
turned into a :class:`~plandoc.parsing_types.LintingError` instead.
"""
from __future__ import annotations


class PlandocError(Exception):
    """Base class for every error raised by plandoc."""


class SourceUnreadable(PlandocError):
    """Raised when the document text cannot be obtained."""


class SchemaProviderError(PlandocError):
    """Base class for family definition loading failures."""


class UnknownFamily(SchemaProviderError):
    """Raised when a family ID has no registered definition file."""


class SchemaSourceMissing(SchemaProviderError):
    """Raised when a family definition file does not exist."""


class SchemaSourceMalformed(SchemaProviderError):
    """Raised when a family definition file is not valid JSON or has a bad shape."""


class SectionNotInFamily(SchemaProviderError):
    """Raised when a section ID is absent from an otherwise valid family."""


class CompositionMismatch(PlandocError):
    """Raised when a section definition and its construction rule disagree.

    This is a programming/configuration defect (the declarative definition
    and the validator rules drifted apart), never a property of user input.
    """


class ProcessorLoadFailure(PlandocError):
    """Raised when a section processor is malformed or lacks a section ID."""
