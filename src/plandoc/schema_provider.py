"""Family definition loading and caching.

Definitions are read from one JSON file per family and parsed into immutable
:class:`FamilyDefinition` values. Both families and individual sections are
cached for the lifetime of the provider; ``clear_cache()`` drops everything.

Directory resolution order:
    1. ``schema_dir`` constructor argument
    2. ``PLANDOC_SCHEMA_DIR`` environment variable
    3. the packaged ``plandoc/families`` directory
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import orjson

from plandoc.errors import (
    SchemaSourceMalformed,
    SchemaSourceMissing,
    SectionNotInFamily,
    UnknownFamily,
)
from plandoc.family_definition import FamilyDefinition, SectionDefinition, parse_family
from plandoc.io_utils import load_json

log = logging.getLogger(__name__)

SCHEMA_DIR_ENV = "PLANDOC_SCHEMA_DIR"
PACKAGED_SCHEMA_DIR = Path(__file__).resolve().parent / "families"

FAMILY_FILES: dict[str, str] = {
    "1": "1-meta-governance.json",
    "2": "2-business-scope.json",
    "3": "3-planning-decomposition.json",
    "4": "4-high-level-design.json",
    "5": "5-maintenance-monitoring.json",
    "6": "6-implementation-guidance.json",
    "7": "7-quality-operations.json",
    "8": "8-reference.json",
}


def family_of(section_id: str) -> str:
    """Family ID of a section: ``"4.1.2"`` -> ``"4"``."""
    return section_id.split(".", 1)[0]


def _sort_key(family_id: str) -> tuple[int, int | str]:
    return (0, int(family_id)) if family_id.isdigit() else (1, family_id)


def resolve_schema_dir(schema_dir: Path | str | None = None) -> Path:
    if schema_dir is not None:
        return Path(schema_dir)
    env_dir = os.environ.get(SCHEMA_DIR_ENV, "").strip()
    if env_dir:
        return Path(env_dir)
    return PACKAGED_SCHEMA_DIR


class SchemaProvider:
    """Loads family definitions by family ID and sections by section ID."""

    def __init__(
        self,
        schema_dir: Path | str | None = None,
        family_files: Mapping[str, str] | None = None,
    ) -> None:
        self.schema_dir = resolve_schema_dir(schema_dir)
        self._family_files = dict(family_files if family_files is not None else FAMILY_FILES)
        self._families: dict[str, FamilyDefinition] = {}
        self._sections: dict[str, SectionDefinition] = {}

    # -- families ---------------------------------------------------------

    def family_ids(self) -> list[str]:
        return sorted(self._family_files, key=_sort_key)

    def path_for(self, family_id: int | str) -> Path:
        key = str(family_id)
        filename = self._family_files.get(key)
        if filename is None:
            raise UnknownFamily(
                f"Unknown family ID: {key} (known: {', '.join(self.family_ids())})"
            )
        return self.schema_dir / filename

    def load(self, family_id: int | str) -> FamilyDefinition:
        """Return the definition for one family, reading it on first use."""
        key = str(family_id)
        cached = self._families.get(key)
        if cached is not None:
            return cached

        path = self.path_for(key)
        if not path.is_file():
            raise SchemaSourceMissing(f"Schema file not found: {path}")
        try:
            payload = load_json(path)
        except orjson.JSONDecodeError as exc:
            raise SchemaSourceMalformed(f"Invalid JSON schema in {path}: {exc}") from exc

        family = parse_family(payload, source=path.name)
        if family.id != key:
            raise SchemaSourceMalformed(
                f"{path.name}: declares family {family.id} but is mapped to family {key}"
            )
        self._families[key] = family
        log.debug("Loaded family %s (%s) from %s", key, family.name, path)
        return family

    def load_all(self) -> list[FamilyDefinition]:
        """Load every known family, in numeric order."""
        return [self.load(family_id) for family_id in self.family_ids()]

    # -- sections ---------------------------------------------------------

    def load_section(self, section_id: str) -> SectionDefinition:
        """Return one section definition (at any nesting depth) by its ID."""
        cached = self._sections.get(section_id)
        if cached is not None:
            return cached

        family = self.load(family_of(section_id))
        section = family.find(section_id)
        if section is None:
            raise SectionNotInFamily(
                f"Section {section_id} not found in family {family.id} ({family.name})"
            )
        self._sections[section_id] = section
        return section

    # -- cache ------------------------------------------------------------

    def clear_cache(self) -> None:
        self._families.clear()
        self._sections.clear()

    def cache_size(self) -> int:
        return len(self._families) + len(self._sections)

    def is_cached(self, key: int | str) -> bool:
        """True if ``key`` (a family ID or a section ID) is cached."""
        key = str(key)
        return key in self._families or key in self._sections
