"""Tests for plandoc.schema_provider: loading and caching family definitions."""
from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from plandoc.errors import (
    SchemaSourceMalformed,
    SchemaSourceMissing,
    SectionNotInFamily,
    UnknownFamily,
)
from plandoc.schema_provider import (
    FAMILY_FILES,
    PACKAGED_SCHEMA_DIR,
    SCHEMA_DIR_ENV,
    SchemaProvider,
    family_of,
)

_MINIMAL = {
    "id": "X",
    "name": "Experimental",
    "sections": [
        {"id": "X.1", "name": "Summary", "shape": "freeText",
         "applicability": {"plan": "required", "task": "optional"}},
    ],
}


def _write(path: Path, payload: object) -> Path:
    path.write_bytes(orjson.dumps(payload))
    return path


class TestPackagedFamilies:
    def test_load_all_in_numeric_order(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        families = provider.load_all()
        assert [f.id for f in families] == ["1", "2", "3", "4", "5", "6", "7", "8"]
        assert [f.key for f in families] == [
            "metaGovernance",
            "businessScope",
            "planningDecomposition",
            "highLevelDesign",
            "maintenanceMonitoring",
            "implementationGuidance",
            "qualityOperations",
            "reference",
        ]

    def test_load_is_cached(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        first = provider.load(4)
        assert provider.is_cached(4)
        assert provider.load("4") is first
        assert first.name == "High-Level Design"

    def test_load_nested_section(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        section = provider.load_section("4.1.5.2")
        assert section.key == "downstream"
        assert provider.is_cached("4.1.5.2")
        assert provider.load_section("4.1.5.2") is section

    def test_clear_cache(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        provider.load_section("1.2")
        assert provider.cache_size() == 2           # family "1" + section "1.2"
        provider.clear_cache()
        assert provider.cache_size() == 0
        assert not provider.is_cached("1")

    def test_every_mapped_file_exists(self) -> None:
        for filename in FAMILY_FILES.values():
            assert (PACKAGED_SCHEMA_DIR / filename).is_file()


class TestFailures:
    def test_unknown_family(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        with pytest.raises(UnknownFamily, match="Unknown family ID: 99"):
            provider.load(99)
        with pytest.raises(UnknownFamily):
            provider.load_section("99.1")

    def test_section_not_in_family(self) -> None:
        provider = SchemaProvider(PACKAGED_SCHEMA_DIR)
        with pytest.raises(SectionNotInFamily, match="Section 4.9 not found in family 4"):
            provider.load_section("4.9")

    def test_missing_file(self, tmp_path: Path) -> None:
        provider = SchemaProvider(tmp_path)
        with pytest.raises(SchemaSourceMissing, match="Schema file not found"):
            provider.load(1)

    def test_malformed_json(self, tmp_path: Path) -> None:
        (tmp_path / FAMILY_FILES["1"]).write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaSourceMalformed, match="Invalid JSON schema"):
            SchemaProvider(tmp_path).load(1)

    def test_invalid_structure(self, tmp_path: Path) -> None:
        _write(tmp_path / FAMILY_FILES["1"], {"id": 1, "name": "Meta", "sections": [{"id": "1.2"}]})
        with pytest.raises(SchemaSourceMalformed):
            SchemaProvider(tmp_path).load(1)

    def test_family_id_must_match_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path / FAMILY_FILES["1"], {**_MINIMAL, "id": 2})
        with pytest.raises(SchemaSourceMalformed, match="mapped to family 1"):
            SchemaProvider(tmp_path).load(1)

    def test_failed_load_is_not_cached(self, tmp_path: Path) -> None:
        provider = SchemaProvider(tmp_path, {"X": "x.json"})
        with pytest.raises(SchemaSourceMissing):
            provider.load("X")
        _write(tmp_path / "x.json", _MINIMAL)
        assert provider.load("X").name == "Experimental"


class TestConfiguration:
    def test_custom_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path / "x.json", _MINIMAL)
        provider = SchemaProvider(tmp_path, {"X": "x.json"})
        assert provider.family_ids() == ["X"]
        assert provider.load_section("X.1").key == "summary"

    def test_env_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SCHEMA_DIR_ENV, str(tmp_path))
        assert SchemaProvider().schema_dir == tmp_path

    def test_argument_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SCHEMA_DIR_ENV, str(tmp_path))
        assert SchemaProvider(PACKAGED_SCHEMA_DIR).schema_dir == PACKAGED_SCHEMA_DIR

    def test_default_is_packaged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(SCHEMA_DIR_ENV, raising=False)
        assert SchemaProvider().schema_dir == PACKAGED_SCHEMA_DIR

    def test_family_of(self) -> None:
        assert family_of("4.1.2") == "4"
        assert family_of("X.1") == "X"
