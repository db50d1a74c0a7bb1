"""Tests for scripts/lint_document.py and scripts/validate_family_definitions.py."""
from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import Any

import orjson
import pytest

ROOT = Path(__file__).resolve().parents[1]


def _load_script(name: str) -> Any:
    script_path = ROOT / "scripts" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(name, script_path)
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


VALID_TASK = """\
# Task 42

## 1.2 Status

- **Created:** 2025-01-10 09:00
- **Last Updated:** 2025-01-12 17:30
- **Current State:** 🚧 In Progress
- **Priority:** 🟨 Medium
- **Progress:** 40%
- **Planning Estimate:** 5
"""


class TestLintDocument:
    def test_clean_document_exits_zero(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        mod = _load_script("lint_document")
        doc = tmp_path / "task.md"
        doc.write_text(VALID_TASK, encoding="utf-8")
        assert mod.main([str(doc), "--doc-type", "task", "--json"]) == 0
        payload = orjson.loads(capsys.readouterr().out)
        assert payload["errors"] == []
        assert payload["data"]["metaGovernance"]["status"]["progress"] == 40

    def test_findings_exit_one(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        mod = _load_script("lint_document")
        doc = tmp_path / "task.md"
        doc.write_text(VALID_TASK.replace("- **Planning Estimate:** 5\n", ""), encoding="utf-8")
        assert mod.main([str(doc), "--doc-type", "task"]) == 1
        out = capsys.readouterr().out
        assert "errors=1" in out
        assert "[1.2 Status] planningEstimate: Field required" in out

    def test_unreadable_exits_two(self, tmp_path: Path) -> None:
        mod = _load_script("lint_document")
        assert mod.main([str(tmp_path / "absent.md")]) == 2

    def test_extra_processors_dir(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        mod = _load_script("lint_document")
        plugins = tmp_path / "plugins"
        plugins.mkdir()
        (plugins / "overview_processor.py").write_text(
            "class Overview:\n"
            "    section_id = '2.1'\n"
            "    def lint(self, section):\n"
            "        return []\n"
            "    def extract(self, section):\n"
            "        return section.body[0].text\n"
            "    def target_path(self):\n"
            "        return 'businessScope.overviewText'\n"
            "processor = Overview()\n",
            encoding="utf-8",
        )
        doc = tmp_path / "plan.md"
        doc.write_text("## 2.1 Overview\n\nWhat it does.\n", encoding="utf-8")
        assert mod.main([str(doc), "--processors-dir", str(plugins), "--json"]) == 0
        payload = orjson.loads(capsys.readouterr().out)
        assert payload["data"] == {"businessScope": {"overviewText": "What it does."}}


class TestValidateFamilyDefinitions:
    def test_packaged_families_compose(self, capsys: pytest.CaptureFixture[str]) -> None:
        mod = _load_script("validate_family_definitions")
        assert mod.main(["--json"]) == 0
        payload = orjson.loads(capsys.readouterr().out)
        assert payload["ok"] is True
        assert [row["family"] for row in payload["families"]] == [str(i) for i in range(1, 9)]
        assert payload["families"][0]["sections"]["plan"] == ["1.2", "1.3"]

    def test_broken_family_is_reported(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        mod = _load_script("validate_family_definitions")
        (tmp_path / "1-meta-governance.json").write_text("{broken", encoding="utf-8")
        assert mod.main(["--schema-dir", str(tmp_path)]) == 1
        out = capsys.readouterr().out
        assert "family 1: FAILED" in out
        assert "SchemaSourceMalformed" in out
        assert "SchemaSourceMissing" in out
