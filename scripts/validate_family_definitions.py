#!/usr/bin/env python3
"""Check that every family definition loads and composes for both document types.

A definition that fails to parse, or whose sections disagree with the
validator rules, is reported per family.

Usage:
    python3 scripts/validate_family_definitions.py
    python3 scripts/validate_family_definitions.py --schema-dir custom/families --json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from plandoc.errors import CompositionMismatch, SchemaProviderError  # noqa: E402
from plandoc.io_utils import dumps_json  # noqa: E402
from plandoc.parsing_types import DocumentType  # noqa: E402
from plandoc.schema_provider import SchemaProvider  # noqa: E402
from plandoc.schema_registry import SchemaRegistry  # noqa: E402

log = logging.getLogger("validate_family_definitions")


def check_family(registry: SchemaRegistry, family_id: str) -> dict[str, Any]:
    """Compose one family for every document type; collect failures."""
    row: dict[str, Any] = {"family": family_id, "ok": True, "sections": {}, "errors": []}
    for doc_type in DocumentType:
        try:
            index = registry.family_schema(family_id, doc_type)
        except (SchemaProviderError, CompositionMismatch) as exc:
            row["ok"] = False
            row["errors"].append(f"{doc_type}: {type(exc).__name__}: {exc}")
            continue
        row["sections"][doc_type.value] = sorted(index.by_id)
    return row


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate packaged family definitions.")
    parser.add_argument(
        "--schema-dir", type=Path, default=None,
        help="Family definition directory (default: PLANDOC_SCHEMA_DIR or packaged)",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    provider = SchemaProvider(args.schema_dir)
    registry = SchemaRegistry(provider)
    rows = [check_family(registry, family_id) for family_id in provider.family_ids()]
    ok = all(row["ok"] for row in rows)

    if args.json:
        print(dumps_json({"ok": ok, "schema_dir": str(provider.schema_dir), "families": rows}))
    else:
        print(f"ok={ok} families={len(rows)} schema_dir={provider.schema_dir}")
        for row in rows:
            counts = " ".join(f"{k}={len(v)}" for k, v in row["sections"].items())
            print(f"  family {row['family']}: {'ok' if row['ok'] else 'FAILED'} {counts}")
            for msg in row["errors"]:
                print(f"    ERROR: {msg}")

    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
