#!/usr/bin/env python3
"""Lint a plan/task markdown document section by section.

Slices the document on its numbered level-2 headings, runs every registered
section processor and, with ``--doc-type``, checks the extracted data against
the packaged family schemas.

Usage:
    python3 scripts/lint_document.py docs/plan-auth.md --doc-type plan
    python3 scripts/lint_document.py docs/task-42.md --doc-type task --json
    python3 scripts/lint_document.py docs/task-42.md --processors-dir my_processors/

Exit status is 1 when any finding is reported, 2 when the document cannot be read.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from plandoc.engine import DocumentEngine  # noqa: E402
from plandoc.errors import SourceUnreadable  # noqa: E402
from plandoc.io_utils import dumps_json  # noqa: E402
from plandoc.parsing_types import DocumentType, ParseResult  # noqa: E402
from plandoc.processor_registry import default_registry  # noqa: E402
from plandoc.schema_registry import SchemaRegistry  # noqa: E402

log = logging.getLogger("lint_document")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lint a plan/task markdown document.")
    parser.add_argument("path", type=Path, help="Markdown document to lint")
    parser.add_argument(
        "--doc-type",
        choices=[t.value for t in DocumentType],
        default=None,
        help="Document type; enables schema checks of extracted sections.",
    )
    parser.add_argument(
        "--processors-dir",
        type=Path,
        default=None,
        help="Directory of extra *_processor.py files to register.",
    )
    parser.add_argument("--json", action="store_true", help="Print {data, errors} as JSON")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def format_report(path: Path, result: ParseResult) -> list[str]:
    lines = [f"{path}: sections={len(result.sections)} errors={len(result.errors)}"]
    for error in result.errors:
        lines.append(f"  [{error.display_section}] {error.message}")
    return lines


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    registry = default_registry()
    if args.processors_dir is not None:
        count = registry.register_all(args.processors_dir)
        log.info("Registered %d processors from %s", count, args.processors_dir)

    schemas = SchemaRegistry() if args.doc_type else None
    engine = DocumentEngine(registry, schemas)
    try:
        result = engine.parse_file(args.path, args.doc_type)
    except SourceUnreadable as exc:
        log.error("%s", exc)
        return 2

    if args.json:
        print(dumps_json(result.to_dict()))
    else:
        for line in format_report(args.path, result):
            print(line)

    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
