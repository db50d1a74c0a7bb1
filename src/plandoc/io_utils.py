"""I/O utilities for JSON and text file operations.

orjson-backed JSON I/O for family definitions and parse reports.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file.

    Raises ``orjson.JSONDecodeError`` (a ``ValueError``) on malformed input.
    """
    return orjson.loads(path.read_bytes())


def dumps_json(obj: Any, *, pretty: bool = True) -> str:
    """Serialize an object to a JSON string with sorted keys."""
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=opts, default=str).decode("utf-8")


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_json(obj, pretty=pretty) + "\n", encoding="utf-8")


def read_text(path: Path) -> str:
    """Read a UTF-8 text file (BOM tolerated)."""
    return path.read_text(encoding="utf-8-sig")
