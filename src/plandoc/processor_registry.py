"""Section processor protocol and registry.

A section processor owns exactly one section ID::

    processor.section_id      # "1.2"
    processor.lint(section)   # -> list[LintingError]; findings, never raises on bad content
    processor.extract(section)  # -> payload | None; best effort even after lint findings
    processor.target_path()   # -> "metaGovernance.status"

Processors are handed to the registry explicitly (``register``). Directory
discovery (``register_all``) is a boundary adapter: each ``*_processor.py``
file must expose a module-level ``processor`` object; files that fail to
import or expose nothing usable are logged and skipped.
"""
from __future__ import annotations

import importlib.util
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from plandoc.errors import ProcessorLoadFailure
from plandoc.parsing_types import LintingError, RawSection
from plandoc.processors import BUILTIN_PROCESSORS

log = logging.getLogger(__name__)

PROCESSOR_GLOB = "*_processor.py"
PROCESSOR_ATTRIBUTE = "processor"


@runtime_checkable
class SectionProcessor(Protocol):
    section_id: str

    def lint(self, section: RawSection) -> list[LintingError]: ...

    def extract(self, section: RawSection) -> Any | None: ...

    def target_path(self) -> str: ...


def _check_processor(candidate: object, origin: str) -> SectionProcessor:
    if not isinstance(candidate, SectionProcessor):
        raise ProcessorLoadFailure(
            f"{origin}: object does not implement section_id/lint/extract/target_path"
        )
    section_id = getattr(candidate, "section_id", "")
    if not isinstance(section_id, str) or not section_id.strip():
        raise ProcessorLoadFailure(f"{origin}: processor declares no section_id")
    return candidate


def _load_module(path: Path) -> Any:
    module_name = f"plandoc_processor_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ProcessorLoadFailure(f"{path}: not an importable module")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class ProcessorRegistry:
    """Maps section IDs to the processor that handles them."""

    def __init__(self, processors: Iterable[SectionProcessor] = ()) -> None:
        self._processors: dict[str, SectionProcessor] = {}
        for processor in processors:
            self.register(processor)

    def register(self, processor: SectionProcessor) -> None:
        """Register a processor; an existing one for the same ID is replaced."""
        processor = _check_processor(processor, type(processor).__name__)
        previous = self._processors.get(processor.section_id)
        if previous is not None and previous is not processor:
            log.info(
                "Replacing processor for section %s (%s -> %s)",
                processor.section_id, type(previous).__name__, type(processor).__name__,
            )
        self._processors[processor.section_id] = processor

    def resolve(self, section_id: str) -> SectionProcessor | None:
        return self._processors.get(section_id)

    def register_all(self, directory: Path | str) -> int:
        """Discover ``*_processor.py`` files in ``directory``; return how many loaded."""
        directory = Path(directory)
        if not directory.is_dir():
            log.warning("Processor directory not found: %s", directory)
            return 0

        loaded = 0
        for path in sorted(directory.glob(PROCESSOR_GLOB)):
            try:
                module = _load_module(path)
                candidate = getattr(module, PROCESSOR_ATTRIBUTE, None)
                if candidate is None:
                    raise ProcessorLoadFailure(
                        f"{path.name}: no module-level '{PROCESSOR_ATTRIBUTE}' attribute"
                    )
                self.register(_check_processor(candidate, path.name))
            except Exception as exc:
                log.warning("Skipping processor %s: %s", path.name, exc)
                continue
            loaded += 1
            log.debug("Loaded processor for section %s from %s", candidate.section_id, path.name)
        return loaded

    def processors(self) -> list[SectionProcessor]:
        return list(self._processors.values())

    def section_ids(self) -> list[str]:
        return list(self._processors)

    def __len__(self) -> int:
        return len(self._processors)

    def __contains__(self, section_id: object) -> bool:
        return section_id in self._processors


def default_registry() -> ProcessorRegistry:
    """Registry holding the built-in processors."""
    return ProcessorRegistry(BUILTIN_PROCESSORS)
