"""Section validator objects.

A :class:`SectionSchema` wraps a pydantic annotation (a model, a constrained
list, a union, ...) behind a small, stable contract::

    outcome = schema.validate(payload)
    outcome.ok            # bool
    outcome.issues        # (ValidationIssue(path=("status", "priority"), message=...), ...)
    schema.description    # section ID the validator was composed for

Issues are attributed to the deepest registered section whose path prefixes
the issue location.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter, ValidationError


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    path: tuple[str, ...]
    message: str
    section_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "message": self.message}

    def format(self) -> str:
        where = ".".join(self.path)
        return f"{where}: {self.message}" if where else self.message


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    ok: bool
    issues: tuple[ValidationIssue, ...] = ()


@dataclass(frozen=True, slots=True)
class SectionSchema:
    """Validator for one section's (or one family's) payload."""
    section_id: str
    annotation: Any
    optional: bool = False
    section_paths: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    _adapter: TypeAdapter[Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_adapter", TypeAdapter(self.annotation))

    @property
    def description(self) -> str:
        return self.section_id

    def _attribute(self, loc: tuple[str, ...]) -> str:
        best_id, best_len = self.section_id, -1
        for section_id, path in self.section_paths.items():
            if len(path) > best_len and loc[: len(path)] == path:
                best_id, best_len = section_id, len(path)
        return best_id

    def validate(self, payload: Any) -> ValidationOutcome:
        try:
            self._adapter.validate_python(payload)
        except ValidationError as exc:
            issues: list[ValidationIssue] = []
            for err in exc.errors(include_url=False):
                loc = tuple(str(p) for p in err["loc"])
                issues.append(ValidationIssue(
                    path=loc,
                    message=err["msg"],
                    section_id=self._attribute(loc),
                ))
            return ValidationOutcome(ok=False, issues=tuple(issues))
        return ValidationOutcome(ok=True)

    def is_valid(self, payload: Any) -> bool:
        return self.validate(payload).ok

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema of the accepted payload (aliases, i.e. section keys)."""
        return self._adapter.json_schema(by_alias=True)
