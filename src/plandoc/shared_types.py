"""Shared payload types reused across family rules.

Enums are Literal aliases so pydantic reports the allowed values in its
messages. Every string type rejects empty and whitespace-only values.
"""
from __future__ import annotations

from datetime import datetime
from functools import cache
from typing import Annotated, Any, Literal, Optional, get_args

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    create_model,
    model_validator,
)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
NonEmptyStrList = Annotated[list[NonEmptyStr], Field(min_length=1)]

StatusKey = Literal["Not Started", "In Progress", "Under Review", "Complete", "Blocked"]
PriorityLevel = Literal["High", "Medium", "Low"]
DependencyStatus = Literal["Complete", "Blocked", "In Progress"]
DependencyType = Literal["External", "Internal"]
TestType = Literal["Unit", "Integration", "E2E", "Performance", "Security"]

STATUS_KEYS: tuple[str, ...] = get_args(StatusKey)
PRIORITY_LEVELS: tuple[str, ...] = get_args(PriorityLevel)

DATETIME_FORMAT = "%Y-%m-%d %H:%M"


def _check_datetime(value: str) -> str:
    try:
        parsed = datetime.strptime(value, DATETIME_FORMAT)
    except ValueError:
        raise ValueError("Date must be in format 'YYYY-MM-DD HH:MM'") from None
    if not 1900 <= parsed.year <= 2100:
        raise ValueError("Date year must be between 1900 and 2100")
    return value


DateTimeString = Annotated[str, AfterValidator(_check_datetime)]


class ClosedModel(BaseModel):
    """Base for payload records: unknown keys are a validation error."""
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Mermaid diagrams
# ---------------------------------------------------------------------------


@cache
def mermaid_diagram(prefix: str) -> Any:
    """String type that must be a Mermaid diagram of the given kind."""

    def _check(value: str) -> str:
        if not value.strip().startswith(prefix):
            raise ValueError(f"Diagram must be a valid Mermaid {prefix}.")
        return value

    return Annotated[str, AfterValidator(_check)]


class _DiagramWithTextBase(ClosedModel):
    @model_validator(mode="after")
    def _has_content(self) -> _DiagramWithTextBase:
        if not getattr(self, "diagram", None) and not getattr(self, "text", None):
            raise ValueError("Section must have at least a diagram or text content.")
        return self


@cache
def diagram_with_text(prefix: str) -> type[BaseModel]:
    """Model for a section holding a Mermaid diagram and/or text bullets."""
    name = prefix[:1].upper() + prefix[1:] + "WithText"
    return create_model(
        name,
        __base__=_DiagramWithTextBase,
        diagram=(Optional[mermaid_diagram(prefix)], None),
        text=(Optional[NonEmptyStrList], None),
    )
