"""Construction rules for the eight packaged section families.

Row models describe one row of a table section; every table needs at least
one row. Section keys and applicability live in ``families/*.json``; this
module only states the payload each section ID accepts.
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import Field

from plandoc.section_rules import (
    SUBSECTIONS,
    Diagram,
    FieldSet,
    FreeText,
    Nested,
    RowTable,
    SectionRules,
    StringList,
    UnionOf,
)
from plandoc.shared_types import (
    ClosedModel,
    DateTimeString,
    DependencyStatus,
    DependencyType,
    NonEmptyStr,
    NonEmptyStrList,
    PriorityLevel,
    StatusKey,
    TestType,
    mermaid_diagram,
)

# ---------------------------------------------------------------------------
# 1. Meta & Governance
# ---------------------------------------------------------------------------

STATUS_FIELD_TYPES = {
    "created": DateTimeString,
    "lastUpdated": DateTimeString,
    "currentState": StatusKey,
    "priority": PriorityLevel,
    "progress": Annotated[int, Field(ge=0, le=100)],
    "planningEstimate": Annotated[int, Field(ge=0)],
    "estVariancePts": int,
    "implementationStarted": DateTimeString,
    "completed": DateTimeString,
}


# ---------------------------------------------------------------------------
# 2. Business & Scope
# ---------------------------------------------------------------------------


class UserJourney(ClosedModel):
    name: NonEmptyStr
    description: NonEmptyStr
    diagram: NonEmptyStr


class UserPersona(ClosedModel):
    persona: NonEmptyStr
    goal: NonEmptyStr


class DoneCriterion(ClosedModel):
    id: NonEmptyStr          # "DoD-1"
    criterion: NonEmptyStr


class BusinessProcess(ClosedModel):
    name: NonEmptyStr
    participants: NonEmptyStr
    goal: NonEmptyStr
    workflow: NonEmptyStrList


# ---------------------------------------------------------------------------
# 3. Planning & Decomposition
# ---------------------------------------------------------------------------


class RoadmapItem(ClosedModel):
    id: NonEmptyStr                      # "P1", "T1"
    child_plan_task: NonEmptyStr = Field(alias="childPlanTask")
    priority: PriorityLevel
    priority_drivers: NonEmptyStrList = Field(alias="priorityDrivers")
    status: StatusKey
    depends_on: Optional[str] = Field(default=None, alias="dependsOn")
    summary: NonEmptyStr


class BacklogItem(ClosedModel):
    name: NonEmptyStr
    reason: NonEmptyStr


class Dependency(ClosedModel):
    id: NonEmptyStr                      # "D-1"
    dependency_on: NonEmptyStr = Field(alias="dependencyOn")
    type: DependencyType
    status: DependencyStatus
    affected_plans_tasks: NonEmptyStrList = Field(alias="affectedPlansTasks")
    notes: NonEmptyStr


# ---------------------------------------------------------------------------
# 4. High-Level Design
# ---------------------------------------------------------------------------


class IntegrationPoint(ClosedModel):
    trigger: NonEmptyStr
    input_data: NonEmptyStr = Field(alias="inputData")


class TechStackItem(ClosedModel):
    category: NonEmptyStr                # "Language"
    technology: NonEmptyStr              # "Python"


class NonFunctionalRequirement(ClosedModel):
    id: NonEmptyStr                      # "PERF-01"
    requirement: NonEmptyStr
    priority: PriorityLevel


class PermissionRole(ClosedModel):
    role: NonEmptyStr
    permissions: NonEmptyStrList
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# 5. Maintenance & Monitoring
# ---------------------------------------------------------------------------


class ErrorHandlingRow(ClosedModel):
    error_type: NonEmptyStr = Field(alias="errorType")
    trigger: NonEmptyStr
    action: NonEmptyStr
    user_feedback: NonEmptyStr = Field(alias="userFeedback")


class LoggingStrategy(ClosedModel):
    component: NonEmptyStr
    strategy: NonEmptyStr


LoggingStrategyTable = Annotated[list[LoggingStrategy], Field(min_length=1)]


# ---------------------------------------------------------------------------
# 6. Implementation Guidance
# ---------------------------------------------------------------------------


class Prompt(ClosedModel):
    description: NonEmptyStr
    code: NonEmptyStr
    language: Optional[NonEmptyStr] = None


# ---------------------------------------------------------------------------
# 7. Quality & Operations
# ---------------------------------------------------------------------------


class TestingScenario(ClosedModel):
    ac_id: NonEmptyStr = Field(alias="acId")          # "AC-1"
    dod_link: NonEmptyStr = Field(alias="dodLink")    # "DoD-2"
    scenario: NonEmptyStr
    test_type: TestType = Field(alias="testType")
    test_file: NonEmptyStr = Field(alias="testFile")


class ConfigurationSetting(ClosedModel):
    setting_name: NonEmptyStr = Field(alias="settingName")
    plan_dependency: NonEmptyStr = Field(alias="planDependency")
    source: NonEmptyStr
    override_method: NonEmptyStr = Field(alias="overrideMethod")
    notes: NonEmptyStr


class AlertingResponse(ClosedModel):
    error_condition: NonEmptyStr = Field(alias="errorCondition")
    relevant_plans: NonEmptyStr = Field(alias="relevantPlans")
    response_plan: NonEmptyStr = Field(alias="responsePlan")
    status: StatusKey


# ---------------------------------------------------------------------------
# 8. Reference
# ---------------------------------------------------------------------------


class GlossaryItem(ClosedModel):
    term: NonEmptyStr
    definition: NonEmptyStr


class AppendixItem(ClosedModel):
    title: NonEmptyStr
    content: NonEmptyStr


def _architecture_rules(prefix: str) -> dict[str, object]:
    """Rules shared by 4.1 (current) and 4.2 (target) architecture subsections."""
    return {
        f"{prefix}.1": Diagram("erDiagram"),
        f"{prefix}.2": Diagram("classDiagram"),
        f"{prefix}.3": Diagram("graph"),
        f"{prefix}.4": Diagram("sequenceDiagram"),
        f"{prefix}.5": Nested(),
        f"{prefix}.5.1": RowTable(IntegrationPoint),
        f"{prefix}.5.2": RowTable(IntegrationPoint),
    }


DEFAULT_RULES = SectionRules({
    # 1. Meta & Governance
    "1.2": FieldSet(STATUS_FIELD_TYPES),
    "1.3": StringList(),
    # 2. Business & Scope
    "2.1": FieldSet({
        "coreFunction": NonEmptyStr,
        "keyCapability": NonEmptyStr,
        "businessValue": NonEmptyStr,
    }),
    "2.2": FreeText(),
    "2.3": RowTable(UserJourney),
    "2.4": RowTable(UserPersona),
    "2.5": StringList(),
    "2.6": StringList(),
    "2.7": StringList(),
    "2.8": RowTable(DoneCriterion),
    "2.9": Nested(),
    "2.9.1": StringList(),
    "2.9.2": StringList(),
    "2.10": RowTable(BusinessProcess),
    # 3. Planning & Decomposition
    "3.1": RowTable(RoadmapItem),
    "3.2": RowTable(BacklogItem),
    "3.3": RowTable(Dependency),
    "3.4": FreeText(mermaid_diagram("graph")),
    # 4. High-Level Design
    "4.0": StringList(),
    "4.1": Nested(),
    **_architecture_rules("4.1"),
    "4.2": UnionOf(SUBSECTIONS, NonEmptyStrList),
    **_architecture_rules("4.2"),
    "4.2.6": FreeText(),
    "4.3": RowTable(TechStackItem),
    "4.4": Nested(),
    "4.4.1": RowTable(NonFunctionalRequirement),
    "4.4.2": RowTable(NonFunctionalRequirement),
    "4.4.3": RowTable(NonFunctionalRequirement),
    "4.4.4": RowTable(PermissionRole),
    # 5. Maintenance & Monitoring
    "5.1": Nested(),
    "5.1.1": FreeText(),
    "5.1.2": FreeText(),
    "5.2": Nested(),
    "5.2.1": RowTable(ErrorHandlingRow),
    "5.2.2": UnionOf(NonEmptyStrList, LoggingStrategyTable),
    # 6. Implementation Guidance
    "6.1": StringList(),
    "6.2": StringList(),
    "6.3": FreeText(),
    "6.4": FreeText(),
    "6.5": RowTable(Prompt),
    # 7. Quality & Operations
    "7.1": RowTable(TestingScenario),
    "7.2": RowTable(ConfigurationSetting),
    "7.3": RowTable(AlertingResponse),
    "7.4": StringList(),
    "7.5": StringList(),
    # 8. Reference
    "8.1": Nested(require_any="At least one of glossary or appendices must be present and non-empty"),
    "8.1.1": RowTable(GlossaryItem),
    "8.1.2": RowTable(AppendixItem),
})
