"""Environmental-harm (do no significant harm) domain models.

Defines:
- HarmObjective: the six environmental objectives
- HarmStatus / HarmOverallStatus: per-objective and overall outcomes
- AssessedObjective / IncompatibleObjective: the two objective result variants
- EnvironmentalAssessment: the complete six-objective result
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tfscore.models.common import EvaluationSource

MAX_OBJECTIVE_SCORE = 4
MAX_LIST_ITEMS = 3


class HarmObjective(StrEnum):
    """Environmental objectives assessed for significant harm."""

    CLIMATE_MITIGATION = "climate_mitigation"
    CLIMATE_ADAPTATION = "climate_adaptation"
    WATER_RESOURCES = "water_resources"
    CIRCULAR_ECONOMY = "circular_economy"
    POLLUTION_PREVENTION = "pollution_prevention"
    BIODIVERSITY = "biodiversity"


OBJECTIVE_NAMES: dict[HarmObjective, str] = {
    HarmObjective.CLIMATE_MITIGATION: "Climate Change Mitigation",
    HarmObjective.CLIMATE_ADAPTATION: "Climate Change Adaptation",
    HarmObjective.WATER_RESOURCES: "Water & Marine Resources",
    HarmObjective.CIRCULAR_ECONOMY: "Circular Economy",
    HarmObjective.POLLUTION_PREVENTION: "Pollution Prevention",
    HarmObjective.BIODIVERSITY: "Biodiversity & Ecosystems",
}

ALL_OBJECTIVES: tuple[HarmObjective, ...] = tuple(HarmObjective)


class HarmStatus(StrEnum):
    """Outcome for one objective."""

    NO_HARM = "no_harm"
    POTENTIAL_HARM = "potential_harm"
    SIGNIFICANT_HARM = "significant_harm"
    NOT_ASSESSED = "not_assessed"


class HarmOverallStatus(StrEnum):
    """Outcome for the whole assessment."""

    COMPLIANT = "compliant"
    PARTIAL = "partial"
    NON_COMPLIANT = "non_compliant"


class AssessedObjective(BaseModel):
    """An objective scored on the ordinary 0-4 scale."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["assessed"] = "assessed"
    objective: HarmObjective
    objective_name: str
    status: HarmStatus
    score: int = Field(..., ge=0, le=MAX_OBJECTIVE_SCORE)
    evidence: str = ""
    concern: str | None = None
    recommendation: str | None = None

    @property
    def is_fundamentally_incompatible(self) -> bool:
        return False


class IncompatibleObjective(BaseModel):
    """An objective harmed by a non-remediable activity.

    Status is always significant_harm and score always 0. The variant has no
    recommendation field: nothing can be recommended for it.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["incompatible"] = "incompatible"
    objective: HarmObjective
    objective_name: str
    status: HarmStatus = HarmStatus.SIGNIFICANT_HARM
    score: int = 0
    evidence: str = ""
    concern: str | None = None

    @model_validator(mode="after")
    def _pinned_outcome(self) -> IncompatibleObjective:
        if self.status != HarmStatus.SIGNIFICANT_HARM or self.score != 0:
            raise ValueError("Incompatible objectives must be significant_harm with score 0")
        return self

    @property
    def is_fundamentally_incompatible(self) -> bool:
        return True

    @property
    def recommendation(self) -> None:
        return None


EnvironmentalObjectiveResult = Annotated[
    AssessedObjective | IncompatibleObjective,
    Field(discriminator="kind"),
]


class EnvironmentalAssessment(BaseModel):
    """Six-objective environmental-harm assessment.

    Fail-closed: every objective must appear exactly once, and an incompatible
    assessment can neither be compliant nor carry recommendations.
    """

    model_config = ConfigDict(frozen=True)

    objectives: list[EnvironmentalObjectiveResult]
    total_score: int = Field(..., ge=0, le=MAX_OBJECTIVE_SCORE * len(ALL_OBJECTIVES))
    normalized_score: int = Field(..., ge=0, le=100, description="Sector-weighted 0-100")
    overall_status: HarmOverallStatus
    is_fundamentally_incompatible: bool = False
    incompatibility_reason: str | None = None
    summary: str = ""
    key_risks: list[str] = Field(default_factory=list, max_length=MAX_LIST_ITEMS)
    recommendations: list[str] = Field(default_factory=list, max_length=MAX_LIST_ITEMS)
    confidence: float = Field(..., ge=0.0, le=100.0)
    source: EvaluationSource

    @model_validator(mode="after")
    def _check_invariants(self) -> EnvironmentalAssessment:
        seen = [o.objective for o in self.objectives]
        if sorted(seen) != sorted(ALL_OBJECTIVES):
            raise ValueError(f"Assessment must cover each objective exactly once, got {seen}")
        any_incompatible = any(o.is_fundamentally_incompatible for o in self.objectives)
        if any_incompatible and not self.is_fundamentally_incompatible:
            raise ValueError("Incompatible objective present but assessment not flagged")
        if self.is_fundamentally_incompatible:
            if self.overall_status != HarmOverallStatus.NON_COMPLIANT:
                raise ValueError("Incompatible assessment must be non_compliant")
            if self.recommendations:
                raise ValueError("Incompatible assessment cannot carry recommendations")
        return self

    def objective(self, objective: HarmObjective) -> AssessedObjective | IncompatibleObjective:
        """Return the result for one objective."""
        for result in self.objectives:
            if result.objective == objective:
                return result
        raise KeyError(objective)
