"""Compliance scoring domain models.

Defines:
- ComponentType: the five transition-loan framework components
- CriterionStatus / CriterionFinding: one sub-criterion result
- ComponentEvaluation: one component's scored result (0-20)
- ComponentRequest: inputs for evaluating one component
- EligibilityStatus, RiskSignals, PenaltyBreakdown
- AssessmentReport: the aggregated, read-only output of one assessment
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from tfscore.harm.models import EnvironmentalAssessment
from tfscore.models.common import EvaluationSource
from tfscore.models.inputs import ExtractedFields, ProjectContext
from tfscore.risk.models import RedFlag

COMPONENT_MAX_SCORE = 20
MAX_IMPROVEMENTS = 5
MAX_KEY_QUOTES = 3
MAX_EVIDENCE_CHARS = 300
# Points at or below this share of the maximum count as missing.
MISSING_RATIO = 0.2


class ComponentType(StrEnum):
    """Transition-loan framework components (20 points each)."""

    STRATEGY = "strategy"
    PROCEEDS = "proceeds"
    SELECTION = "selection"
    MANAGEMENT = "management"
    REPORTING = "reporting"


ALL_COMPONENTS: tuple[ComponentType, ...] = tuple(ComponentType)


class CriterionStatus(StrEnum):
    """Outcome for one sub-criterion."""

    MET = "met"
    PARTIAL = "partial"
    MISSING = "missing"


class EligibilityStatus(StrEnum):
    """Final eligibility classification."""

    ELIGIBLE = "eligible"
    PARTIAL = "partial"
    INELIGIBLE = "ineligible"


def clamp_points(points: float, max_points: int) -> int:
    """Round and clamp awarded points into [0, max_points]."""
    return max(0, min(max_points, round(points)))


def derive_status(points: int, max_points: int) -> CriterionStatus:
    """Derive a criterion status from points awarded.

    met when points reach the maximum, missing at or below 20% of it,
    partial otherwise.
    """
    if points >= max_points:
        return CriterionStatus.MET
    if points <= max_points * MISSING_RATIO:
        return CriterionStatus.MISSING
    return CriterionStatus.PARTIAL


class CriterionFinding(BaseModel):
    """Result for one sub-criterion of a component."""

    model_config = ConfigDict(frozen=True)

    criterion: str = Field(..., min_length=1)
    max_points: int = Field(..., gt=0)
    points: int = Field(..., ge=0)
    status: CriterionStatus
    evidence: str = Field(default="", max_length=MAX_EVIDENCE_CHARS)
    reasoning: str = ""

    @model_validator(mode="after")
    def _points_within_max(self) -> CriterionFinding:
        if self.points > self.max_points:
            raise ValueError(
                f"Criterion '{self.criterion}' awarded {self.points} > max {self.max_points}"
            )
        return self


def build_finding(
    criterion: str,
    max_points: int,
    points: float,
    *,
    evidence: str = "",
    reasoning: str = "",
) -> CriterionFinding:
    """Build a finding with clamped points and a derived status."""
    awarded = clamp_points(points, max_points)
    return CriterionFinding(
        criterion=criterion,
        max_points=max_points,
        points=awarded,
        status=derive_status(awarded, max_points),
        evidence=evidence[:MAX_EVIDENCE_CHARS],
        reasoning=reasoning,
    )


class KeyQuote(BaseModel):
    """A supporting excerpt quoted by the adjudicator."""

    model_config = ConfigDict(frozen=True)

    quote: str
    relevance: str = ""


class ComponentEvaluation(BaseModel):
    """Scored result for one framework component."""

    model_config = ConfigDict(frozen=True)

    component: ComponentType
    component_name: str
    max_score: int = COMPONENT_MAX_SCORE
    score: int = Field(..., ge=0, le=COMPONENT_MAX_SCORE)
    confidence: float = Field(..., ge=0.0, le=100.0)
    source: EvaluationSource
    sub_scores: list[CriterionFinding] = Field(default_factory=list)
    overall_reasoning: str = ""
    improvements: list[str] = Field(default_factory=list, max_length=MAX_IMPROVEMENTS)
    key_quotes: list[KeyQuote] = Field(default_factory=list, max_length=MAX_KEY_QUOTES)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ai_evaluated(self) -> bool:
        """True when the kept result came from the adjudicator."""
        return self.source == EvaluationSource.ADJUDICATED

    @model_validator(mode="after")
    def _fixed_max_score(self) -> ComponentEvaluation:
        if self.max_score != COMPONENT_MAX_SCORE:
            raise ValueError(f"Component max_score must be {COMPONENT_MAX_SCORE}")
        return self


class ComponentRequest(BaseModel):
    """Inputs for evaluating one component."""

    model_config = ConfigDict(frozen=True)

    component: ComponentType
    excerpt: str = ""
    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    context: ProjectContext = Field(default_factory=ProjectContext)

    def evidence_text(self) -> str:
        """Lowercased excerpt + description + transition plan, scanned by keyword rules."""
        fields = self.extracted
        return f"{self.excerpt} {fields.description} {fields.transition_plan}".lower()


def component_score(findings: list[CriterionFinding]) -> int:
    """Clamped sum of finding points."""
    return max(0, min(COMPONENT_MAX_SCORE, sum(f.points for f in findings)))


class RiskSignals(BaseModel):
    """Risk inputs to the penalty; a missing signal contributes zero."""

    model_config = ConfigDict(frozen=True)

    ai_risk_score: float | None = Field(default=None, ge=0.0, le=100.0)
    rule_risk_score: float | None = Field(default=None, ge=0.0, le=100.0)
    environmental_score: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Normalized harm score, higher = less harm"
    )


class PenaltyBreakdown(BaseModel):
    """Weighted contributions to the penalty."""

    model_config = ConfigDict(frozen=True)

    ai_component: float = Field(..., ge=0.0)
    rule_component: float = Field(..., ge=0.0)
    environmental_component: float = Field(..., ge=0.0)
    environmental_step_penalty: float = Field(..., ge=0.0)
    total: float = Field(..., ge=0.0)


class AssessmentReport(BaseModel):
    """Aggregated result of one assessment. Read-only."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    components: list[ComponentEvaluation]
    environmental: EnvironmentalAssessment | None = None
    red_flags: list[RedFlag] = Field(default_factory=list)
    signals: RiskSignals
    base_score: int = Field(..., ge=0, le=COMPONENT_MAX_SCORE * len(ALL_COMPONENTS))
    penalty: PenaltyBreakdown
    final_score: float = Field(..., ge=0.0, le=100.0)
    eligibility: EligibilityStatus
    overall_reasoning: str
    failed_units: list[str] = Field(default_factory=list)
    assessed_at: str

    @model_validator(mode="after")
    def _require_all_components(self) -> AssessmentReport:
        """Fail closed: every report must include each component exactly once."""
        present = [c.component for c in self.components]
        if sorted(present) != sorted(ALL_COMPONENTS):
            raise ValueError(f"Report must include each component exactly once, got {present}")
        return self

    def component(self, component: ComponentType) -> ComponentEvaluation:
        """Return the evaluation for one component."""
        for evaluation in self.components:
            if evaluation.component == component:
                return evaluation
        raise KeyError(component)
