"""Transition-loan component scoring, aggregation and the assessment engine."""

from tfscore.scoring.aggregator import (
    compute_penalty,
    determine_eligibility,
    environmental_step_penalty,
)
from tfscore.scoring.engine import AssessmentEngine, AssessmentError, build_engine_from_env
from tfscore.scoring.keyword_rules import KeywordComponentStrategy
from tfscore.scoring.models import (
    AssessmentReport,
    ComponentEvaluation,
    ComponentRequest,
    ComponentType,
    CriterionFinding,
    CriterionStatus,
    EligibilityStatus,
    PenaltyBreakdown,
    RiskSignals,
)
from tfscore.scoring.overrides import apply_compliance_overrides
from tfscore.scoring.strategies import (
    AdjudicatedComponentStrategy,
    ConfidenceGatedEvaluator,
    EvaluationStrategy,
)

__all__ = [
    "AdjudicatedComponentStrategy",
    "AssessmentEngine",
    "AssessmentError",
    "AssessmentReport",
    "ComponentEvaluation",
    "ComponentRequest",
    "ComponentType",
    "ConfidenceGatedEvaluator",
    "CriterionFinding",
    "CriterionStatus",
    "EligibilityStatus",
    "EvaluationStrategy",
    "KeywordComponentStrategy",
    "PenaltyBreakdown",
    "RiskSignals",
    "apply_compliance_overrides",
    "build_engine_from_env",
    "compute_penalty",
    "determine_eligibility",
    "environmental_step_penalty",
]
