"""Environmental-harm evaluation across six objectives."""

from tfscore.harm.evaluator import (
    AdjudicatedHarmStrategy,
    EnvironmentalHarmEvaluator,
    RuleBasedHarmStrategy,
)
from tfscore.harm.models import (
    AssessedObjective,
    EnvironmentalAssessment,
    HarmObjective,
    HarmOverallStatus,
    HarmStatus,
    IncompatibleObjective,
)
from tfscore.harm.weights import SECTOR_WEIGHTS, normalized_score

__all__ = [
    "SECTOR_WEIGHTS",
    "AdjudicatedHarmStrategy",
    "AssessedObjective",
    "EnvironmentalAssessment",
    "EnvironmentalHarmEvaluator",
    "HarmObjective",
    "HarmOverallStatus",
    "HarmStatus",
    "IncompatibleObjective",
    "RuleBasedHarmStrategy",
    "normalized_score",
]
