"""Risk signals feeding the penalty: rule-based red flags and adjudicated risk."""

from tfscore.risk.adjudicated import AdjudicatedRiskScorer
from tfscore.risk.models import RedFlag, RedFlagAssessment, RedFlagCategory, RiskLevel
from tfscore.risk.red_flags import detect_red_flags

__all__ = [
    "AdjudicatedRiskScorer",
    "RedFlag",
    "RedFlagAssessment",
    "RedFlagCategory",
    "RiskLevel",
    "detect_red_flags",
]
