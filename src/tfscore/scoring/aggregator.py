"""Score aggregation and eligibility classification.

final = max(0, base - penalty), where

    base    = sum of the five component scores (0-100)
    penalty = 0.5 * ai_risk + 0.3 * rule_risk + 0.2 * environmental_step

A missing risk signal contributes zero. The environmental step maps the
normalized harm score (higher = less harm) to a 0-25 penalty.
"""

from __future__ import annotations

from collections.abc import Sequence

from tfscore.scoring.models import (
    COMPONENT_MAX_SCORE,
    ComponentEvaluation,
    EligibilityStatus,
    PenaltyBreakdown,
    RiskSignals,
)

AI_RISK_WEIGHT = 0.5
RULE_RISK_WEIGHT = 0.3
ENVIRONMENTAL_WEIGHT = 0.2

ELIGIBLE_THRESHOLD = 60.0
PARTIAL_THRESHOLD = 30.0

STRONG_RATIO = 0.7
WEAK_RATIO = 0.5

# (minimum normalized score, step penalty), checked in order
ENVIRONMENTAL_STEPS: tuple[tuple[float, float], ...] = (
    (83.0, 0.0),
    (70.0, 5.0),
    (50.0, 10.0),
    (25.0, 18.0),
)
ENVIRONMENTAL_FLOOR_PENALTY = 25.0


def environmental_step_penalty(normalized_score: float | None) -> float:
    """Map a normalized harm score to its step penalty (0 when missing)."""
    if normalized_score is None:
        return 0.0
    for minimum, penalty in ENVIRONMENTAL_STEPS:
        if normalized_score >= minimum:
            return penalty
    return ENVIRONMENTAL_FLOOR_PENALTY


def compute_penalty(signals: RiskSignals) -> PenaltyBreakdown:
    """Blend the risk signals into one penalty, rounded to 2 decimals."""
    step = environmental_step_penalty(signals.environmental_score)
    ai = AI_RISK_WEIGHT * (signals.ai_risk_score or 0.0)
    rule = RULE_RISK_WEIGHT * (signals.rule_risk_score or 0.0)
    env = ENVIRONMENTAL_WEIGHT * step
    return PenaltyBreakdown(
        ai_component=round(ai, 2),
        rule_component=round(rule, 2),
        environmental_component=round(env, 2),
        environmental_step_penalty=step,
        total=round(ai + rule + env, 2),
    )


def compute_base_score(components: Sequence[ComponentEvaluation]) -> int:
    """Sum of the five component scores (0-100)."""
    return sum(c.score for c in components)


def compute_final_score(base_score: float, penalty: PenaltyBreakdown) -> float:
    """Base score less the blended penalty, floored at 0 and rounded to 2 decimals."""
    return round(max(0.0, base_score - penalty.total), 2)


def determine_eligibility(
    final_score: float,
    components: Sequence[ComponentEvaluation],
) -> EligibilityStatus:
    """Classify the final score.

    A component scoring exactly zero blocks eligibility regardless of the
    total; such a project is at best partial.
    """
    has_zero_component = any(c.score == 0 for c in components)
    if final_score >= ELIGIBLE_THRESHOLD and not has_zero_component:
        return EligibilityStatus.ELIGIBLE
    if final_score >= PARTIAL_THRESHOLD:
        return EligibilityStatus.PARTIAL
    return EligibilityStatus.INELIGIBLE


def _format_score(value: float) -> str:
    return f"{value:g}"


def build_overall_reasoning(
    components: Sequence[ComponentEvaluation],
    base_score: int,
    penalty: PenaltyBreakdown,
    final_score: float,
    eligibility: EligibilityStatus,
    failed_units: Sequence[str] = (),
) -> str:
    """Derive the human-readable rationale from the scores."""
    strong_floor = COMPONENT_MAX_SCORE * STRONG_RATIO
    weak_ceiling = COMPONENT_MAX_SCORE * WEAK_RATIO
    strong = [c.component_name for c in components if c.score >= strong_floor]
    weak = [c.component_name for c in components if c.score < weak_ceiling]

    parts = [
        f"Total score: {_format_score(final_score)}/100 ({eligibility.value.upper()}).",
        f"Base {base_score} less penalty {_format_score(penalty.total)}.",
    ]
    if strong:
        parts.append(f"Strong areas: {', '.join(strong)}.")
    if weak:
        parts.append(f"Areas needing improvement: {', '.join(weak)}.")
    if failed_units:
        parts.append(f"Units that failed and were scored as missing: {', '.join(failed_units)}.")
    return " ".join(parts)
