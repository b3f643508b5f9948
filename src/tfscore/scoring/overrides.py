"""Explicit-compliance override layer.

A pure post-processing pass applied to every component evaluation,
whichever strategy produced it. When an explicit compliance statement
appears in the evidence text, the matching sub-criterion is raised to its
boost value and marked met. The pass never lowers a score and applying it
twice gives the same result as applying it once.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from tfscore.scoring.models import (
    ComponentEvaluation,
    ComponentType,
    CriterionFinding,
    CriterionStatus,
    component_score,
)

logger = logging.getLogger(__name__)

BOOST_REASONING_PREFIX = "Explicit compliance statement found - "
BOOST_SUFFIX = " (compliance boost applied)"


class ComplianceOverride(BaseModel):
    """Trigger phrases that lift one criterion to its boost value."""

    model_config = ConfigDict(frozen=True)

    criterion: str
    phrases: tuple[str, ...]
    boost: int


COMPLIANCE_OVERRIDES: dict[ComponentType, tuple[ComplianceOverride, ...]] = {
    ComponentType.STRATEGY: (
        ComplianceOverride(
            criterion="Economy-wide coverage",
            phrases=(
                "entity-level transition strategy covers all operations",
                "organization-wide",
                "entire corporate entity",
            ),
            boost=5,
        ),
        ComplianceOverride(
            criterion="Third-party verification",
            phrases=(
                "third-party verification has been completed",
                "independent verifier confirming",
            ),
            boost=5,
        ),
    ),
    ComponentType.PROCEEDS: (
        ComplianceOverride(
            criterion="No carbon lock-in",
            phrases=(
                "contingency funds are strictly restricted",
                "contingency or reserve funds are strictly restricted",
                "zero carbon lock-in risk",
                "not be used for carbon-intensive",
                "not be used for fossil",
            ),
            boost=6,
        ),
    ),
    ComponentType.SELECTION: (
        ComplianceOverride(
            criterion="Clear selection criteria",
            phrases=(
                "formalized selection criteria framework",
                "explicit metrics and thresholds",
            ),
            boost=7,
        ),
        ComplianceOverride(
            criterion="Governance structure",
            phrases=(
                "dedicated project selection committee",
                "committee comprises senior management",
            ),
            boost=6,
        ),
    ),
    ComponentType.MANAGEMENT: (
        ComplianceOverride(
            criterion="Dedicated tracking system",
            phrases=(
                "dedicated segregated bank account",
                "formal tracking system",
            ),
            boost=10,
        ),
        ComplianceOverride(
            criterion="Unallocated proceeds process",
            phrases=(
                "unallocated proceeds will be temporarily invested",
                "liquid, low-risk instruments",
            ),
            boost=10,
        ),
    ),
    ComponentType.REPORTING: (
        ComplianceOverride(
            criterion="External verification",
            phrases=(
                "external verification is conducted by accredited",
                "verification scope explicitly covers",
            ),
            boost=6,
        ),
    ),
}


def _boost_finding(
    finding: CriterionFinding,
    override: ComplianceOverride,
    text: str,
) -> CriterionFinding | None:
    """Return the boosted finding, or None when the override does not apply."""
    target = min(override.boost, finding.max_points)
    if finding.points >= target:
        return None
    if not any(phrase in text for phrase in override.phrases):
        return None
    reasoning = finding.reasoning
    if not reasoning.startswith(BOOST_REASONING_PREFIX):
        reasoning = f"{BOOST_REASONING_PREFIX}{reasoning}"
    return finding.model_copy(
        update={
            "points": target,
            "status": CriterionStatus.MET,
            "reasoning": reasoning,
        }
    )


def apply_compliance_overrides(
    evaluation: ComponentEvaluation,
    evidence_text: str,
) -> ComponentEvaluation:
    """Raise sub-criteria backed by explicit compliance statements.

    Args:
        evaluation: Component evaluation from any strategy.
        evidence_text: Evidence text; matched case-insensitively.

    Returns:
        The same evaluation when nothing applies, otherwise a new evaluation
        with boosted findings, a recomputed clamped score, and the boost
        suffix on the overall reasoning.
    """
    overrides = COMPLIANCE_OVERRIDES.get(evaluation.component, ())
    if not overrides:
        return evaluation

    text = evidence_text.lower()
    by_criterion = {o.criterion.lower(): o for o in overrides}

    boosted = False
    findings: list[CriterionFinding] = []
    for finding in evaluation.sub_scores:
        override = by_criterion.get(finding.criterion.strip().lower())
        replacement = _boost_finding(finding, override, text) if override else None
        if replacement is None:
            findings.append(finding)
            continue
        logger.info(
            "Compliance boost applied: %s %d -> %d",
            finding.criterion,
            finding.points,
            replacement.points,
        )
        findings.append(replacement)
        boosted = True

    if not boosted:
        return evaluation

    reasoning = evaluation.overall_reasoning
    if not reasoning.endswith(BOOST_SUFFIX):
        reasoning = f"{reasoning}{BOOST_SUFFIX}"
    return evaluation.model_copy(
        update={
            "sub_scores": findings,
            "score": component_score(findings),
            "overall_reasoning": reasoning,
        }
    )
