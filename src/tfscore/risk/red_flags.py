"""Rule-based red-flag detection.

Each rule inspects the project record (and the raw document text when one
was captured) and either triggers or not. The aggregate risk score is:

    risk = sum(severity weight of each flag) - 10 * positive indicators

clamped to [0, 100], where high = 25, medium = 15, low = 5.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from tfscore.models.project import ProjectRecord, Sector
from tfscore.risk.models import (
    RedFlag,
    RedFlagAssessment,
    RedFlagCategory,
    RiskLevel,
)

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS: dict[RiskLevel, int] = {
    RiskLevel.HIGH: 25,
    RiskLevel.MEDIUM: 15,
    RiskLevel.LOW: 5,
}
POSITIVE_INDICATOR_CREDIT = 10
HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40

SCOPE3_MATERIAL_SECTORS = frozenset({Sector.MANUFACTURING, Sector.AGRICULTURE, Sector.MINING})

_VERIFICATION_STATEMENTS: tuple[str, ...] = (
    "third-party verification has been completed",
    "third party verification has been completed",
    "independent verifier confirming",
    "verified by dnv",
    "verified by kpmg",
    "verified by ey",
    "verified by deloitte",
)
_YEAR_RE = re.compile(r"\b20\d{2}\b")
_EXAGGERATED_REDUCTION_RE = re.compile(r"\b(99|100)\s*%\s*(reduction|decrease|cut)")


@dataclass(frozen=True)
class _Facts:
    """Lowercased text views computed once per project."""

    project: ProjectRecord
    description: str
    strategy: str
    project_type: str
    document: str
    reference_year: int

    @property
    def narrative(self) -> str:
        return f"{self.description} {self.strategy}"


@dataclass(frozen=True)
class RedFlagRule:
    """A single red-flag rule."""

    flag_id: str
    category: RedFlagCategory
    severity: RiskLevel
    check: Callable[[_Facts], bool]
    description: str
    recommendation: str


def _has_verification_statement(text: str) -> bool:
    if any(statement in text for statement in _VERIFICATION_STATEMENTS):
        return True
    if "spo" in text and "completed" in text:
        return True
    return "second party opinion" in text and "obtained" in text


def _operational_reduction_percent(project: ProjectRecord) -> float | None:
    current = project.current_emissions.operational_total()
    if current <= 0:
        return None
    target = project.target_emissions.operational_total()
    return (current - target) / current * 100.0


def _fossil_sector(f: _Facts) -> bool:
    text = f"{f.narrative} {f.project_type}"
    terms = (
        "oil drilling",
        "oil exploration",
        "oil production",
        "offshore drilling",
        "petroleum",
        "natural gas extraction",
        "coal mining",
        "coal power",
        "coal plant",
        "barrels per day",
        "fossil fuel expansion",
        "new oil wells",
        "gas field",
    )
    return any(term in text for term in terms)


def _coal_project(f: _Facts) -> bool:
    text = f"{f.description} {f.project_type}"
    return "coal" in text and any(t in text for t in ("power", "plant", "generation", "mining"))


def _exaggerated_claims(f: _Facts) -> bool:
    text = f.narrative
    if _EXAGGERATED_REDUCTION_RE.search(text):
        return True
    guaranteed = ("guaranteed return", "guaranteed profit", "guaranteed success", "risk-free")
    unrealistic = ("500%", "1000%", "unlimited return", "unlimited profit")
    return (
        any(t in text for t in guaranteed)
        or "zero cost" in text
        or "no cost" in text
        or any(t in text for t in unrealistic)
    )


def _proprietary_unverified(f: _Facts) -> bool:
    secret = (
        "secret formula",
        "secret method",
        "confidential methodology",
        "proprietary methodology",
        "proprietary calculation",
        "proprietary data",
    )
    if not any(t in f.narrative for t in secret):
        return False
    commitments = (
        "third-party verification",
        "independent auditor",
        "dnv",
        "kpmg",
        "annual verification",
        "second party opinion",
    )
    has_commitment = any(t in f.document for t in commitments)
    return not f.project.third_party_verification and not has_commitment


def _vague_description(f: _Facts) -> bool:
    return (
        len(f.project.description) < 50
        or "various" in f.description
        or "to be determined" in f.description
        or "tbd" in f.description
    )


def _missing_financials(f: _Facts) -> bool:
    p = f.project
    return p.total_cost == 0 or (p.debt_amount == 0 and p.equity_amount == 0)


def _vague_commitment(f: _Facts) -> bool:
    vague = ("aspire", "intend", "aim to", "explore", "consider", "may")
    return any(t in f.strategy for t in vague) and not _YEAR_RE.search(f.strategy)


def _no_timeline(f: _Facts) -> bool:
    return f.project.target_year == 0 or f.project.target_year > 2050


def _missing_scope3(f: _Facts) -> bool:
    scope3 = f.project.current_emissions.scope3
    return f.project.sector in SCOPE3_MATERIAL_SECTORS and not scope3


def _below_business_as_usual(f: _Facts) -> bool:
    reduction = _operational_reduction_percent(f.project)
    years = f.project.target_year - f.reference_year
    if reduction is None or years <= 0:
        return False
    return reduction / years < 2


def _weak_targets(f: _Facts) -> bool:
    reduction = _operational_reduction_percent(f.project)
    if reduction is None:
        return False
    return 0 < f.project.target_year <= 2030 and reduction < 25


def _no_verification(f: _Facts) -> bool:
    if f.project.third_party_verification:
        return False
    return not _has_verification_statement(f.document)


def _fossil_lock_in(f: _Facts) -> bool:
    terms = ("new coal", "coal expansion", "new diesel", "expand fossil", "new oil")
    return any(t in f.description for t in terms)


def _missing_baseline(f: _Facts) -> bool:
    current = f.project.current_emissions
    return current.scope1 == 0 and current.scope2 == 0


def _explicit_inconsistency(f: _Facts) -> bool:
    text = f.document
    negative = (
        "document contains inconsistenc",
        "document has inconsistenc",
        "found inconsistenc",
        "identified inconsistenc",
        "noted discrepanc",
        "contains discrepanc",
        "figures contradict",
        "numbers contradict",
        "data contradicts",
    )
    math_issue = (
        "mathematically impossible",
        "does not add up",
        "numbers do not match",
        "figures do not match",
    )
    preventive = (
        "ensure consistenc",
        "maintain consistenc",
        "address any inconsistenc",
        "resolve any inconsistenc",
        "prevent inconsistenc",
    )
    flagged = any(t in text for t in negative) or any(t in text for t in math_issue)
    return flagged and not any(t in text for t in preventive)


def _unrealistic_payback(f: _Facts) -> bool:
    text = f.document
    return (
        "payback" in text
        and "year" in text
        and ("impossible" in text or "unrealistic" in text)
    )


def _ownership_exceeds_100(f: _Facts) -> bool:
    text = f.document
    ownership = any(t in text for t in ("ownership", "equity", "stake", "shareholding"))
    return ownership and any(t in text for t in ("115%", "120%", "totals exceed 100"))


def _unverifiable_verification(f: _Facts) -> bool:
    text = f.document
    unverifiable = (
        "audit cannot be verified",
        "verification cannot be confirmed",
        "certification cannot be verified",
        "credentials cannot be verified",
        "auditor has no online presence",
        "verifier has no online presence",
        "no record of certification",
        "certification not found",
        "unverifiable audit",
        "unverifiable certification",
    )
    pending = (
        "verification will be",
        "verification to be",
        "audit will be",
        "certification pending",
    )
    return any(t in text for t in unverifiable) and not any(t in text for t in pending)


def _conflicting_numbers(f: _Facts) -> bool:
    conflicts = (
        "however, the document states",
        "however, it claims",
        "but states a different",
        "contradicts the stated",
        "does not match the stated",
        "inconsistent with stated",
        "differs from the claimed",
    )
    return any(t in f.document for t in conflicts)


RED_FLAG_RULES: tuple[RedFlagRule, ...] = (
    RedFlagRule(
        "fossil_sector",
        RedFlagCategory.TECHNOLOGY,
        RiskLevel.HIGH,
        _fossil_sector,
        "Project involves fossil fuel extraction/expansion - not eligible for transition finance",
        "Fossil fuel expansion projects cannot be financed under transition frameworks",
    ),
    RedFlagRule(
        "coal_project",
        RedFlagCategory.TECHNOLOGY,
        RiskLevel.HIGH,
        _coal_project,
        "Coal projects are explicitly excluded from all transition taxonomies",
        "Coal cannot be financed under any legitimate green/transition framework",
    ),
    RedFlagRule(
        "exaggerated_claims",
        RedFlagCategory.AMBITION,
        RiskLevel.HIGH,
        _exaggerated_claims,
        "Exaggerated or unrealistic claims detected - potential greenwashing",
        "Remove exaggerated claims and provide realistic, verifiable projections",
    ),
    RedFlagRule(
        "proprietary_unverified",
        RedFlagCategory.VERIFICATION,
        RiskLevel.HIGH,
        _proprietary_unverified,
        "Claims based on proprietary/secret methodology without independent verification",
        "Provide third-party verification for all technology and emissions claims",
    ),
    RedFlagRule(
        "vague_description",
        RedFlagCategory.COMMITMENT,
        RiskLevel.MEDIUM,
        _vague_description,
        "Project description is too vague or incomplete",
        "Provide detailed project description with specific activities and expected outcomes",
    ),
    RedFlagRule(
        "missing_financials",
        RedFlagCategory.COMMITMENT,
        RiskLevel.MEDIUM,
        _missing_financials,
        "Missing or incomplete financial information",
        "Provide detailed project costs and financing structure",
    ),
    RedFlagRule(
        "vague_commitment",
        RedFlagCategory.COMMITMENT,
        RiskLevel.HIGH,
        _vague_commitment,
        "Vague commitments without specific timelines",
        "Add specific, time-bound targets with measurable milestones",
    ),
    RedFlagRule(
        "no_timeline",
        RedFlagCategory.COMMITMENT,
        RiskLevel.MEDIUM,
        _no_timeline,
        "Missing or unreasonably distant target timeline",
        "Set target year aligned with Paris Agreement (2030 interim, 2050 net-zero)",
    ),
    RedFlagRule(
        "no_published_plan",
        RedFlagCategory.COMMITMENT,
        RiskLevel.HIGH,
        lambda f: not f.project.has_published_plan,
        "No published transition plan or strategy",
        "Publish entity-level transition strategy aligned with science-based pathways",
    ),
    RedFlagRule(
        "missing_scope3",
        RedFlagCategory.SCOPE,
        RiskLevel.HIGH,
        _missing_scope3,
        "Missing Scope 3 emissions for sector where they are likely material",
        "Conduct Scope 3 assessment - likely represents significant portion of footprint",
    ),
    RedFlagRule(
        "below_bau",
        RedFlagCategory.AMBITION,
        RiskLevel.HIGH,
        _below_business_as_usual,
        "Target trajectory appears below business-as-usual",
        "Increase ambition - current targets may be achieved through normal efficiency gains",
    ),
    RedFlagRule(
        "weak_targets",
        RedFlagCategory.AMBITION,
        RiskLevel.MEDIUM,
        _weak_targets,
        "Reduction target insufficient for 2030 milestone",
        "SBTi requires ~42% reduction by 2030 for 1.5C alignment",
    ),
    RedFlagRule(
        "no_verification",
        RedFlagCategory.VERIFICATION,
        RiskLevel.MEDIUM,
        _no_verification,
        "No third-party verification of transition claims",
        "Engage independent verifier (SBTi, second-party opinion, or assurance provider)",
    ),
    RedFlagRule(
        "fossil_lockin",
        RedFlagCategory.TECHNOLOGY,
        RiskLevel.HIGH,
        _fossil_lock_in,
        "Project may lock in carbon-intensive infrastructure",
        "Avoid investments in assets with >20 year life that lock in fossil fuels",
    ),
    RedFlagRule(
        "missing_baseline",
        RedFlagCategory.BASELINE,
        RiskLevel.HIGH,
        _missing_baseline,
        "No baseline emissions data provided",
        "Establish robust emissions baseline with third-party verification",
    ),
    RedFlagRule(
        "explicit_inconsistency",
        RedFlagCategory.VERIFICATION,
        RiskLevel.HIGH,
        _explicit_inconsistency,
        "Document contains explicit inconsistencies or contradictions",
        "Resolve all internal inconsistencies before submission",
    ),
    RedFlagRule(
        "unrealistic_payback",
        RedFlagCategory.COMMITMENT,
        RiskLevel.HIGH,
        _unrealistic_payback,
        "Financial projections appear unrealistic or impossible",
        "Provide realistic financial model with achievable repayment schedule",
    ),
    RedFlagRule(
        "ownership_exceeds_100",
        RedFlagCategory.VERIFICATION,
        RiskLevel.HIGH,
        _ownership_exceeds_100,
        "Ownership structure or allocations exceed 100%",
        "Correct ownership/allocation errors - fundamental data integrity issue",
    ),
    RedFlagRule(
        "unverifiable_verification",
        RedFlagCategory.VERIFICATION,
        RiskLevel.HIGH,
        _unverifiable_verification,
        "Claimed verification or certification cannot be verified",
        "Provide verifiable third-party credentials from recognized auditors",
    ),
    RedFlagRule(
        "conflicting_numbers",
        RedFlagCategory.BASELINE,
        RiskLevel.HIGH,
        _conflicting_numbers,
        "Conflicting emissions or reduction figures within document",
        "Ensure all emissions figures are consistent throughout the document",
    ),
)


POSITIVE_INDICATORS: tuple[tuple[str, Callable[[_Facts], bool]], ...] = (
    ("Published transition strategy exists", lambda f: f.project.has_published_plan),
    (
        "Third-party verification in place",
        lambda f: f.project.third_party_verification or _has_verification_statement(f.document),
    ),
    (
        "Aligned with science-based targets",
        lambda f: "sbti" in f.strategy or "science-based" in f.strategy,
    ),
    (
        "References Paris Agreement alignment",
        lambda f: "paris" in f.strategy or "1.5" in f.strategy,
    ),
    (
        "Ambitious reduction target (>42%)",
        lambda f: (_operational_reduction_percent(f.project) or 0.0) >= 42,
    ),
    (
        "Scope 3 emissions measured",
        lambda f: bool(f.project.current_emissions.scope3),
    ),
    (
        "Near-term target year (by 2030)",
        lambda f: 0 < f.project.target_year <= 2030,
    ),
)


def compute_risk_score(red_flags: list[RedFlag], positive_count: int) -> int:
    """Combine flag severities and positive indicators into a 0-100 risk score."""
    score = sum(SEVERITY_WEIGHTS[flag.severity] for flag in red_flags)
    score -= positive_count * POSITIVE_INDICATOR_CREDIT
    return max(0, min(100, score))


def resolve_risk_level(risk_score: int) -> RiskLevel:
    """Map a risk score to a level."""
    if risk_score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if risk_score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _recommendations(red_flags: list[RedFlag], overall: RiskLevel) -> list[str]:
    result = [f"[CRITICAL] {f.recommendation}" for f in red_flags if f.severity == RiskLevel.HIGH]
    medium = [f.recommendation for f in red_flags if f.severity == RiskLevel.MEDIUM]
    result.extend(medium[:3])
    if overall == RiskLevel.HIGH:
        result.append("Consider engaging a transition finance advisor before proceeding")
    elif overall == RiskLevel.MEDIUM:
        result.append("Address key concerns to strengthen transition credentials")
    return result


def detect_red_flags(
    project: ProjectRecord,
    *,
    reference_year: int | None = None,
) -> RedFlagAssessment:
    """Run every red-flag rule and positive indicator against a project.

    Args:
        project: Project record.
        reference_year: Year used for trajectory rules (default: current UTC year).

    Returns:
        RedFlagAssessment with the rule risk score.
    """
    facts = _Facts(
        project=project,
        description=project.description.lower(),
        strategy=project.transition_strategy.lower(),
        project_type=project.project_type.lower(),
        document=project.document_text().lower(),
        reference_year=reference_year or datetime.now(UTC).year,
    )

    red_flags = [
        RedFlag(
            flag_id=rule.flag_id,
            category=rule.category,
            severity=rule.severity,
            description=rule.description,
            recommendation=rule.recommendation,
        )
        for rule in RED_FLAG_RULES
        if rule.check(facts)
    ]
    positives = [label for label, check in POSITIVE_INDICATORS if check(facts)]

    risk_score = compute_risk_score(red_flags, len(positives))
    overall = resolve_risk_level(risk_score)
    logger.debug(
        "Red-flag scan for %s: %d flags, %d positives, risk %d",
        project.project_name,
        len(red_flags),
        len(positives),
        risk_score,
    )
    return RedFlagAssessment(
        risk_score=risk_score,
        overall_risk=overall,
        red_flags=red_flags,
        positive_indicators=positives,
        recommendations=_recommendations(red_flags, overall),
    )
