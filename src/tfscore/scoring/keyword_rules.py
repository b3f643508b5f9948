"""Deterministic keyword strategy for component evaluation.

Every criterion awards its full points when any indicator is present in
the evidence text (excerpt + description + transition plan, lowercased)
and a fixed lower award otherwise. Results always carry confidence 50.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from tfscore.models.common import FALLBACK_CONFIDENCE, EvaluationSource
from tfscore.models.inputs import ExtractedFields
from tfscore.scoring.frameworks import get_framework
from tfscore.scoring.models import (
    MAX_IMPROVEMENTS,
    ComponentEvaluation,
    ComponentRequest,
    ComponentType,
    build_finding,
    component_score,
)

logger = logging.getLogger(__name__)

_PERCENT_RE = re.compile(r"\d+%")
_FOSSIL_TERMS: tuple[str, ...] = ("coal", "oil", "gas", "fossil")
_CONTINGENCY_RESTRICTIONS: tuple[str, ...] = (
    "restricted to eligible",
    "restricted to transition",
    "restricted to green",
    "not be used for carbon",
    "not be used for fossil",
    "zero carbon lock-in",
    "will not be deployed for carbon",
)

Matcher = Callable[[str, ExtractedFields], bool]


@dataclass(frozen=True)
class KeywordRule:
    """Indicator rule for one criterion."""

    criterion: str
    matcher: Matcher
    fallback_points: int
    met_reasoning: str
    unmet_reasoning: str
    improvement: str
    met_evidence: str = ""


def _any_term(*terms: str) -> Matcher:
    def match(text: str, _fields: ExtractedFields) -> bool:
        return any(term in text for term in terms)

    return match


def _has_plan(text: str, fields: ExtractedFields) -> bool:
    return bool(fields.transition_plan) or "transition plan" in text or "climate strategy" in text


def _has_verification(text: str, fields: ExtractedFields) -> bool:
    if fields.verification_status:
        return True
    return any(t in text for t in ("verif", "audit", "third party", "independent"))


def _has_quantified_reduction(text: str, fields: ExtractedFields) -> bool:
    return (
        bool(fields.stated_reduction_percent)
        or bool(fields.total_target_emissions)
        or bool(_PERCENT_RE.search(text))
        or "reduction" in text
    )


def _mentions_fossil(text: str) -> bool:
    for term in _FOSSIL_TERMS:
        negated = f"not {term}" in text or f"no {term}" in text
        if re.search(rf"\b{term}\b", text) and not negated:
            return True
    return False


def _contingency_restricted(text: str) -> bool:
    return "contingency" in text and any(p in text for p in _CONTINGENCY_RESTRICTIONS)


def _no_lock_in(text: str, _fields: ExtractedFields) -> bool:
    return not _mentions_fossil(text) or _contingency_restricted(text)


KEYWORD_RULES: dict[ComponentType, tuple[KeywordRule, ...]] = {
    ComponentType.STRATEGY: (
        KeywordRule(
            "Published transition plan",
            _has_plan,
            0,
            "Document references transition plan",
            "No published transition plan found",
            "Publish a board-approved transition strategy document",
            met_evidence="Transition plan reference found",
        ),
        KeywordRule(
            "Paris Agreement alignment",
            _any_term("paris", "1.5", "ndc", "sbti"),
            0,
            "References Paris Agreement or 1.5C target",
            "No Paris alignment keywords found",
            "Align targets with Paris Agreement 1.5C pathway",
            met_evidence="Paris/1.5C reference found",
        ),
        KeywordRule(
            "Economy-wide coverage",
            _any_term("company-wide", "organization", "entity-level", "corporate"),
            2,
            "References entity-wide scope",
            "Scope unclear - may be project-level only",
            "Clarify that strategy covers entire organization",
        ),
        KeywordRule(
            "Third-party verification",
            _has_verification,
            0,
            "Third-party verification mentioned",
            "No verification mentioned",
            "Engage an independent verifier",
            met_evidence="Verification reference found",
        ),
    ),
    ComponentType.PROCEEDS: (
        KeywordRule(
            "Eligible transition activities",
            _any_term(
                "renewable",
                "solar",
                "wind",
                "efficiency",
                "clean",
                "green",
                "transition",
                "decarbonization",
            ),
            2,
            "Proceeds support transition activities",
            "Unclear use of proceeds",
            "Clearly define eligible transition activities",
            met_evidence="Clean/transition terms found",
        ),
        KeywordRule(
            "Quantifiable emissions reductions",
            _has_quantified_reduction,
            0,
            "Emissions reductions quantified",
            "No quantified emissions reductions",
            "Quantify expected emissions reductions with specific targets",
            met_evidence="Quantified reduction reference found",
        ),
        KeywordRule(
            "No carbon lock-in",
            _no_lock_in,
            2,
            "No carbon lock-in risk detected",
            "Potential lock-in risk - clarify contingency fund usage",
            "Add explicit restriction on contingency fund usage",
        ),
    ),
    ComponentType.SELECTION: (
        KeywordRule(
            "Clear selection criteria",
            _any_term("criteria", "selection", "eligib"),
            3,
            "Selection criteria referenced",
            "Selection criteria unclear",
            "Define explicit project selection criteria",
        ),
        KeywordRule(
            "Sectoral decarbonization alignment",
            _any_term("sector", "pathway", "iea", "industry"),
            3,
            "Sectoral pathway reference found",
            "No sectoral pathway alignment",
            "Reference a sectoral decarbonization pathway (IEA, SBTi)",
        ),
        KeywordRule(
            "Governance structure",
            _any_term("governance", "committee", "board", "approval"),
            2,
            "Governance structure referenced",
            "Governance structure unclear",
            "Define governance structure for project selection",
        ),
    ),
    ComponentType.MANAGEMENT: (
        KeywordRule(
            "Dedicated tracking system",
            _any_term("account", "tracking", "segregat", "dedicat"),
            3,
            "Dedicated tracking/account mentioned",
            "No dedicated tracking system described",
            "Establish dedicated account or tracking system for proceeds",
        ),
        KeywordRule(
            "Unallocated proceeds process",
            _any_term("unallocated", "temporary", "treasury", "hold"),
            3,
            "Unallocated proceeds process mentioned",
            "No process for unallocated proceeds",
            "Define process for managing unallocated proceeds",
        ),
    ),
    ComponentType.REPORTING: (
        KeywordRule(
            "Annual reporting commitment",
            _any_term("annual", "yearly", "report"),
            2,
            "Reporting commitment mentioned",
            "No annual reporting commitment",
            "Commit to annual reporting on use of proceeds",
        ),
        KeywordRule(
            "Emissions impact reporting",
            _any_term("emission", "ghg", "carbon", "impact"),
            2,
            "Emissions reporting mentioned",
            "No emissions impact reporting",
            "Plan to report on emissions impacts",
        ),
        KeywordRule(
            "External verification",
            _any_term("external", "third party", "verif", "audit"),
            0,
            "External verification mentioned",
            "No external verification planned",
            "Plan external verification of reports",
        ),
    ),
}


class KeywordComponentStrategy:
    """Deterministic component evaluation. Never raises for well-formed requests."""

    def evaluate(self, request: ComponentRequest) -> ComponentEvaluation:
        """Evaluate a component with keyword rules.

        Args:
            request: Component request.

        Returns:
            ComponentEvaluation with source keyword_fallback and confidence 50.
        """
        framework = get_framework(request.component)
        text = request.evidence_text()

        findings = []
        improvements: list[str] = []
        for rule in KEYWORD_RULES[request.component]:
            definition = framework.criterion(rule.criterion)
            met = rule.matcher(text, request.extracted)
            if not met:
                improvements.append(rule.improvement)
            findings.append(
                build_finding(
                    definition.name,
                    definition.max_points,
                    definition.max_points if met else rule.fallback_points,
                    evidence=rule.met_evidence if met else "",
                    reasoning=rule.met_reasoning if met else rule.unmet_reasoning,
                )
            )

        score = component_score(findings)
        logger.debug("Keyword evaluation for %s: %d/20", request.component.value, score)
        return ComponentEvaluation(
            component=request.component,
            component_name=framework.name,
            score=score,
            confidence=FALLBACK_CONFIDENCE,
            source=EvaluationSource.KEYWORD_FALLBACK,
            sub_scores=findings,
            overall_reasoning=f"Keyword-based evaluation (adjudicator fallback): Score {score}/20",
            improvements=improvements[:MAX_IMPROVEMENTS],
            key_quotes=[],
        )
