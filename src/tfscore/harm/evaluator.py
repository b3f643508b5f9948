"""Environmental-harm evaluator.

Scores the six objectives with an adjudicated strategy when one is
configured, falling back to keyword rules when adjudication fails or is
under-confident. Whichever strategy runs, its output passes through the same
assembly step:
1. Non-remediable activity signatures force the matching objectives to the
   incompatible variant (score 0, significant harm, no recommendation)
2. Sector weights produce the normalized 0-100 score
3. Overall status is derived; an incompatible assessment is non_compliant
   and carries no recommendations
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from tfscore.harm.models import (
    ALL_OBJECTIVES,
    MAX_LIST_ITEMS,
    MAX_OBJECTIVE_SCORE,
    OBJECTIVE_NAMES,
    AssessedObjective,
    EnvironmentalAssessment,
    HarmObjective,
    HarmOverallStatus,
    HarmStatus,
    IncompatibleObjective,
)
from tfscore.harm.rules import (
    RuleOutcome,
    detect_incompatibility,
    evaluate_objective_rules,
    harm_evidence_text,
)
from tfscore.harm.weights import normalized_score
from tfscore.llm.client import AdjudicationError, LLMClient
from tfscore.llm.parsing import (
    build_prompt,
    parse_json_object,
    require_finite,
    require_number,
)
from tfscore.models.common import (
    FALLBACK_CONFIDENCE,
    MIN_CONFIDENCE_THRESHOLD,
    EvaluationSource,
)
from tfscore.models.project import ProjectRecord

logger = logging.getLogger(__name__)

COMPLIANT_THRESHOLD = 75
DOCUMENT_CHAR_LIMIT = 10_000
UNREPORTED_OBJECTIVE_SCORE = 2

HARM_RUBRIC = """You are an expert in EU Taxonomy DNSH (Do No Significant Harm) assessment.

## Legal Basis: EU Taxonomy Regulation 2020/852, Article 17

An economic activity causes SIGNIFICANT HARM to:
1. CLIMATE CHANGE MITIGATION if it leads to significant greenhouse gas emissions
2. CLIMATE CHANGE ADAPTATION if it increases the adverse impact of current or expected climate
3. WATER AND MARINE RESOURCES if it is detrimental to the good status of water bodies
4. CIRCULAR ECONOMY if it leads to significant inefficiencies in materials use
5. POLLUTION PREVENTION if it significantly increases emissions to air, water or land
6. BIODIVERSITY AND ECOSYSTEMS if it is significantly harmful to ecosystems

## Distinguish FIXABLE gaps from FUNDAMENTAL incompatibility

FUNDAMENTALLY INCOMPATIBLE (no workaround): fossil fuel extraction or expansion,
deforestation or primary forest clearing, substantial net emission increases,
development in protected areas without legal exception, coal power or coal mining.
For these give NO recommendation.

FIXABLE GAPS (recommend actions): missing environmental assessments, inadequate
water management, missing adaptation planning, insufficient pollution controls,
unassessed biodiversity impact.

## Scoring Guide (per objective, 0-4)
4 = No harm, 3 = Minimal risk, 2 = Potential harm, 1 = Likely harm, 0 = Significant harm
Objective ids: climate_mitigation, climate_adaptation, water_resources, circular_economy,
pollution_prevention, biodiversity

Return JSON:
{
  "confidence": <0-100>,
  "criteria": [
    {
      "objective": "<objective id>",
      "status": "no_harm|potential_harm|significant_harm|not_assessed",
      "score": <0-4>,
      "evidence": "<max 40 words>",
      "concern": "<max 25 words or null>",
      "isFundamentallyIncompatible": true|false,
      "recommendation": "<actionable recommendation, or null if incompatible>"
    }
  ],
  "isFundamentallyIncompatible": true|false,
  "incompatibilityReason": "<one sentence or null>",
  "summary": "<one sentence>",
  "keyRisks": ["<top 2-3 risks>"],
  "recommendations": ["<fixable issues only; empty if incompatible>"]
}"""


class HarmStrategy(Protocol):
    """A way of producing an environmental-harm assessment."""

    def evaluate(self, project: ProjectRecord, document_text: str) -> EnvironmentalAssessment:
        """Assess the project against all six objectives."""
        ...


def assemble_assessment(
    project: ProjectRecord,
    outcomes: Sequence[RuleOutcome],
    evidence_text: str,
    *,
    confidence: float,
    source: EvaluationSource,
    flagged_objectives: frozenset[HarmObjective] = frozenset(),
    flagged_overall: bool = False,
    incompatibility_reason: str | None = None,
    summary: str | None = None,
    key_risks: Sequence[str] | None = None,
    recommendations: Sequence[str] | None = None,
) -> EnvironmentalAssessment:
    """Turn per-objective outcomes into a complete assessment.

    Args:
        project: Project record (sector selects weights).
        outcomes: One outcome per objective.
        evidence_text: Lowercased text scanned for incompatibility signatures.
        confidence: Confidence of the producing strategy.
        source: Producing strategy.
        flagged_objectives: Objectives the adjudicator marked incompatible.
        flagged_overall: Adjudicator marked the whole activity incompatible.
        incompatibility_reason: Adjudicator-supplied reason.
        summary: Strategy summary; derived from the outcome when omitted.
        key_risks: Strategy key risks; derived from concerns when omitted.
        recommendations: Strategy recommendations; derived from objectives when omitted.

    Returns:
        Validated EnvironmentalAssessment.
    """
    hits = detect_incompatibility(evidence_text)
    forced: dict[HarmObjective, tuple[str, str]] = {}
    for hit in hits:
        forced.setdefault(hit.objective, (hit.evidence, hit.concern))

    results: list[AssessedObjective | IncompatibleObjective] = []
    for outcome in outcomes:
        name = OBJECTIVE_NAMES[outcome.objective]
        if outcome.objective in forced:
            evidence, concern = forced[outcome.objective]
            results.append(
                IncompatibleObjective(
                    objective=outcome.objective,
                    objective_name=name,
                    evidence=evidence,
                    concern=concern,
                )
            )
        elif outcome.objective in flagged_objectives:
            results.append(
                IncompatibleObjective(
                    objective=outcome.objective,
                    objective_name=name,
                    evidence=outcome.evidence,
                    concern=outcome.concern,
                )
            )
        else:
            results.append(
                AssessedObjective(
                    objective=outcome.objective,
                    objective_name=name,
                    status=outcome.status,
                    score=outcome.score,
                    evidence=outcome.evidence,
                    concern=outcome.concern,
                    recommendation=outcome.recommendation,
                )
            )

    any_incompatible = any(r.is_fundamentally_incompatible for r in results)
    incompatible = any_incompatible or flagged_overall
    if incompatible:
        reason = incompatibility_reason or (
            hits[0].reason
            if hits
            else "Activity is fundamentally incompatible with do-no-significant-harm objectives."
        )
    else:
        reason = None

    total = sum(r.score for r in results)
    normalized = normalized_score(results, project.sector)
    has_significant = any(r.status == HarmStatus.SIGNIFICANT_HARM for r in results)
    has_potential = any(r.status == HarmStatus.POTENTIAL_HARM for r in results)

    if incompatible or has_significant:
        status = HarmOverallStatus.NON_COMPLIANT
    elif has_potential or normalized < COMPLIANT_THRESHOLD:
        status = HarmOverallStatus.PARTIAL
    else:
        status = HarmOverallStatus.COMPLIANT

    if summary is None:
        if incompatible:
            summary = (
                "Project type is fundamentally incompatible with "
                "do-no-significant-harm requirements."
            )
        elif has_significant:
            summary = "Significant environmental harm detected - requires major remediation."
        elif has_potential:
            summary = "Potential harm identified - improvements recommended for compliance."
        else:
            summary = "No significant harm detected - project appears compliant."

    if key_risks is None:
        key_risks = [r.concern for r in results if r.concern]

    if incompatible:
        final_recommendations: list[str] = []
    elif recommendations is None:
        final_recommendations = [r.recommendation for r in results if r.recommendation]
    else:
        final_recommendations = [str(r) for r in recommendations if r]

    return EnvironmentalAssessment(
        objectives=results,
        total_score=total,
        normalized_score=normalized,
        overall_status=status,
        is_fundamentally_incompatible=incompatible,
        incompatibility_reason=reason,
        summary=summary,
        key_risks=[str(r) for r in key_risks][:MAX_LIST_ITEMS],
        recommendations=final_recommendations[:MAX_LIST_ITEMS],
        confidence=confidence,
        source=source,
    )


class RuleBasedHarmStrategy:
    """Deterministic keyword rules. Always reports confidence 50."""

    def evaluate(self, project: ProjectRecord, document_text: str) -> EnvironmentalAssessment:
        text = harm_evidence_text(project, document_text)
        outcomes = evaluate_objective_rules(project, text)
        return assemble_assessment(
            project,
            outcomes,
            text,
            confidence=FALLBACK_CONFIDENCE,
            source=EvaluationSource.KEYWORD_FALLBACK,
        )


def _build_harm_payload(project: ProjectRecord, document_text: str) -> dict[str, Any]:
    return {
        "project": {
            "name": project.project_name,
            "country": project.country,
            "sector": project.sector.value,
            "type": project.project_type or "Not specified",
            "description": project.description,
            "transition_strategy": project.transition_strategy or "Not provided",
        },
        "emissions": {
            "baseline_tco2e": project.baseline_total(),
            "target_tco2e": project.target_total(),
            "target_year": project.target_year,
        },
        "document_text": document_text[:DOCUMENT_CHAR_LIMIT],
    }


def _parse_status(value: Any) -> HarmStatus:
    try:
        return HarmStatus(str(value))
    except ValueError:
        return HarmStatus.NOT_ASSESSED


def _parse_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, min(MAX_OBJECTIVE_SCORE, round(require_finite(value, "score"))))


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class AdjudicatedHarmStrategy:
    """Harm assessment delegated to the adjudicator.

    Fail-closed: a malformed response raises AdjudicationError so the
    evaluator can fall back. Unknown objectives are ignored and missing
    objectives are filled as not_assessed.
    """

    def __init__(self, llm_client: LLMClient) -> None:
        self._llm_client = llm_client

    def evaluate(self, project: ProjectRecord, document_text: str) -> EnvironmentalAssessment:
        """Assess the project via the adjudicator.

        Raises:
            AdjudicationError: If the call fails or the response shape is invalid.
        """
        prompt = build_prompt(HARM_RUBRIC, _build_harm_payload(project, document_text))
        data = parse_json_object(self._llm_client.call(prompt, json_mode=True))

        confidence = max(0.0, min(100.0, require_number(data, "confidence")))
        criteria = data.get("criteria")
        if not isinstance(criteria, list):
            raise AdjudicationError("Adjudicator response missing 'criteria' array")

        by_objective: dict[HarmObjective, RuleOutcome] = {}
        flagged: set[HarmObjective] = set()
        for item in criteria:
            if not isinstance(item, dict):
                continue
            try:
                objective = HarmObjective(str(item.get("objective")))
            except ValueError:
                logger.debug("Ignoring unknown objective %r", item.get("objective"))
                continue
            if objective in by_objective:
                continue
            is_incompatible = bool(item.get("isFundamentallyIncompatible", False))
            if is_incompatible:
                flagged.add(objective)
            by_objective[objective] = RuleOutcome(
                objective=objective,
                status=_parse_status(item.get("status")),
                score=_parse_score(item.get("score")),
                evidence=str(item.get("evidence") or ""),
                concern=_optional_text(item.get("concern")),
                recommendation=(
                    None if is_incompatible else _optional_text(item.get("recommendation"))
                ),
            )

        outcomes = [
            by_objective.get(
                objective,
                RuleOutcome(
                    objective=objective,
                    status=HarmStatus.NOT_ASSESSED,
                    score=UNREPORTED_OBJECTIVE_SCORE,
                    evidence="Not reported by adjudicator",
                ),
            )
            for objective in ALL_OBJECTIVES
        ]

        key_risks = data.get("keyRisks")
        recommendations = data.get("recommendations")
        return assemble_assessment(
            project,
            outcomes,
            harm_evidence_text(project, document_text),
            confidence=confidence,
            source=EvaluationSource.ADJUDICATED,
            flagged_objectives=frozenset(flagged),
            flagged_overall=bool(data.get("isFundamentallyIncompatible", False)),
            incompatibility_reason=_optional_text(data.get("incompatibilityReason")),
            summary=_optional_text(data.get("summary")),
            key_risks=key_risks if isinstance(key_risks, list) else None,
            recommendations=recommendations if isinstance(recommendations, list) else None,
        )


class EnvironmentalHarmEvaluator:
    """Confidence-gated dispatcher over the harm strategies."""

    def __init__(
        self,
        *,
        adjudicated: HarmStrategy | None = None,
        fallback: HarmStrategy | None = None,
        min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._adjudicated = adjudicated
        self._fallback = fallback or RuleBasedHarmStrategy()
        self._min_confidence = min_confidence

    def evaluate(self, project: ProjectRecord, document_text: str) -> EnvironmentalAssessment:
        """Assess the project, falling back to rules when adjudication is unusable.

        Args:
            project: Project record.
            document_text: Raw document text (may be empty).

        Returns:
            EnvironmentalAssessment from the kept strategy.
        """
        if self._adjudicated is not None:
            try:
                result = self._adjudicated.evaluate(project, document_text)
            except (AdjudicationError, ValidationError) as exc:
                logger.warning("Harm adjudication unavailable, using rules: %s", exc)
            except Exception:
                logger.exception("Unexpected harm adjudication error, using rules")
            else:
                if result.confidence >= self._min_confidence:
                    return result
                logger.info(
                    "Harm adjudication confidence %.0f below %.0f, using rules",
                    result.confidence,
                    self._min_confidence,
                )
        return self._fallback.evaluate(project, document_text)
