"""Adjudicated greenwashing-risk signal.

Asks the adjudicator to rate the credibility of the project's transition
claims across four areas (claim credibility, document consistency,
commitment strength, verification adequacy), 25 points each. The signal
handed to the aggregator is risk = 100 - credibility.

The signal is optional: any failure, a malformed response, low confidence,
or too little document text yields None, and the aggregator treats the
missing signal as contributing zero.
"""

from __future__ import annotations

import logging
from typing import Any

from tfscore.llm.client import AdjudicationError, LLMClient
from tfscore.llm.parsing import build_prompt, parse_json_object, require_number
from tfscore.models.common import MIN_CONFIDENCE_THRESHOLD
from tfscore.models.project import ProjectRecord

logger = logging.getLogger(__name__)

MIN_DOCUMENT_CHARS = 100
DOCUMENT_CHAR_LIMIT = 10_000

CREDIBILITY_RUBRIC = """You are an expert greenwashing analyst reviewing a transition finance
proposal.
Reference standards: SBTi (about 4.2% annual reduction for 1.5C), ICMA Green Bond Principles,
EU Taxonomy (Regulation 2020/852), TCFD recommendations.

This may be a DRAFT proposal. Commitment language with specific numbers and dates
("will reduce emissions 42% by 2030") is appropriate and credible. Flag only truly
unrealistic claims (99% cuts, guaranteed outcomes, zero risk) or vague language with
no numbers and no dates.

Score credibility out of 100, 25 points per area:
1. Claim credibility: realistic reduction targets, feasible timeline, coherent costs
2. Document consistency: numbers agree, narrative coherent, baseline has a methodology
3. Commitment strength: specific targets, named accountability, measurable KPIs
4. Verification adequacy: independent verification, reporting cadence, assurance scope

Return JSON:
{
  "credibilityScore": <0-100, higher = more credible>,
  "confidence": <0-100>,
  "components": {
    "claimCredibility": <0-25>,
    "documentConsistency": <0-25>,
    "commitmentStrength": <0-25>,
    "verificationAdequacy": <0-25>
  },
  "topConcerns": ["<max 15 words each>"],
  "summary": "<one sentence>"
}"""


def _build_payload(project: ProjectRecord, document_text: str) -> dict[str, Any]:
    return {
        "project": {
            "name": project.project_name,
            "sector": project.sector.value,
            "description": project.description,
            "transition_strategy": project.transition_strategy,
            "target_year": project.target_year,
            "baseline_tco2e": project.baseline_total(),
            "target_tco2e": project.target_total(),
            "total_cost": project.total_cost,
            "has_published_plan": project.has_published_plan,
            "third_party_verification": project.third_party_verification,
        },
        "document_text": document_text[:DOCUMENT_CHAR_LIMIT],
    }


class AdjudicatedRiskScorer:
    """Produces the optional adjudicated risk signal (0-100, higher = riskier)."""

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._llm_client = llm_client
        self._min_confidence = min_confidence

    def score(self, project: ProjectRecord, document_text: str) -> float | None:
        """Return the adjudicated risk score, or None when unavailable.

        Args:
            project: Project record.
            document_text: Raw document text.

        Returns:
            Risk 0-100, or None if the signal should be treated as missing.
        """
        if len(document_text.strip()) < MIN_DOCUMENT_CHARS:
            logger.info("Document too short for adjudicated risk; signal omitted")
            return None

        prompt = build_prompt(CREDIBILITY_RUBRIC, _build_payload(project, document_text))
        try:
            data = parse_json_object(self._llm_client.call(prompt, json_mode=True))
            credibility = require_number(data, "credibilityScore")
            confidence = require_number(data, "confidence")
        except AdjudicationError as exc:
            logger.warning("Adjudicated risk unavailable: %s", exc)
            return None

        if confidence < self._min_confidence:
            logger.info(
                "Adjudicated risk confidence %.0f below %.0f; signal omitted",
                confidence,
                self._min_confidence,
            )
            return None

        credibility = max(0.0, min(100.0, credibility))
        return round(100.0 - credibility, 2)
