"""Component evaluation strategies and the confidence-gated dispatcher.

EvaluationStrategy: Protocol implemented by every component strategy.
AdjudicatedComponentStrategy: Delegates scoring to the adjudicator.
ConfidenceGatedEvaluator: Keeps the adjudicated result only when it is
usable, otherwise runs the keyword strategy, then applies compliance
overrides to whichever result was kept.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from tfscore.llm.client import AdjudicationError, LLMClient
from tfscore.llm.parsing import (
    build_prompt,
    parse_json_object,
    require_finite,
    require_number,
)
from tfscore.models.common import MIN_CONFIDENCE_THRESHOLD, EvaluationSource
from tfscore.scoring.frameworks import ComponentFramework, get_framework, render_rubric
from tfscore.scoring.keyword_rules import KeywordComponentStrategy
from tfscore.scoring.models import (
    MAX_IMPROVEMENTS,
    MAX_KEY_QUOTES,
    ComponentEvaluation,
    ComponentRequest,
    CriterionFinding,
    KeyQuote,
    build_finding,
    component_score,
)
from tfscore.scoring.overrides import apply_compliance_overrides

logger = logging.getLogger(__name__)


class EvaluationStrategy(Protocol):
    """A way of scoring one framework component."""

    def evaluate(self, request: ComponentRequest) -> ComponentEvaluation:
        """Score the component described by the request."""
        ...


def _build_component_payload(request: ComponentRequest) -> dict[str, Any]:
    return {
        "component": request.component.value,
        "document_excerpt": request.excerpt or "(no excerpt provided)",
        "extracted_fields": request.extracted.model_dump(mode="json"),
        "project_context": request.context.model_dump(mode="json"),
    }


def _points_value(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return require_finite(value, "points")


def _parse_findings(
    framework: ComponentFramework,
    sub_scores: list[Any],
) -> list[CriterionFinding]:
    """Match reported sub-scores to framework criteria, in framework order.

    Unknown criteria are ignored; criteria the adjudicator did not report
    score zero.
    """
    reported: dict[str, dict[str, Any]] = {}
    for item in sub_scores:
        if not isinstance(item, dict):
            continue
        name = str(item.get("criterion", "")).strip().lower()
        if name and name not in reported:
            reported[name] = item

    findings = []
    for definition in framework.criteria:
        item = reported.get(definition.name.lower())
        if item is None:
            findings.append(
                build_finding(
                    definition.name,
                    definition.max_points,
                    0,
                    reasoning="Not reported by adjudicator",
                )
            )
            continue
        findings.append(
            build_finding(
                definition.name,
                definition.max_points,
                _points_value(item.get("points")),
                evidence=str(item.get("evidence") or ""),
                reasoning=str(item.get("reasoning") or ""),
            )
        )
    return findings


def _parse_quotes(raw: Any) -> list[KeyQuote]:
    if not isinstance(raw, list):
        return []
    quotes = []
    for item in raw:
        if isinstance(item, dict) and item.get("quote"):
            quotes.append(
                KeyQuote(quote=str(item["quote"]), relevance=str(item.get("relevance") or ""))
            )
    return quotes[:MAX_KEY_QUOTES]


class AdjudicatedComponentStrategy:
    """Component scoring delegated to the adjudicator.

    Fail-closed: a failed call or malformed response raises
    AdjudicationError so the dispatcher can fall back.
    """

    def __init__(self, llm_client: LLMClient) -> None:
        self._llm_client = llm_client

    def evaluate(self, request: ComponentRequest) -> ComponentEvaluation:
        """Score one component via the adjudicator.

        Args:
            request: Component request.

        Returns:
            ComponentEvaluation with source adjudicated.

        Raises:
            AdjudicationError: If the call fails or the response shape is invalid.
        """
        framework = get_framework(request.component)
        prompt = build_prompt(render_rubric(framework), _build_component_payload(request))
        data = parse_json_object(self._llm_client.call(prompt, json_mode=True))

        confidence = max(0.0, min(100.0, require_number(data, "confidence")))
        sub_scores = data.get("subScores")
        if not isinstance(sub_scores, list):
            raise AdjudicationError("Adjudicator response missing 'subScores' array")

        findings = _parse_findings(framework, sub_scores)
        improvements = data.get("improvements")
        improvement_list = (
            [str(i) for i in improvements if i] if isinstance(improvements, list) else []
        )

        return ComponentEvaluation(
            component=request.component,
            component_name=framework.name,
            score=component_score(findings),
            confidence=confidence,
            source=EvaluationSource.ADJUDICATED,
            sub_scores=findings,
            overall_reasoning=str(data.get("overallReasoning") or ""),
            improvements=improvement_list[:MAX_IMPROVEMENTS],
            key_quotes=_parse_quotes(data.get("keyQuotes")),
        )


class ConfidenceGatedEvaluator:
    """Dispatcher over the component strategies.

    The adjudicated result is discarded entirely when the strategy raises
    or reports confidence below the threshold. Compliance overrides run on
    whichever result is kept.
    """

    def __init__(
        self,
        *,
        adjudicated: EvaluationStrategy | None = None,
        fallback: EvaluationStrategy | None = None,
        min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._adjudicated = adjudicated
        self._fallback = fallback or KeywordComponentStrategy()
        self._min_confidence = min_confidence

    def evaluate(self, request: ComponentRequest) -> ComponentEvaluation:
        """Evaluate one component.

        Args:
            request: Component request.

        Returns:
            Overridden ComponentEvaluation from the kept strategy.
        """
        evaluation = self._select(request)
        return apply_compliance_overrides(evaluation, request.evidence_text())

    def _select(self, request: ComponentRequest) -> ComponentEvaluation:
        if self._adjudicated is not None:
            try:
                result = self._adjudicated.evaluate(request)
            except (AdjudicationError, ValidationError) as exc:
                logger.warning(
                    "Adjudication failed for %s, using keyword rules: %s",
                    request.component.value,
                    exc,
                )
            except Exception:
                logger.exception(
                    "Unexpected adjudication error for %s, using keyword rules",
                    request.component.value,
                )
            else:
                if result.confidence >= self._min_confidence:
                    return result
                logger.info(
                    "Adjudication confidence %.0f below %.0f for %s, using keyword rules",
                    result.confidence,
                    self._min_confidence,
                    request.component.value,
                )
        return self._fallback.evaluate(request)
