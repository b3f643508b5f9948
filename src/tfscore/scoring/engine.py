"""Assessment engine: fan-out of the scoring units and aggregation of results.

Units run concurrently on a thread pool:
- the five framework components (each via ConfidenceGatedEvaluator)
- the environmental-harm evaluation
- the rule-based red-flag scan
- the adjudicated risk signal (skipped when the request supplies one)

A unit that raises unexpectedly does not abort the assessment. A failed
component is scored as missing, a failed harm unit yields no environmental
assessment, and a failed risk unit yields a missing signal. Each failure is
recorded in failed_units and emitted as an audit event.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ValidationError

from tfscore.audit.sink import AuditSink, AuditSinkError, InMemoryAuditSink, get_audit_sink
from tfscore.config import EngineSettings
from tfscore.harm.evaluator import AdjudicatedHarmStrategy, EnvironmentalHarmEvaluator
from tfscore.harm.models import EnvironmentalAssessment
from tfscore.llm.backend import build_adjudicator_client
from tfscore.llm.client import LLMClient
from tfscore.models.common import MIN_CONFIDENCE_THRESHOLD, EvaluationSource
from tfscore.models.inputs import AssessmentRequest, ProjectContext
from tfscore.observability.tracing import configure_tracing, unit_span
from tfscore.risk.adjudicated import AdjudicatedRiskScorer
from tfscore.risk.models import RedFlagAssessment
from tfscore.risk.red_flags import detect_red_flags
from tfscore.scoring.aggregator import (
    build_overall_reasoning,
    compute_base_score,
    compute_final_score,
    compute_penalty,
    determine_eligibility,
)
from tfscore.scoring.frameworks import get_framework
from tfscore.scoring.models import (
    ALL_COMPONENTS,
    AssessmentReport,
    ComponentEvaluation,
    ComponentRequest,
    ComponentType,
    RiskSignals,
    build_finding,
)
from tfscore.scoring.strategies import (
    AdjudicatedComponentStrategy,
    ConfidenceGatedEvaluator,
    EvaluationStrategy,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENVIRONMENTAL_UNIT = "environmental"
RED_FLAG_UNIT = "red_flags"
AI_RISK_UNIT = "ai_risk"
DEFAULT_MAX_WORKERS = 8


class AssessmentError(Exception):
    """Raised when an assessment cannot produce a report at all."""


def failed_component_evaluation(component: ComponentType) -> ComponentEvaluation:
    """Placeholder for a component whose unit failed: every criterion missing."""
    framework = get_framework(component)
    findings = [
        build_finding(c.name, c.max_points, 0, reasoning="Evaluation failed")
        for c in framework.criteria
    ]
    return ComponentEvaluation(
        component=component,
        component_name=framework.name,
        score=0,
        confidence=0.0,
        source=EvaluationSource.FAILED,
        sub_scores=findings,
        overall_reasoning="Evaluation failed; all criteria scored as missing",
    )


class AssessmentEngine:
    """Runs one assessment end to end.

    Args:
        llm_client: Adjudicator client; None runs the deterministic strategies only.
        audit_sink: Destination for lifecycle events (default: in-memory).
        max_workers: Thread pool size for unit fan-out.
        min_confidence: Adjudicated results below this confidence are discarded.
        reference_year: Year used by trajectory red-flag rules (default: current year).
        component_evaluator: Override for the component dispatcher.
        harm_evaluator: Override for the environmental-harm evaluator.
        risk_scorer: Override for the adjudicated risk scorer.
    """

    def __init__(
        self,
        *,
        llm_client: LLMClient | None = None,
        audit_sink: AuditSink | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
        reference_year: int | None = None,
        component_evaluator: EvaluationStrategy | None = None,
        harm_evaluator: EnvironmentalHarmEvaluator | None = None,
        risk_scorer: AdjudicatedRiskScorer | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self._audit = audit_sink if audit_sink is not None else InMemoryAuditSink()
        self._max_workers = max_workers
        self._reference_year = reference_year

        self._component_evaluator = component_evaluator or ConfidenceGatedEvaluator(
            adjudicated=AdjudicatedComponentStrategy(llm_client) if llm_client else None,
            min_confidence=min_confidence,
        )
        self._harm_evaluator = harm_evaluator or EnvironmentalHarmEvaluator(
            adjudicated=AdjudicatedHarmStrategy(llm_client) if llm_client else None,
            min_confidence=min_confidence,
        )
        if risk_scorer is None and llm_client is not None:
            risk_scorer = AdjudicatedRiskScorer(llm_client, min_confidence=min_confidence)
        self._risk_scorer = risk_scorer

    @property
    def audit_sink(self) -> AuditSink:
        return self._audit

    def assess(self, request: AssessmentRequest | Mapping[str, Any]) -> AssessmentReport:
        """Assess one project.

        Args:
            request: AssessmentRequest, or a mapping that validates as one.

        Returns:
            AssessmentReport. Units that failed are listed in failed_units.

        Raises:
            AssessmentError: If the request is invalid or the report cannot be built.
            AuditSinkError: If an audit event cannot be emitted.
        """
        assessment_id = str(uuid.uuid4())

        if not isinstance(request, AssessmentRequest):
            try:
                request = AssessmentRequest.model_validate(request)
            except ValidationError as exc:
                self._emit_audit(
                    "assessment.failed",
                    assessment_id,
                    {"reason": "invalid_request", "error_count": exc.error_count()},
                )
                raise AssessmentError(f"Invalid assessment request: {exc}") from exc

        project_name = request.project.project_name
        self._emit_audit(
            "assessment.started",
            assessment_id,
            {"project_name": project_name, "sector": request.project.sector.value},
        )

        try:
            report = self._run(assessment_id, request)
        except AuditSinkError:
            raise
        except Exception as exc:
            logger.exception("Assessment %s failed for %s", assessment_id, project_name)
            self._emit_audit(
                "assessment.failed",
                assessment_id,
                {"project_name": project_name, "error_type": type(exc).__name__},
            )
            raise AssessmentError(f"Assessment failed: {exc}") from exc

        self._emit_audit(
            "assessment.completed",
            assessment_id,
            {
                "project_name": project_name,
                "final_score": report.final_score,
                "eligibility": report.eligibility.value,
                "failed_units": list(report.failed_units),
            },
        )
        logger.info(
            "Assessment %s for %s: %.2f/100 (%s)",
            assessment_id,
            project_name,
            report.final_score,
            report.eligibility.value,
        )
        return report

    def _run(self, assessment_id: str, request: AssessmentRequest) -> AssessmentReport:
        project = request.project
        document_text = project.document_text()
        extracted = request.resolved_fields()
        context = ProjectContext.from_project(project)

        component_requests = [
            ComponentRequest(
                component=component,
                excerpt=request.sections.for_component(component),
                extracted=extracted,
                context=context,
            )
            for component in ALL_COMPONENTS
        ]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            component_futures: dict[ComponentType, Future[ComponentEvaluation]] = {
                cr.component: executor.submit(
                    self._traced,
                    cr.component.value,
                    assessment_id,
                    self._component_evaluator.evaluate,
                    cr,
                )
                for cr in component_requests
            }
            harm_future = executor.submit(
                self._traced,
                ENVIRONMENTAL_UNIT,
                assessment_id,
                self._harm_evaluator.evaluate,
                project,
                document_text,
            )
            red_flag_future = executor.submit(
                self._traced,
                RED_FLAG_UNIT,
                assessment_id,
                self._detect_red_flags,
                request,
            )
            risk_future: Future[float | None] | None = None
            if request.ai_risk_score is None and self._risk_scorer is not None:
                risk_future = executor.submit(
                    self._traced,
                    AI_RISK_UNIT,
                    assessment_id,
                    self._risk_scorer.score,
                    project,
                    document_text,
                )

            failed_units: list[str] = []

            components: list[ComponentEvaluation] = []
            for component, future in component_futures.items():
                evaluation = self._collect(assessment_id, component.value, future, failed_units)
                components.append(evaluation or failed_component_evaluation(component))

            environmental: EnvironmentalAssessment | None = self._collect(
                assessment_id, ENVIRONMENTAL_UNIT, harm_future, failed_units
            )
            red_flags: RedFlagAssessment | None = self._collect(
                assessment_id, RED_FLAG_UNIT, red_flag_future, failed_units
            )
            if risk_future is not None:
                ai_risk = self._collect(assessment_id, AI_RISK_UNIT, risk_future, failed_units)
            else:
                ai_risk = request.ai_risk_score

        signals = RiskSignals(
            ai_risk_score=ai_risk,
            rule_risk_score=float(red_flags.risk_score) if red_flags else None,
            environmental_score=float(environmental.normalized_score) if environmental else None,
        )
        base = compute_base_score(components)
        penalty = compute_penalty(signals)
        final = compute_final_score(base, penalty)
        eligibility = determine_eligibility(final, components)

        return AssessmentReport(
            project_name=project.project_name,
            components=components,
            environmental=environmental,
            red_flags=red_flags.red_flags if red_flags else [],
            signals=signals,
            base_score=base,
            penalty=penalty,
            final_score=final,
            eligibility=eligibility,
            overall_reasoning=build_overall_reasoning(
                components, base, penalty, final, eligibility, failed_units
            ),
            failed_units=failed_units,
            assessed_at=datetime.now(UTC).isoformat(),
        )

    def _detect_red_flags(self, request: AssessmentRequest) -> RedFlagAssessment:
        return detect_red_flags(request.project, reference_year=self._reference_year)

    @staticmethod
    def _traced(unit: str, assessment_id: str, func: Callable[..., T], *args: Any) -> T:
        with unit_span(unit, assessment_id=assessment_id):
            return func(*args)

    def _collect(
        self,
        assessment_id: str,
        unit: str,
        future: Future[T],
        failed_units: list[str],
    ) -> T | None:
        """Join one unit; a failure is logged, audited and recorded."""
        try:
            return future.result()
        except Exception as exc:
            logger.exception("Unit %s failed in assessment %s", unit, assessment_id)
            failed_units.append(unit)
            self._emit_audit(
                "assessment.unit.failed",
                assessment_id,
                {"unit": unit, "error_type": type(exc).__name__},
            )
            return None

    def _emit_audit(self, event_type: str, assessment_id: str, details: dict[str, Any]) -> None:
        """Emit an audit event, fail-closed on any error.

        Raises:
            AuditSinkError: If audit emission fails.
        """
        event: dict[str, Any] = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "assessment_id": assessment_id,
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "details": details,
        }
        self._audit.emit(event)


def build_engine_from_env(settings: EngineSettings | None = None) -> AssessmentEngine:
    """Build an engine wired from environment configuration.

    Raises:
        ValueError: If the configured backend cannot be constructed.
    """
    settings = settings or EngineSettings.from_env()
    if settings.otel_enabled:
        configure_tracing()
    return AssessmentEngine(
        llm_client=build_adjudicator_client(settings),
        audit_sink=get_audit_sink(settings.audit_log_path),
        max_workers=settings.max_workers,
    )
