"""Tests for the environmental-harm evaluator."""

from __future__ import annotations

import json
from typing import Any

import pytest
from pydantic import ValidationError

from tfscore.harm.evaluator import (
    AdjudicatedHarmStrategy,
    EnvironmentalHarmEvaluator,
    RuleBasedHarmStrategy,
)
from tfscore.harm.models import (
    ALL_OBJECTIVES,
    OBJECTIVE_NAMES,
    AssessedObjective,
    EnvironmentalAssessment,
    HarmObjective,
    HarmOverallStatus,
    HarmStatus,
    IncompatibleObjective,
)
from tfscore.harm.weights import normalized_score
from tfscore.llm.client import ScriptedLLMClient
from tfscore.models.common import EvaluationSource
from tfscore.models.project import ProjectRecord, Sector


def _harm_response(
    *,
    score: int = 4,
    status: str = "no_harm",
    confidence: float = 80,
    **top_level: Any,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "confidence": confidence,
        "criteria": [
            {
                "objective": objective.value,
                "status": status,
                "score": score,
                "evidence": "Assessed",
                "concern": None,
                "isFundamentallyIncompatible": False,
                "recommendation": "Keep monitoring",
            }
            for objective in ALL_OBJECTIVES
        ],
        "isFundamentallyIncompatible": False,
        "summary": "Low harm",
        "keyRisks": [],
        "recommendations": ["Keep monitoring"],
    }
    body.update(top_level)
    return body


def _assessed(objective: HarmObjective, score: int) -> AssessedObjective:
    return AssessedObjective(
        objective=objective,
        objective_name=OBJECTIVE_NAMES[objective],
        status=HarmStatus.NO_HARM,
        score=score,
    )


class TestSectorWeights:
    """normalized_score weighting."""

    def test_all_max_scores_normalize_to_100(self) -> None:
        objectives = [_assessed(o, 4) for o in ALL_OBJECTIVES]
        for sector in Sector:
            assert normalized_score(objectives, sector) == 100

    def test_energy_weights_climate_mitigation_more_heavily(self) -> None:
        """Losing mitigation costs more in energy (weight 1.5) than in other (weight 1)."""
        objectives = [
            _assessed(o, 0 if o == HarmObjective.CLIMATE_MITIGATION else 4)
            for o in ALL_OBJECTIVES
        ]
        assert normalized_score(objectives, Sector.OTHER) == 83
        assert normalized_score(objectives, Sector.ENERGY) == 78


class TestRuleBasedHarmStrategy:
    """Deterministic harm rules."""

    def test_well_documented_project(self, solar_project: ProjectRecord) -> None:
        result = RuleBasedHarmStrategy().evaluate(
            solar_project, solar_project.raw_document_text or ""
        )

        assert len(result.objectives) == 6
        assert result.confidence == 50
        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.is_fundamentally_incompatible is False
        assert 0 <= result.normalized_score <= 100

    def test_fossil_extraction_is_incompatible(self) -> None:
        project = ProjectRecord(
            project_name="Northfield Expansion",
            sector=Sector.MINING,
            description="Expansion of coal mining operations at the Northfield pit.",
        )

        result = RuleBasedHarmStrategy().evaluate(project, "")

        mitigation = result.objective(HarmObjective.CLIMATE_MITIGATION)
        assert isinstance(mitigation, IncompatibleObjective)
        assert mitigation.score == 0
        assert mitigation.recommendation is None
        assert result.is_fundamentally_incompatible is True
        assert result.overall_status == HarmOverallStatus.NON_COMPLIANT
        assert result.recommendations == []
        assert result.incompatibility_reason

    def test_protected_area_development_marks_biodiversity(self) -> None:
        project = ProjectRecord(
            project_name="Coastal Resort",
            sector=Sector.OTHER,
            description="We will develop a resort inside a protected area.",
        )

        result = RuleBasedHarmStrategy().evaluate(project, "")

        assert result.objective(HarmObjective.BIODIVERSITY).is_fundamentally_incompatible

    def test_deforestation_is_incompatible(self) -> None:
        project = ProjectRecord(
            project_name="Northern Plantation",
            sector=Sector.OTHER,
            description="Plantation growth requiring deforestation of the northern plots.",
        )

        result = RuleBasedHarmStrategy().evaluate(project, "")

        biodiversity = result.objective(HarmObjective.BIODIVERSITY)
        assert isinstance(biodiversity, IncompatibleObjective)
        assert biodiversity.score == 0
        assert result.is_fundamentally_incompatible is True
        assert result.overall_status == HarmOverallStatus.NON_COMPLIANT
        assert result.recommendations == []
        assert result.incompatibility_reason is not None
        assert "Deforestation" in result.incompatibility_reason


class TestAdjudicatedHarmStrategy:
    """Adjudicated harm parsing and absorbing incompatibility."""

    def test_clean_response_is_compliant(self, solar_project: ProjectRecord) -> None:
        client = ScriptedLLMClient({}, default=_harm_response())

        result = AdjudicatedHarmStrategy(client).evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.ADJUDICATED
        assert result.normalized_score == 100
        assert result.overall_status == HarmOverallStatus.COMPLIANT
        assert result.recommendations == ["Keep monitoring"]

    def test_incompatibility_signature_overrides_adjudicator(
        self, solar_project: ProjectRecord
    ) -> None:
        """A perfect adjudicated score cannot hide a fossil extraction signature."""
        client = ScriptedLLMClient({}, default=_harm_response())

        result = AdjudicatedHarmStrategy(client).evaluate(
            solar_project, "Phase two adds crude oil storage and petroleum refining."
        )

        assert result.is_fundamentally_incompatible is True
        assert result.overall_status == HarmOverallStatus.NON_COMPLIANT
        assert result.recommendations == []
        assert isinstance(
            result.objective(HarmObjective.CLIMATE_MITIGATION), IncompatibleObjective
        )

    def test_adjudicator_flag_marks_objective_incompatible(
        self, solar_project: ProjectRecord
    ) -> None:
        body = _harm_response()
        body["criteria"][5]["isFundamentallyIncompatible"] = True
        client = ScriptedLLMClient({}, default=body)

        result = AdjudicatedHarmStrategy(client).evaluate(solar_project, "Solar farm.")

        assert result.objective(HarmObjective.BIODIVERSITY).is_fundamentally_incompatible
        assert result.recommendations == []

    def test_unknown_status_and_missing_objectives(self, solar_project: ProjectRecord) -> None:
        body = _harm_response(status="unclear", score=7)
        body["criteria"] = body["criteria"][:2]
        client = ScriptedLLMClient({}, default=body)

        result = AdjudicatedHarmStrategy(client).evaluate(solar_project, "Solar farm.")

        first = result.objective(HarmObjective.CLIMATE_MITIGATION)
        assert first.status == HarmStatus.NOT_ASSESSED
        assert first.score == 4
        filled = result.objective(HarmObjective.BIODIVERSITY)
        assert filled.status == HarmStatus.NOT_ASSESSED
        assert filled.score == 2

    def test_significant_harm_is_non_compliant(self, solar_project: ProjectRecord) -> None:
        body = _harm_response()
        body["criteria"][2].update({"status": "significant_harm", "score": 0})
        client = ScriptedLLMClient({}, default=body)

        result = AdjudicatedHarmStrategy(client).evaluate(solar_project, "Solar farm.")

        assert result.overall_status == HarmOverallStatus.NON_COMPLIANT
        assert result.is_fundamentally_incompatible is False

    def test_potential_harm_is_partial(self, solar_project: ProjectRecord) -> None:
        body = _harm_response()
        body["criteria"][3].update({"status": "potential_harm", "score": 3})
        client = ScriptedLLMClient({}, default=body)

        result = AdjudicatedHarmStrategy(client).evaluate(solar_project, "Solar farm.")

        assert result.overall_status == HarmOverallStatus.PARTIAL


class TestEnvironmentalHarmEvaluator:
    """Confidence gating for the harm dispatcher."""

    def test_low_confidence_falls_back_to_rules(self, solar_project: ProjectRecord) -> None:
        client = ScriptedLLMClient({}, default=_harm_response(confidence=20))
        evaluator = EnvironmentalHarmEvaluator(adjudicated=AdjudicatedHarmStrategy(client))

        result = evaluator.evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50

    def test_malformed_response_falls_back_to_rules(self, solar_project: ProjectRecord) -> None:
        client = ScriptedLLMClient({}, default={"confidence": 90})
        evaluator = EnvironmentalHarmEvaluator(adjudicated=AdjudicatedHarmStrategy(client))

        result = evaluator.evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.KEYWORD_FALLBACK

    @pytest.mark.parametrize("bad_number", ["NaN", "Infinity", "1e999"])
    def test_non_finite_score_falls_back_to_rules(
        self, solar_project: ProjectRecord, bad_number: str
    ) -> None:
        body = json.dumps(_harm_response()).replace('"score": 4', f'"score": {bad_number}', 1)
        client = ScriptedLLMClient({}, default=body)
        evaluator = EnvironmentalHarmEvaluator(adjudicated=AdjudicatedHarmStrategy(client))

        result = evaluator.evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50

    def test_non_finite_confidence_falls_back_to_rules(
        self, solar_project: ProjectRecord
    ) -> None:
        body = json.dumps(_harm_response()).replace('"confidence": 80', '"confidence": NaN')
        client = ScriptedLLMClient({}, default=body)
        evaluator = EnvironmentalHarmEvaluator(adjudicated=AdjudicatedHarmStrategy(client))

        result = evaluator.evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.KEYWORD_FALLBACK

    def test_unexpected_adjudication_error_falls_back_to_rules(
        self, solar_project: ProjectRecord
    ) -> None:
        client = ScriptedLLMClient({}, default=RuntimeError("socket closed"))
        evaluator = EnvironmentalHarmEvaluator(adjudicated=AdjudicatedHarmStrategy(client))

        result = evaluator.evaluate(solar_project, "Solar farm.")

        assert result.source == EvaluationSource.KEYWORD_FALLBACK

    def test_no_adjudicator_uses_rules(self, solar_project: ProjectRecord) -> None:
        result = EnvironmentalHarmEvaluator().evaluate(solar_project, "")
        assert result.source == EvaluationSource.KEYWORD_FALLBACK


class TestEnvironmentalAssessmentInvariants:
    """Model-level validation of EnvironmentalAssessment."""

    def test_incompatible_assessment_cannot_carry_recommendations(self) -> None:
        objectives = [_assessed(o, 4) for o in ALL_OBJECTIVES]
        with pytest.raises(ValidationError, match="recommendations"):
            EnvironmentalAssessment(
                objectives=objectives,
                total_score=24,
                normalized_score=100,
                overall_status=HarmOverallStatus.NON_COMPLIANT,
                is_fundamentally_incompatible=True,
                recommendations=["Add controls"],
                confidence=80,
                source=EvaluationSource.ADJUDICATED,
            )

    def test_each_objective_required_once(self) -> None:
        objectives = [_assessed(HarmObjective.BIODIVERSITY, 4)] * 6
        with pytest.raises(ValidationError, match="exactly once"):
            EnvironmentalAssessment(
                objectives=objectives,
                total_score=24,
                normalized_score=100,
                overall_status=HarmOverallStatus.COMPLIANT,
                confidence=80,
                source=EvaluationSource.ADJUDICATED,
            )

    def test_incompatible_variant_pins_score(self) -> None:
        with pytest.raises(ValidationError):
            IncompatibleObjective(
                objective=HarmObjective.CLIMATE_MITIGATION,
                objective_name="Climate Change Mitigation",
                score=3,
            )
