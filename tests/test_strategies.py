"""Tests for the adjudicated component strategy and the confidence-gated dispatcher."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from tfscore.llm.client import AdjudicationError, ScriptedLLMClient, UnavailableLLMClient
from tfscore.models.common import EvaluationSource
from tfscore.scoring.models import ComponentRequest, ComponentType, CriterionStatus
from tfscore.scoring.overrides import BOOST_SUFFIX
from tfscore.scoring.strategies import AdjudicatedComponentStrategy, ConfidenceGatedEvaluator

RequestFactory = Callable[..., ComponentRequest]
ResponseFactory = Callable[..., dict[str, Any]]


class TestAdjudicatedComponentStrategy:
    """Response parsing for AdjudicatedComponentStrategy."""

    def test_full_response_is_parsed(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        client = ScriptedLLMClient({}, default=adjudicator_response(ComponentType.STRATEGY))
        strategy = AdjudicatedComponentStrategy(client)

        result = strategy.evaluate(make_component_request(ComponentType.STRATEGY, "excerpt"))

        assert result.score == 20
        assert result.confidence == 85
        assert result.source == EvaluationSource.ADJUDICATED
        assert result.ai_evaluated is True
        assert [f.criterion for f in result.sub_scores] == [
            "Published transition plan",
            "Paris Agreement alignment",
            "Economy-wide coverage",
            "Third-party verification",
        ]
        assert len(result.key_quotes) == 1

    def test_prompt_carries_rubric_and_excerpt(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        client = ScriptedLLMClient({}, default=adjudicator_response(ComponentType.PROCEEDS))
        AdjudicatedComponentStrategy(client).evaluate(
            make_component_request(ComponentType.PROCEEDS, "Solar proceeds excerpt")
        )

        prompt = client.prompts[0]
        assert "Evaluate the Use of Proceeds component" in prompt
        assert "Solar proceeds excerpt" in prompt

    def test_markdown_fenced_response_is_accepted(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        body = json.dumps(adjudicator_response(ComponentType.REPORTING))
        client = ScriptedLLMClient({}, default=f"```json\n{body}\n```")

        result = AdjudicatedComponentStrategy(client).evaluate(
            make_component_request(ComponentType.REPORTING)
        )

        assert result.score == 20

    def test_out_of_range_points_are_clamped(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        response = adjudicator_response(
            ComponentType.STRATEGY,
            points={"Published transition plan": 9, "Paris Agreement alignment": -4},
        )
        client = ScriptedLLMClient({}, default=response)

        result = AdjudicatedComponentStrategy(client).evaluate(
            make_component_request(ComponentType.STRATEGY)
        )

        by_name = {f.criterion: f for f in result.sub_scores}
        assert by_name["Published transition plan"].points == 5
        assert by_name["Paris Agreement alignment"].points == 0
        assert by_name["Paris Agreement alignment"].status == CriterionStatus.MISSING
        assert result.score == 15

    def test_unreported_criterion_scores_zero(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        response = adjudicator_response(ComponentType.MANAGEMENT)
        response["subScores"] = response["subScores"][:1]
        client = ScriptedLLMClient({}, default=response)

        result = AdjudicatedComponentStrategy(client).evaluate(
            make_component_request(ComponentType.MANAGEMENT)
        )

        assert result.score == 10
        assert result.sub_scores[1].points == 0
        assert result.sub_scores[1].reasoning == "Not reported by adjudicator"

    def test_missing_confidence_is_rejected(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        response = adjudicator_response(ComponentType.STRATEGY)
        del response["confidence"]
        client = ScriptedLLMClient({}, default=response)

        with pytest.raises(AdjudicationError, match="confidence"):
            AdjudicatedComponentStrategy(client).evaluate(
                make_component_request(ComponentType.STRATEGY)
            )

    def test_missing_sub_scores_is_rejected(self, make_component_request: RequestFactory) -> None:
        client = ScriptedLLMClient({}, default={"confidence": 90, "score": 20})

        with pytest.raises(AdjudicationError, match="subScores"):
            AdjudicatedComponentStrategy(client).evaluate(
                make_component_request(ComponentType.STRATEGY)
            )


class TestConfidenceGatedEvaluator:
    """Fallback and override behaviour of the dispatcher."""

    def test_confident_adjudication_is_kept(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        client = ScriptedLLMClient({}, default=adjudicator_response(ComponentType.SELECTION))
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.SELECTION))

        assert result.source == EvaluationSource.ADJUDICATED
        assert result.score == 20

    def test_low_confidence_result_is_discarded(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        """Confidence 25 falls back; the kept result reports confidence 50, not 25."""
        client = ScriptedLLMClient(
            {}, default=adjudicator_response(ComponentType.STRATEGY, confidence=25)
        )
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.STRATEGY))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50
        assert result.score == 2

    def test_threshold_confidence_is_kept(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        client = ScriptedLLMClient(
            {}, default=adjudicator_response(ComponentType.STRATEGY, confidence=30)
        )
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.STRATEGY))

        assert result.source == EvaluationSource.ADJUDICATED

    @pytest.mark.parametrize(
        "response",
        [
            "this is not json",
            "[1, 2, 3]",
            AdjudicationError("Adjudicator request timed out"),
        ],
    )
    def test_unusable_adjudication_falls_back(
        self, make_component_request: RequestFactory, response: Any
    ) -> None:
        client = ScriptedLLMClient({}, default=response)
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.REPORTING))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50

    @pytest.mark.parametrize("bad_number", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_finite_points_fall_back(
        self, make_component_request: RequestFactory, bad_number: str
    ) -> None:
        body = (
            '{"confidence": 80, "subScores": '
            f'[{{"criterion": "Published transition plan", "points": {bad_number}}}]}}'
        )
        client = ScriptedLLMClient({}, default=body)
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.STRATEGY))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50
        assert result.score == 2

    def test_non_finite_confidence_falls_back(
        self, make_component_request: RequestFactory
    ) -> None:
        client = ScriptedLLMClient({}, default='{"confidence": NaN, "subScores": []}')
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.STRATEGY))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.confidence == 50

    def test_non_finite_confidence_is_rejected_by_strategy(
        self, make_component_request: RequestFactory
    ) -> None:
        client = ScriptedLLMClient({}, default='{"confidence": Infinity, "subScores": []}')

        with pytest.raises(AdjudicationError, match="non-finite 'confidence'"):
            AdjudicatedComponentStrategy(client).evaluate(
                make_component_request(ComponentType.STRATEGY)
            )

    def test_unexpected_adjudication_error_falls_back(
        self, make_component_request: RequestFactory
    ) -> None:
        client = ScriptedLLMClient({}, default=RuntimeError("socket closed"))
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(make_component_request(ComponentType.STRATEGY))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK

    def test_unavailable_backend_falls_back(self, make_component_request: RequestFactory) -> None:
        evaluator = ConfidenceGatedEvaluator(
            adjudicated=AdjudicatedComponentStrategy(UnavailableLLMClient())
        )

        result = evaluator.evaluate(make_component_request(ComponentType.MANAGEMENT))

        assert result.source == EvaluationSource.KEYWORD_FALLBACK

    def test_overrides_apply_to_adjudicated_result(
        self,
        make_component_request: RequestFactory,
        adjudicator_response: ResponseFactory,
    ) -> None:
        response = adjudicator_response(
            ComponentType.MANAGEMENT,
            points={"Dedicated tracking system": 2},
        )
        client = ScriptedLLMClient({}, default=response)
        evaluator = ConfidenceGatedEvaluator(adjudicated=AdjudicatedComponentStrategy(client))

        result = evaluator.evaluate(
            make_component_request(
                ComponentType.MANAGEMENT,
                "Proceeds sit in a dedicated segregated bank account.",
            )
        )

        assert result.source == EvaluationSource.ADJUDICATED
        assert result.sub_scores[0].points == 10
        assert result.score == 20
        assert result.overall_reasoning.endswith(BOOST_SUFFIX)

    def test_overrides_apply_to_fallback_result(
        self, make_component_request: RequestFactory
    ) -> None:
        evaluator = ConfidenceGatedEvaluator()

        result = evaluator.evaluate(
            make_component_request(
                ComponentType.PROCEEDS,
                "A gas peaker remains on site, with zero carbon lock-in risk from proceeds.",
            )
        )

        lock_in = result.sub_scores[2]
        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert lock_in.criterion == "No carbon lock-in"
        assert lock_in.points == 6
        assert lock_in.status == CriterionStatus.MET
        assert result.overall_reasoning.endswith(BOOST_SUFFIX)
