"""Tests for the deterministic keyword strategy and criterion scoring helpers."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from tfscore.models.common import FALLBACK_CONFIDENCE, EvaluationSource
from tfscore.scoring.keyword_rules import KEYWORD_RULES, KeywordComponentStrategy
from tfscore.scoring.models import (
    ALL_COMPONENTS,
    ComponentRequest,
    ComponentType,
    CriterionStatus,
    build_finding,
    derive_status,
)

RequestFactory = Callable[..., ComponentRequest]


class TestCriterionScoring:
    """Points clamping and status derivation."""

    def test_points_above_max_are_clamped(self) -> None:
        finding = build_finding("Published transition plan", 5, 9)
        assert finding.points == 5
        assert finding.status == CriterionStatus.MET

    def test_negative_points_are_clamped_to_zero(self) -> None:
        finding = build_finding("Published transition plan", 5, -3)
        assert finding.points == 0
        assert finding.status == CriterionStatus.MISSING

    def test_status_bands(self) -> None:
        """met at max, missing at or below 20% of max, partial in between."""
        assert derive_status(10, 10) == CriterionStatus.MET
        assert derive_status(2, 10) == CriterionStatus.MISSING
        assert derive_status(3, 10) == CriterionStatus.PARTIAL
        assert derive_status(1, 5) == CriterionStatus.MISSING
        assert derive_status(2, 5) == CriterionStatus.PARTIAL

    def test_evidence_is_truncated(self) -> None:
        finding = build_finding("Governance structure", 6, 6, evidence="x" * 500)
        assert len(finding.evidence) == 300


class TestKeywordComponentStrategy:
    """KeywordComponentStrategy scoring tables."""

    def test_every_component_has_rules_for_every_criterion(self) -> None:
        from tfscore.scoring.frameworks import get_framework

        for component in ALL_COMPONENTS:
            names = {r.criterion for r in KEYWORD_RULES[component]}
            expected = {c.name for c in get_framework(component).criteria}
            assert names == expected

    def test_empty_strategy_excerpt_scores_fallback_points(
        self, make_component_request: RequestFactory
    ) -> None:
        """Only economy-wide coverage has a non-zero fallback award."""
        result = KeywordComponentStrategy().evaluate(
            make_component_request(ComponentType.STRATEGY)
        )

        assert result.score == 2
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.source == EvaluationSource.KEYWORD_FALLBACK
        assert result.ai_evaluated is False
        assert result.overall_reasoning == (
            "Keyword-based evaluation (adjudicator fallback): Score 2/20"
        )
        assert len(result.improvements) == 4

    def test_strategy_indicators_score_full_marks(
        self, make_component_request: RequestFactory
    ) -> None:
        request = make_component_request(
            ComponentType.STRATEGY,
            "Our transition plan is aligned with Paris and 1.5C, covers the corporate group "
            "and is verified by an independent auditor.",
        )
        result = KeywordComponentStrategy().evaluate(request)

        assert result.score == 20
        assert all(f.status == CriterionStatus.MET for f in result.sub_scores)
        assert result.improvements == []

    def test_extracted_fields_count_as_indicators(
        self, make_component_request: RequestFactory
    ) -> None:
        request = make_component_request(
            ComponentType.STRATEGY,
            transition_plan="Board approved",
            verification_status="verified",
        )
        result = KeywordComponentStrategy().evaluate(request)

        by_name = {f.criterion: f.points for f in result.sub_scores}
        assert by_name["Published transition plan"] == 5
        assert by_name["Third-party verification"] == 5

    def test_adding_indicator_text_never_lowers_score(
        self, make_component_request: RequestFactory
    ) -> None:
        strategy = KeywordComponentStrategy()
        for component in ALL_COMPONENTS:
            base = strategy.evaluate(make_component_request(component, "a short note"))
            richer = strategy.evaluate(
                make_component_request(
                    component,
                    "a short note on annual emissions reporting, selection criteria, "
                    "governance committee, dedicated account, unallocated treasury holdings, "
                    "renewable solar with a 30% reduction, paris alignment",
                )
            )
            assert richer.score >= base.score, component

    def test_fossil_mention_triggers_lock_in_penalty(
        self, make_component_request: RequestFactory
    ) -> None:
        result = KeywordComponentStrategy().evaluate(
            make_component_request(ComponentType.PROCEEDS, "Proceeds fund a new gas turbine.")
        )
        lock_in = next(f for f in result.sub_scores if f.criterion == "No carbon lock-in")
        assert lock_in.points == 2

    def test_negated_fossil_mention_is_not_lock_in(
        self, make_component_request: RequestFactory
    ) -> None:
        result = KeywordComponentStrategy().evaluate(
            make_component_request(ComponentType.PROCEEDS, "The site burns no coal.")
        )
        lock_in = next(f for f in result.sub_scores if f.criterion == "No carbon lock-in")
        assert lock_in.points == 6

    def test_restricted_contingency_clears_lock_in(
        self, make_component_request: RequestFactory
    ) -> None:
        result = KeywordComponentStrategy().evaluate(
            make_component_request(
                ComponentType.PROCEEDS,
                "Gas backup exists but contingency funds are restricted to eligible projects.",
            )
        )
        lock_in = next(f for f in result.sub_scores if f.criterion == "No carbon lock-in")
        assert lock_in.points == 6

    @pytest.mark.parametrize(
        ("component", "expected"),
        [
            (ComponentType.STRATEGY, 2),
            (ComponentType.PROCEEDS, 8),
            (ComponentType.SELECTION, 8),
            (ComponentType.MANAGEMENT, 6),
            (ComponentType.REPORTING, 4),
        ],
    )
    def test_empty_excerpt_scores(
        self, make_component_request: RequestFactory, component: ComponentType, expected: int
    ) -> None:
        result = KeywordComponentStrategy().evaluate(make_component_request(component))
        assert result.score == expected
        assert 0 <= result.score <= result.max_score
