"""Pytest configuration and fixtures for tfscore tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from tfscore.models.inputs import ComponentSections, ExtractedFields, ProjectContext
from tfscore.models.project import EmissionsProfile, ProjectRecord, Sector
from tfscore.scoring.frameworks import get_framework
from tfscore.scoring.models import ComponentRequest, ComponentType

TFSCORE_ENV_VARS = (
    "TFSCORE_ADJUDICATOR_BACKEND",
    "TFSCORE_ANTHROPIC_MODEL",
    "TFSCORE_ADJUDICATOR_TIMEOUT_SECONDS",
    "TFSCORE_MAX_WORKERS",
    "TFSCORE_AUDIT_LOG_PATH",
    "TFSCORE_OTEL_ENABLED",
    "TFSCORE_OTEL_TEST_CAPTURE",
    "TFSCORE_OTEL_EXPORTER",
    "TFSCORE_OTEL_SERVICE_NAME",
)

SOLAR_DOCUMENT = (
    "Helios Solar Transition Loan. The borrower has published a board-approved transition "
    "plan aligned with the Paris Agreement 1.5C pathway and validated by SBTi. Proceeds "
    "finance a 120 MW solar plant and grid-scale storage, delivering a 45% reduction in "
    "operational emissions by 2030 against a verified 2023 baseline. Water efficiency and "
    "panel recycling programmes are in place, and a biodiversity management plan covers the "
    "site. Proceeds are held in a dedicated segregated bank account and reported annually."
)


@pytest.fixture(autouse=True)
def clean_tfscore_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear engine configuration so every test starts from defaults."""
    for key in TFSCORE_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def solar_project() -> ProjectRecord:
    """A well-documented renewable energy project."""
    return ProjectRecord(
        project_name="Helios Solar",
        sector=Sector.ENERGY,
        country="Spain",
        project_type="Solar PV with storage",
        description=(
            "Construction of a 120 MW solar plant with grid-scale battery storage to "
            "replace grid electricity for the borrower's manufacturing sites."
        ),
        total_cost=150_000_000,
        debt_amount=100_000_000,
        equity_amount=50_000_000,
        current_emissions=EmissionsProfile(scope1=40_000, scope2=60_000, scope3=250_000),
        target_emissions=EmissionsProfile(scope1=20_000, scope2=30_000, scope3=200_000),
        target_year=2030,
        transition_strategy=(
            "Published transition plan aligned with Paris 1.5C and SBTi near-term targets."
        ),
        has_published_plan=True,
        third_party_verification=True,
        raw_document_text=SOLAR_DOCUMENT,
    )


@pytest.fixture
def solar_sections() -> ComponentSections:
    return ComponentSections(
        strategy="Entity-level transition plan aligned with the Paris Agreement.",
        use_of_proceeds="Proceeds finance solar generation delivering a 45% reduction.",
        selection="Selection criteria approved by the sustainability committee.",
        management="Proceeds held in a dedicated account with quarterly tracking.",
        reporting="Annual report on emissions impact with external verification.",
    )


@pytest.fixture
def make_component_request() -> Callable[..., ComponentRequest]:
    """Factory for component requests with optional excerpt and extracted fields."""

    def _make(
        component: ComponentType,
        excerpt: str = "",
        **field_overrides: Any,
    ) -> ComponentRequest:
        return ComponentRequest(
            component=component,
            excerpt=excerpt,
            extracted=ExtractedFields(**field_overrides),
            context=ProjectContext(project_name="Test Project", sector="energy"),
        )

    return _make


@pytest.fixture
def adjudicator_response() -> Callable[..., dict[str, Any]]:
    """Factory for a well-formed adjudicator component response.

    Every criterion is reported at full points unless overridden by name.
    """

    def _make(
        component: ComponentType,
        *,
        confidence: float = 85,
        points: dict[str, float] | None = None,
    ) -> dict[str, Any]:
        overrides = points or {}
        framework = get_framework(component)
        sub_scores = [
            {
                "criterion": c.name,
                "maxPoints": c.max_points,
                "points": overrides.get(c.name, c.max_points),
                "status": "met",
                "evidence": f"Evidence for {c.name}",
                "reasoning": "Clearly addressed",
            }
            for c in framework.criteria
        ]
        return {
            "component": component.value,
            "score": sum(s["points"] for s in sub_scores),
            "confidence": confidence,
            "subScores": sub_scores,
            "overallReasoning": f"{framework.name} is well covered.",
            "improvements": ["Add more detail"],
            "keyQuotes": [{"quote": "dedicated account", "relevance": "tracking"}],
        }

    return _make
