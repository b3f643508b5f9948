"""Keyword rules for the environmental-harm evaluation.

Two concerns live here:
- non-remediable activity signatures, which mark objectives as
  fundamentally incompatible no matter which strategy scored them
- the deterministic per-objective rules used when adjudication is
  unavailable or under-confident
"""

from __future__ import annotations

from dataclasses import dataclass

from tfscore.harm.models import HarmObjective, HarmStatus
from tfscore.models.project import ProjectRecord, Sector

FOSSIL_EXTRACTION_TERMS: tuple[str, ...] = (
    "coal mining",
    "oil drilling",
    "oil extraction",
    "natural gas extraction",
    "petroleum",
    "crude oil",
    "coal power",
    "fossil fuel expansion",
)
FOREST_CLEARING_TERMS: tuple[str, ...] = (
    "deforest",
    "forest clear",
    "land clearing",
    "primary forest",
)

FOSSIL_REASON = (
    "Fossil fuel extraction/expansion is fundamentally incompatible with climate "
    "mitigation objectives. No mitigation measures can change this classification."
)
FOREST_REASON = (
    "Deforestation or primary forest clearing is fundamentally incompatible with "
    "biodiversity objectives."
)
PROTECTED_AREA_REASON = (
    "Development in protected areas without legal exception is fundamentally "
    "incompatible with biodiversity objectives."
)

WATER_INTENSIVE_SECTORS = frozenset({Sector.MINING, Sector.AGRICULTURE, Sector.MANUFACTURING})
POLLUTING_SECTORS = frozenset({Sector.MINING, Sector.MANUFACTURING, Sector.ENERGY})


@dataclass(frozen=True)
class IncompatibilityHit:
    """One matched non-remediable signature."""

    objective: HarmObjective
    reason: str
    evidence: str
    concern: str


@dataclass(frozen=True)
class RuleOutcome:
    """Deterministic result for one objective before incompatibility is applied."""

    objective: HarmObjective
    status: HarmStatus
    score: int
    evidence: str
    concern: str | None = None
    recommendation: str | None = None


def harm_evidence_text(project: ProjectRecord, document_text: str) -> str:
    """Lowercased text scanned by every harm rule."""
    return f"{document_text} {project.description} {project.transition_strategy}".lower()


def detect_incompatibility(text: str) -> list[IncompatibilityHit]:
    """Scan lowercased text for non-remediable activity signatures.

    Args:
        text: Lowercased evidence text.

    Returns:
        Hits in fixed order: fossil extraction, forest clearing, protected-area development.
    """
    hits: list[IncompatibilityHit] = []
    if any(term in text for term in FOSSIL_EXTRACTION_TERMS):
        hits.append(
            IncompatibilityHit(
                objective=HarmObjective.CLIMATE_MITIGATION,
                reason=FOSSIL_REASON,
                evidence="Fossil fuel activity detected",
                concern="Fossil fuel activities lead to significant GHG emissions",
            )
        )
    if any(term in text for term in FOREST_CLEARING_TERMS):
        hits.append(
            IncompatibilityHit(
                objective=HarmObjective.BIODIVERSITY,
                reason=FOREST_REASON,
                evidence="Deforestation or land clearing detected",
                concern="Land clearing causes significant ecosystem harm",
            )
        )
    if "protected area" in text and "develop" in text:
        hits.append(
            IncompatibilityHit(
                objective=HarmObjective.BIODIVERSITY,
                reason=PROTECTED_AREA_REASON,
                evidence="Development in a protected area detected",
                concern="Protected-area development causes significant ecosystem harm",
            )
        )
    return hits


def evaluate_objective_rules(project: ProjectRecord, text: str) -> list[RuleOutcome]:
    """Score the six objectives with keyword rules.

    Args:
        project: Project record (sector drives the water and pollution rules).
        text: Lowercased evidence text.

    Returns:
        One RuleOutcome per objective, in objective order.
    """
    outcomes: list[RuleOutcome] = []

    has_reduction = "emission" in text and ("reduc" in text or "target" in text)
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.CLIMATE_MITIGATION,
            status=HarmStatus.NO_HARM if has_reduction else HarmStatus.POTENTIAL_HARM,
            score=4 if has_reduction else 2,
            evidence=(
                "Emissions reduction targets present"
                if has_reduction
                else "Limited emissions information"
            ),
            recommendation="Quantify GHG reduction targets with verified baseline",
        )
    )

    has_adaptation = "adapt" in text or "resilien" in text or "climate risk" in text
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.CLIMATE_ADAPTATION,
            status=HarmStatus.NO_HARM if has_adaptation else HarmStatus.POTENTIAL_HARM,
            score=3 if has_adaptation else 2,
            evidence=(
                "Climate adaptation measures mentioned"
                if has_adaptation
                else "No explicit adaptation planning found"
            ),
            recommendation=(
                "Document specific adaptation measures"
                if has_adaptation
                else "Include climate risk assessment and adaptation plan"
            ),
        )
    )

    water_intensive = project.sector in WATER_INTENSIVE_SECTORS
    has_water_measures = "water" in text and (
        "efficienc" in text or "recycl" in text or "conserv" in text
    )
    water_gap = water_intensive and not has_water_measures
    if has_water_measures:
        water_evidence = "Water management measures identified"
    elif water_intensive:
        water_evidence = "Water-intensive sector without clear water management"
    else:
        water_evidence = "Low water impact expected"
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.WATER_RESOURCES,
            status=HarmStatus.POTENTIAL_HARM if water_gap else HarmStatus.NO_HARM,
            score=2 if water_gap else 3,
            evidence=water_evidence,
            recommendation=(
                "Include water efficiency and recycling measures" if water_gap else None
            ),
        )
    )

    has_circular = any(term in text for term in ("recycl", "waste", "circular", "reuse"))
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.CIRCULAR_ECONOMY,
            status=HarmStatus.NO_HARM if has_circular else HarmStatus.POTENTIAL_HARM,
            score=3 if has_circular else 2,
            evidence=(
                "Circular economy practices mentioned"
                if has_circular
                else "No waste management or recycling mentioned"
            ),
            recommendation=(
                None if has_circular else "Include waste management and material efficiency plans"
            ),
        )
    )

    polluting = project.sector in POLLUTING_SECTORS
    has_controls = (
        "emission control" in text
        or "air quality" in text
        or ("pollution" in text and "prevent" in text)
    )
    pollution_gap = polluting and not has_controls
    if has_controls:
        pollution_evidence = "Pollution control measures identified"
    elif polluting:
        pollution_evidence = "Industrial activity without explicit pollution controls"
    else:
        pollution_evidence = "Low pollution risk expected"
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.POLLUTION_PREVENTION,
            status=HarmStatus.POTENTIAL_HARM if pollution_gap else HarmStatus.NO_HARM,
            score=2 if pollution_gap else 3,
            evidence=pollution_evidence,
            recommendation=(
                "Document emission controls and pollution prevention measures"
                if pollution_gap
                else None
            ),
        )
    )

    has_biodiversity = any(
        term in text
        for term in ("biodiversity", "ecosystem", "protected area", "environmental impact")
    )
    outcomes.append(
        RuleOutcome(
            objective=HarmObjective.BIODIVERSITY,
            status=HarmStatus.NO_HARM if has_biodiversity else HarmStatus.NOT_ASSESSED,
            score=3 if has_biodiversity else 2,
            evidence=(
                "Biodiversity considerations addressed"
                if has_biodiversity
                else "No biodiversity assessment found"
            ),
            recommendation=None if has_biodiversity else "Include environmental impact assessment",
        )
    )

    return outcomes
