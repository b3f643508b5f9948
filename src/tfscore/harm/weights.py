"""Sector-specific objective weights and score normalization."""

from __future__ import annotations

from collections.abc import Sequence

from tfscore.harm.models import (
    MAX_OBJECTIVE_SCORE,
    AssessedObjective,
    HarmObjective,
    IncompatibleObjective,
)
from tfscore.models.project import Sector

DEFAULT_WEIGHT = 1.0

SECTOR_WEIGHTS: dict[Sector, dict[HarmObjective, float]] = {
    Sector.ENERGY: {
        HarmObjective.CLIMATE_MITIGATION: 1.5,
        HarmObjective.POLLUTION_PREVENTION: 1.2,
    },
    Sector.MINING: {
        HarmObjective.WATER_RESOURCES: 1.5,
        HarmObjective.BIODIVERSITY: 1.5,
        HarmObjective.POLLUTION_PREVENTION: 1.3,
    },
    Sector.AGRICULTURE: {
        HarmObjective.WATER_RESOURCES: 1.3,
        HarmObjective.BIODIVERSITY: 1.5,
        HarmObjective.CIRCULAR_ECONOMY: 1.2,
    },
    Sector.TRANSPORT: {
        HarmObjective.CLIMATE_MITIGATION: 1.3,
        HarmObjective.POLLUTION_PREVENTION: 1.2,
    },
    Sector.MANUFACTURING: {
        HarmObjective.POLLUTION_PREVENTION: 1.3,
        HarmObjective.CIRCULAR_ECONOMY: 1.3,
        HarmObjective.WATER_RESOURCES: 1.2,
    },
}


def objective_weight(sector: Sector, objective: HarmObjective) -> float:
    """Weight of an objective for a sector (1.0 when unlisted)."""
    return SECTOR_WEIGHTS.get(sector, {}).get(objective, DEFAULT_WEIGHT)


def normalized_score(
    objectives: Sequence[AssessedObjective | IncompatibleObjective],
    sector: Sector,
) -> int:
    """Compute the sector-weighted 0-100 score.

    normalized = round(100 * sum(score_i * w_i) / sum(4 * w_i))

    Args:
        objectives: Objective results.
        sector: Project sector selecting the weights.

    Returns:
        Integer score in [0, 100]; 0 when there are no objectives.
    """
    weighted = 0.0
    max_weighted = 0.0
    for result in objectives:
        weight = objective_weight(sector, result.objective)
        weighted += result.score * weight
        max_weighted += MAX_OBJECTIVE_SCORE * weight
    if max_weighted <= 0:
        return 0
    return round(weighted / max_weighted * 100)
