"""Enums shared by the component, harm, and risk units."""

from __future__ import annotations

from enum import StrEnum

# Adjudicated results below this confidence are discarded.
MIN_CONFIDENCE_THRESHOLD = 30.0
# Confidence reported by every deterministic strategy.
FALLBACK_CONFIDENCE = 50.0


class EvaluationSource(StrEnum):
    """Which strategy produced a unit's result."""

    ADJUDICATED = "adjudicated"
    KEYWORD_FALLBACK = "keyword_fallback"
    FAILED = "failed"
