"""Risk signal models: rule-based red flags and their aggregate."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(StrEnum):
    """Severity of a red flag or of the aggregate risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RedFlagCategory(StrEnum):
    """Area of the disclosure a red flag concerns."""

    COMMITMENT = "commitment"
    SCOPE = "scope"
    AMBITION = "ambition"
    VERIFICATION = "verification"
    TECHNOLOGY = "technology"
    BASELINE = "baseline"


class RedFlag(BaseModel):
    """One triggered red-flag rule."""

    model_config = ConfigDict(frozen=True)

    flag_id: str
    category: RedFlagCategory
    severity: RiskLevel
    description: str
    recommendation: str


class RedFlagAssessment(BaseModel):
    """Deterministic rule-based risk result."""

    model_config = ConfigDict(frozen=True)

    risk_score: int = Field(..., ge=0, le=100, description="Higher means more risk")
    overall_risk: RiskLevel
    red_flags: list[RedFlag] = Field(default_factory=list)
    positive_indicators: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
