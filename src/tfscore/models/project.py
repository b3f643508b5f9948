"""Project record: the immutable description of a financed project.

The record is produced upstream by document extraction and is read-only
for the duration of one assessment.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Sector(StrEnum):
    """Economic sector of the financed project."""

    ENERGY = "energy"
    MINING = "mining"
    AGRICULTURE = "agriculture"
    TRANSPORT = "transport"
    MANUFACTURING = "manufacturing"
    OTHER = "other"


class EmissionsProfile(BaseModel):
    """Annual emissions by scope, in tCO2e."""

    model_config = ConfigDict(frozen=True)

    scope1: float = Field(default=0.0, ge=0.0)
    scope2: float = Field(default=0.0, ge=0.0)
    scope3: float | None = Field(default=None, ge=0.0)

    def operational_total(self) -> float:
        """Scope 1 + scope 2."""
        return self.scope1 + self.scope2


class ProjectRecord(BaseModel):
    """Structured project facts used by every scoring unit."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1)
    sector: Sector = Field(..., description="Sector used for harm weighting and red-flag rules")
    country: str = Field(default="")
    project_type: str = Field(default="")
    description: str = Field(default="")

    total_cost: float = Field(default=0.0, ge=0.0)
    debt_amount: float = Field(default=0.0, ge=0.0)
    equity_amount: float = Field(default=0.0, ge=0.0)

    current_emissions: EmissionsProfile = Field(default_factory=EmissionsProfile)
    target_emissions: EmissionsProfile = Field(default_factory=EmissionsProfile)
    total_baseline_emissions: float | None = Field(default=None, ge=0.0)
    total_target_emissions: float | None = Field(default=None, ge=0.0)
    stated_reduction_percent: float | None = Field(default=None)
    target_year: int = Field(default=0, ge=0)

    transition_strategy: str = Field(default="")
    has_published_plan: bool = Field(default=False)
    third_party_verification: bool = Field(default=False)

    raw_document_text: str | None = Field(
        default=None, description="Original document text, used only for evidence scanning"
    )

    def baseline_total(self) -> float:
        """Baseline emissions, preferring the document-stated total."""
        if self.total_baseline_emissions is not None:
            return self.total_baseline_emissions
        return self.current_emissions.operational_total()

    def target_total(self) -> float:
        """Target emissions, preferring the document-stated total."""
        if self.total_target_emissions is not None:
            return self.total_target_emissions
        return self.target_emissions.operational_total()

    def reduction_percent(self) -> float | None:
        """Planned reduction in percent, or None when it cannot be computed."""
        if self.stated_reduction_percent is not None:
            return self.stated_reduction_percent
        baseline = self.baseline_total()
        if baseline <= 0:
            return None
        return (baseline - self.target_total()) / baseline * 100.0

    def document_text(self) -> str:
        """Raw document text, or description + strategy when none was captured."""
        if self.raw_document_text:
            return self.raw_document_text
        return f"{self.description} {self.transition_strategy}"
