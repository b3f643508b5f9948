"""Per-assessment inputs supplied by the evidence extractor."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tfscore.models.project import ProjectRecord

# Component value -> ComponentSections attribute
_SECTION_FIELDS: dict[str, str] = {
    "strategy": "strategy",
    "proceeds": "use_of_proceeds",
    "selection": "selection",
    "management": "management",
    "reporting": "reporting",
}


class ExtractedFields(BaseModel):
    """Fields pulled from the document that criterion rules look at directly."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(default="")
    transition_plan: str = Field(default="")
    verification_status: str = Field(default="")
    stated_reduction_percent: float | None = Field(default=None)
    total_target_emissions: float | None = Field(default=None)
    extra: dict[str, Any] = Field(default_factory=dict, description="Any other extracted values")

    @classmethod
    def from_project(cls, project: ProjectRecord) -> ExtractedFields:
        """Derive extracted fields from a project record."""
        return cls(
            description=project.description,
            transition_plan=project.transition_strategy,
            verification_status="verified" if project.third_party_verification else "",
            stated_reduction_percent=project.stated_reduction_percent,
            total_target_emissions=project.total_target_emissions,
        )


class ProjectContext(BaseModel):
    """Identifying context passed to the adjudicator with every component."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(default="")
    country: str = Field(default="")
    sector: str = Field(default="")
    project_type: str = Field(default="")

    @classmethod
    def from_project(cls, project: ProjectRecord) -> ProjectContext:
        return cls(
            project_name=project.project_name,
            country=project.country,
            sector=project.sector.value,
            project_type=project.project_type,
        )


class ComponentSections(BaseModel):
    """Document excerpts, one per framework component. Any may be empty."""

    model_config = ConfigDict(frozen=True)

    strategy: str = Field(default="")
    use_of_proceeds: str = Field(default="")
    selection: str = Field(default="")
    management: str = Field(default="")
    reporting: str = Field(default="")

    def for_component(self, component: str) -> str:
        """Return the excerpt for a component.

        Raises:
            KeyError: If the component is unknown.
        """
        return str(getattr(self, _SECTION_FIELDS[str(component)]))


class AssessmentRequest(BaseModel):
    """Everything one assessment needs."""

    model_config = ConfigDict(frozen=True)

    project: ProjectRecord
    sections: ComponentSections = Field(default_factory=ComponentSections)
    extracted_fields: ExtractedFields | None = Field(
        default=None, description="Derived from the project record when omitted"
    )
    ai_risk_score: float | None = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Externally computed adjudicated risk; skips the internal risk call",
    )

    def resolved_fields(self) -> ExtractedFields:
        if self.extracted_fields is not None:
            return self.extracted_fields
        return ExtractedFields.from_project(self.project)
