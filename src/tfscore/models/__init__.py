"""Input models: project record and per-assessment extracted evidence."""

from tfscore.models.common import (
    FALLBACK_CONFIDENCE,
    MIN_CONFIDENCE_THRESHOLD,
    EvaluationSource,
)
from tfscore.models.inputs import (
    AssessmentRequest,
    ComponentSections,
    ExtractedFields,
    ProjectContext,
)
from tfscore.models.project import EmissionsProfile, ProjectRecord, Sector

__all__ = [
    "FALLBACK_CONFIDENCE",
    "MIN_CONFIDENCE_THRESHOLD",
    "AssessmentRequest",
    "ComponentSections",
    "EmissionsProfile",
    "EvaluationSource",
    "ExtractedFields",
    "ProjectContext",
    "ProjectRecord",
    "Sector",
]
