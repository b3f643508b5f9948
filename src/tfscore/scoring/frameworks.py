"""Transition-loan framework definitions.

Each component is worth 20 points, split across fixed sub-criteria. The
definitions here are the single source for criterion names, point
allocations, and the rubric text sent to the adjudicator.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tfscore.scoring.models import COMPONENT_MAX_SCORE, ComponentType

FRAMEWORK_REFERENCE = (
    "Base your evaluation on the Loan Market Association (LMA) Transition Finance "
    "Principles and the LMA Guide to Transition Loans."
)

DRAFT_CONTEXT = (
    "You are evaluating a DRAFT transition loan document. Commitments and planned "
    'actions ("will engage", "committed to", "will report annually") count as FULLY '
    "MET: a draft proposes commitments, it cannot claim completed actions."
)


class CriterionDefinition(BaseModel):
    """One scored sub-criterion with its rubric bands."""

    model_config = ConfigDict(frozen=True)

    name: str
    max_points: int = Field(..., gt=0)
    question: str
    full: str
    partial: str
    missing: str


class ComponentFramework(BaseModel):
    """A framework component and its sub-criteria."""

    model_config = ConfigDict(frozen=True)

    component: ComponentType
    name: str
    criteria: tuple[CriterionDefinition, ...]

    @model_validator(mode="after")
    def _points_sum_to_max(self) -> ComponentFramework:
        """Fail closed: sub-criterion points must total the component maximum."""
        total = sum(c.max_points for c in self.criteria)
        if total != COMPONENT_MAX_SCORE:
            raise ValueError(
                f"Component '{self.component}' criteria total {total}, "
                f"expected {COMPONENT_MAX_SCORE}"
            )
        return self

    def criterion(self, name: str) -> CriterionDefinition:
        """Look up a criterion by case-insensitive name."""
        wanted = name.strip().lower()
        for definition in self.criteria:
            if definition.name.lower() == wanted:
                return definition
        raise KeyError(name)


FRAMEWORKS: dict[ComponentType, ComponentFramework] = {
    ComponentType.STRATEGY: ComponentFramework(
        component=ComponentType.STRATEGY,
        name="Entity-level Transition Strategy",
        criteria=(
            CriterionDefinition(
                name="Published transition plan",
                max_points=5,
                question="Is there a documented transition plan or strategy?",
                full="Clear transition plan or strategy (this document counts)",
                partial="Vague or incomplete strategy",
                missing="No strategy evident",
            ),
            CriterionDefinition(
                name="Paris Agreement alignment",
                max_points=5,
                question="Does it target 1.5C or well-below 2C?",
                full="Explicit reference to 1.5C, Paris Agreement, SBTi-aligned targets, or NDC",
                partial="General climate targets without specific alignment",
                missing="No climate alignment mentioned",
            ),
            CriterionDefinition(
                name="Economy-wide coverage",
                max_points=5,
                question="Does it cover the entire entity, not just this project?",
                full="Strategy applies to the whole organization",
                partial="Covers multiple operations but not comprehensive",
                missing="Isolated project with no entity context",
            ),
            CriterionDefinition(
                name="Third-party verification",
                max_points=5,
                question="Is verification addressed?",
                full="Third-party verification completed, planned, or committed",
                partial="Self-assessment only",
                missing="No verification mentioned",
            ),
        ),
    ),
    ComponentType.PROCEEDS: ComponentFramework(
        component=ComponentType.PROCEEDS,
        name="Use of Proceeds",
        criteria=(
            CriterionDefinition(
                name="Eligible transition activities",
                max_points=7,
                question="Are proceeds allocated to eligible transition activities?",
                full="Eligible activities defined (renewables, efficiency, clean tech)",
                partial="Some eligible activities but vague or incomplete",
                missing="No clear definition of eligible activities",
            ),
            CriterionDefinition(
                name="Quantifiable emissions reductions",
                max_points=7,
                question="Are expected emissions reductions quantified?",
                full='Specific numbers or percentages (e.g. "28% reduction", "12,000 tCO2e")',
                partial="General reduction goals without quantification",
                missing="No quantified reduction expectations",
            ),
            CriterionDefinition(
                name="No carbon lock-in",
                max_points=6,
                question="Does it avoid lock-in of carbon-intensive assets?",
                full="No fossil investment and proceeds restricted to transition activities",
                partial="Avoids fossil fuels but restrictions unclear",
                missing="Risk of carbon lock-in",
            ),
        ),
    ),
    ComponentType.SELECTION: ComponentFramework(
        component=ComponentType.SELECTION,
        name="Project Evaluation & Selection",
        criteria=(
            CriterionDefinition(
                name="Clear selection criteria",
                max_points=7,
                question="Are project selection criteria defined?",
                full="Explicit eligibility criteria for projects or activities",
                partial="Some criteria but incomplete",
                missing="No criteria defined",
            ),
            CriterionDefinition(
                name="Sectoral decarbonization alignment",
                max_points=7,
                question="Is it aligned with a sectoral decarbonization pathway?",
                full="References SBTi, Paris, NDC, sectoral pathways, or 1.5C alignment",
                partial="General decarbonization without a specific pathway",
                missing="No sectoral alignment",
            ),
            CriterionDefinition(
                name="Governance structure",
                max_points=6,
                question="Is a governance structure described?",
                full="Board oversight, committee, or approval process (proposed counts)",
                partial="Some governance but incomplete",
                missing="No governance mentioned",
            ),
        ),
    ),
    ComponentType.MANAGEMENT: ComponentFramework(
        component=ComponentType.MANAGEMENT,
        name="Management of Proceeds",
        criteria=(
            CriterionDefinition(
                name="Dedicated tracking system",
                max_points=10,
                question="Is fund tracking addressed?",
                full="Dedicated account, segregated funds, sub-account, or tracking system",
                partial="General financial management without specific tracking",
                missing="No tracking mentioned",
            ),
            CriterionDefinition(
                name="Unallocated proceeds process",
                max_points=10,
                question="Is management of unallocated proceeds addressed?",
                full="Policy for temporary holding of funds (treasury, eligible investments)",
                partial="Some fund management but process unclear",
                missing="No process for unallocated proceeds",
            ),
        ),
    ),
    ComponentType.REPORTING: ComponentFramework(
        component=ComponentType.REPORTING,
        name="Reporting",
        criteria=(
            CriterionDefinition(
                name="Annual reporting commitment",
                max_points=7,
                question="Is annual reporting addressed?",
                full="Commitment to annual or regular reporting on proceeds and impact",
                partial="Some reporting mentioned but frequency unclear",
                missing="No reporting commitment",
            ),
            CriterionDefinition(
                name="Emissions impact reporting",
                max_points=7,
                question="Will emissions reductions be reported?",
                full="Commitment to report emissions or impact metrics (KPIs, tCO2e)",
                partial="General impact reporting without emissions specifics",
                missing="No emissions reporting",
            ),
            CriterionDefinition(
                name="External verification",
                max_points=6,
                question="Is external verification addressed?",
                full="Commitment to third-party verification, audit, or second-party opinion",
                partial="Internal review only",
                missing="No verification mentioned",
            ),
        ),
    ),
}


def get_framework(component: ComponentType) -> ComponentFramework:
    """Return the framework definition for a component.

    Raises:
        KeyError: If the component is unknown.
    """
    return FRAMEWORKS[ComponentType(component)]


def render_rubric(framework: ComponentFramework) -> str:
    """Render the adjudicator rubric for one component."""
    lines = [
        "You are an expert evaluator for transition finance loans.",
        FRAMEWORK_REFERENCE,
        "",
        f"IMPORTANT CONTEXT: {DRAFT_CONTEXT}",
        "",
        f"Evaluate the {framework.name} component ({COMPONENT_MAX_SCORE} points max).",
        "",
        "## Criteria to Evaluate:",
    ]
    for index, c in enumerate(framework.criteria, start=1):
        lines.append(f"{index}. {c.name} ({c.max_points} points): {c.question}")
        lines.append(f"   - Full ({c.max_points}): {c.full}")
        lines.append(f"   - Partial: {c.partial}")
        lines.append(f"   - Missing (0): {c.missing}")
    lines.extend(
        [
            "",
            "Keep all text concise (max 50 words per field).",
            "",
            "Return a JSON object with this exact structure:",
            "{",
            f'  "component": "{framework.component.value}",',
            f'  "score": <0-{COMPONENT_MAX_SCORE}>,',
            '  "confidence": <0-100>,',
            '  "subScores": [{"criterion": "<name>", "maxPoints": <n>, "points": <0-n>,'
            ' "status": "met|partial|missing", "evidence": "<max 30 words>",'
            ' "reasoning": "<max 20 words>"}],',
            '  "overallReasoning": "<1 sentence>",',
            '  "improvements": ["<max 15 words each>"],',
            '  "keyQuotes": [{"quote": "<max 30 words>", "relevance": "<max 15 words>"}]',
            "}",
        ]
    )
    return "\n".join(lines)
