"""Result model shared by the fetcher, analyzers, normalizer and aggregator."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from aeo_audit.scoring import Status


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Fetching
# =============================================================================

FetchStatus = Literal["ok", "not_found", "error"]
ResourceKind = Literal["html", "robots", "sitemap"]


class FetchMetadata(CamelModel):
    status_code: int | None = None
    content_length: int = 0
    response_time_ms: int = 0
    content_type: str | None = None
    final_url: str | None = None
    redirect_count: int = 0


class FetchResult(CamelModel):
    """Outcome of fetching one resource. Never raised, always returned."""

    success: bool
    url: str
    status: FetchStatus
    content: str | None = None
    error: str | None = None
    metadata: FetchMetadata = Field(default_factory=FetchMetadata)

    @property
    def not_found(self) -> bool:
        return self.status == "not_found"


class FetchBundle(CamelModel):
    """The three artifacts fetched for one audit."""

    html: FetchResult
    robots: FetchResult
    sitemap: FetchResult

    def results(self) -> list[FetchResult]:
        return [self.html, self.robots, self.sitemap]


# =============================================================================
# Section tree
# =============================================================================


class Recommendation(CamelModel):
    problem: str
    solution: str
    explanation: str | None = None
    impact: int = Field(ge=1, le=10)


class Metric(CamelModel):
    id: str
    name: str
    score: int
    max_score: int
    status: Status
    explanation: str = ""
    recommendations: list[Recommendation] = []
    success_message: str = ""
    raw_data: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "Metric":
        if not 0 <= self.score <= self.max_score:
            raise ValueError(
                f"Metric {self.id} score {self.score} outside 0..{self.max_score}"
            )
        return self


class Subsection(CamelModel):
    id: str
    name: str
    description: str = ""
    total_score: int
    max_score: int
    status: Status
    metrics: list[Metric] = []

    @model_validator(mode="after")
    def _check_bounds(self) -> "Subsection":
        if not 0 <= self.total_score <= self.max_score:
            raise ValueError(
                f"Subsection {self.id} total {self.total_score} outside 0..{self.max_score}"
            )
        return self


class Section(CamelModel):
    id: str
    name: str
    description: str = ""
    weight_percentage: int = 0
    total_score: int
    max_score: int = 100
    status: Status
    subsections: list[Subsection] = []
    # Set when the analysis failed; the section then carries no valid score
    error: str | None = None

    def recommendations(self) -> list[Recommendation]:
        """All recommendations in the tree, in document order."""
        return [
            rec
            for subsection in self.subsections
            for metric in subsection.metrics
            for rec in metric.recommendations
        ]


class GlobalPenalty(CamelModel):
    """A site-wide condition that scales the composite score down."""

    type: str
    description: str
    penalty_factor: float = Field(ge=0, le=1)
    details: list[str] = []
    solutions: list[str] = []


# =============================================================================
# Analyzer outputs
# =============================================================================


class CanonicalOutput(CamelModel):
    """Analyzer output already shaped as a section tree."""

    kind: Literal["canonical"] = "canonical"
    category: str
    section: Section
    raw_data: dict[str, Any] = {}
    penalties: list[GlobalPenalty] = []
    error: str | None = None


class LegacyComponent(CamelModel):
    """One component of a flat score breakdown, scored 0-100."""

    score: float | None = None
    available: bool = True
    details: str = ""
    problems: list[str] = []
    solutions: list[str] = []
    raw_data: dict[str, Any] = {}


class LegacyOutput(CamelModel):
    """Analyzer output in the older flat `{score, breakdown}` shape."""

    kind: Literal["legacy"] = "legacy"
    category: str
    score: int | None = None
    max_score: int = 100
    breakdown: dict[str, LegacyComponent] = {}
    raw_data: dict[str, Any] = {}
    error: str | None = None


AnalyzerOutput = Annotated[CanonicalOutput | LegacyOutput, Field(discriminator="kind")]


# =============================================================================
# Composite
# =============================================================================


class CategoryContribution(CamelModel):
    score: float
    weight: int
    contribution: float


class CompositeMetadata(CamelModel):
    base_score: int
    total_weight_used: int
    completed_analyses: int
    total_analyses: int
    total_reduction: float = 0


class CompositeScore(CamelModel):
    total_score: int
    max_score: int = 100
    breakdown: dict[str, CategoryContribution] = {}
    completeness: str
    global_penalties: list[GlobalPenalty] = []
    metadata: CompositeMetadata


# =============================================================================
# Audit response
# =============================================================================


class AuditData(CamelModel):
    url: str
    html: FetchResult
    robots_txt: FetchResult
    sitemap: FetchResult
    metadata: dict[str, Any] = {}


class AuditAnalysis(CamelModel):
    discoverability: Section
    structured_data: Section
    llm_formatting: Section
    accessibility: Section
    readability: Section
    aeo_score: CompositeScore


class AuditSummary(CamelModel):
    total_time_ms: int
    success_count: int
    failure_count: int
    partial_success: bool
    analysis_completed: bool


class AuditResponse(CamelModel):
    """Complete result of one audit. Always uniformly shaped."""

    success: bool
    data: AuditData
    analysis: AuditAnalysis | None = None
    summary: AuditSummary
