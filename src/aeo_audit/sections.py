"""Pure builders for the Section -> Subsection -> Metric tree.

Totals and statuses are always derived here, never taken from callers.
"""

from typing import Any

from aeo_audit.models import Metric, Recommendation, Section, Subsection
from aeo_audit.recommendations.engine import prioritize
from aeo_audit.scoring import clamp, get_status, round_half_up

ERROR_SOLUTION = "Retry the audit; if the problem persists, check that the page is publicly reachable."


def build_metric(
    id: str,
    name: str,
    score: float,
    max_score: int,
    explanation: str = "",
    recommendations: list[Recommendation] | None = None,
    success_message: str = "",
    raw_data: dict[str, Any] | None = None,
) -> Metric:
    """
    Build a metric with a clamped score and derived status.

    Args:
        id: Stable metric identifier
        name: Display name
        score: Points earned, clamped into 0..max_score and rounded
        max_score: Points available
        explanation: What the metric measures and what was found
        recommendations: Problems found, if any
        success_message: Shown only when there are no recommendations
        raw_data: Measurements behind the score

    Returns:
        Immutable Metric
    """
    points = round_half_up(clamp(score, 0, max_score))
    recs = prioritize(recommendations or [])
    return Metric(
        id=id,
        name=name,
        score=points,
        max_score=max_score,
        status=get_status(points, max_score),
        explanation=explanation,
        recommendations=recs,
        success_message="" if recs else success_message,
        raw_data=raw_data,
    )


def build_subsection(
    id: str,
    name: str,
    max_score: int,
    metrics: list[Metric],
    description: str = "",
) -> Subsection:
    """Build a subsection whose total is min(sum of metric scores, max)."""
    total = min(sum(metric.score for metric in metrics), max_score)
    return Subsection(
        id=id,
        name=name,
        description=description,
        total_score=total,
        max_score=max_score,
        status=get_status(total, max_score),
        metrics=metrics,
    )


def build_section(
    id: str,
    name: str,
    subsections: list[Subsection],
    description: str = "",
    weight_percentage: int = 0,
) -> Section:
    """Build a section whose total is min(sum of subsection totals, 100)."""
    total = min(sum(sub.total_score for sub in subsections), 100)
    return Section(
        id=id,
        name=name,
        description=description,
        weight_percentage=weight_percentage,
        total_score=total,
        max_score=100,
        status=get_status(total, 100),
        subsections=subsections,
    )


def error_metric(id: str, name: str, message: str, max_score: int = 100) -> Metric:
    """A zero-score metric carrying one high-impact diagnostic recommendation."""
    return build_metric(
        id=id,
        name=name,
        score=0,
        max_score=max_score,
        explanation=message,
        recommendations=[
            Recommendation(problem=message, solution=ERROR_SOLUTION, impact=10)
        ],
    )


def error_section(
    id: str,
    name: str,
    message: str,
    description: str = "",
    weight_percentage: int = 0,
) -> Section:
    """
    Build the uniform error shape for a failed analysis.

    One error subsection holding one error metric (score 0, max 100).
    """
    metric = error_metric(f"{id}-error", f"{name} Error", message)
    subsection = build_subsection(
        id=f"{id}-error",
        name="Analysis Error",
        max_score=100,
        metrics=[metric],
        description="The analysis could not be completed.",
    )
    section = build_section(
        id=id,
        name=name,
        subsections=[subsection],
        description=description,
        weight_percentage=weight_percentage,
    )
    return section.model_copy(update={"error": message})
