"""Converts analyzer outputs into the canonical section tree."""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from aeo_audit.errors import AnalyzerFault
from aeo_audit.models import (
    AnalyzerOutput,
    CanonicalOutput,
    LegacyComponent,
    LegacyOutput,
    Recommendation,
    Section,
)
from aeo_audit.sections import build_metric, build_section, build_subsection, error_section

logger = logging.getLogger(__name__)

UNMATCHED_SOLUTION = "Consult the relevant documentation or use a validation tool."
LEGACY_IMPACT = 5
UNAVAILABLE_IMPACT = 3

_output_adapter = TypeAdapter(AnalyzerOutput)


@dataclass(frozen=True)
class ComponentLayout:
    key: str
    id: str
    name: str
    weight: int
    description: str = ""
    success_message: str = ""


@dataclass(frozen=True)
class SectionLayout:
    name: str
    description: str
    components: tuple[ComponentLayout, ...]


# Flat breakdowns by category: component key -> subsection
LEGACY_LAYOUTS = {
    "accessibility": SectionLayout(
        name="Accessibility",
        description="Is the content available without JavaScript, fast, and described for non-visual agents?",
        components=(
            ComponentLayout(
                "criticalDOM",
                "critical-dom",
                "Critical DOM Availability",
                40,
                "Content, navigation and landmarks present before JavaScript runs.",
                "Critical content is available in the static HTML.",
            ),
            ComponentLayout(
                "performance",
                "performance",
                "Performance",
                35,
                "Lab performance measured by PageSpeed Insights.",
                "Page performance is good.",
            ),
            ComponentLayout(
                "images",
                "images",
                "Image Accessibility",
                25,
                "Alternative text and loading behaviour of images.",
                "Images are described and load efficiently.",
            ),
        ),
    ),
    "readability": SectionLayout(
        name="Readability",
        description="How clear, well-organized and precise the prose is.",
        components=(
            ComponentLayout("fleschScore", "flesch-score", "Reading Ease", 40),
            ComponentLayout("sentenceComplexity", "sentence-complexity", "Sentence Complexity", 35),
            ComponentLayout("contentDensity", "content-density", "Content Density", 25),
        ),
    ),
}


def allocate_maxima(weights: dict[str, int], total: int = 100) -> dict[str, int]:
    """
    Scale weights to integers summing to `total` (largest remainder method).

    Args:
        weights: Relative weight per key
        total: Target sum

    Returns:
        Integer share per key
    """
    weight_sum = sum(weights.values())
    if weight_sum <= 0:
        return {key: 0 for key in weights}
    exact = {key: weight * total / weight_sum for key, weight in weights.items()}
    shares = {key: int(value) for key, value in exact.items()}
    leftover = total - sum(shares.values())
    by_remainder = sorted(exact, key=lambda key: exact[key] - shares[key], reverse=True)
    for key in by_remainder[:leftover]:
        shares[key] += 1
    return shares


def merge_problems(problems: list[str], solutions: list[str]) -> list[Recommendation]:
    """Pair problems with solutions by position; unmatched problems get a generic fix."""
    return [
        Recommendation(
            problem=problem,
            solution=solutions[index] if index < len(solutions) else UNMATCHED_SOLUTION,
            impact=LEGACY_IMPACT,
        )
        for index, problem in enumerate(problems)
    ]


def _from_canonical(output: CanonicalOutput) -> Section:
    """Rebuild the tree so every total and status is derived from metric scores."""
    section = output.section
    subsections = [
        build_subsection(
            id=sub.id,
            name=sub.name,
            max_score=sub.max_score,
            description=sub.description,
            metrics=[
                build_metric(
                    id=metric.id,
                    name=metric.name,
                    score=metric.score,
                    max_score=metric.max_score,
                    explanation=metric.explanation,
                    recommendations=list(metric.recommendations),
                    success_message=metric.success_message,
                    raw_data=metric.raw_data,
                )
                for metric in sub.metrics
            ],
        )
        for sub in section.subsections
    ]
    rebuilt = build_section(
        id=section.id,
        name=section.name,
        description=section.description,
        weight_percentage=section.weight_percentage,
        subsections=subsections,
    )
    error = output.error or section.error
    return rebuilt.model_copy(update={"error": error}) if error else rebuilt


def _layout_for(output: LegacyOutput) -> SectionLayout:
    layout = LEGACY_LAYOUTS.get(output.category)
    if layout is not None:
        return layout
    # Unknown category: one equally weighted subsection per component
    return SectionLayout(
        name=output.category,
        description="",
        components=tuple(
            ComponentLayout(key, key, key, 1) for key in output.breakdown
        ),
    )


def _from_legacy(output: LegacyOutput) -> Section:
    """
    Expand a flat `{score, breakdown}` into subsections.

    Available components share 100 points in proportion to their weights;
    unavailable ones become zero-max subsections that explain the gap.
    """
    if output.error:
        raise AnalyzerFault(output.error)
    layout = _layout_for(output)
    available: dict[str, LegacyComponent] = {
        component.key: output.breakdown[component.key]
        for component in layout.components
        if component.key in output.breakdown
        and output.breakdown[component.key].available
        and output.breakdown[component.key].score is not None
    }
    if not available:
        raise AnalyzerFault(f"No usable components in {output.category} breakdown")

    maxima = allocate_maxima(
        {component.key: component.weight for component in layout.components if component.key in available}
    )

    subsections = []
    for component in layout.components:
        data = available.get(component.key)
        if data is not None:
            max_score = maxima[component.key]
            metric = build_metric(
                id=component.id,
                name=component.name,
                score=max(0.0, min(100.0, data.score)) * max_score / 100,
                max_score=max_score,
                explanation=data.details,
                recommendations=merge_problems(data.problems, data.solutions),
                success_message=component.success_message,
                raw_data=data.raw_data or None,
            )
        else:
            max_score = 0
            missing = output.breakdown.get(component.key)
            reason = missing.details if missing and missing.details else "no data"
            metric = build_metric(
                id=component.id,
                name=component.name,
                score=0,
                max_score=0,
                explanation=f"Not measured: {reason}",
                recommendations=[
                    Recommendation(
                        problem=f"{component.name} could not be measured ({reason})",
                        solution="Configure the external service or retry later; this check was left out of the score.",
                        impact=UNAVAILABLE_IMPACT,
                    )
                ],
            )
        subsections.append(
            build_subsection(
                id=component.id,
                name=component.name,
                max_score=max_score,
                metrics=[metric],
                description=component.description,
            )
        )

    return build_section(
        id=output.category,
        name=layout.name,
        description=layout.description,
        subsections=subsections,
    )


def legacy_total(output: LegacyOutput) -> int:
    """
    Total score the normalized section will carry for a legacy output.

    Producers use this for their flat `score` so it always matches the
    section built from the same breakdown.

    Raises:
        AnalyzerFault: If the breakdown has no usable component
    """
    return _from_legacy(output).total_score


_CONVERTERS: dict[str, Callable[[Any], Section]] = {
    "canonical": _from_canonical,
    "legacy": _from_legacy,
}


def normalize(output: AnalyzerOutput, weight_percentage: int = 0) -> Section:
    """
    Convert an analyzer output into a canonical Section.

    Args:
        output: Canonical or legacy analyzer output
        weight_percentage: Category weight to record on the section

    Returns:
        Section with recomputed totals and statuses. A failed conversion
        yields the standard error section.
    """
    try:
        section = _CONVERTERS[output.kind](output)
    except Exception as e:
        logger.exception(f"Failed to normalize {output.category} output: {e}")
        section = error_section(
            output.category,
            output.category,
            f"Result could not be normalized: {e}",
        )
    return section.model_copy(update={"weight_percentage": weight_percentage})


def parse_output(payload: dict) -> AnalyzerOutput:
    """
    Validate a raw analyzer payload against the tagged output union.

    Raises:
        ValidationError: If the payload has no recognizable `kind` tag or
            does not match its variant
    """
    return _output_adapter.validate_python(payload)


def normalize_payload(payload: dict, category: str, weight_percentage: int = 0) -> Section:
    """Normalize an untyped payload; invalid payloads become an error section."""
    try:
        output = parse_output(payload)
    except ValidationError as e:
        logger.error(f"Invalid {category} payload: {e.error_count()} validation error(s)")
        return error_section(
            category,
            category,
            "Result has an unrecognized shape",
            weight_percentage=weight_percentage,
        )
    return normalize(output, weight_percentage)
