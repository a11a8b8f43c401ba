"""Accessibility analysis: rendered-vs-static DOM, performance and images.

Produces the flat component breakdown (`LegacyOutput`); the normalizer
turns it into a section tree.
"""

import asyncio
import logging

from bs4 import BeautifulSoup

from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer, parse_html
from aeo_audit.analyzers.text_metrics import NON_CONTENT_TAGS
from aeo_audit.concurrency import settle_all
from aeo_audit.config import settings
from aeo_audit.errors import AnalyzerFault, ExternalServiceError
from aeo_audit.models import LegacyComponent, LegacyOutput
from aeo_audit.normalizer import legacy_total
from aeo_audit.pagespeed import PageSpeedClient
from aeo_audit.recommendations.rules import ACCESSIBILITY_PROBLEMS
from aeo_audit.rendering import Renderer
from aeo_audit.scoring import round_half_up

logger = logging.getLogger(__name__)

# Breakdown keys in check order; their weights live in the normalizer layout
COMPONENTS = ("criticalDOM", "performance", "images")

SEMANTIC_ELEMENTS = ["header", "nav", "main", "article", "section", "aside", "footer"]
NAV_LINK_SELECTOR = "nav a, [role=navigation] a"

# Ratio thresholds mapped to 100 / 75 / 50, else 25
DOM_THRESHOLDS = {
    "content": (80, 60, 40),
    "navigation": (90, 70, 50),
    "semantic": (85, 65, 45),
}
DOM_MIX = {"content": 0.4, "navigation": 0.3, "semantic": 0.3}


def dom_stats(soup: BeautifulSoup) -> dict:
    """Count text, navigation links and landmarks in a document."""
    for tag in soup.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    body = soup.body or soup
    return {
        "content": len(body.get_text(" ", strip=True)),
        "navigation": len(soup.select(NAV_LINK_SELECTOR)),
        "semantic": len(soup.find_all(SEMANTIC_ELEMENTS)),
    }


def availability_ratio(static: int, rendered: int) -> float:
    """Percent of the rendered feature already present statically, capped at 100."""
    if rendered == 0:
        return 100.0
    return min(100.0, static / rendered * 100)


def threshold_score(ratio: float, thresholds: tuple[float, float, float]) -> int:
    high, medium, low = thresholds
    if ratio >= high:
        return 100
    if ratio >= medium:
        return 75
    if ratio >= low:
        return 50
    return 25


def compare_dom(static_html: str, rendered_html: str) -> LegacyComponent:
    """
    Score how much of the rendered page exists without JavaScript.

    Args:
        static_html: HTML as served
        rendered_html: DOM after scripts ran

    Returns:
        The critical DOM component, scored 0-100
    """
    static_soup = parse_html(static_html)
    headings = [int(tag.name[1]) for tag in static_soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])]
    aria = {
        "ariaLabels": len(static_soup.find_all(attrs={"aria-label": True})),
        "roles": len(static_soup.find_all(attrs={"role": True})),
    }

    static = dom_stats(static_soup)
    rendered = dom_stats(parse_html(rendered_html))

    ratios = {key: availability_ratio(static[key], rendered[key]) for key in DOM_THRESHOLDS}
    scores = {key: threshold_score(ratios[key], DOM_THRESHOLDS[key]) for key in DOM_THRESHOLDS}
    total = sum(scores[key] * DOM_MIX[key] for key in DOM_MIX)

    problems, solutions = [], []
    for key in DOM_THRESHOLDS:
        if scores[key] < 100:
            problem, solution = ACCESSIBILITY_PROBLEMS["criticalDOM"][key]
            problems.append(problem)
            solutions.append(solution)

    return LegacyComponent(
        score=round_half_up(total),
        details=(
            f"Static HTML holds {ratios['content']:.0f}% of rendered text, "
            f"{ratios['navigation']:.0f}% of navigation links and "
            f"{ratios['semantic']:.0f}% of landmarks."
        ),
        problems=problems,
        solutions=solutions,
        raw_data={
            "static": static,
            "rendered": rendered,
            "ratios": {key: round(value, 1) for key, value in ratios.items()},
            "scores": scores,
            "headingLevels": headings[:50],
            **aria,
        },
    )


def _is_decorative(img) -> bool:
    return (img.get("role") or "").lower() in ("presentation", "none") or (
        img.get("aria-hidden") or ""
    ).lower() == "true"


def audit_images(html: str) -> LegacyComponent:
    """Score alt-text coverage with a small bonus for lazy loading."""
    soup = parse_html(html)
    images = soup.find_all("img")
    total = len(images)
    if total == 0:
        return LegacyComponent(score=100, details="No images on the page.", raw_data={"total": 0})

    decorative = [img for img in images if _is_decorative(img)]
    missing_alt = [
        img for img in images if not _is_decorative(img) and not (img.get("alt") or "").strip()
    ]
    lazy = [img for img in images if (img.get("loading") or "").lower() == "lazy"]

    alt_ratio = (total - len(missing_alt)) / total
    lazy_ratio = len(lazy) / total
    score = min(100.0, alt_ratio * 100 + lazy_ratio * 10)

    problems, solutions = [], []
    if missing_alt:
        problem, solution = ACCESSIBILITY_PROBLEMS["images"]["alt"]
        problems.append(problem.format(count=len(missing_alt), total=total))
        solutions.append(solution)
    if total >= 3 and lazy_ratio < 0.5:
        problem, solution = ACCESSIBILITY_PROBLEMS["images"]["lazy"]
        problems.append(problem.format(count=len(lazy), total=total))
        solutions.append(solution)

    return LegacyComponent(
        score=round_half_up(score),
        details=f"{total - len(missing_alt)}/{total} images have alt text or are decorative.",
        problems=problems,
        solutions=solutions,
        raw_data={
            "total": total,
            "missingAlt": len(missing_alt),
            "decorative": len(decorative),
            "lazy": len(lazy),
            "missingAltSources": [img.get("src", "")[:120] for img in missing_alt[:10]],
        },
    )


class AccessibilityAnalyzer(BaseAnalyzer):
    """
    Measures whether content is available to crawlers that do not run JavaScript.

    The three checks run concurrently. A check whose external service is
    unavailable drops out and the others are reweighted.
    """

    category = "accessibility"
    title = "Accessibility"
    description = "Is the content available without JavaScript, fast, and described for non-visual agents?"

    def __init__(
        self,
        renderer: Renderer | None = None,
        pagespeed: PageSpeedClient | None = None,
        render_timeout: float | None = None,
    ):
        self.renderer = renderer
        self.pagespeed = pagespeed
        self.render_timeout = render_timeout if render_timeout is not None else settings.render_timeout

    @property
    def name(self) -> str:
        return "accessibility"

    async def analyze(self, context: AnalysisContext) -> LegacyOutput:
        html = context.require_html()

        outcomes = await settle_all(
            self._check_critical_dom(context.url, html),
            self._check_performance(context.url),
            asyncio.to_thread(audit_images, html),
        )

        breakdown = {}
        for name, outcome in zip(COMPONENTS, outcomes):
            if outcome.ok:
                breakdown[name] = outcome.value
                continue
            if isinstance(outcome.error, ExternalServiceError):
                logger.warning(f"{name} check unavailable for {context.url}: {outcome.error}")
            else:
                logger.error(
                    f"{name} check failed for {context.url}: {outcome.error!r}",
                    exc_info=outcome.error,
                )
            breakdown[name] = LegacyComponent(available=False, details=str(outcome.error))

        completed = [name for name, component in breakdown.items() if component.available]
        if not completed:
            raise AnalyzerFault("No accessibility checks could be completed")

        output = LegacyOutput(
            category=self.category,
            breakdown=breakdown,
            raw_data={"completedChecks": completed},
        )
        return output.model_copy(update={"score": legacy_total(output)})

    async def _check_critical_dom(self, url: str, html: str) -> LegacyComponent:
        if self.renderer is None:
            raise ExternalServiceError("Rendering backend not configured")
        try:
            rendered = await asyncio.wait_for(self.renderer.render(url), self.render_timeout)
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(f"Rendering timed out after {self.render_timeout:g}s") from e
        return await asyncio.to_thread(compare_dom, html, rendered)

    async def _check_performance(self, url: str) -> LegacyComponent:
        if self.pagespeed is None:
            raise ExternalServiceError("PageSpeed client not configured")
        report = await self.pagespeed.run(url)
        if report.performance is None:
            raise ExternalServiceError("PageSpeed returned no performance score")

        problems, solutions = [], []
        if report.performance < 70:
            problem, solution = ACCESSIBILITY_PROBLEMS["performance"]["slow"]
            problems.append(problem.format(score=round(report.performance)))
            solutions.append(solution)

        return LegacyComponent(
            score=report.performance,
            details=f"PageSpeed performance {report.performance:.0f}/100.",
            problems=problems,
            solutions=solutions,
            raw_data={
                "accessibility": report.accessibility,
                "coreWebVitals": report.metrics,
                "failedAudits": report.failed_audits,
            },
        )


# Convenience function for direct usage
async def run_accessibility_analysis(
    context: AnalysisContext,
    renderer: Renderer | None = None,
    pagespeed: PageSpeedClient | None = None,
) -> LegacyOutput:
    """Run accessibility analysis on fetched artifacts."""
    return await AccessibilityAnalyzer(renderer, pagespeed).run(context)
