"""Audit orchestration: fetch, analyze, normalize, aggregate."""

import logging
import time

from aeo_audit.aggregator import ScoreAggregator
from aeo_audit.analyzers import (
    AccessibilityAnalyzer,
    AnalysisContext,
    BaseAnalyzer,
    DiscoverabilityAnalyzer,
    LLMFormattingAnalyzer,
    ReadabilityAnalyzer,
    StructuredDataAnalyzer,
)
from aeo_audit.cache import ResultCache
from aeo_audit.concurrency import settle_all
from aeo_audit.config import settings
from aeo_audit.fetcher import Fetcher
from aeo_audit.models import (
    AuditAnalysis,
    AuditData,
    AuditResponse,
    AuditSummary,
    CanonicalOutput,
    FetchBundle,
    GlobalPenalty,
    Section,
)
from aeo_audit.normalizer import normalize
from aeo_audit.pagespeed import PageSpeedClient
from aeo_audit.rendering import BrowserPool, Renderer
from aeo_audit.sections import error_section
from aeo_audit.urls import normalize_url

logger = logging.getLogger(__name__)


def default_analyzers(
    renderer: Renderer | None = None,
    pagespeed: PageSpeedClient | None = None,
) -> list[BaseAnalyzer]:
    return [
        DiscoverabilityAnalyzer(),
        StructuredDataAnalyzer(),
        LLMFormattingAnalyzer(),
        AccessibilityAnalyzer(renderer=renderer, pagespeed=pagespeed),
        ReadabilityAnalyzer(),
    ]


class AuditService:
    """
    Runs complete single-page audits.

    One instance is shared by the application; it owns the HTTP client,
    the browser pool and the result cache.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        analyzers: list[BaseAnalyzer] | None = None,
        aggregator: ScoreAggregator | None = None,
        cache: ResultCache | None = None,
        renderer: Renderer | None = None,
    ):
        self.fetcher = fetcher or Fetcher()
        self.renderer = renderer
        self.analyzers = analyzers if analyzers is not None else default_analyzers(renderer)
        self.aggregator = aggregator or ScoreAggregator()
        self.cache = cache

    @classmethod
    def from_settings(cls) -> "AuditService":
        """Build a service wired to the real renderer, PageSpeed and cache."""
        renderer = BrowserPool() if settings.render_enabled else None
        cache = (
            ResultCache(ttl=settings.cache_ttl_seconds, maxsize=settings.cache_max_entries)
            if settings.cache_enabled
            else None
        )
        return cls(
            analyzers=default_analyzers(renderer, PageSpeedClient()),
            cache=cache,
            renderer=renderer,
        )

    async def aclose(self) -> None:
        await self.fetcher.aclose()
        if isinstance(self.renderer, BrowserPool):
            await self.renderer.close()

    async def audit(self, raw_url: str) -> AuditResponse:
        """
        Audit one page.

        Args:
            raw_url: URL as submitted by the user

        Returns:
            AuditResponse; a failed HTML fetch yields success=False with
            the analysis still populated

        Raises:
            InputValidationError: If the URL is rejected before any I/O
        """
        url = normalize_url(raw_url)
        if self.cache is None:
            return await self._audit(url)
        return await self.cache.get_or_compute(
            url,
            lambda: self._audit(url),
            cache_if=lambda response: response.success and response.analysis is not None,
        )

    async def _audit(self, url: str) -> AuditResponse:
        started = time.perf_counter()
        logger.info(f"Starting audit of {url}")

        bundle = await self.fetcher.fetch_all(url)
        fetch_ms = int((time.perf_counter() - started) * 1000)

        analysis = None
        try:
            analysis = await self._analyze(url, bundle)
        except Exception as e:
            logger.exception(f"Analysis failed unexpectedly for {url}: {e}")

        successes = sum(1 for result in bundle.results() if result.success)
        total_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Finished audit of {url} in {total_ms}ms "
            f"(score={analysis.aeo_score.total_score if analysis else None})"
        )

        return AuditResponse(
            success=bundle.html.success,
            data=AuditData(
                url=url,
                html=bundle.html,
                robots_txt=bundle.robots,
                sitemap=bundle.sitemap,
                metadata={
                    "fetchTimeMs": fetch_ms,
                    "finalUrl": bundle.html.metadata.final_url,
                },
            ),
            analysis=analysis,
            summary=AuditSummary(
                total_time_ms=total_ms,
                success_count=successes,
                failure_count=len(bundle.results()) - successes,
                partial_success=0 < successes < len(bundle.results()),
                analysis_completed=analysis is not None,
            ),
        )

    async def _analyze(self, url: str, bundle: FetchBundle) -> AuditAnalysis:
        context = AnalysisContext(url=url, bundle=bundle)
        outcomes = await settle_all(*(analyzer.run(context) for analyzer in self.analyzers))

        sections: dict[str, Section] = {}
        scores: dict[str, float | None] = {}
        penalties: list[GlobalPenalty] = []

        for analyzer, outcome in zip(self.analyzers, outcomes):
            if outcome.ok:
                output = outcome.value
            else:
                logger.error(f"{analyzer.name} escaped its error boundary: {outcome.error!r}")
                output = analyzer.error_output(f"{analyzer.title} analysis failed: {outcome.error}")

            section = normalize(output, self.aggregator.weights.get(analyzer.category, 0))
            sections[analyzer.category] = section
            scores[analyzer.category] = None if section.error else section.total_score
            if isinstance(output, CanonicalOutput) and not section.error:
                penalties.extend(output.penalties)

        composite = self.aggregator.aggregate(scores, penalties)

        def section_for(category: str, title: str) -> Section:
            if category in sections:
                return sections[category]
            return error_section(
                category,
                title,
                f"{title} analysis was not run",
                weight_percentage=self.aggregator.weights.get(category, 0),
            )

        return AuditAnalysis(
            discoverability=section_for("discoverability", "Discoverability"),
            structured_data=section_for("structuredData", "Structured Data"),
            llm_formatting=section_for("llmFormatting", "LLM Formatting"),
            accessibility=section_for("accessibility", "Accessibility"),
            readability=section_for("readability", "Readability"),
            aeo_score=composite,
        )


# Convenience function for direct usage
async def run_audit(url: str) -> AuditResponse:
    """Run a one-off audit with default settings and no cache."""
    renderer = BrowserPool() if settings.render_enabled else None
    service = AuditService(
        analyzers=default_analyzers(renderer, PageSpeedClient()),
        renderer=renderer,
    )
    try:
        return await service.audit(url)
    finally:
        await service.aclose()
