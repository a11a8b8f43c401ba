"""Discoverability analysis: transport, crawl policy and sitemap."""

import asyncio
import logging

from lxml import etree

from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer
from aeo_audit.analyzers.robots import AI_BOTS, blocked_bots, parse_robots
from aeo_audit.models import CanonicalOutput, FetchResult, GlobalPenalty, Metric
from aeo_audit.recommendations.rules import DISCOVERABILITY_ADVICE as ADVICE
from aeo_audit.sections import build_metric, build_section, build_subsection

logger = logging.getLogger(__name__)

ROBOTS_PENALTY_TYPE = "robots_txt_blocking"


def robots_penalty(blocked: list[str], total: int = len(AI_BOTS)) -> GlobalPenalty | None:
    """
    Build the site-wide penalty for blocking AI crawlers.

    All crawlers blocked costs 70%, more than half costs 40%.
    """
    if not blocked or total == 0:
        return None
    ratio = len(blocked) / total
    if ratio >= 1:
        factor = 0.7
    elif ratio > 0.5:
        factor = 0.4
    else:
        return None
    return GlobalPenalty(
        type=ROBOTS_PENALTY_TYPE,
        description=f"Robots.txt blocks {len(blocked)}/{total} major AI bots",
        penalty_factor=factor,
        details=[f"{bot} is disallowed from the site root" for bot in blocked],
        solutions=[
            "Remove `Disallow: /` for AI user agents in robots.txt",
            "Add explicit `Allow: /` groups for the AI crawlers you want to be cited by",
        ],
    )


class DiscoverabilityAnalyzer(BaseAnalyzer):
    """
    Checks whether AI crawlers can find and fetch the page.

    Checks:
    - HTTPS and HTTP status of the page
    - robots.txt access for the major AI crawlers
    - sitemap.xml presence and freshness signals
    """

    category = "discoverability"
    title = "Discoverability"
    description = "Can AI crawlers reach, fetch and index this page?"

    # Scoring weights (total = 100)
    WEIGHTS = {
        "https": 25,
        "http_status": 25,
        "ai_bots": 30,
        "sitemap": 20,
    }

    @property
    def name(self) -> str:
        return "discoverability"

    async def analyze(self, context: AnalysisContext) -> CanonicalOutput:
        return await asyncio.to_thread(self.evaluate, context)

    def evaluate(self, context: AnalysisContext) -> CanonicalOutput:
        bundle = context.bundle
        ai_bots, blocked = self._check_ai_access(bundle.robots)
        metrics = {
            "https": self._check_https(bundle.html, context.url),
            "http_status": self._check_http_status(bundle.html),
            "ai_bots": ai_bots,
            "sitemap": self._check_sitemap(bundle.sitemap),
        }

        section = build_section(
            id=self.category,
            name=self.title,
            description=self.description,
            subsections=[
                build_subsection(
                    id="technical-foundation",
                    name="Technical Foundation",
                    description="Secure transport and a healthy HTTP response.",
                    max_score=self.WEIGHTS["https"] + self.WEIGHTS["http_status"],
                    metrics=[metrics["https"], metrics["http_status"]],
                ),
                build_subsection(
                    id="ai-access",
                    name="AI Access",
                    description="Crawl policy for AI bots and sitemap quality.",
                    max_score=self.WEIGHTS["ai_bots"] + self.WEIGHTS["sitemap"],
                    metrics=[metrics["ai_bots"], metrics["sitemap"]],
                ),
            ],
        )

        penalty = robots_penalty(blocked) if blocked is not None else None
        return CanonicalOutput(
            category=self.category,
            section=section,
            raw_data={
                "blockedBots": blocked,
                "robotsStatus": bundle.robots.status,
                "sitemapStatus": bundle.sitemap.status,
            },
            penalties=[penalty] if penalty else [],
        )

    def _check_https(self, html: FetchResult, url: str) -> Metric:
        """Check the final page URL uses HTTPS."""
        final_url = html.metadata.final_url or url
        secure = final_url.lower().startswith("https://")
        return build_metric(
            id="https",
            name="HTTPS",
            score=self.WEIGHTS["https"] if secure else 0,
            max_score=self.WEIGHTS["https"],
            explanation=f"Final URL: {final_url}",
            recommendations=[] if secure else [ADVICE["https-missing"].render()],
            success_message="Page is served over HTTPS.",
            raw_data={"finalUrl": final_url, "https": secure},
        )

    def _check_http_status(self, html: FetchResult) -> Metric:
        """Score the page's HTTP status, penalizing redirects and errors."""
        max_score = self.WEIGHTS["http_status"]
        code = html.metadata.status_code
        redirects = html.metadata.redirect_count
        recs = []

        if code is None:
            score = 0
            recs.append(ADVICE["http-unknown"].render(error=html.error or "no response"))
        elif 200 <= code < 300 and redirects == 0:
            score = max_score
        elif code < 400:
            score = 15
            recs.append(
                ADVICE["http-redirect"].render(
                    count=max(redirects, 1),
                    final_url=html.metadata.final_url or html.url,
                )
            )
        else:
            score = 0
            recs.append(ADVICE["http-error-status"].render(status=code))

        return build_metric(
            id="http-status",
            name="HTTP Status",
            score=score,
            max_score=max_score,
            explanation=f"Status {code}" if code is not None else "No HTTP response",
            recommendations=recs,
            success_message="Page responds with 200 OK without redirects.",
            raw_data={"statusCode": code, "redirectCount": redirects},
        )

    def _check_ai_access(self, robots: FetchResult) -> tuple[Metric, list[str] | None]:
        """
        Score robots.txt access for the AI crawler roster.

        Returns:
            Tuple of (metric, blocked bot names or None when robots.txt
            could not be evaluated)
        """
        max_score = self.WEIGHTS["ai_bots"]
        total = len(AI_BOTS)

        if robots.not_found:
            return (
                build_metric(
                    id="ai-bots",
                    name="AI Bot Access",
                    score=max_score,
                    max_score=max_score,
                    explanation="No robots.txt: all crawlers are allowed by default.",
                    recommendations=[ADVICE["robots-not-found"].render()],
                    raw_data={"robotsFound": False, "allowedBots": list(AI_BOTS)},
                ),
                [],
            )

        if not robots.success:
            return (
                build_metric(
                    id="ai-bots",
                    name="AI Bot Access",
                    score=0,
                    max_score=max_score,
                    explanation="robots.txt could not be retrieved.",
                    recommendations=[
                        ADVICE["robots-unreachable"].render(error=robots.error or "unknown error")
                    ],
                    raw_data={"robotsFound": None},
                ),
                None,
            )

        rules = parse_robots(robots.content or "")
        blocked = blocked_bots(rules)
        allowed = [bot for bot in AI_BOTS if bot not in blocked]

        recs = []
        if len(blocked) == total:
            recs.append(ADVICE["robots-all-blocked"].render(total=total))
        elif blocked:
            recs.append(
                ADVICE["robots-some-blocked"].render(count=len(blocked), bots=", ".join(blocked))
            )
        if not rules.sitemaps:
            recs.append(ADVICE["robots-no-sitemap"].render())

        metric = build_metric(
            id="ai-bots",
            name="AI Bot Access",
            score=max_score * len(allowed) / total,
            max_score=max_score,
            explanation=f"{len(allowed)}/{total} major AI crawlers may access the site.",
            recommendations=recs,
            success_message="All major AI crawlers are allowed and a sitemap is referenced.",
            raw_data={
                "robotsFound": True,
                "allowedBots": allowed,
                "blockedBots": blocked,
                "sitemaps": rules.sitemaps,
            },
        )
        return metric, blocked

    def _check_sitemap(self, sitemap: FetchResult) -> Metric:
        """Check sitemap.xml presence, validity and <lastmod> usage."""
        max_score = self.WEIGHTS["sitemap"]

        if sitemap.not_found:
            return build_metric(
                id="sitemap",
                name="Sitemap",
                score=0,
                max_score=max_score,
                explanation="No sitemap.xml at the site root.",
                recommendations=[ADVICE["sitemap-not-found"].render()],
                raw_data={"found": False},
            )

        if not sitemap.success:
            return build_metric(
                id="sitemap",
                name="Sitemap",
                score=0,
                max_score=max_score,
                explanation="sitemap.xml could not be retrieved.",
                recommendations=[
                    ADVICE["sitemap-unreachable"].render(error=sitemap.error or "unknown error")
                ],
                raw_data={"found": None},
            )

        score = 12
        recs = []
        raw_data: dict = {"found": True}

        root = _parse_xml(sitemap.content or "")
        if root is None:
            recs.append(ADVICE["sitemap-invalid-xml"].render())
            raw_data["validXml"] = False
        else:
            local_names = [
                etree.QName(element).localname
                for element in root.iter()
                if isinstance(element.tag, str)
            ]
            lastmod_count = local_names.count("lastmod")
            raw_data.update(
                {
                    "validXml": True,
                    "urlCount": local_names.count("url"),
                    "sitemapCount": local_names.count("sitemap"),
                    "lastmodCount": lastmod_count,
                }
            )
            if lastmod_count:
                score += 8
            else:
                recs.append(ADVICE["sitemap-no-lastmod"].render())

        return build_metric(
            id="sitemap",
            name="Sitemap",
            score=score,
            max_score=max_score,
            explanation="sitemap.xml found at the site root.",
            recommendations=recs,
            success_message="Valid sitemap with <lastmod> dates.",
            raw_data=raw_data,
        )


def _parse_xml(content: str) -> etree._Element | None:
    """Parse XML without network access or entity expansion."""
    if not content.strip():
        return None
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        return etree.fromstring(content.strip().encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as e:
        logger.debug(f"Invalid sitemap XML: {e}")
        return None


# Convenience function for direct usage
async def run_discoverability_analysis(context: AnalysisContext) -> CanonicalOutput:
    """Run discoverability analysis on fetched artifacts."""
    return await DiscoverabilityAnalyzer().run(context)
