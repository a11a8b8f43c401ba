"""Google PageSpeed Insights client."""

import logging
from dataclasses import dataclass, field

import httpx

from aeo_audit.config import settings
from aeo_audit.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class PageSpeedReport:
    """Category scores (0-100) and key lab metrics from one PSI run."""

    performance: float | None
    accessibility: float | None
    metrics: dict = field(default_factory=dict)
    failed_audits: list[dict] = field(default_factory=list)


class PageSpeedClient:
    """Thin async wrapper over the PageSpeed Insights v5 API."""

    CATEGORIES = ("performance", "accessibility")

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        endpoint: str | None = None,
        strategy: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_pagespeed_api_key
        self.endpoint = endpoint or settings.pagespeed_endpoint
        self.strategy = strategy or settings.pagespeed_strategy
        self.timeout = timeout if timeout is not None else settings.pagespeed_timeout
        self._client = client

    async def run(self, url: str) -> PageSpeedReport:
        """
        Run PageSpeed Insights for a URL.

        Args:
            url: Public page URL

        Returns:
            PageSpeedReport with category scores and metrics

        Raises:
            ExternalServiceError: Missing key, HTTP failure, timeout or
                a response without category scores
        """
        if not self.api_key:
            raise ExternalServiceError("PageSpeed API key not configured")

        params = [
            ("url", url),
            ("key", self.api_key),
            ("strategy", self.strategy),
            *(("category", category) for category in self.CATEGORIES),
        ]

        try:
            if self._client is not None:
                response = await self._client.get(self.endpoint, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.endpoint, params=params)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(f"PageSpeed timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"PageSpeed request failed: {e}") from e

        if response.status_code == 429:
            raise ExternalServiceError("PageSpeed rate limit exceeded")
        if response.status_code != 200:
            raise ExternalServiceError(f"PageSpeed returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError("PageSpeed returned invalid JSON") from e

        report = self._extract_report(data.get("lighthouseResult") or {})
        if report.performance is None and report.accessibility is None:
            raise ExternalServiceError("PageSpeed response had no category scores")

        logger.info(f"PageSpeed for {url}: performance={report.performance}")
        return report

    def _extract_report(self, lighthouse: dict) -> PageSpeedReport:
        """
        Extract category scores and Core Web Vitals from a Lighthouse result.

        Args:
            lighthouse: The `lighthouseResult` object of the PSI response

        Returns:
            PageSpeedReport
        """
        categories = lighthouse.get("categories", {})
        scores = {}
        for name in self.CATEGORIES:
            score = categories.get(name, {}).get("score")
            scores[name] = round(score * 100, 1) if score is not None else None

        audits = lighthouse.get("audits", {})
        metrics = {}

        # Largest Contentful Paint (LCP)
        lcp = audits.get("largest-contentful-paint", {})
        if lcp.get("numericValue"):
            metrics["lcp_ms"] = round(lcp["numericValue"])

        # First Contentful Paint (FCP)
        fcp = audits.get("first-contentful-paint", {})
        if fcp.get("numericValue"):
            metrics["fcp_ms"] = round(fcp["numericValue"])

        # Cumulative Layout Shift (CLS)
        cls = audits.get("cumulative-layout-shift", {})
        if cls.get("numericValue") is not None:
            metrics["cls"] = round(cls["numericValue"], 3)

        # Total Blocking Time (TBT)
        tbt = audits.get("total-blocking-time", {})
        if tbt.get("numericValue"):
            metrics["tbt_ms"] = round(tbt["numericValue"])

        # Speed Index
        si = audits.get("speed-index", {})
        if si.get("numericValue"):
            metrics["speed_index_ms"] = round(si["numericValue"])

        failed_audits = [
            {
                "id": audit_id,
                "title": audit.get("title", ""),
                "score": audit.get("score"),
                "display_value": audit.get("displayValue", ""),
            }
            for audit_id, audit in audits.items()
            if audit.get("score") is not None and audit["score"] < 0.9
        ]

        return PageSpeedReport(
            performance=scores["performance"],
            accessibility=scores["accessibility"],
            metrics=metrics,
            failed_audits=failed_audits[:10],
        )
