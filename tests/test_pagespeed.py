"""
Unit tests for the PageSpeed Insights client.
"""

import httpx
import pytest

from aeo_audit.errors import ExternalServiceError
from aeo_audit.pagespeed import PageSpeedClient

PSI_RESPONSE = {
    "lighthouseResult": {
        "categories": {
            "performance": {"score": 0.82},
            "accessibility": {"score": 0.9},
        },
        "audits": {
            "largest-contentful-paint": {"numericValue": 2450.7, "score": 0.8, "title": "LCP"},
            "first-contentful-paint": {"numericValue": 1200.2, "score": 0.95, "title": "FCP"},
            "cumulative-layout-shift": {"numericValue": 0.0, "score": 1, "title": "CLS"},
            "total-blocking-time": {"numericValue": 310.4, "score": 0.6, "title": "TBT"},
            "speed-index": {"numericValue": 3100.9, "score": 0.7, "title": "Speed Index"},
        },
    }
}


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPageSpeedClient:
    """Request building and response parsing."""

    @pytest.mark.asyncio
    async def test_parses_scores_and_metrics(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=PSI_RESPONSE)

        async with client_for(handler) as http:
            report = await PageSpeedClient(api_key="key", client=http).run("https://example.com/")

        assert report.performance == 82.0
        assert report.accessibility == 90.0
        assert report.metrics == {
            "lcp_ms": 2451,
            "fcp_ms": 1200,
            "cls": 0.0,
            "tbt_ms": 310,
            "speed_index_ms": 3101,
        }
        assert [audit["id"] for audit in report.failed_audits] == [
            "largest-contentful-paint",
            "total-blocking-time",
            "speed-index",
        ]
        params = seen[0].params
        assert params["url"] == "https://example.com/"
        assert params.get_list("category") == ["performance", "accessibility"]

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(ExternalServiceError, match="not configured"):
            await PageSpeedClient(api_key="").run("https://example.com/")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,message",
        [(429, "rate limit"), (500, "HTTP 500")],
    )
    async def test_http_failures(self, status_code, message):
        async with client_for(lambda request: httpx.Response(status_code)) as http:
            with pytest.raises(ExternalServiceError, match=message):
                await PageSpeedClient(api_key="key", client=http).run("https://example.com/")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with client_for(handler) as http:
            with pytest.raises(ExternalServiceError, match="timed out"):
                await PageSpeedClient(api_key="key", client=http, timeout=1).run("https://example.com/")

    @pytest.mark.asyncio
    async def test_response_without_scores(self):
        async with client_for(lambda request: httpx.Response(200, json={"lighthouseResult": {}})) as http:
            with pytest.raises(ExternalServiceError, match="no category scores"):
                await PageSpeedClient(api_key="key", client=http).run("https://example.com/")
