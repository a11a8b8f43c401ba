"""
HTTP API tests against the ASGI app with a mocked upstream site.
"""

import httpx
import pytest
import pytest_asyncio

from aeo_audit.main import app
from aeo_audit.service import AuditService, default_analyzers


@pytest_asyncio.fixture
async def api(fetcher):
    app.state.audit_service = AuditService(fetcher=fetcher, analyzers=default_analyzers())
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client
    del app.state.audit_service


class TestAuditEndpoint:
    """POST /api/v1/audit"""

    @pytest.mark.asyncio
    async def test_audit_returns_camel_case_report(self, api):
        response = await api.post("/api/v1/audit", json={"url": "example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["url"] == "https://example.com/"
        assert body["data"]["robotsTxt"]["status"] == "ok"
        assert body["analysis"]["aeoScore"]["completeness"] == "5/5 analyses completed"
        assert body["analysis"]["structuredData"]["totalScore"] == 100
        assert body["analysis"]["llmFormatting"]["weightPercentage"] == 25
        assert body["summary"]["successCount"] == 3

    @pytest.mark.asyncio
    async def test_unreachable_page_still_returns_200(self, api, site_routes):
        site_routes["/"] = httpx.ConnectError("connection refused")
        response = await api.post("/api/v1/audit", json={"url": "https://example.com/"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["data"]["html"]["error"] == "ConnectError: connection refused"
        assert body["analysis"]["discoverability"]["error"] is None
        assert body["summary"]["partialSuccess"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url,message",
        [
            ("ftp://example.com/file", "Unsupported URL scheme"),
            ("http://localhost:8000/", "not publicly routable"),
            ("http://10.0.0.5/", "not publicly routable"),
        ],
    )
    async def test_rejected_urls(self, api, request_log, url, message):
        response = await api.post("/api/v1/audit", json={"url": url})

        assert response.status_code == 422
        assert message in response.json()["detail"]
        assert request_log == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"url": ""}, {"url": "x" * 2049}])
    async def test_malformed_requests(self, api, payload):
        response = await api.post("/api/v1/audit", json=payload)

        assert response.status_code == 422


class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, api):
        response = await api.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "aeo-audit", "version": "0.1.0"}

    @pytest.mark.asyncio
    async def test_root(self, api):
        response = await api.get("/")

        assert response.status_code == 200
        assert response.json()["audit"] == "/api/v1/audit"
