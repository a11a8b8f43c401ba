"""
Shared fixtures: analysis contexts, fake backends and a mocked site.
"""

import httpx
import pytest
import pytest_asyncio

from aeo_audit.analyzers.base import AnalysisContext
from aeo_audit.fetcher import Fetcher
from aeo_audit.models import FetchBundle, FetchResult
from tests.samples import (
    GOOD_HTML,
    PAGE_URL,
    ROBOTS_OPEN,
    SITEMAP_XML,
    FakePageSpeed,
    FakeRenderer,
    not_found_result,
    ok_result,
)


@pytest.fixture
def make_context():
    """Build an AnalysisContext from page HTML and optional robots/sitemap results."""

    def _make(
        html: str | FetchResult = GOOD_HTML,
        robots: str | FetchResult | None = ROBOTS_OPEN,
        sitemap: str | FetchResult | None = SITEMAP_XML,
        url: str = PAGE_URL,
    ) -> AnalysisContext:
        def _result(value, target):
            if isinstance(value, FetchResult):
                return value
            if value is None:
                return not_found_result(target)
            return ok_result(target, value)

        bundle = FetchBundle(
            html=_result(html, url),
            robots=_result(robots, "https://example.com/robots.txt"),
            sitemap=_result(sitemap, "https://example.com/sitemap.xml"),
        )
        return AnalysisContext(url=url, bundle=bundle)

    return _make


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def fake_pagespeed():
    return FakePageSpeed()


@pytest.fixture
def site_routes():
    """Path -> (status, body, headers) served by the mock transport. Tests may edit it."""
    return {
        "/": (200, GOOD_HTML, {"content-type": "text/html; charset=utf-8"}),
        "/robots.txt": (200, ROBOTS_OPEN, {"content-type": "text/plain"}),
        "/sitemap.xml": (200, SITEMAP_XML, {"content-type": "application/xml"}),
    }


@pytest.fixture
def request_log():
    return []


@pytest.fixture
def mock_transport(site_routes, request_log):
    def handler(request: httpx.Request) -> httpx.Response:
        request_log.append(str(request.url))
        route = site_routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        status_code, body, headers = route
        return httpx.Response(status_code, text=body, headers=headers)

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture
async def fetcher(mock_transport):
    client = httpx.AsyncClient(transport=mock_transport)
    yield Fetcher(client=client, check_dns=False)
    await client.aclose()
