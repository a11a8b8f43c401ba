"""Concurrent retrieval of the page, robots.txt and sitemap.xml."""

import asyncio
import logging
import time
from urllib.parse import urljoin, urlparse

import httpx

from aeo_audit.concurrency import settle_all
from aeo_audit.config import settings
from aeo_audit.errors import FetchError, InputValidationError
from aeo_audit.models import FetchBundle, FetchMetadata, FetchResult, ResourceKind
from aeo_audit.urls import ALLOWED_SCHEMES, ensure_public_url, origin_of

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": settings.user_agent,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# Expected "absent" outcomes for auxiliary files
NOT_FOUND_STATUSES = (404, 410)


class Fetcher:
    """
    Fetches audit artifacts over HTTP.

    Redirects are followed manually so every hop can be checked against
    non-public targets. Bodies are streamed and capped. Failures are
    returned as FetchResult values, never raised.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        max_redirects: int | None = None,
        max_body_bytes: int | None = None,
        check_dns: bool | None = None,
    ):
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.max_redirects = (
            max_redirects if max_redirects is not None else settings.max_redirects
        )
        self.max_body_bytes = (
            max_body_bytes if max_body_bytes is not None else settings.max_body_bytes
        )
        self.check_dns = check_dns if check_dns is not None else settings.ssrf_dns_check
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=HEADERS,
                follow_redirects=False,
                timeout=self.timeout,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, kind: ResourceKind = "html") -> FetchResult:
        """
        Fetch one resource.

        Args:
            url: Absolute URL
            kind: html, robots or sitemap. For robots and sitemap a 404/410
                is reported as "not_found" rather than an error.

        Returns:
            FetchResult describing success, absence or failure
        """
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(self._fetch(url, kind, started), self.timeout)
        except asyncio.TimeoutError:
            error = f"Timed out after {self.timeout:g}s"
        except FetchError as e:
            error = str(e)
        except httpx.HTTPError as e:
            error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__

        logger.warning(f"Fetching {kind} {url} failed: {error}")
        return FetchResult(
            success=False,
            url=url,
            status="error",
            error=error,
            metadata=FetchMetadata(response_time_ms=_elapsed_ms(started)),
        )

    async def fetch_all(self, url: str) -> FetchBundle:
        """Fetch the page, robots.txt and sitemap.xml concurrently."""
        origin = origin_of(url)
        targets: list[tuple[str, ResourceKind]] = [
            (url, "html"),
            (f"{origin}/robots.txt", "robots"),
            (f"{origin}/sitemap.xml", "sitemap"),
        ]
        outcomes = await settle_all(*(self.fetch(target, kind) for target, kind in targets))

        results = []
        for (target, kind), outcome in zip(targets, outcomes):
            if outcome.ok:
                results.append(outcome.value)
            else:
                logger.error(f"Unexpected failure fetching {kind} {target}: {outcome.error!r}")
                results.append(
                    FetchResult(success=False, url=target, status="error", error=str(outcome.error))
                )
        return FetchBundle(html=results[0], robots=results[1], sitemap=results[2])

    async def _fetch(self, url: str, kind: ResourceKind, started: float) -> FetchResult:
        client = self._get_client()
        current = url
        redirects = 0
        visited = {url}

        while True:
            await self._ensure_public(current)
            async with client.stream("GET", current) as response:
                if response.is_redirect:
                    if redirects >= self.max_redirects:
                        raise FetchError(f"Too many redirects (>{self.max_redirects})")
                    next_url = urljoin(current, response.headers["location"].strip())
                    if urlparse(next_url).scheme not in ALLOWED_SCHEMES:
                        raise FetchError(f"Redirect to unsupported URL: {next_url}")
                    if next_url in visited:
                        raise FetchError(f"Redirect loop detected at {next_url}")
                    visited.add(next_url)
                    current = next_url
                    redirects += 1
                    continue

                code = response.status_code
                content = None
                if 200 <= code < 300:
                    content = await self._read_body(response)

                metadata = FetchMetadata(
                    status_code=code,
                    content_length=len(content.encode("utf-8")) if content else 0,
                    response_time_ms=_elapsed_ms(started),
                    content_type=response.headers.get("content-type"),
                    final_url=current,
                    redirect_count=redirects,
                )

            if content is not None:
                return FetchResult(
                    success=True, url=url, status="ok", content=content, metadata=metadata
                )
            if kind != "html" and code in NOT_FOUND_STATUSES:
                return FetchResult(
                    success=False,
                    url=url,
                    status="not_found",
                    error=f"HTTP {code}: not found",
                    metadata=metadata,
                )
            return FetchResult(
                success=False, url=url, status="error", error=f"HTTP {code}", metadata=metadata
            )

    async def _read_body(self, response: httpx.Response) -> str:
        """Read a streamed body, enforcing the size cap."""
        limit_mb = self.max_body_bytes / (1024 * 1024)
        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            raise FetchError(f"Response body exceeds {limit_mb:g} MB limit")

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self.max_body_bytes:
                raise FetchError(f"Response body exceeds {limit_mb:g} MB limit")

        return _decode(bytes(body), response.charset_encoding)

    async def _ensure_public(self, url: str) -> None:
        """Reject targets that are, or resolve to, non-public addresses."""
        try:
            await ensure_public_url(url, self.check_dns)
        except InputValidationError as e:
            raise FetchError(str(e)) from e


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _decode(body: bytes, charset: str | None) -> str:
    """Decode a body with its declared charset; unknown charsets fall back to UTF-8."""
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        logger.debug(f"Unknown charset {charset!r}, decoding as UTF-8")
        return body.decode("utf-8", errors="replace")
