"""Headless-browser rendering backed by a shared Playwright browser."""

import asyncio
import logging
from typing import Protocol
from urllib.parse import urljoin

from playwright.async_api import Browser, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from aeo_audit.config import settings
from aeo_audit.errors import ExternalServiceError, InputValidationError
from aeo_audit.urls import ensure_public_url

logger = logging.getLogger(__name__)

# Resources that do not change the DOM
BLOCKED_RESOURCES = "**/*.{png,jpg,jpeg,gif,webp,svg,ico,woff,woff2,ttf,eot,mp4,webm}"

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]


class Renderer(Protocol):
    """Returns the DOM of a page after its scripts have run."""

    async def render(self, url: str) -> str: ...


class BrowserPool:
    """
    Lazily started Chromium shared by all requests in the process.

    Each render gets a fresh context that is always closed afterwards.
    A semaphore bounds concurrent pages. Call `close()` on shutdown.
    """

    def __init__(
        self,
        timeout: float | None = None,
        max_pages: int | None = None,
        user_agent: str | None = None,
        check_dns: bool | None = None,
    ):
        self.timeout = timeout if timeout is not None else settings.render_timeout
        self.user_agent = user_agent or settings.user_agent
        self.check_dns = check_dns if check_dns is not None else settings.ssrf_dns_check
        self._semaphore = asyncio.Semaphore(max_pages or settings.render_max_pages)
        self._lock = asyncio.Lock()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def _get_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                logger.info("Launching shared Chromium browser")
                self._browser = await self._playwright.chromium.launch(
                    headless=True, args=LAUNCH_ARGS
                )
            return self._browser

    async def render(self, url: str) -> str:
        """
        Render a page and return its final HTML.

        Args:
            url: Public absolute URL

        Returns:
            Serialized DOM after the load event

        Raises:
            ExternalServiceError: If the browser cannot start or the page
                fails to load in time
        """
        async with self._semaphore:
            try:
                return await self._render(url)
            except PlaywrightError as e:
                if "crash" in str(e).lower() or "closed" in str(e).lower():
                    logger.warning(f"Browser crashed while rendering {url}, restarting")
                    await self.close()
                    try:
                        return await self._render(url)
                    except PlaywrightError as retry_error:
                        raise ExternalServiceError(
                            f"Rendering failed: {retry_error}"
                        ) from retry_error
                raise ExternalServiceError(f"Rendering failed: {e}") from e

    async def _render(self, url: str) -> str:
        browser = await self._get_browser()
        context = await browser.new_context(
            user_agent=self.user_agent,
            viewport={"width": 1366, "height": 900},
        )
        try:
            page = await context.new_page()
            # Later routes run first: static assets are dropped before the guard
            await page.route("**/*", self.guard_request)
            await page.route(BLOCKED_RESOURCES, lambda route: route.abort())
            await page.goto(url, wait_until="load", timeout=self.timeout * 1000)
            return await page.content()
        finally:
            await context.close()

    async def guard_request(self, route: Route) -> None:
        """
        Let the browser reach public hosts only.

        The request is fetched without following redirects so that every
        hop is checked before the browser is handed the response.
        """
        url = route.request.url
        try:
            await ensure_public_url(url, self.check_dns)
            response = await route.fetch(max_redirects=0)
            location = response.headers.get("location")
            if 300 <= response.status < 400 and location:
                await ensure_public_url(urljoin(url, location), self.check_dns)
        except InputValidationError as e:
            logger.warning(f"Blocked browser request to {url}: {e}")
            await route.abort("blockedbyclient")
            return
        except PlaywrightError as e:
            logger.debug(f"Browser request to {url} failed: {e}")
            await route.abort("failed")
            return
        await route.fulfill(response=response)

    async def close(self) -> None:
        """Close the shared browser and stop Playwright."""
        async with self._lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser: {e}")
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
