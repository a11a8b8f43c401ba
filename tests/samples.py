"""Sample pages, robots files and fetched-artifact builders shared by the tests."""

import json

from aeo_audit.models import FetchMetadata, FetchResult
from aeo_audit.pagespeed import PageSpeedReport

PAGE_URL = "https://example.com/"

JSON_LD = {
    "@context": "https://schema.org",
    "@graph": [
        {
            "@type": "Organization",
            "name": "Acme Widgets",
            "url": "https://example.com/",
            "logo": "https://example.com/logo.png",
            "sameAs": ["https://twitter.com/acme", "https://www.linkedin.com/company/acme"],
            "description": "Hand tools for home workshops.",
        },
        {
            "@type": "WebSite",
            "name": "Acme Widgets",
            "url": "https://example.com/",
            "potentialAction": {
                "@type": "SearchAction",
                "target": "https://example.com/search?q={query}",
                "query-input": "required name=query",
            },
        },
        {
            "@type": "BreadcrumbList",
            "itemListElement": [
                {"@type": "ListItem", "position": 1, "name": "Home", "item": "https://example.com/"}
            ],
        },
        {
            "@type": "Product",
            "name": "Block Plane",
            "description": "A low-angle block plane for end grain.",
            "image": "https://example.com/plane.jpg",
            "offers": {"@type": "Offer", "price": "89.00", "priceCurrency": "USD"},
        },
    ],
}

GOOD_HTML = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="robots" content="index, follow">
<title>Acme Widgets: Durable Tools for Home Workshops Today</title>
<meta name="description" content="Acme makes durable hand tools for home workshops. Browse saws, chisels and planes, compare prices, and read our guides to choosing the right tool for each job.">
<meta property="og:title" content="Acme Widgets">
<meta property="og:description" content="Durable hand tools for home workshops.">
<meta property="og:image" content="https://example.com/og.png">
<script type="application/ld+json">{json.dumps(JSON_LD)}</script>
</head>
<body>
<header>
<nav aria-label="Main"><a href="/tools">Browse all tools</a> <a href="/guides">Buying guides</a></nav>
</header>
<main>
<article>
<h1>Choosing a block plane</h1>
<p>A block plane is a small plane that you can hold in one hand. Woodworkers use it to trim end grain, ease sharp edges and fit joints that are a little too tight. Most makers keep one close to the bench because it solves many small problems in a few strokes. A good block plane feels solid, adjusts without fuss and holds its setting while you work.</p>
<h2>What to look for</h2>
<p>Start with the blade angle. A low angle cuts end grain cleanly, while a standard angle is better for general trimming. Next, check the mouth. An adjustable mouth lets you close the gap for fine shavings and open it for heavier cuts. Finally, pick up the plane and see how it sits in your palm, since comfort matters during long sessions.</p>
<ul>
<li>Low blade angle for end grain</li>
<li>Adjustable mouth for fine work</li>
<li>Comfortable grip for long sessions</li>
</ul>
<h2>Caring for your plane</h2>
<p>Wipe the sole after each use and keep a light coat of wax on it. Store the plane on its side so the blade does not touch the bench. When the edge starts to tear the fibers instead of slicing them, hone it on a fine stone. With a little care, a quality plane will last for decades and may well outlive its first owner.</p>
<h3>Sharpening tips</h3>
<p>Hold the blade at a steady angle and use light pressure. A simple honing guide helps beginners keep the bevel flat. Finish with a few strokes on a strop to remove the wire edge, then test the blade on a scrap of pine before you return to your project.</p>
</article>
</main>
<footer><a href="/contact">Contact our team</a></footer>
</body>
</html>
"""

ROBOTS_OPEN = """User-agent: *
Allow: /

Sitemap: https://example.com/sitemap.xml
"""

ROBOTS_BLOCK_ALL = """User-agent: *
Disallow: /
"""

SITEMAP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/</loc><lastmod>2026-01-15</lastmod></url>
  <url><loc>https://example.com/tools</loc><lastmod>2026-01-10</lastmod></url>
</urlset>
"""


def ok_result(url: str, content: str, **metadata) -> FetchResult:
    metadata.setdefault("status_code", 200)
    metadata.setdefault("final_url", url)
    return FetchResult(
        success=True,
        url=url,
        status="ok",
        content=content,
        metadata=FetchMetadata(content_length=len(content), **metadata),
    )


def not_found_result(url: str) -> FetchResult:
    return FetchResult(
        success=False,
        url=url,
        status="not_found",
        error="HTTP 404: not found",
        metadata=FetchMetadata(status_code=404, final_url=url),
    )


def error_result(
    url: str,
    error: str = "ConnectError: connection refused",
    status_code: int | None = None,
) -> FetchResult:
    return FetchResult(
        success=False,
        url=url,
        status="error",
        error=error,
        metadata=FetchMetadata(status_code=status_code, final_url=url if status_code else None),
    )


class FakeRenderer:
    """Renderer returning fixed HTML, or raising a configured error."""

    def __init__(self, html: str = GOOD_HTML, error: Exception | None = None):
        self.html = html
        self.error = error
        self.calls: list[str] = []

    async def render(self, url: str) -> str:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.html


class FakePageSpeed:
    """PageSpeed stand-in returning a fixed report."""

    def __init__(self, performance: float | None = 90.0, accessibility: float | None = 95.0):
        self.report = PageSpeedReport(performance=performance, accessibility=accessibility)

    async def run(self, url: str) -> PageSpeedReport:
        return self.report

