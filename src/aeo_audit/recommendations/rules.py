"""Recommendation knowledge base."""

from dataclasses import dataclass
from typing import Any

from aeo_audit.models import Recommendation


@dataclass(frozen=True)
class Advice:
    """A recommendation template. Text may contain `{placeholders}`."""

    id: str
    problem: str
    solution: str
    impact: int
    explanation: str | None = None

    def render(self, impact: int | None = None, **values: Any) -> Recommendation:
        """
        Fill the template and build a Recommendation.

        Args:
            impact: Optional override for data-dependent severity
            **values: Placeholder values

        Returns:
            Recommendation with formatted text
        """
        return Recommendation(
            problem=self.problem.format(**values),
            solution=self.solution.format(**values),
            explanation=self.explanation.format(**values) if self.explanation else None,
            impact=max(1, min(10, impact if impact is not None else self.impact)),
        )


def _index(*items: Advice) -> dict[str, Advice]:
    return {item.id: item for item in items}


# =============================================================================
# Discoverability
# =============================================================================

DISCOVERABILITY_ADVICE = _index(
    Advice(
        id="https-missing",
        problem="Page is not served over HTTPS",
        solution="Install a TLS certificate and permanently redirect all HTTP traffic to HTTPS.",
        explanation="Crawlers treat insecure origins as lower quality and some AI agents refuse plain HTTP.",
        impact=10,
    ),
    Advice(
        id="http-redirect",
        problem="Page is reached through {count} redirect(s)",
        solution="Link directly to the final URL ({final_url}) and keep redirect chains to a single hop.",
        impact=4,
    ),
    Advice(
        id="http-error-status",
        problem="Page returned HTTP {status}",
        solution="Make sure the page responds with 200 OK to anonymous GET requests.",
        explanation="Crawlers drop pages that answer with client or server errors.",
        impact=10,
    ),
    Advice(
        id="http-unknown",
        problem="HTTP status could not be determined ({error})",
        solution="Check that the server is reachable, resolves publicly and answers within 10 seconds.",
        impact=8,
    ),
    Advice(
        id="robots-not-found",
        problem="No robots.txt file found",
        solution="Create /robots.txt that explicitly allows AI crawlers and references your sitemap.",
        explanation="Without robots.txt crawlers assume full access, but you lose control over crawl policy.",
        impact=5,
    ),
    Advice(
        id="robots-unreachable",
        problem="robots.txt could not be retrieved ({error})",
        solution="Serve /robots.txt with a 200 response; crawlers back off when it errors.",
        impact=8,
    ),
    Advice(
        id="robots-all-blocked",
        problem="robots.txt blocks all {total} major AI crawlers",
        solution="Remove the `Disallow: /` rules for AI user agents, or add `Allow: /` for the crawlers you want.",
        explanation="Blocked AI crawlers cannot read the page, so it will not be cited in AI answers.",
        impact=10,
    ),
    Advice(
        id="robots-some-blocked",
        problem="robots.txt blocks {count} AI crawler(s): {bots}",
        solution="Allow these user agents unless blocking them is intentional: {bots}.",
        impact=7,
    ),
    Advice(
        id="robots-no-sitemap",
        problem="robots.txt does not reference a sitemap",
        solution="Add a `Sitemap: https://your-domain/sitemap.xml` line to robots.txt.",
        impact=4,
    ),
    Advice(
        id="sitemap-not-found",
        problem="No sitemap.xml found",
        solution="Publish /sitemap.xml listing your canonical URLs and submit it to search consoles.",
        impact=8,
    ),
    Advice(
        id="sitemap-unreachable",
        problem="sitemap.xml could not be retrieved ({error})",
        solution="Serve /sitemap.xml with a 200 response and an XML content type.",
        impact=8,
    ),
    Advice(
        id="sitemap-invalid-xml",
        problem="sitemap.xml is not well-formed XML",
        solution="Validate the sitemap against the sitemaps.org schema and fix the markup errors.",
        impact=3,
    ),
    Advice(
        id="sitemap-no-lastmod",
        problem="Sitemap entries have no <lastmod> dates",
        solution="Add <lastmod> to each <url> entry so crawlers can prioritize fresh content.",
        impact=6,
    ),
)


# =============================================================================
# Structured data
# =============================================================================

STRUCTURED_DATA_ADVICE = _index(
    Advice(
        id="jsonld-missing",
        problem="No JSON-LD structured data found",
        solution="Add a <script type=\"application/ld+json\"> block describing the page, starting with {suggested}.",
        explanation="Structured data is the most reliable way for AI systems to understand what a page is about.",
        impact=10,
    ),
    Advice(
        id="schema-incomplete",
        problem="{schema_type} schema is missing required fields: {fields}",
        solution="Add the missing properties to the {schema_type} entity.",
        impact=6,
    ),
    Advice(
        id="schema-suggested",
        problem="Schema types expected for a {label} page are missing: {missing}",
        solution="Add {missing} markup to describe this page more completely.",
        impact=5,
    ),
    Advice(
        id="owner-missing",
        problem="No Organization or Person identifies the site owner",
        solution="Add an Organization (or Person) entity with name, url, logo and sameAs links.",
        impact=9,
    ),
    Advice(
        id="owner-missing-name",
        problem="The {owner_type} entity has no name",
        solution="Add a `name` property with the official name.",
        impact=8,
    ),
    Advice(
        id="owner-missing-url",
        problem="The {owner_type} entity has no url",
        solution="Add a `url` property pointing at the home page.",
        impact=7,
    ),
    Advice(
        id="org-missing-logo",
        problem="The Organization entity has no logo",
        solution="Add a `logo` property with an absolute URL to a square logo image.",
        impact=6,
    ),
    Advice(
        id="owner-missing-sameas",
        problem="The {owner_type} entity has no sameAs links",
        solution="List official social and knowledge-base profiles in `sameAs` to disambiguate the entity.",
        impact=8,
    ),
    Advice(
        id="website-missing",
        problem="No WebSite entity found",
        solution="Add a WebSite entity with name and url for the site.",
        impact=9,
    ),
    Advice(
        id="search-action-missing",
        problem="WebSite entity has no SearchAction",
        solution="Add a `potentialAction` of type SearchAction describing your site search URL template.",
        impact=6,
    ),
    Advice(
        id="breadcrumb-missing",
        problem="No BreadcrumbList found",
        solution="Add a BreadcrumbList describing the page's position in the site hierarchy.",
        impact=7,
    ),
    Advice(
        id="main-entity-missing",
        problem="No main entity describes the page content",
        solution="This looks like a {label} page: add {suggested} markup for the primary content.",
        impact=9,
    ),
    Advice(
        id="article-missing-headline",
        problem="{schema_type} has no headline",
        solution="Add a `headline` matching the visible title.",
        impact=9,
    ),
    Advice(
        id="author-is-text",
        problem="{schema_type} author is missing or plain text",
        solution="Use a Person or Organization object for `author`, with name and url.",
        impact=9,
    ),
    Advice(
        id="publisher-is-text",
        problem="{schema_type} publisher is missing or plain text",
        solution="Use an Organization object for `publisher`, with name and logo.",
        impact=8,
    ),
    Advice(
        id="article-missing-image",
        problem="{schema_type} has no image",
        solution="Add an `image` property with a representative image URL.",
        impact=5,
    ),
    Advice(
        id="product-missing-offers",
        problem="Product has no offers",
        solution="Add an Offer with price, priceCurrency and availability.",
        impact=9,
    ),
    Advice(
        id="product-missing-description",
        problem="Product has no description",
        solution="Add a `description` summarizing the product.",
        impact=6,
    ),
    Advice(
        id="title-missing",
        problem="Page has no <title>",
        solution="Add a descriptive title of 50-60 characters.",
        impact=10,
    ),
    Advice(
        id="title-length",
        problem="Title is {length} characters long",
        solution="Keep the title between 50 and 60 characters.",
        impact=5,
    ),
    Advice(
        id="description-missing",
        problem="Page has no meta description",
        solution="Add a meta description of 140-160 characters summarizing the page.",
        impact=9,
    ),
    Advice(
        id="description-length",
        problem="Meta description is {length} characters long",
        solution="Keep the meta description between 140 and 160 characters.",
        impact=5,
    ),
    Advice(
        id="viewport-missing",
        problem="No viewport meta tag",
        solution="Add <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">.",
        impact=6,
    ),
    Advice(
        id="charset-missing",
        problem="No charset declaration",
        solution="Add <meta charset=\"utf-8\"> as the first element in <head>.",
        impact=4,
    ),
    Advice(
        id="robots-meta-missing",
        problem="No robots meta tag",
        solution="Add <meta name=\"robots\" content=\"index, follow\"> to state indexing intent explicitly.",
        impact=3,
    ),
    Advice(
        id="og-title-missing",
        problem="No og:title tag",
        solution="Add <meta property=\"og:title\"> with the page title.",
        impact=7,
    ),
    Advice(
        id="og-description-missing",
        problem="No og:description tag",
        solution="Add <meta property=\"og:description\"> with a one-sentence summary.",
        impact=7,
    ),
    Advice(
        id="og-image-missing",
        problem="No og:image tag",
        solution="Add <meta property=\"og:image\"> with an absolute URL to a 1200x630 image.",
        impact=7,
    ),
    Advice(
        id="og-image-relative",
        problem="og:image uses a relative URL",
        solution="Use an absolute https:// URL for og:image; most consumers ignore relative paths.",
        impact=4,
    ),
)


# =============================================================================
# LLM formatting
# =============================================================================

LLM_FORMATTING_ADVICE = _index(
    Advice(
        id="h1-missing",
        problem="Page has no H1 heading",
        solution="Add exactly one H1 that states the page topic.",
        explanation="Language models use the H1 as the anchor for the page's subject.",
        impact=10,
    ),
    Advice(
        id="h1-multiple",
        problem="Page has {count} H1 headings: {texts}",
        solution="Keep a single H1 and demote the others to H2.",
        impact=10,
    ),
    Advice(
        id="heading-sequence",
        problem="Heading levels skip {count} time(s), e.g. {example}",
        solution="Nest headings one level at a time (H1 > H2 > H3) without skipping levels.",
        impact=8,
    ),
    Advice(
        id="simulated-list",
        problem="Text imitates a list with {pattern} markers instead of <ul>/<ol>",
        solution="Convert the lines starting with \"{sample}\" into a semantic <ul> or <ol>.",
        impact=6,
    ),
    Advice(
        id="simulated-table",
        problem="Text imitates a table using {pattern}",
        solution="Convert the aligned rows starting with \"{sample}\" into a semantic <table>.",
        impact=6,
    ),
    Advice(
        id="main-missing",
        problem="Page has no <main> element",
        solution="Wrap the primary content in a single <main> element.",
        impact=9,
    ),
    Advice(
        id="main-multiple",
        problem="Page has {count} <main> elements",
        solution="Keep exactly one visible <main> element per page.",
        impact=9,
    ),
    Advice(
        id="main-nested",
        problem="<main> is nested inside <{parent}>",
        solution="Move <main> out of article, aside, footer, header and nav containers.",
        impact=7,
    ),
    Advice(
        id="div-navigation",
        problem="{count} <div> element(s) act as navigation",
        solution="Use <nav> for blocks of navigation links (e.g. {sample}).",
        impact=5,
    ),
    Advice(
        id="div-sidebar",
        problem="{count} <div> element(s) act as a sidebar",
        solution="Use <aside> for complementary content (e.g. {sample}).",
        impact=4,
    ),
    Advice(
        id="nav-unlabeled",
        problem="{count} <nav> elements are not distinguished by aria-label",
        solution="Give each <nav> a distinct aria-label such as \"Main\" or \"Footer\".",
        impact=7,
    ),
    Advice(
        id="cta-empty",
        problem="{count} link(s) or button(s) have no accessible text",
        solution="Give every link and button visible text or a descriptive aria-label.",
        impact=9,
    ),
    Advice(
        id="cta-generic",
        problem="{count} link(s) or button(s) use generic text such as {examples}",
        solution="Describe the destination or action, e.g. \"Download the 2024 pricing guide\" instead of \"click here\".",
        impact=9,
    ),
)


# =============================================================================
# Readability
# =============================================================================

READABILITY_ADVICE = _index(
    Advice(
        id="text-insufficient",
        problem="Insufficient text content to assess readability",
        solution="Add substantive prose to the main content area of the page.",
        impact=10,
    ),
    Advice(
        id="flesch-complex",
        problem="Text is hard to read (Flesch {flesch})",
        solution="Shorten sentences and prefer common words with fewer syllables.",
        impact=8,
    ),
    Advice(
        id="flesch-simple",
        problem="Text may be overly simple (Flesch {flesch})",
        solution="Add precise terminology and detail where it helps the reader.",
        impact=4,
    ),
    Advice(
        id="passive-high",
        problem="{ratio}% of sentences use passive voice",
        solution="Rewrite sentences so the actor comes first (\"We updated the guide\" rather than \"The guide was updated\").",
        impact=9,
    ),
    Advice(
        id="passive-moderate",
        problem="{ratio}% of sentences use passive voice",
        solution="Convert some passive sentences to active voice for clarity.",
        impact=6,
    ),
    Advice(
        id="paragraphs-missing",
        problem="No paragraphs found",
        solution="Structure body text into <p> paragraphs of 50-150 words.",
        impact=8,
    ),
    Advice(
        id="paragraphs-long",
        problem="{percent}% of paragraphs exceed 150 words",
        solution="Split long paragraphs so each covers one idea.",
        impact=8,
    ),
    Advice(
        id="paragraphs-short",
        problem="{percent}% of paragraphs are under 50 words",
        solution="Merge fragments into complete paragraphs of 50-150 words.",
        impact=5,
    ),
    Advice(
        id="paragraphs-inconsistent",
        problem="Paragraph lengths vary widely",
        solution="Aim for a consistent paragraph length across the page.",
        impact=4,
    ),
    Advice(
        id="density-low",
        problem="Text makes up only {ratio}% of the HTML",
        solution="Reduce markup and script weight or add more substantive content.",
        impact=7,
    ),
    Advice(
        id="word-count-low",
        problem="Page has only {count} words of content",
        solution="Expand the content to at least 300 words covering the topic in depth.",
        impact=9,
    ),
    Advice(
        id="sentences-long",
        problem="Average sentence length is {average} words",
        solution="Keep sentences between 15 and 25 words on average.",
        impact=7,
    ),
    Advice(
        id="sentences-short",
        problem="Average sentence length is {average} words",
        solution="Combine very short sentences so ideas are fully expressed.",
        impact=4,
    ),
    Advice(
        id="sentences-uniform",
        problem="Sentence lengths barely vary",
        solution="Mix short and long sentences to improve rhythm.",
        impact=3,
    ),
    Advice(
        id="vocabulary-repetitive",
        problem="Vocabulary diversity is low ({ratio}% unique words)",
        solution="Vary word choice and avoid repeating the same terms.",
        impact=5,
    ),
)


# =============================================================================
# Accessibility (flat breakdown problems and solutions)
# =============================================================================

ACCESSIBILITY_PROBLEMS = {
    "criticalDOM": {
        "content": (
            "Most text only appears after JavaScript runs",
            "Server-render the primary content so it is present in the initial HTML.",
        ),
        "navigation": (
            "Navigation links are injected by JavaScript",
            "Render navigation menus in the static HTML.",
        ),
        "semantic": (
            "Semantic landmarks are missing from the static HTML",
            "Emit <header>, <nav>, <main> and <footer> landmarks in the server-rendered markup.",
        ),
    },
    "performance": {
        "slow": (
            "Page performance score is {score}/100",
            "Reduce render-blocking resources, compress images and cache static assets.",
        ),
    },
    "images": {
        "alt": (
            "{count} of {total} images have no alt text",
            "Describe every informative image with alt text; mark decorative images with role=\"presentation\".",
        ),
        "lazy": (
            "Only {count} of {total} images are lazy-loaded",
            "Add loading=\"lazy\" to below-the-fold images.",
        ),
    },
}
