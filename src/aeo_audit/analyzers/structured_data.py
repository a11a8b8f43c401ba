"""Structured data analysis: JSON-LD entities, meta tags and social markup."""

import asyncio
import json
import logging
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer, parse_html
from aeo_audit.models import CanonicalOutput, Metric
from aeo_audit.recommendations.classifier import (
    ContextClassifier,
    KeywordContextClassifier,
    PageContext,
    missing_schemas,
    suggested_schemas,
)
from aeo_audit.recommendations.rules import STRUCTURED_DATA_ADVICE as ADVICE
from aeo_audit.sections import build_metric, build_section, build_subsection

logger = logging.getLogger(__name__)

# Relative value of each schema type for AI understanding
SCHEMA_WEIGHTS = {
    "Organization": 1.0,
    "WebSite": 0.8,
    "Article": 0.9,
    "Product": 0.9,
    "LocalBusiness": 1.0,
    "BlogPosting": 0.8,
    "NewsArticle": 0.8,
    "Recipe": 0.7,
    "Event": 0.7,
    "FAQPage": 0.8,
    "BreadcrumbList": 0.6,
    "AggregateRating": 0.5,
    "Review": 0.5,
    "Person": 0.7,
}
UNKNOWN_SCHEMA_WEIGHT = 0.4

REQUIRED_SCHEMA_FIELDS = {
    "Organization": ["@type", "name"],
    "WebSite": ["@type", "name", "url"],
    "Article": ["@type", "headline", "author"],
    "Product": ["@type", "name", "description"],
    "LocalBusiness": ["@type", "name", "address"],
    "BlogPosting": ["@type", "headline", "author", "datePublished"],
    "NewsArticle": ["@type", "headline", "author", "datePublished"],
    "Recipe": ["@type", "name", "recipeIngredient", "recipeInstructions"],
    "Event": ["@type", "name", "startDate", "location"],
    "FAQPage": ["@type", "mainEntity"],
    "BreadcrumbList": ["@type", "itemListElement"],
    "Person": ["@type", "name"],
}

OWNER_TYPES = ("Organization", "LocalBusiness", "Corporation", "NewsMediaOrganization", "Person")
OWNER_BONUS_FIELDS = ("description", "contactPoint", "address", "email", "telephone", "foundingDate")
MAIN_ENTITY_TYPES = ("Article", "BlogPosting", "NewsArticle", "Product", "LocalBusiness", "Service")
ARTICLE_TYPES = ("Article", "BlogPosting", "NewsArticle")

_SCHEMA_PREFIXES = ("http://schema.org/", "https://schema.org/", "schema:")


def extract_json_ld(soup: BeautifulSoup) -> tuple[list[dict], int]:
    """
    Collect JSON-LD entities from every ld+json script.

    Top-level arrays and @graph containers are flattened. Blocks that are
    not valid JSON are skipped.

    Returns:
        Tuple of (entities, number of invalid blocks)
    """
    entities: list[dict] = []
    invalid = 0
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        try:
            data = json.loads(text)
        except ValueError:
            invalid += 1
            continue
        entities.extend(_flatten_entities(data))
    return entities, invalid


def _flatten_entities(data) -> list[dict]:
    if isinstance(data, list):
        return [entity for item in data for entity in _flatten_entities(item)]
    if not isinstance(data, dict):
        return []
    if "@graph" in data:
        graph = _flatten_entities(data["@graph"])
        return ([data] if "@type" in data else []) + graph
    return [data]


def entity_types(entity: dict) -> list[str]:
    """Return the entity's @type values without schema.org prefixes."""
    raw = entity.get("@type")
    values = raw if isinstance(raw, list) else [raw]
    types = []
    for value in values:
        if not isinstance(value, str) or not value:
            continue
        for prefix in _SCHEMA_PREFIXES:
            if value.startswith(prefix):
                value = value[len(prefix):]
        types.append(value)
    return types


def _has_value(entity: dict, key: str) -> bool:
    value = entity.get(key)
    return value not in (None, "", [], {})


def _find(entities: list[dict], types: tuple[str, ...]) -> dict | None:
    for entity in entities:
        if any(t in types for t in entity_types(entity)):
            return entity
    return None


def completeness(entity: dict, schema_type: str) -> tuple[float, list[str]]:
    """Return (ratio of required fields present, missing field names)."""
    required = REQUIRED_SCHEMA_FIELDS.get(schema_type)
    if not required:
        return 1.0, []
    missing = [key for key in required if not _has_value(entity, key)]
    return (len(required) - len(missing)) / len(required), missing


class StructuredDataAnalyzer(BaseAnalyzer):
    """
    Evaluates machine-readable page descriptions.

    Checks:
    - JSON-LD schema types, completeness, identity and main entity
    - Title, meta description and technical meta tags
    - Open Graph tags
    """

    category = "structuredData"
    title = "Structured Data"
    description = "How well machine-readable markup describes the page."

    def __init__(self, classifier: ContextClassifier | None = None):
        self.classifier = classifier or KeywordContextClassifier()

    @property
    def name(self) -> str:
        return "structured_data"

    async def analyze(self, context: AnalysisContext) -> CanonicalOutput:
        html = context.require_html()
        return await asyncio.to_thread(self.evaluate, html, context.url)

    def evaluate(self, html: str, url: str) -> CanonicalOutput:
        soup = parse_html(html)
        entities, invalid_blocks = extract_json_ld(soup)
        page_context = self.classifier.classify(url, _summary_text(soup))
        logger.debug(f"{url} classified as {page_context.label} ({page_context.confidence})")

        json_ld = build_subsection(
            id="json-ld",
            name="JSON-LD",
            description="Schema.org entities describing the page and its owner.",
            max_score=40,
            metrics=[
                self._check_schema_types(soup, entities, invalid_blocks, page_context),
                self._check_identity(entities),
                self._check_main_entity(entities, page_context),
            ],
        )
        meta = build_subsection(
            id="meta-tags",
            name="Meta Tags",
            description="Title, description and technical meta tags.",
            max_score=35,
            metrics=[
                self._check_title(soup),
                self._check_description(soup),
                self._check_technical_meta(soup),
            ],
        )
        social = build_subsection(
            id="social-meta",
            name="Social Meta",
            description="Open Graph tags used for previews and summaries.",
            max_score=25,
            metrics=[self._check_og_basic(soup), self._check_og_image(soup)],
        )

        section = build_section(
            id=self.category,
            name=self.title,
            description=self.description,
            subsections=[json_ld, meta, social],
        )
        return CanonicalOutput(
            category=self.category,
            section=section,
            raw_data={
                "schemaTypes": sorted({t for e in entities for t in entity_types(e)}),
                "pageContext": {"label": page_context.label, "confidence": page_context.confidence},
            },
        )

    # -------------------------------------------------------------------------
    # JSON-LD
    # -------------------------------------------------------------------------

    def _check_schema_types(
        self,
        soup: BeautifulSoup,
        entities: list[dict],
        invalid_blocks: int,
        page_context: PageContext,
    ) -> Metric:
        """Score schema type value and completeness, with a diversity bonus."""
        recs = []
        unique_types: list[str] = []
        for entity in entities:
            for schema_type in entity_types(entity):
                if schema_type not in unique_types:
                    unique_types.append(schema_type)

        points = 0.0
        type_details = {}
        for schema_type in unique_types:
            if schema_type not in SCHEMA_WEIGHTS:
                points += UNKNOWN_SCHEMA_WEIGHT * 10
                type_details[schema_type] = {"weight": UNKNOWN_SCHEMA_WEIGHT, "completeness": None}
                continue

            # Best-filled entity of this type counts
            best_ratio, best_missing = 0.0, []
            for entity in entities:
                if schema_type in entity_types(entity):
                    ratio, missing = completeness(entity, schema_type)
                    if ratio >= best_ratio:
                        best_ratio, best_missing = ratio, missing
            points += SCHEMA_WEIGHTS[schema_type] * 10 * best_ratio
            type_details[schema_type] = {
                "weight": SCHEMA_WEIGHTS[schema_type],
                "completeness": round(best_ratio, 2),
            }
            if best_missing:
                recs.append(
                    ADVICE["schema-incomplete"].render(
                        schema_type=schema_type, fields=", ".join(best_missing)
                    )
                )

        score = min(points, 18) + (2 if len(unique_types) >= 3 else 0)

        if not entities:
            recs.append(
                ADVICE["jsonld-missing"].render(
                    suggested=" and ".join(suggested_schemas(page_context))
                )
            )
        else:
            missing = missing_schemas(page_context, set(unique_types))
            if missing:
                recs.append(
                    ADVICE["schema-suggested"].render(
                        label=page_context.label, missing=", ".join(missing)
                    )
                )

        return build_metric(
            id="schema-types",
            name="Schema Types & Completeness",
            score=score,
            max_score=20,
            explanation=f"Found {len(unique_types)} schema type(s): {', '.join(unique_types) or 'none'}.",
            recommendations=recs,
            success_message="Rich, complete JSON-LD covering several schema types.",
            raw_data={
                "types": type_details,
                "entityCount": len(entities),
                "invalidBlocks": invalid_blocks,
                "microdataItems": len(soup.find_all(attrs={"itemscope": True})),
                "rdfaItems": len(soup.find_all(attrs={"typeof": True})),
            },
        )

    def _check_identity(self, entities: list[dict]) -> Metric:
        """Score owner identity, WebSite, SearchAction and breadcrumbs."""
        score = 0
        recs = []

        owner = _find(entities, OWNER_TYPES)
        if owner is None:
            recs.append(ADVICE["owner-missing"].render())
        else:
            owner_type = entity_types(owner)[0]
            score += 1
            if _has_value(owner, "name"):
                score += 1
            else:
                recs.append(ADVICE["owner-missing-name"].render(owner_type=owner_type))
            if _has_value(owner, "url"):
                score += 1
            else:
                recs.append(ADVICE["owner-missing-url"].render(owner_type=owner_type))
            if _has_value(owner, "sameAs"):
                score += 2
            else:
                recs.append(ADVICE["owner-missing-sameas"].render(owner_type=owner_type))
            if owner_type == "Person":
                score += 1 if _has_value(owner, "image") else 0
            elif _has_value(owner, "logo"):
                score += 1
            else:
                recs.append(ADVICE["org-missing-logo"].render())
            if any(_has_value(owner, key) for key in OWNER_BONUS_FIELDS):
                score += 1

        website = _find(entities, ("WebSite",))
        if website is None:
            recs.append(ADVICE["website-missing"].render())
        else:
            score += 2
            if _has_search_action(website):
                score += 2
            else:
                recs.append(ADVICE["search-action-missing"].render())

        if _find(entities, ("BreadcrumbList",)) is not None:
            score += 1
        else:
            recs.append(ADVICE["breadcrumb-missing"].render())

        return build_metric(
            id="identity-structure",
            name="Identity & Structure",
            score=score,
            max_score=12,
            explanation="Who publishes the site and how it is organized.",
            recommendations=recs,
            success_message="Site owner, WebSite search and breadcrumbs are all described.",
            raw_data={
                "ownerType": entity_types(owner)[0] if owner else None,
                "hasWebsite": website is not None,
            },
        )

    def _check_main_entity(self, entities: list[dict], page_context: PageContext) -> Metric:
        """Score the primary content entity and its type-specific fields."""
        main = _find(entities, MAIN_ENTITY_TYPES)
        if main is None:
            return build_metric(
                id="main-entity",
                name="Main Entity",
                score=0,
                max_score=8,
                explanation="No Article, Product, LocalBusiness or Service entity found.",
                recommendations=[
                    ADVICE["main-entity-missing"].render(
                        label=page_context.label,
                        suggested=" or ".join(suggested_schemas(page_context)),
                    )
                ],
                raw_data={"type": None},
            )

        schema_type = next(t for t in entity_types(main) if t in MAIN_ENTITY_TYPES)
        score = 2
        recs = []

        if schema_type in ARTICLE_TYPES:
            if _has_value(main, "headline"):
                score += 2
            else:
                recs.append(ADVICE["article-missing-headline"].render(schema_type=schema_type))
            if isinstance(main.get("author"), (dict, list)) and _has_value(main, "author"):
                score += 2
            else:
                recs.append(ADVICE["author-is-text"].render(schema_type=schema_type))
            if isinstance(main.get("publisher"), dict):
                score += 1
            else:
                recs.append(ADVICE["publisher-is-text"].render(schema_type=schema_type))
            if _has_value(main, "image"):
                score += 1
            else:
                recs.append(ADVICE["article-missing-image"].render(schema_type=schema_type))
        elif schema_type == "Product":
            score += 1 if _has_value(main, "name") else 0
            if _has_value(main, "description"):
                score += 1
            else:
                recs.append(ADVICE["product-missing-description"].render())
            score += 1 if _has_value(main, "image") else 0
            if _has_value(main, "offers"):
                score += 3
            else:
                recs.append(ADVICE["product-missing-offers"].render())
        else:
            second = "address" if schema_type == "LocalBusiness" else "provider"
            missing = [key for key in ("name", second, "description") if not _has_value(main, key)]
            score += 2 * (3 - len(missing))
            if missing:
                recs.append(
                    ADVICE["schema-incomplete"].render(
                        schema_type=schema_type, fields=", ".join(missing)
                    )
                )

        return build_metric(
            id="main-entity",
            name="Main Entity",
            score=min(score, 8),
            max_score=8,
            explanation=f"Main entity is {schema_type}.",
            recommendations=recs,
            success_message=f"{schema_type} markup fully describes the main content.",
            raw_data={"type": schema_type},
        )

    # -------------------------------------------------------------------------
    # Meta tags
    # -------------------------------------------------------------------------

    def _check_title(self, soup: BeautifulSoup) -> Metric:
        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""
        length = len(title)

        if not title:
            return build_metric(
                id="title",
                name="Title Tag",
                score=0,
                max_score=15,
                explanation="No title tag.",
                recommendations=[ADVICE["title-missing"].render()],
                raw_data={"title": None, "length": 0},
            )

        if 50 <= length <= 60:
            length_points = 10
        elif 30 <= length <= 70:
            length_points = 7
        elif length >= 20:
            length_points = 5
        else:
            length_points = 0

        recs = [] if 50 <= length <= 60 else [ADVICE["title-length"].render(length=length)]
        return build_metric(
            id="title",
            name="Title Tag",
            score=5 + length_points,
            max_score=15,
            explanation=f"Title is {length} characters.",
            recommendations=recs,
            success_message="Title length is in the optimal 50-60 character range.",
            raw_data={"title": title, "length": length},
        )

    def _check_description(self, soup: BeautifulSoup) -> Metric:
        description = _meta_content(soup, "description")
        length = len(description or "")

        if not description:
            return build_metric(
                id="meta-description",
                name="Meta Description",
                score=0,
                max_score=10,
                explanation="No meta description.",
                recommendations=[ADVICE["description-missing"].render()],
                raw_data={"description": None, "length": 0},
            )

        if 140 <= length <= 160:
            length_points = 7
        elif 120 <= length <= 170:
            length_points = 5
        elif length >= 50:
            length_points = 3
        else:
            length_points = 0

        recs = [] if 140 <= length <= 160 else [ADVICE["description-length"].render(length=length)]
        return build_metric(
            id="meta-description",
            name="Meta Description",
            score=3 + length_points,
            max_score=10,
            explanation=f"Meta description is {length} characters.",
            recommendations=recs,
            success_message="Meta description length is in the optimal 140-160 character range.",
            raw_data={"description": description, "length": length},
        )

    def _check_technical_meta(self, soup: BeautifulSoup) -> Metric:
        """Check viewport, charset and robots meta tags."""
        has_viewport = _meta_content(soup, "viewport") is not None
        has_charset = soup.find("meta", attrs={"charset": True}) is not None or (
            soup.find(
                "meta",
                attrs={"http-equiv": lambda v: v and v.lower() == "content-type"},
            )
            is not None
        )
        has_robots = _meta_content(soup, "robots") is not None

        recs = []
        if not has_viewport:
            recs.append(ADVICE["viewport-missing"].render())
        if not has_charset:
            recs.append(ADVICE["charset-missing"].render())
        if not has_robots:
            recs.append(ADVICE["robots-meta-missing"].render())

        return build_metric(
            id="technical-meta",
            name="Technical Meta Tags",
            score=4 * has_viewport + 3 * has_charset + 3 * has_robots,
            max_score=10,
            explanation="Viewport, charset and robots directives.",
            recommendations=recs,
            success_message="Viewport, charset and robots meta tags are present.",
            raw_data={"viewport": has_viewport, "charset": has_charset, "robots": has_robots},
        )

    # -------------------------------------------------------------------------
    # Social
    # -------------------------------------------------------------------------

    def _check_og_basic(self, soup: BeautifulSoup) -> Metric:
        og_title = _meta_content(soup, "og:title")
        og_description = _meta_content(soup, "og:description")

        recs = []
        if not og_title:
            recs.append(ADVICE["og-title-missing"].render())
        if not og_description:
            recs.append(ADVICE["og-description-missing"].render())

        return build_metric(
            id="og-basic",
            name="Open Graph Basics",
            score=(7 if og_title else 0) + (8 if og_description else 0),
            max_score=15,
            explanation="og:title and og:description.",
            recommendations=recs,
            success_message="Open Graph title and description are present.",
            raw_data={"ogTitle": og_title, "ogDescription": og_description},
        )

    def _check_og_image(self, soup: BeautifulSoup) -> Metric:
        og_image = _meta_content(soup, "og:image")

        if not og_image:
            score, recs = 0, [ADVICE["og-image-missing"].render()]
        elif urlparse(og_image).scheme in ("http", "https"):
            score, recs = 10, []
        else:
            score, recs = 5, [ADVICE["og-image-relative"].render()]

        return build_metric(
            id="og-image",
            name="Open Graph Image",
            score=score,
            max_score=10,
            explanation="og:image for rich previews.",
            recommendations=recs,
            success_message="og:image uses an absolute URL.",
            raw_data={"ogImage": og_image},
        )


def _meta_content(soup: BeautifulSoup, key: str) -> str | None:
    """Return the content of a meta tag matched by name or property."""
    tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
    if tag is None:
        return None
    content = tag.get("content")
    return content.strip() if isinstance(content, str) else None


def _has_search_action(website: dict) -> bool:
    actions = website.get("potentialAction")
    if isinstance(actions, dict):
        actions = [actions]
    if not isinstance(actions, list):
        return False
    return any(isinstance(a, dict) and "SearchAction" in entity_types(a) for a in actions)


def _summary_text(soup: BeautifulSoup) -> str:
    """Title, H1 and meta description, used for page classification."""
    parts = []
    if soup.title:
        parts.append(soup.title.get_text(" ", strip=True))
    h1 = soup.find("h1")
    if h1:
        parts.append(h1.get_text(" ", strip=True))
    description = _meta_content(soup, "description")
    if description:
        parts.append(description)
    return " ".join(parts)


# Convenience function for direct usage
async def run_structured_data_analysis(context: AnalysisContext) -> CanonicalOutput:
    """Run structured data analysis on fetched artifacts."""
    return await StructuredDataAnalyzer().run(context)
