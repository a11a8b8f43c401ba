"""Page-context classification used to tailor schema suggestions."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PageContext:
    label: str
    confidence: float


class ContextClassifier(Protocol):
    """Anything that can label a page from its URL and visible text."""

    def classify(self, url: str, text: str) -> PageContext: ...


@dataclass(frozen=True)
class KeywordRule:
    label: str
    confidence: float
    keywords: tuple[str, ...]


class KeywordContextClassifier:
    """
    Labels a page by keyword matches in its URL and text.

    Rules are checked in order; the first rule with a matching keyword wins.
    """

    DEFAULT_RULES = (
        KeywordRule("ecommerce", 0.8, ("shop", "store", "product", "cart", "amazon", "ebay")),
        KeywordRule("blog", 0.7, ("blog", "article", "news", "post")),
        KeywordRule("business", 0.6, ("about", "company", "contact", "service")),
    )
    FALLBACK = PageContext("general", 0.5)

    # Schema types worth having for each context
    SUGGESTED_SCHEMAS = {
        "ecommerce": ("Product", "Organization"),
        "blog": ("Article", "BlogPosting"),
        "business": ("Organization", "LocalBusiness"),
        "general": ("Organization", "WebSite"),
    }

    def __init__(self, rules: tuple[KeywordRule, ...] | None = None):
        self.rules = rules or self.DEFAULT_RULES

    def classify(self, url: str, text: str) -> PageContext:
        haystack = f"{url} {text}".lower()
        for rule in self.rules:
            if any(keyword in haystack for keyword in rule.keywords):
                return PageContext(rule.label, rule.confidence)
        return self.FALLBACK


def suggested_schemas(context: PageContext) -> tuple[str, ...]:
    """Return the schema types recommended for a page context."""
    return KeywordContextClassifier.SUGGESTED_SCHEMAS.get(
        context.label, KeywordContextClassifier.SUGGESTED_SCHEMAS["general"]
    )


def missing_schemas(context: PageContext, present: set[str]) -> list[str]:
    """Return suggested schema types that the page does not declare."""
    return [schema for schema in suggested_schemas(context) if schema not in present]
