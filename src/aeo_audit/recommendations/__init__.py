"""Recommendation knowledge base, prioritization and page-context classification."""

from aeo_audit.recommendations.classifier import (
    ContextClassifier,
    KeywordContextClassifier,
    PageContext,
    missing_schemas,
    suggested_schemas,
)
from aeo_audit.recommendations.engine import prioritize
from aeo_audit.recommendations.rules import Advice

__all__ = [
    "Advice",
    "ContextClassifier",
    "KeywordContextClassifier",
    "PageContext",
    "missing_schemas",
    "prioritize",
    "suggested_schemas",
]
