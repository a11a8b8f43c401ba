"""AEO analyzers package."""

from aeo_audit.analyzers.accessibility import AccessibilityAnalyzer, run_accessibility_analysis
from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer
from aeo_audit.analyzers.discoverability import (
    DiscoverabilityAnalyzer,
    run_discoverability_analysis,
)
from aeo_audit.analyzers.llm_formatting import LLMFormattingAnalyzer, run_llm_formatting_analysis
from aeo_audit.analyzers.readability import ReadabilityAnalyzer, run_readability_analysis
from aeo_audit.analyzers.structured_data import (
    StructuredDataAnalyzer,
    run_structured_data_analysis,
)

__all__ = [
    "AnalysisContext",
    "BaseAnalyzer",
    "AccessibilityAnalyzer",
    "run_accessibility_analysis",
    "DiscoverabilityAnalyzer",
    "run_discoverability_analysis",
    "LLMFormattingAnalyzer",
    "run_llm_formatting_analysis",
    "ReadabilityAnalyzer",
    "run_readability_analysis",
    "StructuredDataAnalyzer",
    "run_structured_data_analysis",
]
