"""Single-page AI Engine Optimization (AEO) audit."""

__version__ = "0.1.0"
