"""Recommendation prioritization."""

import logging

from aeo_audit.models import Recommendation

logger = logging.getLogger(__name__)


def prioritize(recommendations: list[Recommendation]) -> list[Recommendation]:
    """
    Deduplicate and order recommendations.

    Duplicates share the same problem text; the highest-impact copy wins.
    The result is sorted by descending impact, stable for equal impacts.

    Args:
        recommendations: Recommendations in discovery order

    Returns:
        Deduplicated list, most severe first
    """
    best: dict[str, Recommendation] = {}
    order: list[str] = []
    for rec in recommendations:
        existing = best.get(rec.problem)
        if existing is None:
            order.append(rec.problem)
            best[rec.problem] = rec
        elif rec.impact > existing.impact:
            best[rec.problem] = rec

    if len(order) < len(recommendations):
        logger.debug(f"Dropped {len(recommendations) - len(order)} duplicate recommendations")

    return sorted((best[problem] for problem in order), key=lambda r: -r.impact)
