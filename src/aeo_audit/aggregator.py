"""Composite AEO score: weighted, renormalized, with global penalties."""

import logging

from aeo_audit.models import (
    CategoryContribution,
    CompositeMetadata,
    CompositeScore,
    GlobalPenalty,
)
from aeo_audit.scoring import round_half_up

logger = logging.getLogger(__name__)

# Total reduction from global penalties never exceeds this percentage
MAX_PENALTY_REDUCTION = 70


class ScoreAggregator:
    """
    Combines per-category scores into one 0-100 score.

    Categories without a valid score are left out and the remaining
    weights are renormalized, so a failed analysis never counts as zero.
    """

    # Category weights (total = 100)
    WEIGHTS = {
        "discoverability": 20,
        "structuredData": 25,
        "llmFormatting": 25,
        "accessibility": 15,
        "readability": 15,
    }

    def __init__(self, weights: dict[str, int] | None = None):
        self.weights = dict(weights if weights is not None else self.WEIGHTS)
        total = sum(self.weights.values())
        if total != 100:
            raise ValueError(f"Weights must sum to 100, got {total}")

    def aggregate(
        self,
        scores: dict[str, float | None],
        penalties: list[GlobalPenalty] | None = None,
    ) -> CompositeScore:
        """
        Compute the composite score.

        Args:
            scores: Category score (0-100) or None for failed analyses
            penalties: Site-wide penalties to apply to the base score

        Returns:
            CompositeScore with breakdown, completeness and metadata
        """
        breakdown = {}
        weighted_sum = 0.0
        weight_used = 0

        for category, weight in self.weights.items():
            score = scores.get(category)
            if score is None:
                continue
            contribution = score * weight / 100
            breakdown[category] = CategoryContribution(
                score=score, weight=weight, contribution=round(contribution, 2)
            )
            weighted_sum += contribution
            weight_used += weight

        base_score = round_half_up(weighted_sum / weight_used * 100) if weight_used else 0
        penalties = penalties or []
        reduction = min(round(sum(p.penalty_factor * 100 for p in penalties), 4), MAX_PENALTY_REDUCTION)
        total_score = max(0, round_half_up(base_score * (1 - reduction / 100)))

        if penalties:
            logger.info(f"Applied {len(penalties)} global penalties: {base_score} -> {total_score}")

        completed = len(breakdown)
        return CompositeScore(
            total_score=total_score,
            max_score=100,
            breakdown=breakdown,
            completeness=f"{completed}/{len(self.weights)} analyses completed",
            global_penalties=penalties,
            metadata=CompositeMetadata(
                base_score=base_score,
                total_weight_used=weight_used,
                completed_analyses=completed,
                total_analyses=len(self.weights),
                total_reduction=round(reduction, 2),
            ),
        )
