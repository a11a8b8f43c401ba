"""Shared scoring helpers."""

import math
from typing import Literal

Status = Literal["excellent", "good", "warning", "error"]

# Percentage thresholds, checked in order
STATUS_THRESHOLDS: tuple[tuple[float, Status], ...] = (
    (85, "excellent"),
    (70, "good"),
    (50, "warning"),
)


def get_status(score: float, max_score: float) -> Status:
    """
    Map a score to a status band.

    Args:
        score: Points earned
        max_score: Points available

    Returns:
        One of excellent, good, warning or error. A zero max is an error.
    """
    if max_score <= 0:
        return "error"
    percentage = score / max_score * 100
    for threshold, status in STATUS_THRESHOLDS:
        if percentage >= threshold:
            return status
    return "error"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
