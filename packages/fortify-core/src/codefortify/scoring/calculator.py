"""Score aggregation and run statistics."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from codefortify.scoring.grading import calculate_grade
from codefortify.scoring.results import CategoryResult, OverallResult


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives; Python's round() is banker's."""
    return int(math.floor(value + 0.5))


def calculate_overall(categories: Mapping[str, CategoryResult]) -> OverallResult:
    """Aggregate category results into an overall result.

    Iterates keys in sorted order so the float sum does not depend on the
    order in which concurrent analyzers finished.
    """
    total = 0.0
    max_total = 0.0
    has_errors = False
    for key in sorted(categories):
        result = categories[key]
        total += result.score
        max_total += result.max_score
        if result.error is not None:
            has_errors = True

    ratio = total / max_total if max_total > 0 else 0.0
    return OverallResult(
        score=total,
        max_score=max_total,
        percentage=round_half_up(ratio * 100) if max_total > 0 else 0,
        grade=calculate_grade(ratio),
        has_errors=has_errors,
    )


@dataclass
class Improvement:
    change: float
    percentage: int
    is_improvement: bool
    is_significant: bool
    direction: str  # "up" | "down" | "stable"


def calculate_improvement(current: float, previous: float | None) -> Improvement:
    """Change between two overall scores; 5% or more counts as significant."""
    if not previous:
        return Improvement(
            change=0.0, percentage=0, is_improvement=False,
            is_significant=False, direction="stable",
        )
    change = current - previous
    pct = round_half_up(change / previous * 100)
    if change > 0:
        direction = "up"
    elif change < 0:
        direction = "down"
    else:
        direction = "stable"
    return Improvement(
        change=change,
        percentage=pct,
        is_improvement=change > 0,
        is_significant=abs(pct) >= 5,
        direction=direction,
    )


def calculate_category_weights(
    categories: Mapping[str, CategoryResult],
) -> dict[str, dict[str, float]]:
    total = sum(r.max_score for r in categories.values())
    return {
        key: {
            "points": r.max_score,
            "percentage": round_half_up(r.max_score / total * 100) if total > 0 else 0,
        }
        for key, r in categories.items()
    }


def calculate_statistics(categories: Mapping[str, CategoryResult]) -> dict:
    """Mean/median/stddev/range of category percentages, skipping errored ones."""
    percentages = [
        r.percentage for r in categories.values() if r.error is None
    ]
    if not percentages:
        return {"mean": 0, "median": 0, "standard_deviation": 0, "range": {"min": 0, "max": 0}}

    mean = sum(percentages) / len(percentages)
    ordered = sorted(percentages)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2
    else:
        median = ordered[mid]
    variance = sum((p - mean) ** 2 for p in percentages) / len(percentages)

    return {
        "mean": round_half_up(mean),
        "median": round_half_up(median),
        "standard_deviation": round_half_up(math.sqrt(variance)),
        "range": {"min": round_half_up(ordered[0]), "max": round_half_up(ordered[-1])},
    }
