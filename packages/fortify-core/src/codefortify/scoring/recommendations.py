"""Recommendation engines: turn category suggestions into a ranked list."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from codefortify.scoring.results import CategoryResult, Recommendation, ScoringResults

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
ANALYSIS_ERROR_SUGGESTION = "Fix analysis errors so this category can be scored"


@dataclass
class RecommendationOptions:
    max_recommendations: int = 10


class RecommendationEngine(Protocol):
    async def generate_recommendations(
        self, results: ScoringResults, options: RecommendationOptions
    ) -> list[Recommendation]: ...


def priority_for(result: CategoryResult) -> str:
    if result.error is not None or result.percentage < 60:
        return "high"
    if result.percentage < 80:
        return "medium"
    return "low"


class DefaultRecommendationEngine:
    """Ranks suggestions by points lost in their category, then by priority."""

    async def generate_recommendations(
        self, results: ScoringResults, options: RecommendationOptions
    ) -> list[Recommendation]:
        return rank_recommendations(results.categories, options.max_recommendations)


def rank_recommendations(
    categories: Mapping[str, CategoryResult], limit: int
) -> list[Recommendation]:
    collected: list[Recommendation] = []
    for key, result in categories.items():
        lost = max(result.max_score - result.score, 0.0)
        priority = priority_for(result)
        if result.error is not None:
            collected.append(Recommendation(key, ANALYSIS_ERROR_SUGGESTION, "high", lost))
        seen: set[str] = set()
        for suggestion in result.suggestions:
            if suggestion in seen:
                continue
            seen.add(suggestion)
            collected.append(Recommendation(key, suggestion, priority, lost))

    # sorted() is stable, so equal keys keep category then suggestion order.
    collected = sorted(collected, key=lambda r: (-r.impact, PRIORITY_ORDER.get(r.priority, 3)))
    return collected[:limit]
