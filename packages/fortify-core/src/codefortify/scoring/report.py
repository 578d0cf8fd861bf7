"""Detailed analysis section of a scoring run."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from codefortify.scoring.calculator import (
    calculate_category_weights,
    calculate_statistics,
    round_half_up,
)
from codefortify.scoring.results import CategoryResult

MAINTAINABILITY_CATEGORIES = ("quality", "structure", "testing")
TOP_ISSUES = 5


def _level(value: float, high: float, medium: float) -> str:
    if value > high:
        return "high"
    if value > medium:
        return "medium"
    return "low"


def calculate_maintainability(categories: Mapping[str, CategoryResult]) -> dict[str, Any]:
    factors = [
        categories[key].score / categories[key].max_score
        for key in MAINTAINABILITY_CATEGORIES
        if key in categories and categories[key].max_score > 0
    ]
    average = sum(factors) / len(factors) if factors else 0.0
    return {
        "score": round_half_up(average * 100),
        "level": _level(average, 0.8, 0.6),
        "factors": {key: categories[key].score for key in MAINTAINABILITY_CATEGORIES if key in categories},
    }


def calculate_technical_debt(categories: Mapping[str, CategoryResult]) -> dict[str, Any]:
    issues = [
        {"category": key, "issue": issue}
        for key, result in categories.items()
        for issue in result.issues
    ]
    count = len(issues)
    if count < 5:
        level = "low"
    elif count < 15:
        level = "medium"
    else:
        level = "high"
    return {
        "total_issues": count,
        "debt_score": min(count, 100),
        "level": level,
        "top_issues": issues[:TOP_ISSUES],
    }


def generate_detailed_report(
    categories: Mapping[str, CategoryResult],
    performance: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Statistics, weights, maintainability and technical debt for a run."""
    return {
        "statistics": calculate_statistics(categories),
        "weights": calculate_category_weights(categories),
        "maintainability": calculate_maintainability(categories),
        "technical_debt": calculate_technical_debt(categories),
        "errors": {
            key: [e.to_dict() for e in result.errors]
            for key, result in categories.items()
            if result.errors
        },
        "performance": dict(performance or {}),
    }
