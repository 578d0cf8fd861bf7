"""Scoring: grading, aggregation and the orchestrator."""

from codefortify.scoring.calculator import calculate_overall, round_half_up
from codefortify.scoring.grading import calculate_grade, grade_for
from codefortify.scoring.results import (
    CategoryResult,
    ErrorRecord,
    OverallResult,
    Recommendation,
    RecoveryRecord,
    ScoringResults,
)

__all__ = [
    "CategoryResult",
    "ErrorRecord",
    "OverallResult",
    "Recommendation",
    "RecoveryRecord",
    "ScoringResults",
    "calculate_grade",
    "calculate_overall",
    "grade_for",
    "round_half_up",
]
