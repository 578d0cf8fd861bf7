"""Letter grading: step curve over the score ratio.

Lower bounds are inclusive. The same curve grades single categories and the
overall result.
"""

from __future__ import annotations

GRADE_THRESHOLDS: list[tuple[str, float]] = [
    ("A+", 0.98),
    ("A", 0.95),
    ("A-", 0.92),
    ("B+", 0.88),
    ("B", 0.84),
    ("B-", 0.80),
    ("C+", 0.76),
    ("C", 0.72),
    ("C-", 0.68),
    ("D+", 0.64),
    ("D", 0.60),
    ("D-", 0.55),
]

FAILING_GRADE = "F"


def calculate_grade(ratio: float) -> str:
    """Map a score ratio (0.0-1.0) to a letter grade."""
    for grade, minimum in GRADE_THRESHOLDS:
        if ratio >= minimum:
            return grade
    return FAILING_GRADE


def grade_for(score: float, max_score: float) -> str:
    if max_score <= 0:
        return FAILING_GRADE
    return calculate_grade(score / max_score)
