"""Result records produced by a scoring run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from codefortify.errors import ErrorType, Severity


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ErrorRecord:
    """A classified failure observed while analyzing a category."""

    message: str
    type: ErrorType = ErrorType.UNKNOWN
    severity: Severity = Severity.MEDIUM
    context: dict = field(default_factory=dict)
    retryable: bool = False
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type.value,
            "severity": self.severity.value,
            "context": dict(self.context),
            "retryable": self.retryable,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class RecoveryRecord:
    error: str
    recovery: str
    timestamp: str = field(default_factory=utc_now)


@dataclass(frozen=True)
class CategoryResult:
    """Outcome of one analyzer for one run. Never mutated once stored."""

    score: float
    max_score: float
    grade: str = "F"
    category_name: str = ""
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    analysis_time_ms: int = 0
    errors: list[ErrorRecord] = field(default_factory=list)
    warnings: list[ErrorRecord] = field(default_factory=list)
    recoveries: list[RecoveryRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def percentage(self) -> float:
        if self.max_score <= 0:
            return 0.0
        return self.score / self.max_score * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "max_score": self.max_score,
            "grade": self.grade,
            "category_name": self.category_name,
            "issues": list(self.issues),
            "suggestions": list(self.suggestions),
            "details": dict(self.details),
            "analysis_time_ms": self.analysis_time_ms,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "recoveries": [
                {"error": r.error, "recovery": r.recovery, "timestamp": r.timestamp}
                for r in self.recoveries
            ],
            "error": self.error,
        }


@dataclass(frozen=True)
class OverallResult:
    score: float
    max_score: float
    percentage: int
    grade: str
    has_errors: bool = False
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "grade": self.grade,
            "has_errors": self.has_errors,
            "timestamp": self.timestamp,
        }


@dataclass
class Recommendation:
    category: str
    suggestion: str
    priority: str  # "high" | "medium" | "low"
    impact: float = 0.0


@dataclass
class ScoringResults:
    """Everything a run produced. Post-step fields stay empty when they fail."""

    categories: dict[str, CategoryResult] = field(default_factory=dict)
    overall: OverallResult | None = None
    recommendations: list[Recommendation] = field(default_factory=list)
    quality_gates: Any = None  # GateReport
    history_entry: Any = None  # HistoryEntry
    detailed: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
