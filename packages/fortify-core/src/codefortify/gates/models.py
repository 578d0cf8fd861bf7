"""Gate verdict records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from codefortify.scoring.results import utc_now

GateType = Literal["overall", "category"]


@dataclass
class GateResult:
    name: str
    type: GateType
    passed: bool
    warning: bool
    score: float
    threshold: float | None
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "passed": self.passed,
            "warning": self.warning,
            "score": self.score,
            "threshold": self.threshold,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass
class GateSummary:
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    total: int = 0
    pass_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "total": self.total,
            "pass_rate": self.pass_rate,
        }


@dataclass
class GateReport:
    """Result of one evaluation call."""

    passed: bool
    message: str
    gates: list[GateResult] = field(default_factory=list)
    summary: GateSummary = field(default_factory=GateSummary)
    timestamp: str = field(default_factory=utc_now)
    config: dict[str, Any] = field(default_factory=dict)
    overall_score: float = 0.0
    category_scores: dict[str, float] = field(default_factory=dict)

    @property
    def results(self) -> dict[str, Any]:
        return {"overall": self.overall_score, "categories": dict(self.category_scores)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "message": self.message,
            "gates": [g.to_dict() for g in self.gates],
            "summary": self.summary.to_dict(),
            "timestamp": self.timestamp,
            "config": self.config,
            "results": self.results,
        }


@dataclass
class BlockingVerdict:
    blocked: bool
    level: Literal["error", "warning", "none"]
    exit_code: int
    reasons: list[str] = field(default_factory=list)
