"""Pydantic v2 models for scoring, gate and CI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


# ── Categories ──────────────────────────────────────────────────────────────

SCORING_WEIGHTS: dict[str, float] = {
    "structure": 20,
    "quality": 20,
    "performance": 15,
    "testing": 15,
    "security": 15,
    "developer_experience": 10,
    "completeness": 5,
}

CATEGORY_DISPLAY_NAMES: dict[str, str] = {
    "structure": "Code Structure & Architecture",
    "quality": "Code Quality & Maintainability",
    "performance": "Performance & Optimization",
    "testing": "Testing & Documentation",
    "security": "Security & Error Handling",
    "developer_experience": "Developer Experience",
    "completeness": "Completeness & Production Readiness",
}


# ── Gate thresholds ─────────────────────────────────────────────────────────


class GateThreshold(BaseModel):
    min: float | None = None
    warning: float | None = None


def _default_category_thresholds() -> dict[str, GateThreshold]:
    return {
        "quality": GateThreshold(min=15, warning=18),
        "testing": GateThreshold(min=10, warning=12),
        "security": GateThreshold(min=12, warning=14),
        "structure": GateThreshold(min=15, warning=18),
        "performance": GateThreshold(min=10, warning=12),
        "developer_experience": GateThreshold(min=7, warning=9),
        "completeness": GateThreshold(min=3, warning=4),
    }


class ThresholdConfig(BaseModel):
    overall: GateThreshold = Field(
        default_factory=lambda: GateThreshold(min=70, warning=80)
    )
    categories: dict[str, GateThreshold] = Field(
        default_factory=_default_category_thresholds
    )


# ── CI integration ──────────────────────────────────────────────────────────

CIFormatName = Literal["auto", "github-actions", "gitlab-ci", "jenkins", "generic"]
BlockingLevel = Literal["error", "warning", "ignore"]


class CIOutputOptions(BaseModel):
    summary: bool = True
    detailed: bool = False
    trend: bool = False


class BlockingConfig(BaseModel):
    enabled: bool = True
    on_failure: BlockingLevel = "error"
    on_warning: BlockingLevel = "warning"


class CIConfig(BaseModel):
    format: CIFormatName = "auto"
    output: CIOutputOptions = Field(default_factory=CIOutputOptions)
    blocking: BlockingConfig = Field(default_factory=BlockingConfig)
    set_environment: bool = True
    environment_prefix: str = "QUALITY_GATES_"


class GatesConfig(BaseModel):
    enabled: bool = True
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    verbose: bool = False


# ── Scoring run ─────────────────────────────────────────────────────────────


class RetryPolicyConfig(BaseModel):
    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=0.5, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class ScoringConfig(BaseModel):
    project_root: str = "."
    project_name: str = ""
    verbose: bool = False
    categories: list[str] | str = "all"
    weights: dict[str, float] = Field(default_factory=lambda: dict(SCORING_WEIGHTS))
    parallel: bool = False
    max_concurrency: int = Field(default=4, ge=1)
    max_recommendations: int = Field(default=10, ge=0)
    retry: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    gates: GatesConfig = Field(default_factory=GatesConfig)
    history_path: str = ".codefortify/quality-history.db"
    run_audit: bool = False
