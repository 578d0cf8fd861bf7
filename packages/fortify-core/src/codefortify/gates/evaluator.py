"""Quality gate evaluation.

Compares overall and per-category scores against configured thresholds and
produces a GateReport suitable for CI consumption. Evaluation is pure apart
from the report timestamp and the cached last evaluation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from codefortify.ci.environment import Environment, EnvironmentSink
from codefortify.ci.output import CIOutputAdapter, CIOutputResult
from codefortify.formatting import format_number
from codefortify.gates.models import BlockingVerdict, GateReport, GateResult, GateSummary
from codefortify.models import CATEGORY_DISPLAY_NAMES, GatesConfig, GateThreshold
from codefortify.scoring.results import CategoryResult, OverallResult, ScoringResults

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "Quality gates disabled"
NO_THRESHOLD_MESSAGE = "No threshold configured"
OVERALL_GATE_NAME = "Overall Quality Score"


def category_display_name(key: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(key, key)


def generate_gate_message(
    name: str,
    score: float,
    threshold: GateThreshold,
    passed: bool,
    warning: bool,
) -> str:
    threshold_text = (
        f" (threshold: {format_number(threshold.min)})" if threshold.min is not None else ""
    )
    if passed and not warning:
        return f"✅ {name}: {format_number(score)}{threshold_text} - PASSED"
    if passed and warning:
        return (
            f"⚠️  {name}: {format_number(score)}{threshold_text}"
            f" - PASSED (warning: below {format_number(threshold.warning)})"
        )
    return f"❌ {name}: {format_number(score)}{threshold_text} - FAILED"


def generate_message(summary: GateSummary, passed: bool) -> str:
    if passed:
        return f"✅ Quality gates PASSED ({summary.passed}/{summary.total} gates passed)"
    return f"❌ Quality gates FAILED ({summary.failed}/{summary.total} gates failed)"


def calculate_summary(gates: list[GateResult]) -> GateSummary:
    passed = sum(1 for g in gates if g.passed)
    total = len(gates)
    return GateSummary(
        passed=passed,
        failed=total - passed,
        warnings=sum(1 for g in gates if g.warning),
        total=total,
        pass_rate=passed / total * 100 if total else 0,
    )


def _check(score: float, threshold: GateThreshold) -> tuple[bool, bool]:
    passed = score >= (threshold.min or 0)
    warning = threshold.warning is not None and score < threshold.warning
    return passed, warning


class GateEvaluator:
    """Evaluates scoring results against thresholds and renders CI output."""

    def __init__(
        self,
        config: GatesConfig | None = None,
        environment: Environment | None = None,
        sink: EnvironmentSink | None = None,
    ) -> None:
        self.config = config or GatesConfig()
        self.ci = CIOutputAdapter(self.config, environment=environment, sink=sink)
        self.last_evaluation: GateReport | None = None

    # ── Evaluation ─────────────────────────────────────────────────────────

    def evaluate_results(self, results: ScoringResults, strict: bool = False) -> GateReport:
        if not self.config.enabled:
            report = GateReport(passed=True, message=DISABLED_MESSAGE)
            self.last_evaluation = report
            return report

        gates = [self.evaluate_overall_gate(results.overall)]
        for key, category in results.categories.items():
            gates.append(self.evaluate_category_gate(key, category))

        summary = calculate_summary(gates)
        if strict:
            passed = all(g.passed for g in gates)
        else:
            # At least one gate has to pass; zero failures alone is not enough.
            passed = summary.passed > 0 and summary.failed == 0

        report = GateReport(
            passed=passed,
            message=generate_message(summary, passed),
            gates=gates,
            summary=summary,
            config=self.config.model_dump(mode="json"),
            overall_score=results.overall.score if results.overall else 0,
            category_scores={key: c.score for key, c in results.categories.items()},
        )
        self.last_evaluation = report
        if self.config.verbose:
            self._log_report(report)
        return report

    def evaluate_overall_gate(self, overall: OverallResult | None) -> GateResult:
        threshold = self.config.thresholds.overall
        score = overall.score if overall else 0
        passed, warning = _check(score, threshold)
        return GateResult(
            name=OVERALL_GATE_NAME,
            type="overall",
            passed=passed,
            warning=warning,
            score=score,
            threshold=threshold.min,
            message=generate_gate_message("overall", score, threshold, passed, warning),
            details={
                "percentage": overall.percentage if overall else 0,
                "grade": overall.grade if overall else None,
                "max_score": overall.max_score if overall else 0,
            },
        )

    def evaluate_category_gate(self, key: str, category: CategoryResult) -> GateResult:
        threshold = self.config.thresholds.categories.get(key)
        if threshold is None:
            return GateResult(
                name=category_display_name(key),
                type="category",
                passed=True,
                warning=False,
                score=category.score,
                threshold=None,
                message=NO_THRESHOLD_MESSAGE,
                details={
                    "category_key": key,
                    "max_score": category.max_score,
                    "grade": category.grade,
                },
            )

        passed, warning = _check(category.score, threshold)
        return GateResult(
            name=category_display_name(key),
            type="category",
            passed=passed,
            warning=warning,
            score=category.score,
            threshold=threshold.min,
            message=generate_gate_message(key, category.score, threshold, passed, warning),
            details={
                "category_key": key,
                "max_score": category.max_score,
                "grade": category.grade,
                "issues": list(category.issues),
                "suggestions": list(category.suggestions),
                "error": category.error,
            },
        )

    # ── Blocking policy ────────────────────────────────────────────────────

    def blocking_verdict(self, report: GateReport, has_errors: bool = False) -> BlockingVerdict:
        """Decide whether the pipeline should stop, per ``ci.blocking``."""
        blocking = self.config.ci.blocking
        if not blocking.enabled:
            return BlockingVerdict(blocked=False, level="none", exit_code=0)

        levels: list[str] = []
        reasons: list[str] = []
        if not report.passed and blocking.on_failure != "ignore":
            levels.append(blocking.on_failure)
            reasons.append(report.message)
        if has_errors and blocking.on_failure == "error":
            levels.append("error")
            reasons.append("One or more categories failed to analyze")
        if report.summary.warnings and blocking.on_warning != "ignore":
            levels.append(blocking.on_warning)
            reasons.append(f"{report.summary.warnings} gate(s) below warning threshold")

        if "error" in levels:
            level = "error"
        elif "warning" in levels:
            level = "warning"
        else:
            level = "none"
        blocked = level == "error"
        return BlockingVerdict(
            blocked=blocked, level=level, exit_code=1 if blocked else 0, reasons=reasons,
        )

    # ── CI output ──────────────────────────────────────────────────────────

    def generate_ci_output(
        self,
        report: GateReport | None = None,
        format: str = "auto",
        output_path: str | Path | None = None,
    ) -> CIOutputResult:
        report = report or self.last_evaluation
        if report is None:
            raise RuntimeError("No evaluation results available. Run evaluate_results() first.")
        return self.ci.generate(report, format=format, output_path=output_path)

    def configuration(self) -> Mapping[str, Any]:
        return {
            "enabled": self.config.enabled,
            "thresholds": self.config.thresholds.model_dump(),
            "ci": self.config.ci.model_dump(),
            "formatters": self.ci.supported_formats(),
        }

    def _log_report(self, report: GateReport) -> None:
        logger.info("Quality gates: %s", report.message)
        if report.summary.warnings:
            logger.info("Warnings: %d", report.summary.warnings)
        for gate in report.gates:
            status = "PASS" if gate.passed else "FAIL"
            threshold = f"/{format_number(gate.threshold)}" if gate.threshold is not None else ""
            logger.info(
                "  %s%s %s: %s%s",
                status, " (warning)" if gate.warning else "", gate.name,
                format_number(gate.score), threshold,
            )
