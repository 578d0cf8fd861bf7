"""Scoring orchestrator: runs category analyzers and assembles the results.

Each analyzer runs behind the ErrorRecoveryLayer, so one category's failure
never prevents another from running or being recorded. Post-steps
(recommendations, gates, history, detailed report) are independently
fail-soft.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Any

from codefortify.analyzers.base import AnalyzerConfig
from codefortify.analyzers.registry import AnalyzerRegistry, default_registry
from codefortify.errors import ConfigurationError
from codefortify.gates.evaluator import GateEvaluator
from codefortify.models import ScoringConfig
from codefortify.recovery.layer import ErrorRecoveryLayer, RecoveryPolicy
from codefortify.scoring.calculator import calculate_overall
from codefortify.scoring.history import HistorySink, QualityHistory
from codefortify.scoring.recommendations import (
    DefaultRecommendationEngine,
    RecommendationEngine,
    RecommendationOptions,
)
from codefortify.scoring.report import generate_detailed_report
from codefortify.scoring.results import CategoryResult, OverallResult, ScoringResults

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


class ScoringOrchestrator:
    def __init__(
        self,
        config: ScoringConfig | None = None,
        registry: AnalyzerRegistry | None = None,
        recovery: ErrorRecoveryLayer | None = None,
        recommendation_engine: RecommendationEngine | None = None,
        gate_evaluator: GateEvaluator | None = None,
        history: HistorySink | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.registry = registry or default_registry(
            self.config.weights, run_audit=self.config.run_audit
        )
        self.recovery = recovery or ErrorRecoveryLayer(
            RecoveryPolicy.from_config(self.config.retry)
        )
        self.recommendation_engine = recommendation_engine or DefaultRecommendationEngine()
        self.gate_evaluator = gate_evaluator or GateEvaluator(self.config.gates)
        self.history = history

        self.project_root = Path(self.config.project_root).resolve()
        self.results = ScoringResults(metadata=self._metadata())
        self._timings: dict[str, int] = {}
        self._started: float | None = None
        self._finished: float | None = None

    def _metadata(self) -> dict[str, Any]:
        return {
            "project_root": str(self.project_root),
            "project_name": self.config.project_name or self.project_root.name,
            "version": VERSION,
        }

    # ── Category resolution ────────────────────────────────────────────────

    def available_categories(self) -> list[str]:
        return self.registry.ids()

    def determine_categories(self, requested: str | Iterable[str] | None = "all") -> list[str]:
        """Resolve the requested categories against the registry, in registry order."""
        if requested is None or requested == "all":
            wanted = set(self.registry.ids())
        elif isinstance(requested, str):
            wanted = {part.strip() for part in requested.split(",") if part.strip()}
        else:
            wanted = {str(part).strip() for part in requested}

        unknown = sorted(wanted - set(self.registry.ids()))
        if unknown:
            logger.debug("Ignoring unknown categories: %s", ", ".join(unknown))

        resolved = [key for key in self.registry.ids() if key in wanted]
        if not resolved:
            raise ConfigurationError(
                f"No valid categories to analyze (requested: {requested!r}; "
                f"available: {', '.join(self.registry.ids())})"
            )
        return resolved

    # ── Analysis ───────────────────────────────────────────────────────────

    async def run_category_analysis(self, categories: list[str]) -> dict[str, CategoryResult]:
        self._started = time.perf_counter()
        if self.config.parallel:
            semaphore = asyncio.Semaphore(self.config.max_concurrency)

            async def bounded(key: str) -> CategoryResult:
                async with semaphore:
                    return await self._analyze_category(key)

            completed = await asyncio.gather(*(bounded(key) for key in categories))
            outcomes = dict(zip(categories, completed))
        else:
            outcomes = {}
            for key in categories:
                outcomes[key] = await self._analyze_category(key)

        for key in categories:
            self.results.categories[key] = outcomes[key]
        self._finished = time.perf_counter()
        return {key: self.results.categories[key] for key in categories}

    async def _analyze_category(self, key: str) -> CategoryResult:
        entry = self.registry.get(key)
        if entry is None:
            raise ConfigurationError(f"No analyzer registered for category: {key}")
        max_score = entry.weight
        config = AnalyzerConfig(
            project_root=self.project_root,
            max_score=max_score,
            verbose=self.config.verbose,
            retry_policy=self.recovery.default_policy,
        )
        if self.config.verbose:
            logger.info("Analyzing %s...", entry.category_name)

        started = time.perf_counter()
        result = await self.recovery.execute(
            key,
            lambda: entry.analyzer.analyze(self.project_root, config),
            {"project_root": str(self.project_root)},
            max_score=max_score,
            category_name=entry.category_name,
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        self._timings[key] = elapsed_ms
        return replace(result, analysis_time_ms=elapsed_ms)

    def calculate_overall_score(self) -> OverallResult:
        overall = calculate_overall(self.results.categories)
        self.results.overall = overall
        return overall

    # ── Pipeline ───────────────────────────────────────────────────────────

    async def score_project(
        self,
        categories: str | Iterable[str] | None = None,
        *,
        recommendations: bool = True,
        record_history: bool = False,
        detailed: bool = False,
        strict: bool = False,
    ) -> ScoringResults:
        """Run the full pipeline and return best-effort results."""
        resolved = self.determine_categories(
            self.config.categories if categories is None else categories
        )
        logger.info("Scoring %s: %s", self.results.metadata["project_name"], ", ".join(resolved))

        await self.run_category_analysis(resolved)
        overall = self.calculate_overall_score()
        logger.info(
            "Overall score %s/%s (%d%%, %s)",
            round(overall.score, 2), overall.max_score, overall.percentage, overall.grade,
        )

        if recommendations:
            try:
                self.results.recommendations = await self.recommendation_engine.generate_recommendations(
                    self.results,
                    RecommendationOptions(max_recommendations=self.config.max_recommendations),
                )
            except Exception:
                logger.exception("Recommendation generation failed")
                self.results.recommendations = []

        try:
            self.results.quality_gates = self.gate_evaluator.evaluate_results(
                self.results, strict=strict
            )
        except Exception:
            logger.exception("Quality gate evaluation failed")
            self.results.quality_gates = None

        if record_history:
            try:
                self.results.history_entry = await self._history().record_score(self.results)
            except Exception as e:
                logger.warning("Could not record quality history: %s", e)
                self.results.history_entry = None

        if detailed:
            try:
                self.results.detailed = generate_detailed_report(
                    self.results.categories, self.performance_metrics()
                )
            except Exception:
                logger.exception("Detailed report generation failed")
                self.results.detailed = None

        return self.results

    def _history(self) -> HistorySink:
        if self.history is None:
            path = Path(self.config.history_path)
            if not path.is_absolute():
                path = self.project_root / path
            self.history = QualityHistory(path)
        return self.history

    # ── Accessors ──────────────────────────────────────────────────────────

    def category_result(self, category_id: str) -> CategoryResult | None:
        return self.results.categories.get(category_id)

    def overall_score(self) -> OverallResult | None:
        return self.results.overall

    def is_analysis_complete(self) -> bool:
        return self.results.overall is not None and bool(self.results.categories)

    def performance_metrics(self) -> dict[str, Any]:
        total_ms = 0
        if self._started is not None and self._finished is not None:
            total_ms = int((self._finished - self._started) * 1000)
        timings = dict(self._timings)
        return {
            "total_time_ms": total_ms,
            "category_times_ms": timings,
            "slowest_category": max(timings, key=timings.get) if timings else None,
            "categories_analyzed": len(timings),
            "parallel": self.config.parallel,
        }
