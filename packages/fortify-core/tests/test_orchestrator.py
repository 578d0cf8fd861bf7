"""Tests for ScoringOrchestrator: category resolution, isolation, post-steps."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from codefortify.analyzers.base import AnalyzerConfig, ResultBuilder
from codefortify.analyzers.registry import AnalyzerRegistry
from codefortify.errors import ConfigurationError
from codefortify.models import GatesConfig, GateThreshold, RetryPolicyConfig, ScoringConfig, ThresholdConfig
from codefortify.scoring.orchestrator import ScoringOrchestrator
from codefortify.scoring.recommendations import ANALYSIS_ERROR_SUGGESTION
from codefortify.scoring.results import CategoryResult


class FixedAnalyzer:
    def __init__(self, category_id: str, share: float, delay: float = 0.0, suggestion: str = ""):
        self.category_id = category_id
        self.category_name = category_id.title()
        self.share = share
        self.delay = delay
        self.suggestion = suggestion
        self.calls = 0

    async def analyze(self, project_root, config: AnalyzerConfig) -> CategoryResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        builder = ResultBuilder(config.max_score, self.category_name)
        builder.award(self.share)
        if self.suggestion:
            builder.add_issue(f"{self.category_id} issue", self.suggestion)
        return builder.build()


class CrashingAnalyzer:
    category_id = "security"
    category_name = "Security"

    async def analyze(self, project_root, config):
        raise RuntimeError("scanner crashed")


def _registry(*entries) -> AnalyzerRegistry:
    registry = AnalyzerRegistry()
    for analyzer, weight in entries:
        registry.register(analyzer, weight)
    return registry


def _config(tmp_path, **kwargs) -> ScoringConfig:
    defaults = {
        "project_root": str(tmp_path),
        "retry": RetryPolicyConfig(max_retries=0, retry_delay=0, timeout_seconds=5),
        "gates": GatesConfig(
            thresholds=ThresholdConfig(
                overall=GateThreshold(min=50),
                categories={
                    "structure": GateThreshold(min=10),
                    "security": GateThreshold(min=5),
                },
            )
        ),
    }
    defaults.update(kwargs)
    return ScoringConfig(**defaults)


@pytest.fixture
def registry():
    return _registry(
        (FixedAnalyzer("structure", 0.9, suggestion="Split modules"), 20),
        (CrashingAnalyzer(), 15),
        (FixedAnalyzer("testing", 0.5, suggestion="Add tests"), 15),
    )


# ── determine_categories ───────────────────────────────────────────────────


class TestDetermineCategories:
    def test_all(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.determine_categories("all") == ["structure", "security", "testing"]
        assert orch.determine_categories(None) == ["structure", "security", "testing"]

    def test_list_follows_registry_order(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.determine_categories(["testing", "structure"]) == ["structure", "testing"]

    def test_comma_separated(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.determine_categories("testing, security") == ["security", "testing"]

    def test_unknown_dropped(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.determine_categories("testing,bogus") == ["testing"]

    def test_empty_raises(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        with pytest.raises(ConfigurationError):
            orch.determine_categories("bogus,nothing")
        with pytest.raises(ConfigurationError):
            orch.determine_categories([])

    def test_available_categories(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.available_categories() == ["structure", "security", "testing"]

    async def test_unregistered_category_in_analysis_raises(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        with pytest.raises(ConfigurationError, match="No analyzer registered for category: bogus"):
            await orch.run_category_analysis(["bogus"])

    def test_run_audit_reaches_default_security_analyzer(self, tmp_path):
        assert ScoringOrchestrator(_config(tmp_path)).registry.get("security").analyzer.run_audit is False
        orch = ScoringOrchestrator(_config(tmp_path, run_audit=True))
        assert orch.registry.get("security").analyzer.run_audit is True


# ── Isolation ──────────────────────────────────────────────────────────────


class TestIsolation:
    async def test_crash_is_contained(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        results = await orch.score_project()

        security = results.categories["security"]
        assert security.score == 0
        assert security.grade == "F"
        assert security.error == "scanner crashed"
        assert security.max_score == 15

        assert results.categories["structure"].score == 18
        assert results.categories["testing"].score == 7.5
        assert results.overall.score == 25.5
        assert results.overall.max_score == 50
        assert results.overall.percentage == 51
        assert results.overall.has_errors is True

    async def test_gate_report_covers_siblings(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        results = await orch.score_project()
        report = results.quality_gates
        assert report is not None
        names = [g.name for g in report.gates]
        assert names == ["Overall Quality Score", "Code Structure & Architecture",
                         "Security & Error Handling", "Testing & Documentation"]
        by_name = {g.name: g for g in report.gates}
        assert by_name["Code Structure & Architecture"].passed is True
        assert by_name["Security & Error Handling"].passed is False
        assert by_name["Testing & Documentation"].threshold is None

    async def test_every_category_runs(self, tmp_path):
        first = FixedAnalyzer("structure", 1.0)
        last = FixedAnalyzer("testing", 1.0)
        registry = _registry((first, 20), (CrashingAnalyzer(), 15), (last, 15))
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        await orch.score_project()
        assert first.calls == 1
        assert last.calls == 1

    async def test_analysis_time_recorded(self, tmp_path):
        registry = _registry((FixedAnalyzer("structure", 1.0, delay=0.02), 20))
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        results = await orch.score_project()
        assert results.categories["structure"].analysis_time_ms >= 10
        assert orch.performance_metrics()["category_times_ms"]["structure"] >= 10


class TestParallel:
    async def test_parallel_matches_sequential(self, tmp_path):
        def build():
            return _registry(
                (FixedAnalyzer("structure", 0.3, delay=0.03), 20),
                (FixedAnalyzer("quality", 0.7, delay=0.0), 20),
                (FixedAnalyzer("testing", 0.55, delay=0.01), 15),
            )

        sequential = await ScoringOrchestrator(_config(tmp_path), registry=build()).score_project()
        parallel = await ScoringOrchestrator(
            _config(tmp_path, parallel=True, max_concurrency=2), registry=build()
        ).score_project()

        assert list(parallel.categories) == ["structure", "quality", "testing"]
        assert parallel.overall.score == sequential.overall.score
        assert parallel.overall.percentage == sequential.overall.percentage
        assert parallel.overall.grade == sequential.overall.grade

    async def test_concurrency_is_bounded(self, tmp_path):
        running = 0
        peak = 0

        class Tracking:
            def __init__(self, key):
                self.category_id = key
                self.category_name = key

            async def analyze(self, project_root, config):
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return CategoryResult(score=1, max_score=config.max_score)

        registry = _registry(*((Tracking(f"c{i}"), 5) for i in range(6)))
        orch = ScoringOrchestrator(_config(tmp_path, parallel=True, max_concurrency=2), registry=registry)
        await orch.score_project()
        assert peak == 2


# ── Post-steps ─────────────────────────────────────────────────────────────


class TestPostSteps:
    async def test_recommendations_ranked(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        results = await orch.score_project()
        suggestions = [r.suggestion for r in results.recommendations]
        assert suggestions[0] == ANALYSIS_ERROR_SUGGESTION
        assert suggestions.index("Add tests") < suggestions.index("Split modules")

    async def test_recommendation_failure_degrades(self, tmp_path, registry):
        engine = MagicMock()
        engine.generate_recommendations = AsyncMock(side_effect=RuntimeError("engine down"))
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, recommendation_engine=engine)
        results = await orch.score_project()
        assert results.recommendations == []
        assert results.quality_gates is not None

    async def test_gate_failure_degrades(self, tmp_path, registry):
        evaluator = MagicMock()
        evaluator.evaluate_results.side_effect = RuntimeError("gates down")
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, gate_evaluator=evaluator)
        results = await orch.score_project()
        assert results.quality_gates is None
        assert results.overall is not None

    async def test_history_failure_degrades(self, tmp_path, registry):
        history = MagicMock()
        history.record_score = AsyncMock(side_effect=OSError("disk full"))
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, history=history)
        results = await orch.score_project(record_history=True)
        assert results.history_entry is None
        assert results.quality_gates is not None

    async def test_history_recorded(self, tmp_path, registry):
        history = MagicMock()
        history.record_score = AsyncMock(return_value="entry")
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, history=history)
        results = await orch.score_project(record_history=True)
        assert results.history_entry == "entry"
        history.record_score.assert_awaited_once_with(results)

    async def test_history_skipped_by_default(self, tmp_path, registry):
        history = MagicMock()
        history.record_score = AsyncMock()
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, history=history)
        await orch.score_project()
        history.record_score.assert_not_awaited()

    async def test_detailed_report(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        results = await orch.score_project(detailed=True)
        detailed = results.detailed
        assert detailed is not None
        assert detailed["technical_debt"]["total_issues"] == 3
        assert "security" in detailed["errors"]
        assert detailed["performance"]["categories_analyzed"] == 3

    async def test_strict_passed_through(self, tmp_path, registry):
        evaluator = MagicMock()
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry, gate_evaluator=evaluator)
        await orch.score_project(strict=True)
        assert evaluator.evaluate_results.call_args.kwargs["strict"] is True


class TestAccessors:
    async def test_before_and_after(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path), registry=registry)
        assert orch.is_analysis_complete() is False
        assert orch.overall_score() is None

        await orch.score_project("structure")
        assert orch.is_analysis_complete() is True
        assert orch.category_result("structure").score == 18
        assert orch.category_result("security") is None
        assert orch.overall_score().percentage == 90

    async def test_metadata(self, tmp_path, registry):
        orch = ScoringOrchestrator(_config(tmp_path, project_name="demo"), registry=registry)
        assert orch.results.metadata["project_name"] == "demo"
