"""Tests for recommendation ranking and the detailed report."""

from __future__ import annotations

from codefortify.scoring.recommendations import (
    ANALYSIS_ERROR_SUGGESTION,
    DefaultRecommendationEngine,
    RecommendationOptions,
    priority_for,
    rank_recommendations,
)
from codefortify.scoring.report import (
    calculate_maintainability,
    calculate_technical_debt,
    generate_detailed_report,
)
from codefortify.scoring.results import CategoryResult, ScoringResults


def _category(score, max_score, suggestions=(), issues=(), error=None) -> CategoryResult:
    return CategoryResult(
        score=score, max_score=max_score, suggestions=list(suggestions),
        issues=list(issues), error=error,
    )


class TestRecommendations:
    def test_priority(self):
        assert priority_for(_category(5, 10)) == "high"
        assert priority_for(_category(7, 10)) == "medium"
        assert priority_for(_category(9, 10)) == "low"
        assert priority_for(_category(0, 10, error="x")) == "high"

    def test_ranked_by_lost_points(self):
        ranked = rank_recommendations(
            {
                "quality": _category(18, 20, ["Wrap long lines"]),
                "testing": _category(3, 15, ["Add tests", "Add coverage"]),
            },
            limit=10,
        )
        assert [r.suggestion for r in ranked] == ["Add tests", "Add coverage", "Wrap long lines"]
        assert ranked[0].priority == "high"
        assert ranked[0].impact == 12

    def test_limit_and_dedupe(self):
        ranked = rank_recommendations(
            {"testing": _category(3, 15, ["Add tests", "Add tests", "Add coverage"])},
            limit=1,
        )
        assert [r.suggestion for r in ranked] == ["Add tests"]

    def test_errored_category(self):
        ranked = rank_recommendations({"security": _category(0, 15, error="boom")}, limit=5)
        assert ranked[0].suggestion == ANALYSIS_ERROR_SUGGESTION
        assert ranked[0].category == "security"

    async def test_default_engine(self):
        results = ScoringResults(categories={"testing": _category(3, 15, ["Add tests"])})
        recs = await DefaultRecommendationEngine().generate_recommendations(
            results, RecommendationOptions(max_recommendations=3)
        )
        assert len(recs) == 1


class TestDetailedReport:
    def test_maintainability(self):
        m = calculate_maintainability({
            "quality": _category(18, 20),
            "structure": _category(16, 20),
            "testing": _category(6, 15),
            "security": _category(0, 15),
        })
        assert m["score"] == 70
        assert m["level"] == "medium"
        assert set(m["factors"]) == {"quality", "structure", "testing"}

    def test_technical_debt_levels(self):
        debt = calculate_technical_debt({
            "quality": _category(0, 20, issues=[f"q{i}" for i in range(4)]),
            "testing": _category(0, 15, issues=[f"t{i}" for i in range(3)]),
        })
        assert debt["total_issues"] == 7
        assert debt["level"] == "medium"
        assert len(debt["top_issues"]) == 5

    def test_report_sections(self):
        report = generate_detailed_report(
            {"quality": _category(10, 20)}, performance={"total_time_ms": 12}
        )
        assert set(report) == {
            "statistics", "weights", "maintainability", "technical_debt", "errors", "performance",
        }
        assert report["performance"]["total_time_ms"] == 12
        assert report["errors"] == {}
