"""Analyzer table: category id -> analyzer and weight."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from codefortify.analyzers.base import Analyzer
from codefortify.analyzers.completeness import CompletenessAnalyzer
from codefortify.analyzers.developer_experience import DeveloperExperienceAnalyzer
from codefortify.analyzers.performance import PerformanceAnalyzer
from codefortify.analyzers.quality import QualityAnalyzer
from codefortify.analyzers.security import SecurityAnalyzer
from codefortify.analyzers.structure import StructureAnalyzer
from codefortify.analyzers.testing import TestingAnalyzer
from codefortify.models import SCORING_WEIGHTS


@dataclass(frozen=True)
class RegisteredAnalyzer:
    analyzer: Analyzer
    weight: float

    @property
    def category_name(self) -> str:
        return self.analyzer.category_name


class AnalyzerRegistry:
    """Ordered mapping of category ids to analyzers. Order is registration order."""

    def __init__(self) -> None:
        self._entries: dict[str, RegisteredAnalyzer] = {}

    def register(self, analyzer: Analyzer, weight: float) -> None:
        if weight <= 0:
            raise ValueError(f"Weight for {analyzer.category_id} must be positive, got {weight}")
        self._entries[analyzer.category_id] = RegisteredAnalyzer(analyzer, weight)

    def get(self, category_id: str) -> RegisteredAnalyzer | None:
        return self._entries.get(category_id)

    def ids(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def default_registry(
    weights: Mapping[str, float] | None = None,
    run_audit: bool = False,
) -> AnalyzerRegistry:
    """Registry with the seven built-in analyzers."""
    weights = {**SCORING_WEIGHTS, **(weights or {})}
    registry = AnalyzerRegistry()
    for analyzer in (
        StructureAnalyzer(),
        QualityAnalyzer(),
        PerformanceAnalyzer(),
        TestingAnalyzer(),
        SecurityAnalyzer(run_audit=run_audit),
        DeveloperExperienceAnalyzer(),
        CompletenessAnalyzer(),
    ):
        registry.register(analyzer, weights[analyzer.category_id])
    return registry
