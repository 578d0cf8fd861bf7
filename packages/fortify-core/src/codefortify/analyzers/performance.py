"""Performance & optimization heuristics over source text."""

from __future__ import annotations

import re
from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

BLOCKING_CALLS = re.compile(r"\b(readFileSync|writeFileSync|execSync|time\.sleep\(|requests\.(get|post)\()")
ASYNC_MARKERS = re.compile(r"\basync\b|\bawait\b|Promise\.all|asyncio\.gather")
CACHE_MARKERS = re.compile(r"lru_cache|functools\.cache|useMemo|memoize|new Map\(|Cache\b", re.IGNORECASE)
HEAVY_IMPORTS = ("lodash", "moment", "pandas")


class PerformanceAnalyzer:
    category_id = "performance"
    category_name = "Performance & Optimization"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)
        sources = await files.read_sources()
        if not sources:
            builder.add_issue("No source files to inspect")
            return builder.build()

        blocking = sorted(rel for rel, text in sources.items() if BLOCKING_CALLS.search(text))
        async_files = [rel for rel, text in sources.items() if ASYNC_MARKERS.search(text)]
        cached = [rel for rel, text in sources.items() if CACHE_MARKERS.search(text)]
        builder.set_detail("blocking_call_files", blocking)
        builder.set_detail("async_files", len(async_files))
        builder.set_detail("caching_files", len(cached))

        # Blocking I/O: 40%
        blocking_ratio = len(blocking) / len(sources)
        builder.award(0.4 * (1 - min(blocking_ratio * 5, 1)), "Blocking call usage")
        if blocking:
            builder.add_issue(
                f"Blocking calls in {len(blocking)} file(s)",
                "Prefer asynchronous I/O in request and event-loop code paths",
            )

        # Async usage: 25%
        if async_files:
            builder.award(0.25, "Asynchronous code paths present")
        else:
            builder.award(0.1, "Synchronous codebase")

        # Caching: 20%
        if cached:
            builder.award(0.2, "Caching or memoization in use")
        else:
            builder.add_issue("No caching detected", "Cache expensive computations where results repeat")

        # Dependency weight: 15%
        manifest = await files.read_json("package.json") or {}
        dependencies = {**manifest.get("dependencies", {})}
        heavy = [name for name in HEAVY_IMPORTS if name in dependencies]
        builder.set_detail("heavy_dependencies", heavy)
        if heavy:
            builder.award(0.05, "Heavy dependencies present")
            builder.add_issue(
                f"Heavy runtime dependencies: {', '.join(heavy)}",
                "Replace heavy dependencies with lighter alternatives or targeted imports",
            )
        else:
            builder.award(0.15, "No heavy runtime dependencies")

        return builder.build()
