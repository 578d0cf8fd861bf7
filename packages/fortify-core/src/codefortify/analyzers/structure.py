"""Code structure & architecture: layout, file sizes, naming."""

from __future__ import annotations

import re
from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

LARGE_FILE_LINES = 500
SOURCE_DIRS = ("src", "lib", "app", "packages")

_SNAKE = re.compile(r"^[a-z0-9_]+$")
_KEBAB = re.compile(r"^[a-z0-9-]+$")
_CAMEL = re.compile(r"^[a-z][A-Za-z0-9]*$")
_PASCAL = re.compile(r"^[A-Z][A-Za-z0-9]*$")


def _naming_style(stem: str) -> str:
    for name, pattern in (("snake", _SNAKE), ("kebab", _KEBAB), ("camel", _CAMEL), ("pascal", _PASCAL)):
        if pattern.match(stem):
            return name
    return "mixed"


class StructureAnalyzer:
    category_id = "structure"
    category_name = "Code Structure & Architecture"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)
        sources = files.source_files()
        builder.set_detail("source_files", len(sources))

        if not sources:
            builder.add_issue("No source files found", "Add source code under src/ or a package directory")
            return builder.build()

        # Organization: 30%
        if files.exists(*SOURCE_DIRS):
            builder.award(0.3, "Source code lives in a dedicated directory")
        else:
            builder.award(0.1, "Flat layout")
            builder.add_issue(
                "Source files are not organized in a source directory",
                "Group code under src/, lib/ or a package directory",
            )

        # File sizes: 40%
        line_counts: dict[str, int] = {}
        for rel, text in (await files.read_sources()).items():
            line_counts[rel] = text.count("\n") + 1
        large = sorted(rel for rel, n in line_counts.items() if n > LARGE_FILE_LINES)
        average = sum(line_counts.values()) / len(line_counts) if line_counts else 0
        builder.set_detail("average_lines", round(average))
        builder.set_detail("large_files", large)
        large_ratio = len(large) / len(line_counts) if line_counts else 0
        builder.award(0.4 * (1 - min(large_ratio * 4, 1)), "File size distribution")
        if large:
            builder.add_issue(
                f"{len(large)} file(s) exceed {LARGE_FILE_LINES} lines",
                "Split large files into focused modules",
            )

        # Naming consistency: 20%
        styles: dict[str, int] = {}
        for path in sources:
            style = _naming_style(path.stem.split(".")[0])
            styles[style] = styles.get(style, 0) + 1
        dominant = max(styles.values())
        consistency = dominant / len(sources)
        builder.set_detail("naming_styles", styles)
        builder.award(0.2 * consistency, f"Naming consistency {consistency:.0%}")
        if consistency < 0.8:
            builder.add_issue(
                "Inconsistent file naming conventions",
                "Pick one file naming style and apply it across the project",
            )

        # Modularity: 10%
        directories = {path.parent for path in sources}
        builder.set_detail("directories", len(directories))
        if len(sources) < 5 or len(directories) > 1:
            builder.award(0.1, "Modules are split across directories")
        else:
            builder.add_issue(
                "All source files share a single directory",
                "Introduce sub-packages for distinct responsibilities",
            )

        return builder.build()
