"""Code quality & maintainability: linting, formatting, comment and marker density."""

from __future__ import annotations

from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

LINT_CONFIGS = (
    ".eslintrc", ".eslintrc.js", ".eslintrc.json", ".eslintrc.cjs", "eslint.config.js",
    "ruff.toml", ".ruff.toml", ".flake8", ".pylintrc",
)
FORMAT_CONFIGS = (".prettierrc", ".prettierrc.json", ".prettierrc.js", "prettier.config.js", ".editorconfig")
MAX_LINE_LENGTH = 120


class QualityAnalyzer:
    category_id = "quality"
    category_name = "Code Quality & Maintainability"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)
        pyproject = await files.read_toml("pyproject.toml") or {}
        tools = pyproject.get("tool", {})

        # Linting: 25%
        if files.exists(*LINT_CONFIGS) or "ruff" in tools or "pylint" in tools:
            builder.award(0.25, "Linter configured")
        else:
            builder.add_issue("No linter configuration found", "Configure ESLint or Ruff for the project")

        # Formatting: 15%
        if files.exists(*FORMAT_CONFIGS) or "black" in tools or "ruff" in tools:
            builder.award(0.15, "Formatter configured")
        else:
            builder.add_issue("No formatter configuration found", "Add Prettier or Black to keep formatting consistent")

        sources = await files.read_sources()
        if not sources:
            builder.add_issue("No source files to inspect")
            return builder.build()

        total_lines = 0
        long_lines = 0
        comment_lines = 0
        markers = 0
        for text in sources.values():
            for line in text.splitlines():
                total_lines += 1
                stripped = line.strip()
                if len(line) > MAX_LINE_LENGTH:
                    long_lines += 1
                if stripped.startswith(("#", "//", "/*", "*", '"""')):
                    comment_lines += 1
                if "TODO" in stripped or "FIXME" in stripped or "HACK" in stripped:
                    markers += 1

        total_lines = max(total_lines, 1)
        long_ratio = long_lines / total_lines
        comment_ratio = comment_lines / total_lines
        builder.set_detail("total_lines", total_lines)
        builder.set_detail("long_line_ratio", round(long_ratio, 3))
        builder.set_detail("comment_ratio", round(comment_ratio, 3))
        builder.set_detail("todo_markers", markers)

        # Line length: 25%
        builder.award(0.25 * (1 - min(long_ratio * 10, 1)), "Line length")
        if long_ratio > 0.05:
            builder.add_issue(
                f"{long_lines} lines longer than {MAX_LINE_LENGTH} characters",
                "Wrap long lines to keep code readable",
            )

        # Comments: 20%
        if 0.05 <= comment_ratio <= 0.4:
            builder.award(0.2, "Healthy comment density")
        elif comment_ratio > 0:
            builder.award(0.1, "Comment density outside the 5-40% range")
            builder.add_issue("Comment density is unusual", "Document non-obvious code; remove commented-out blocks")
        else:
            builder.add_issue("No comments found", "Document non-obvious code paths")

        # Technical debt markers: 15%
        per_kloc = markers / total_lines * 1000
        builder.award(0.15 * (1 - min(per_kloc / 10, 1)), "TODO/FIXME density")
        if per_kloc > 5:
            builder.add_issue(f"{markers} TODO/FIXME markers", "Resolve or track outstanding TODO/FIXME items")

        return builder.build()
