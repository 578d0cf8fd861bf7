"""Testing & documentation: test suite presence, test ratio, tooling, docs."""

from __future__ import annotations

import re
from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

TEST_FILE = re.compile(r"(^test_.*|.*_test|.*\.(test|spec))$")
TEST_DIRS = {"tests", "test", "__tests__", "spec"}
TEST_CONFIGS = (
    "pytest.ini", "tox.ini", "conftest.py", "vitest.config.js", "vitest.config.ts",
    "jest.config.js", "jest.config.ts", ".mocharc.json",
)
COVERAGE_CONFIGS = (".coveragerc", ".nycrc", ".nycrc.json", "codecov.yml", ".codecov.yml")


def is_test_file(path: Path) -> bool:
    return bool(TEST_FILE.match(path.stem)) or any(part in TEST_DIRS for part in path.parts)


class TestingAnalyzer:
    category_id = "testing"
    category_name = "Testing & Documentation"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)
        sources = files.source_files()
        tests = [p for p in sources if is_test_file(p.relative_to(files.root))]
        code = len(sources) - len(tests)
        builder.set_detail("test_files", len(tests))
        builder.set_detail("source_files", code)

        # Test suite: 40%
        if not tests:
            builder.add_issue("No test files found", "Add a test suite covering the main code paths")
        else:
            ratio = len(tests) / max(code, 1)
            builder.set_detail("test_ratio", round(ratio, 2))
            builder.award(0.4 * min(ratio / 0.5, 1), f"Test-to-source ratio {ratio:.2f}")
            if ratio < 0.3:
                builder.add_issue("Low test-to-source ratio", "Write tests for untested modules")

        # Tooling: 20%
        pyproject = await files.read_toml("pyproject.toml") or {}
        manifest = await files.read_json("package.json") or {}
        tools = pyproject.get("tool", {})
        scripts = manifest.get("scripts", {})
        if files.exists(*TEST_CONFIGS) or "pytest" in tools or "test" in scripts:
            builder.award(0.2, "Test runner configured")
        else:
            builder.add_issue("No test runner configuration", "Configure pytest, Vitest or Jest")

        # Coverage: 15%
        if files.exists(*COVERAGE_CONFIGS) or "coverage" in tools or "coverage" in scripts:
            builder.award(0.15, "Coverage configured")
        else:
            builder.add_issue("No coverage configuration", "Track coverage to find untested code")

        # Documentation: 25%
        if files.exists("README.md", "README.rst", "README"):
            builder.award(0.15, "README present")
        else:
            builder.add_issue("No README found", "Add a README describing setup and usage")
        if files.exists("docs", "doc"):
            builder.award(0.1, "Documentation directory present")
        else:
            builder.add_issue("No docs directory", "Add a docs/ directory for user and developer guides")

        return builder.build()
