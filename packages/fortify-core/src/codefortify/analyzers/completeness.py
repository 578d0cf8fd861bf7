"""Completeness & production readiness."""

from __future__ import annotations

import re
from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

INCOMPLETE = re.compile(r"\b(TODO|FIXME|XXX)\b|NotImplementedError|not implemented", re.IGNORECASE)
CI_CONFIGS = (".github/workflows", ".gitlab-ci.yml", "Jenkinsfile", ".circleci")


class CompletenessAnalyzer:
    category_id = "completeness"
    category_name = "Completeness & Production Readiness"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)

        sources = await files.read_sources()
        incomplete = sum(len(INCOMPLETE.findall(text)) for text in sources.values())
        builder.set_detail("incomplete_markers", incomplete)
        if sources:
            builder.award(0.4 * (1 - min(incomplete / (len(sources) * 2), 1)), "Unfinished code markers")
            if incomplete:
                builder.add_issue(
                    f"{incomplete} unfinished code marker(s)",
                    "Finish or remove placeholder implementations",
                )
        else:
            builder.add_issue("No source files to inspect")

        manifest = await files.read_json("package.json") or {}
        pyproject = (await files.read_toml("pyproject.toml") or {}).get("project", {})
        version = manifest.get("version") or pyproject.get("version")
        builder.set_detail("version", version)
        if version:
            builder.award(0.2, "Version declared")
        else:
            builder.add_issue("No version declared", "Declare a version in the package manifest")

        if files.exists("LICENSE", "LICENSE.md", "LICENSE.txt", "COPYING"):
            builder.award(0.2, "License present")
        else:
            builder.add_issue("No license file", "Add a LICENSE file")

        if files.exists(*CI_CONFIGS):
            builder.award(0.2, "Continuous integration configured")
        else:
            builder.add_issue("No CI pipeline configured", "Run tests and gates in CI on every change")

        return builder.build()
