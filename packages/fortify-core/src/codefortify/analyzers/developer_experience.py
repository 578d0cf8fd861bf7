"""Developer experience: onboarding docs, task scripts, editor and type tooling."""

from __future__ import annotations

from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

README_SECTIONS = ("install", "usage", "getting started", "development")
TYPE_CONFIGS = ("tsconfig.json", "jsconfig.json", "mypy.ini", "py.typed", "pyrightconfig.json")


class DeveloperExperienceAnalyzer:
    category_id = "developer_experience"
    category_name = "Developer Experience"

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)

        # README onboarding sections: 30%
        readme = (await files.read_text("README.md", alternatives=["README.rst", "README"], default="")).lower()
        found = [s for s in README_SECTIONS if s in readme]
        builder.set_detail("readme_sections", found)
        if readme:
            builder.award(0.3 * len(found) / len(README_SECTIONS), "README onboarding sections")
            if len(found) < 2:
                builder.add_issue("README lacks setup instructions", "Document installation and usage in the README")
        else:
            builder.add_issue("No README found", "Add a README with installation and usage sections")

        # Task scripts: 25%
        manifest = await files.read_json("package.json") or {}
        pyproject = await files.read_toml("pyproject.toml") or {}
        scripts = manifest.get("scripts", {}) or pyproject.get("project", {}).get("scripts", {})
        if scripts or files.exists("Makefile", "justfile", "tasks.py", "noxfile.py"):
            builder.award(0.25, "Task scripts defined")
        else:
            builder.add_issue("No task scripts", "Add scripts or a Makefile for common development tasks")

        # Editor and hooks: 20%
        if files.exists(".editorconfig", ".vscode"):
            builder.award(0.1, "Editor settings shared")
        if files.exists(".pre-commit-config.yaml", ".husky"):
            builder.award(0.1, "Git hooks configured")
        else:
            builder.add_issue("No pre-commit hooks", "Run linters automatically with pre-commit or husky")

        # Typing: 15%
        if files.exists(*TYPE_CONFIGS) or "mypy" in pyproject.get("tool", {}):
            builder.award(0.15, "Type checking configured")
        else:
            builder.add_issue("No type checking configuration", "Add TypeScript or mypy configuration")

        # Contribution guide: 10%
        if files.exists("CONTRIBUTING.md", "docs/CONTRIBUTING.md", ".github/CONTRIBUTING.md"):
            builder.award(0.1, "Contribution guide present")
        else:
            builder.add_issue("No contribution guide", "Add CONTRIBUTING.md describing the workflow")

        return builder.build()
