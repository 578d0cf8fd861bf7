"""Security & error handling: dependencies, secrets, unsafe calls, exception handling."""

from __future__ import annotations

import json
import re
from pathlib import Path

from codefortify.analyzers.base import AnalyzerConfig, ProjectFiles, ResultBuilder
from codefortify.scoring.results import CategoryResult

LOCK_FILES = (
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "poetry.lock", "uv.lock", "Pipfile.lock", "requirements.lock",
)
SECRET_PATTERN = re.compile(
    r"""(api[_-]?key|secret|password|token)\s*[:=]\s*['"][A-Za-z0-9_\-/+]{12,}['"]""",
    re.IGNORECASE,
)
ENV_USAGE = re.compile(r"process\.env\.|os\.environ|os\.getenv|BaseSettings")
UNSAFE_CALLS = re.compile(r"\beval\(|\bexec\(|new Function\(|pickle\.loads|shell=True|innerHTML\s*=")
ERROR_HANDLING = re.compile(r"\btry\s*[:{]|\bexcept\b|\.catch\(")
AUDIT_DEADLINE_SHARE = 0.8


class SecurityAnalyzer:
    category_id = "security"
    category_name = "Security & Error Handling"

    def __init__(self, run_audit: bool = False, audit_timeout: float = 60.0) -> None:
        self.run_audit = run_audit
        self.audit_timeout = audit_timeout

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult:
        builder = ResultBuilder(config.max_score, self.category_name, config.verbose)
        files = ProjectFiles(config, builder)

        await self._dependencies(files, builder, self._audit_timeout(config))

        if files.exists(".env"):
            gitignore = await files.read_text(".gitignore")
            if ".env" not in gitignore:
                builder.add_issue(".env file not in .gitignore", "Add .env to .gitignore to prevent secret exposure")

        sources = await files.read_sources()
        if not sources:
            builder.add_issue("No source files to inspect")
            return builder.build()

        secrets = sorted(rel for rel, text in sources.items() if SECRET_PATTERN.search(text))
        unsafe = sorted(rel for rel, text in sources.items() if UNSAFE_CALLS.search(text))
        handled = [rel for rel, text in sources.items() if ERROR_HANDLING.search(text)]
        env_usage = sum(1 for text in sources.values() if ENV_USAGE.search(text))
        builder.set_detail("hardcoded_secret_files", secrets)
        builder.set_detail("unsafe_call_files", unsafe)
        builder.set_detail("error_handling_files", len(handled))

        # Secrets: 25%
        if secrets:
            builder.add_issue(
                f"Possible hardcoded secrets in {len(secrets)} file(s)",
                "Move secrets to environment variables",
            )
        elif env_usage:
            builder.award(0.25, "Secrets read from the environment")
        else:
            builder.award(0.15, "No obvious secrets management")

        # Unsafe calls: 20%
        if unsafe:
            builder.award(0.05, "Unsafe dynamic execution present")
            builder.add_issue(
                f"Unsafe dynamic execution in {len(unsafe)} file(s)",
                "Avoid eval/exec and shell=True; validate untrusted input",
            )
        else:
            builder.award(0.2, "No unsafe dynamic execution")

        # Error handling: 25%
        ratio = len(handled) / len(sources)
        builder.award(0.25 * min(ratio / 0.3, 1), f"Error handling in {ratio:.0%} of files")
        if ratio < 0.1:
            builder.add_issue("Limited error handling detected", "Handle failures of I/O and external calls")

        return builder.build()

    def _audit_timeout(self, config: AnalyzerConfig) -> float:
        """Keep npm audit inside the per-analyzer deadline."""
        deadline = config.retry_policy.timeout_seconds
        if deadline is None:
            return self.audit_timeout
        return min(self.audit_timeout, deadline * AUDIT_DEADLINE_SHARE)

    async def _dependencies(
        self, files: ProjectFiles, builder: ResultBuilder, audit_timeout: float
    ) -> None:
        """Lock files and, optionally, npm audit: 30%."""
        has_manifest = files.exists("package.json", "pyproject.toml", "requirements.txt", "Pipfile")
        if not has_manifest:
            builder.award(0.2, "No external dependency manifest")
            return

        if files.exists(*LOCK_FILES):
            builder.award(0.15, "Lock file present")
        else:
            builder.add_issue("No lock file found", "Commit a lock file to pin dependency versions")

        if not (self.run_audit and files.exists("package-lock.json")):
            builder.award(0.1, "Dependency audit skipped")
            return

        result = await files.run_command("npm", "audit", "--json", timeout=audit_timeout)
        if not result.stdout:
            builder.award(0.1, "npm audit unavailable")
            builder.add_issue("npm audit not available", "Install npm to enable vulnerability scanning")
            return
        try:
            report = json.loads(result.stdout)
        except json.JSONDecodeError:
            builder.award(0.1, "npm audit output unreadable")
            return
        counts = report.get("metadata", {}).get("vulnerabilities", {})
        builder.set_detail("vulnerabilities", counts)
        critical = counts.get("critical", 0)
        high = counts.get("high", 0)
        if critical:
            builder.add_issue(f"{critical} critical vulnerabilities", "Run npm audit fix immediately")
        elif high:
            builder.award(0.05, "High severity vulnerabilities")
            builder.add_issue(f"{high} high severity vulnerabilities", "Run npm audit fix to resolve security issues")
        else:
            builder.award(0.15, "No high or critical vulnerabilities")
