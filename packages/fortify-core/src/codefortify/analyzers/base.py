"""Analyzer capability interface and the helpers handed to every analyzer.

Analyzers do not inherit state. Each one receives an AnalyzerConfig, builds
its result with a ResultBuilder and reads the project through ProjectFiles,
whose reads and subprocess calls go through the recovery combinator.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import tomllib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from codefortify.errors import AnalyzerError, ErrorType, Severity
from codefortify.recovery.classify import classify_error
from codefortify.recovery.layer import Degraded, RecoveryPolicy, with_recovery
from codefortify.scoring.grading import grade_for
from codefortify.scoring.results import CategoryResult, ErrorRecord, RecoveryRecord

logger = logging.getLogger(__name__)

IGNORED_DIRS = {
    ".git", ".hg", ".svn", "node_modules", "dist", "build", "coverage",
    "__pycache__", ".venv", "venv", ".tox", ".mypy_cache", ".pytest_cache",
    ".codefortify",
}

SOURCE_EXTENSIONS = {".py", ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte"}

MAX_READ_BYTES = 512 * 1024
MAX_OUTPUT_BYTES = 1024 * 1024


@dataclass(frozen=True)
class AnalyzerConfig:
    """Per-run, per-category settings. Immutable."""

    project_root: Path
    max_score: float
    verbose: bool = False
    retry_policy: RecoveryPolicy = field(default_factory=RecoveryPolicy)


@runtime_checkable
class Analyzer(Protocol):
    category_id: str
    category_name: str

    async def analyze(self, project_root: Path, config: AnalyzerConfig) -> CategoryResult: ...


class ResultBuilder:
    """Accumulates score, issues and details for one category."""

    def __init__(self, max_score: float, category_name: str = "", verbose: bool = False) -> None:
        self.max_score = max_score
        self.category_name = category_name
        self.verbose = verbose
        self.score = 0.0
        self.issues: list[str] = []
        self.suggestions: list[str] = []
        self.details: dict[str, Any] = {}
        self.errors: list[ErrorRecord] = []
        self.warnings: list[ErrorRecord] = []
        self.recoveries: list[RecoveryRecord] = []

    def add_score(self, points: float, reason: str = "") -> None:
        self.score += points
        if self.verbose and reason:
            logger.debug("%s +%.2f - %s", self.category_name, points, reason)

    def award(self, share: float, reason: str = "") -> None:
        """Add *share* (0.0-1.0) of the category's max score."""
        self.add_score(self.max_score * max(0.0, min(share, 1.0)), reason)

    def add_issue(self, issue: str, suggestion: str | None = None) -> None:
        self.issues.append(issue)
        if suggestion:
            self.suggestions.append(suggestion)

    def set_detail(self, key: str, value: Any) -> None:
        self.details[key] = value

    def record(self, record: ErrorRecord) -> None:
        if record.severity == Severity.HIGH:
            self.errors.append(record)
        else:
            self.warnings.append(record)

    def build(self) -> CategoryResult:
        score = round(min(max(self.score, 0.0), self.max_score), 2)
        return CategoryResult(
            score=score,
            max_score=self.max_score,
            grade=grade_for(score, self.max_score),
            category_name=self.category_name,
            issues=list(self.issues),
            suggestions=list(self.suggestions),
            details=dict(self.details),
            errors=list(self.errors),
            warnings=list(self.warnings),
            recoveries=list(self.recoveries),
        )


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int | None
    success: bool
    truncated: bool = False
    error: str = ""


class ProjectFiles:
    """Read-only access to the project tree for one analyzer."""

    def __init__(self, config: AnalyzerConfig, builder: ResultBuilder) -> None:
        self.root = Path(config.project_root)
        self._policy = config.retry_policy
        self._builder = builder
        self._source_cache: list[Path] | None = None

    def exists(self, *relative: str) -> bool:
        return any((self.root / rel).exists() for rel in relative)

    def walk(self, extensions: set[str] | None = None) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if extensions is None or path.suffix in extensions:
                    yield path

    def source_files(self) -> list[Path]:
        if self._source_cache is None:
            self._source_cache = list(self.walk(SOURCE_EXTENSIONS))
        return self._source_cache

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    async def read_text(
        self,
        relative: str | Path,
        alternatives: list[str] | None = None,
        default: str = "",
    ) -> str:
        """Read a file with retries, falling back to alternates, then *default*."""
        candidates = [Path(relative), *(Path(a) for a in alternatives or [])]

        def _read(path: Path) -> str:
            full = path if path.is_absolute() else self.root / path
            with open(full, "rb") as f:
                data = f.read(MAX_READ_BYTES)
            return data.decode("utf-8", errors="replace")

        async def primary() -> str:
            return await asyncio.to_thread(_read, candidates[0])

        def fallback(_error: ErrorRecord, _ctx: dict) -> str | None:
            for alt in candidates[1:]:
                try:
                    return _read(alt)
                except OSError:
                    continue
            return None

        policy = RecoveryPolicy(
            max_attempts=self._policy.max_attempts,
            backoff=self._policy.backoff,
            timeout_seconds=self._policy.timeout_seconds,
            fallback_producer=fallback if len(candidates) > 1 else None,
        )
        outcome = await with_recovery(primary, policy, {"file": str(relative), "operation": "read"})
        for record in outcome.records:
            self._builder.record(record)
        if isinstance(outcome, Degraded):
            return default
        self._builder.recoveries.extend(outcome.recoveries)
        return outcome.value

    async def read_json(self, relative: str) -> dict | None:
        """Parse a JSON manifest; missing or malformed files yield None."""
        if not self.exists(relative):
            return None
        text = await self.read_text(relative)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            self._builder.record(classify_error(e, {"file": relative, "operation": "parse"}))
            return None
        return data if isinstance(data, dict) else None

    async def read_toml(self, relative: str) -> dict | None:
        if not self.exists(relative):
            return None
        text = await self.read_text(relative)
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            self._builder.record(classify_error(e, {"file": relative, "operation": "parse"}))
            return None

    async def read_sources(self, limit: int = 500) -> dict[str, str]:
        contents: dict[str, str] = {}
        for path in self.source_files()[:limit]:
            contents[self.relative(path)] = await self.read_text(self.relative(path))
        return contents

    async def run_command(
        self,
        *argv: str,
        timeout: float = 10.0,
        max_output: int = MAX_OUTPUT_BYTES,
    ) -> CommandResult:
        """Run a subprocess in the project root, bounded in time and output."""

        async def execute() -> CommandResult:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *argv,
                    cwd=self.root,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise AnalyzerError(
                    f"Command not found: {argv[0]}", ErrorType.IO, Severity.MEDIUM,
                    {"command": argv[0]},
                ) from e
            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            finally:
                # Reap the child on timeout and on cancellation by an outer deadline.
                if proc.returncode is None:
                    with contextlib.suppress(ProcessLookupError):
                        proc.kill()
                    await proc.wait()
            truncated = len(stdout) > max_output or len(stderr) > max_output
            return CommandResult(
                stdout=stdout[:max_output].decode("utf-8", errors="replace").strip(),
                stderr=stderr[:max_output].decode("utf-8", errors="replace").strip(),
                returncode=proc.returncode,
                success=proc.returncode == 0,
                truncated=truncated,
            )

        policy = RecoveryPolicy(
            max_attempts=1,
            backoff=0,
            timeout_seconds=None,
        )
        outcome = await with_recovery(execute, policy, {"command": " ".join(argv)})
        for record in outcome.records:
            self._builder.record(record)
        if isinstance(outcome, Degraded):
            return CommandResult(
                stdout="", stderr=outcome.error.message, returncode=None,
                success=False, error=outcome.error.message,
            )
        return outcome.value
