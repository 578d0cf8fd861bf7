"""Render gate reports for CI, write artifacts, export environment values."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from codefortify.ci.environment import (
    Environment,
    EnvironmentSink,
    ProcessEnvironmentSink,
    detect_ci_format,
)
from codefortify.ci.formats import FORMATTERS, CIFormat
from codefortify.errors import ConfigurationError
from codefortify.formatting import format_number
from codefortify.models import GatesConfig

if TYPE_CHECKING:
    from codefortify.gates.models import GateReport, GateSummary

logger = logging.getLogger(__name__)

# Environment export is process-wide; one report at a time.
_EXPORT_LOCK = threading.Lock()


@dataclass
class CIOutputResult:
    format: str
    output: str
    output_path: str | None
    passed: bool
    summary: GateSummary


class CIOutputAdapter:
    def __init__(
        self,
        config: GatesConfig,
        environment: Environment | None = None,
        sink: EnvironmentSink | None = None,
        formatters: dict[str, CIFormat] | None = None,
    ) -> None:
        self.config = config
        self.environment = environment
        self.sink = sink or ProcessEnvironmentSink()
        self.formatters = dict(formatters or FORMATTERS)

    def supported_formats(self) -> list[str]:
        return list(self.formatters)

    def detect_format(self) -> str:
        return detect_ci_format(self.environment, self.config.ci.format)

    def generate(
        self,
        report: GateReport,
        format: str = "auto",
        output_path: str | Path | None = None,
    ) -> CIOutputResult:
        name = self.detect_format() if format == "auto" else format
        formatter = self.formatters.get(name)
        if formatter is None:
            raise ConfigurationError(f"Unsupported CI format: {name}")

        output = formatter.format(report, self.config)
        if output_path is not None:
            self.write_output(output, output_path)
        if self.config.ci.set_environment:
            self.set_environment_variables(report)

        return CIOutputResult(
            format=name,
            output=output,
            output_path=str(output_path) if output_path is not None else None,
            passed=report.passed,
            summary=report.summary,
        )

    def write_output(self, output: str, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(output, encoding="utf-8")
        if self.config.verbose:
            logger.info("CI output written to: %s", target)
        return target

    def set_environment_variables(self, report: GateReport) -> dict[str, str]:
        prefix = self.config.ci.environment_prefix
        values = {
            f"{prefix}PASSED": str(report.passed).lower(),
            f"{prefix}SCORE": format_number(report.overall_score),
            f"{prefix}FAILED_GATES": str(report.summary.failed),
            f"{prefix}TOTAL_GATES": str(report.summary.total),
        }
        with _EXPORT_LOCK:
            for key, value in values.items():
                self.sink.set(key, value)
        logger.debug("Exported CI environment variables with prefix %s", prefix)
        return values
