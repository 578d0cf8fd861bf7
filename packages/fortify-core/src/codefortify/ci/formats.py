"""CI output formats. Each owns its target syntax."""

from __future__ import annotations

import hashlib
import json
import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Any, Protocol

from codefortify.formatting import format_number
from codefortify.models import GatesConfig

if TYPE_CHECKING:
    from codefortify.gates.models import GateReport, GateResult


class CIFormat(Protocol):
    format_name: str

    def format(self, report: GateReport, config: GatesConfig) -> str: ...


def _status(gate: GateResult) -> str:
    if not gate.passed:
        return "FAILED"
    if gate.warning:
        return "WARNING"
    return "PASSED"


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


# ── GitHub Actions ─────────────────────────────────────────────────────────


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


class GitHubActionsFormat:
    """Workflow commands, a Markdown step summary and ``key=value`` outputs."""

    format_name = "github-actions"

    def format(self, report: GateReport, config: GatesConfig) -> str:
        lines: list[str] = []
        for gate in report.gates:
            if not gate.passed:
                command = "error"
            elif gate.warning:
                command = "warning"
            else:
                command = "notice"
            lines.append(
                f"::{command} title={_escape_property(gate.name)}::{_escape_data(gate.message)}"
            )
        lines.append(
            f"::{'notice' if report.passed else 'error'} title=Quality Gates::"
            f"{_escape_data(report.message)}"
        )

        lines.append("")
        lines.append("## Quality Gates Report")
        lines.append("")
        lines.append(f"**Status:** {'✅ PASSED' if report.passed else '❌ FAILED'}")
        lines.append("")
        lines.append("| Gate | Score | Threshold | Status |")
        lines.append("|------|-------|-----------|--------|")
        for gate in report.gates:
            threshold = format_number(gate.threshold) if gate.threshold is not None else "-"
            lines.append(
                f"| {gate.name} | {format_number(gate.score)} | {threshold} | {_status(gate)} |"
            )
        if config.ci.output.detailed:
            for gate in report.gates:
                suggestions = gate.details.get("suggestions") or []
                if not gate.passed and suggestions:
                    lines.append("")
                    lines.append(f"### {gate.name}")
                    lines.extend(f"- {s}" for s in suggestions)

        lines.append("")
        outputs = {
            "passed": str(report.passed).lower(),
            "score": format_number(report.overall_score),
            "passed_gates": report.summary.passed,
            "failed_gates": report.summary.failed,
            "warning_gates": report.summary.warnings,
            "total_gates": report.summary.total,
        }
        lines.extend(f"{key}={value}" for key, value in outputs.items())
        return "\n".join(lines) + "\n"


# ── GitLab CI ──────────────────────────────────────────────────────────────


class GitLabCIFormat:
    """JSON report with a Code Quality ``issues`` array."""

    format_name = "gitlab-ci"

    def format(self, report: GateReport, config: GatesConfig) -> str:
        issues: list[dict[str, Any]] = []
        for gate in report.gates:
            if gate.passed and not gate.warning:
                continue
            severity = "major" if not gate.passed else "minor"
            fingerprint = hashlib.sha256(
                f"{gate.type}:{gate.name}:{_status(gate)}".encode()
            ).hexdigest()[:32]
            issues.append({
                "type": "issue",
                "check_name": f"quality-gate-{_slug(gate.name)}",
                "description": gate.message,
                "categories": ["Quality gates"],
                "severity": severity,
                "fingerprint": fingerprint,
                "location": {"path": ".", "lines": {"begin": 1}},
            })

        document = {
            "passed": report.passed,
            "message": report.message,
            "timestamp": report.timestamp,
            "summary": report.summary.to_dict(),
            "results": report.results,
            "gates": [g.to_dict() for g in report.gates],
            "issues": issues,
        }
        return json.dumps(document, indent=2, ensure_ascii=False)


# ── Jenkins ────────────────────────────────────────────────────────────────


class JenkinsFormat:
    """JUnit XML; one testcase per gate."""

    format_name = "jenkins"

    def format(self, report: GateReport, config: GatesConfig) -> str:
        suite = ET.Element(
            "testsuite",
            {
                "name": "Quality Gates",
                "tests": str(report.summary.total),
                "failures": str(report.summary.failed),
                "errors": "0",
                "skipped": "0",
                "timestamp": report.timestamp,
            },
        )
        properties = ET.SubElement(suite, "properties")
        summary = {
            "passed": str(report.passed).lower(),
            "score": format_number(report.overall_score),
            "passed_gates": str(report.summary.passed),
            "failed_gates": str(report.summary.failed),
            "warning_gates": str(report.summary.warnings),
            "total_gates": str(report.summary.total),
        }
        for name, value in summary.items():
            ET.SubElement(properties, "property", {"name": name, "value": value})

        for gate in report.gates:
            case = ET.SubElement(
                suite,
                "testcase",
                {"classname": f"quality_gates.{gate.type}", "name": gate.name},
            )
            if not gate.passed:
                failure = ET.SubElement(case, "failure", {"message": gate.message, "type": "QualityGateFailure"})
                failure.text = "\n".join(gate.details.get("suggestions") or []) or gate.message
            elif gate.warning:
                out = ET.SubElement(case, "system-out")
                out.text = gate.message

        ET.indent(suite)
        return ET.tostring(suite, encoding="unicode", xml_declaration=True)


# ── Generic ────────────────────────────────────────────────────────────────


def extract_recommendations(report: GateReport) -> list[dict[str, str]]:
    recommendations: list[dict[str, str]] = []
    for gate in report.gates:
        if gate.passed:
            continue
        for suggestion in gate.details.get("suggestions") or []:
            recommendations.append({
                "type": "fix", "priority": "high", "gate": gate.name,
                "suggestion": suggestion, "category": gate.type,
            })
    for gate in report.gates:
        if not gate.warning:
            continue
        for suggestion in gate.details.get("suggestions") or []:
            recommendations.append({
                "type": "improvement", "priority": "medium", "gate": gate.name,
                "suggestion": suggestion, "category": gate.type,
            })
    return recommendations


class GenericFormat:
    format_name = "generic"

    def format(self, report: GateReport, config: GatesConfig) -> str:
        document = {
            "timestamp": report.timestamp,
            "passed": report.passed,
            "message": report.message,
            "summary": report.summary.to_dict(),
            "gates": [g.to_dict() for g in report.gates],
            "results": report.results,
            "config": {
                "thresholds": config.thresholds.model_dump(mode="json"),
                "ci": config.ci.model_dump(mode="json"),
            },
            "recommendations": extract_recommendations(report),
        }
        return json.dumps(document, indent=2, ensure_ascii=False)


FORMATTERS: dict[str, CIFormat] = {
    f.format_name: f
    for f in (GitHubActionsFormat(), GitLabCIFormat(), JenkinsFormat(), GenericFormat())
}
