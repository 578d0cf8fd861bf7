"""Tests for CI format detection, rendering and environment export."""

from __future__ import annotations

import json
import os
import threading
import xml.etree.ElementTree as ET

import pytest

from codefortify.ci.environment import DictEnvironmentSink, ProcessEnvironmentSink, detect_ci_format
from codefortify.ci.formats import GenericFormat
from codefortify.ci.output import CIOutputAdapter
from codefortify.errors import ConfigurationError
from codefortify.gates.evaluator import GateEvaluator
from codefortify.gates.models import GateReport
from codefortify.models import CIConfig, GatesConfig, GateThreshold, ThresholdConfig
from codefortify.scoring.results import CategoryResult, OverallResult, ScoringResults


def _report(failing: bool = True) -> GateReport:
    config = GatesConfig(
        thresholds=ThresholdConfig(
            overall=GateThreshold(min=70, warning=80),
            categories={
                "security": GateThreshold(min=12, warning=14),
                "testing": GateThreshold(min=10, warning=12),
            },
        )
    )
    results = ScoringResults(
        categories={
            "security": CategoryResult(score=13, max_score=15, grade="B", suggestions=["Rotate keys"]),
            "testing": CategoryResult(
                score=5 if failing else 14, max_score=15, grade="F", suggestions=["Add tests"]
            ),
        },
        overall=OverallResult(score=85.5, max_score=100, percentage=86, grade="B"),
    )
    return GateEvaluator(config).evaluate_results(results)


def _adapter(**ci) -> tuple[CIOutputAdapter, DictEnvironmentSink]:
    sink = DictEnvironmentSink()
    config = GatesConfig(ci=CIConfig(**ci))
    return CIOutputAdapter(config, environment={}, sink=sink), sink


# ── Detection ──────────────────────────────────────────────────────────────


class TestDetectCIFormat:
    def test_github(self):
        assert detect_ci_format({"GITHUB_ACTIONS": "true"}) == "github-actions"

    def test_gitlab(self):
        assert detect_ci_format({"GITLAB_CI": "true"}) == "gitlab-ci"

    def test_jenkins(self):
        assert detect_ci_format({"JENKINS_URL": "https://ci.example.com"}) == "jenkins"

    def test_priority_order(self):
        env = {"GITLAB_CI": "true", "GITHUB_ACTIONS": "true", "JENKINS_URL": "x"}
        assert detect_ci_format(env) == "github-actions"

    def test_signal_must_match_value(self):
        assert detect_ci_format({"GITHUB_ACTIONS": "false"}) == "generic"
        assert detect_ci_format({"JENKINS_URL": ""}) == "generic"

    def test_configured_format(self):
        assert detect_ci_format({}, configured="jenkins") == "jenkins"

    def test_vendor_signal_beats_configured(self):
        assert detect_ci_format({"GITLAB_CI": "true"}, configured="jenkins") == "gitlab-ci"

    def test_default_generic(self):
        assert detect_ci_format({}, configured="auto") == "generic"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        assert detect_ci_format() == "github-actions"


# ── Round trips ────────────────────────────────────────────────────────────


class TestFormats:
    def test_github_actions(self):
        report = _report()
        adapter, _ = _adapter(set_environment=False)
        output = adapter.generate(report, format="github-actions").output

        assert "::error title=Testing & Documentation::" in output
        assert "::warning title=Security & Error Handling::" in output
        assert "| Gate | Score | Threshold | Status |" in output

        values = dict(
            line.split("=", 1) for line in output.splitlines()
            if line.split("=", 1)[0] in {"passed", "passed_gates", "failed_gates", "total_gates"}
        )
        assert values["passed"] == str(report.passed).lower()
        assert int(values["passed_gates"]) == report.summary.passed
        assert int(values["failed_gates"]) == report.summary.failed
        assert int(values["total_gates"]) == report.summary.total

    def test_gitlab_ci(self):
        report = _report()
        adapter, _ = _adapter(set_environment=False)
        document = json.loads(adapter.generate(report, format="gitlab-ci").output)

        assert document["passed"] == report.passed
        assert document["summary"]["passed"] == report.summary.passed
        assert document["summary"]["failed"] == report.summary.failed
        assert document["summary"]["total"] == report.summary.total
        severities = sorted(issue["severity"] for issue in document["issues"])
        assert severities == ["major", "minor"]
        fingerprints = {issue["fingerprint"] for issue in document["issues"]}
        assert len(fingerprints) == 2

    def test_gitlab_fingerprints_are_stable(self):
        adapter, _ = _adapter(set_environment=False)
        first = json.loads(adapter.generate(_report(), format="gitlab-ci").output)
        second = json.loads(adapter.generate(_report(), format="gitlab-ci").output)
        assert [i["fingerprint"] for i in first["issues"]] == [i["fingerprint"] for i in second["issues"]]

    def test_jenkins(self):
        report = _report()
        adapter, _ = _adapter(set_environment=False)
        output = adapter.generate(report, format="jenkins").output
        suite = ET.fromstring(output.split("?>", 1)[1])

        props = {p.get("name"): p.get("value") for p in suite.iter("property")}
        assert props["passed"] == str(report.passed).lower()
        assert int(props["passed_gates"]) == report.summary.passed
        assert int(props["failed_gates"]) == report.summary.failed
        assert int(props["total_gates"]) == report.summary.total
        assert int(suite.get("tests")) == report.summary.total
        assert len(suite.findall("testcase/failure")) == report.summary.failed
        assert len(suite.findall("testcase/system-out")) == 1

    def test_generic(self):
        report = _report()
        adapter, _ = _adapter(set_environment=False)
        document = json.loads(adapter.generate(report, format="generic").output)

        assert document["passed"] == report.passed
        assert document["summary"]["passed"] == report.summary.passed
        assert document["summary"]["failed"] == report.summary.failed
        assert document["summary"]["total"] == report.summary.total
        assert document["results"]["overall"] == 85.5
        assert document["recommendations"] == [
            {"type": "fix", "priority": "high", "gate": "Testing & Documentation",
             "suggestion": "Add tests", "category": "category"},
            {"type": "improvement", "priority": "medium", "gate": "Security & Error Handling",
             "suggestion": "Rotate keys", "category": "category"},
            {"type": "improvement", "priority": "medium", "gate": "Testing & Documentation",
             "suggestion": "Add tests", "category": "category"},
        ]

    def test_failed_gate_below_warning_listed_as_fix_and_improvement(self):
        document = json.loads(GenericFormat().format(_report(), GatesConfig()))
        testing = [r["type"] for r in document["recommendations"]
                   if r["gate"] == "Testing & Documentation"]
        assert testing == ["fix", "improvement"]

    @pytest.mark.parametrize("name", ["github-actions", "gitlab-ci", "jenkins", "generic"])
    def test_passing_report_round_trips(self, name):
        report = _report(failing=False)
        adapter, _ = _adapter(set_environment=False)
        result = adapter.generate(report, format=name)
        assert result.format == name
        assert result.passed is True
        assert "true" in result.output

    def test_unsupported_format(self):
        adapter, _ = _adapter(set_environment=False)
        with pytest.raises(ConfigurationError, match="Unsupported CI format: teamcity"):
            adapter.generate(_report(), format="teamcity")

    def test_auto_uses_environment(self):
        sink = DictEnvironmentSink()
        adapter = CIOutputAdapter(
            GatesConfig(ci=CIConfig(set_environment=False)),
            environment={"GITLAB_CI": "true"},
            sink=sink,
        )
        assert adapter.generate(_report()).format == "gitlab-ci"


# ── Side effects ───────────────────────────────────────────────────────────


class TestSideEffects:
    def test_write_output_creates_directories(self, tmp_path):
        adapter, _ = _adapter(set_environment=False)
        target = tmp_path / "reports" / "ci" / "gates.json"
        result = adapter.generate(_report(), format="generic", output_path=target)
        assert target.read_text(encoding="utf-8") == result.output
        assert result.output_path == str(target)

    def test_environment_export(self):
        adapter, sink = _adapter(environment_prefix="QG_")
        report = _report()
        adapter.generate(report, format="generic")
        assert sink.values == {
            "QG_PASSED": "false",
            "QG_SCORE": "85.5",
            "QG_FAILED_GATES": str(report.summary.failed),
            "QG_TOTAL_GATES": "3",
        }

    def test_environment_disabled(self):
        adapter, sink = _adapter(set_environment=False)
        adapter.generate(_report(), format="generic")
        assert sink.values == {}

    def test_process_sink_writes_environ(self, monkeypatch):
        monkeypatch.delenv("QUALITY_GATES_PASSED", raising=False)
        ProcessEnvironmentSink().set("QUALITY_GATES_PASSED", "true")
        assert os.environ["QUALITY_GATES_PASSED"] == "true"
        monkeypatch.delenv("QUALITY_GATES_PASSED")

    def test_concurrent_exports_do_not_interleave(self):
        class RecordingSink:
            def __init__(self):
                self.calls: list[str] = []

            def set(self, key, value):
                self.calls.append(key)

        sink = RecordingSink()
        adapters = [
            CIOutputAdapter(GatesConfig(ci=CIConfig(environment_prefix=f"P{i}_")), environment={}, sink=sink)
            for i in range(8)
        ]
        report = _report()
        threads = [
            threading.Thread(target=a.set_environment_variables, args=(report,)) for a in adapters
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(sink.calls) == 32
        for start in range(0, 32, 4):
            prefixes = {key.split("_", 1)[0] for key in sink.calls[start:start + 4]}
            assert len(prefixes) == 1
