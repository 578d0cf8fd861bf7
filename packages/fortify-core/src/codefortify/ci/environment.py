"""Environment lookup and export for CI integration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Protocol

Environment = Mapping[str, str]

# (variable, expected value or None for "non-empty", format)
CI_SIGNALS: list[tuple[str, str | None, str]] = [
    ("GITHUB_ACTIONS", "true", "github-actions"),
    ("GITLAB_CI", "true", "gitlab-ci"),
    ("JENKINS_URL", None, "jenkins"),
]

DEFAULT_FORMAT = "generic"


class EnvironmentSink(Protocol):
    def set(self, key: str, value: str) -> None: ...


class ProcessEnvironmentSink:
    """Writes into ``os.environ``."""

    def set(self, key: str, value: str) -> None:
        os.environ[key] = value


class DictEnvironmentSink:
    """Collects exports in memory."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


def detect_ci_format(environment: Environment | None = None, configured: str = "auto") -> str:
    """Vendor signals first, then the configured format, then generic."""
    env = os.environ if environment is None else environment
    for variable, expected, name in CI_SIGNALS:
        value = env.get(variable)
        if expected is None and value:
            return name
        if expected is not None and value == expected:
            return name
    if configured and configured != "auto":
        return configured
    return DEFAULT_FORMAT
