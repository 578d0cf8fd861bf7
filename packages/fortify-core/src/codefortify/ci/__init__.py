"""CI integration: format detection, rendering and environment export."""

from codefortify.ci.environment import (
    DictEnvironmentSink,
    Environment,
    EnvironmentSink,
    ProcessEnvironmentSink,
    detect_ci_format,
)
from codefortify.ci.formats import (
    FORMATTERS,
    GenericFormat,
    GitHubActionsFormat,
    GitLabCIFormat,
    JenkinsFormat,
)
from codefortify.ci.output import CIOutputAdapter, CIOutputResult

__all__ = [
    "CIOutputAdapter",
    "CIOutputResult",
    "DictEnvironmentSink",
    "Environment",
    "EnvironmentSink",
    "FORMATTERS",
    "GenericFormat",
    "GitHubActionsFormat",
    "GitLabCIFormat",
    "JenkinsFormat",
    "ProcessEnvironmentSink",
    "detect_ci_format",
]
