"""Exception hierarchy and error taxonomy for scoring runs."""

from __future__ import annotations

from enum import Enum


class ErrorType(Enum):
    """Classification of analyzer failures."""

    IO = "IOError"
    PARSE = "ParseError"
    TIMEOUT = "TimeoutError"
    CONFIGURATION = "ConfigurationError"
    UNKNOWN = "UnknownError"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Failures worth another attempt: the resource may be there next time.
RETRYABLE_TYPES = {ErrorType.IO, ErrorType.TIMEOUT}


class FortifyError(Exception):
    """Base class for all codefortify errors."""


class ConfigurationError(FortifyError):
    """Raised on caller misuse: no categories, unknown CI format, bad config."""


class AnalyzerError(FortifyError):
    """Analyzer failure that already knows its classification."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.UNKNOWN,
        severity: Severity = Severity.MEDIUM,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.severity = severity
        self.context = context or {}
