"""Classify arbitrary exceptions into the analyzer error taxonomy."""

from __future__ import annotations

import asyncio
import json

import yaml
from pydantic import ValidationError

from codefortify.errors import (
    RETRYABLE_TYPES,
    AnalyzerError,
    ConfigurationError,
    ErrorType,
    Severity,
)
from codefortify.scoring.results import ErrorRecord

_PARSE_EXCEPTIONS = (json.JSONDecodeError, SyntaxError, UnicodeDecodeError, yaml.YAMLError)

# (needle, type, severity), checked in order against the lowered message.
_MESSAGE_PATTERNS: list[tuple[str, ErrorType, Severity]] = [
    ("enoent", ErrorType.IO, Severity.MEDIUM),
    ("no such file", ErrorType.IO, Severity.MEDIUM),
    ("permission denied", ErrorType.IO, Severity.HIGH),
    ("eacces", ErrorType.IO, Severity.HIGH),
    ("timed out", ErrorType.TIMEOUT, Severity.MEDIUM),
    ("timeout", ErrorType.TIMEOUT, Severity.MEDIUM),
    ("parse", ErrorType.PARSE, Severity.LOW),
    ("syntax", ErrorType.PARSE, Severity.LOW),
    ("decode", ErrorType.PARSE, Severity.LOW),
    ("config", ErrorType.CONFIGURATION, Severity.HIGH),
]


def _message(exc: BaseException) -> str:
    text = str(exc)
    if text:
        return text
    return type(exc).__name__


def classify_error(exc: BaseException, context: dict | None = None) -> ErrorRecord:
    """Build an ErrorRecord for *exc*.

    Typed AnalyzerErrors keep their classification. Otherwise the exception
    class decides, then the message text.
    """
    ctx = dict(context or {})
    message = _message(exc)

    if isinstance(exc, AnalyzerError):
        ctx.update(exc.context)
        return ErrorRecord(
            message=message,
            type=exc.error_type,
            severity=exc.severity,
            context=ctx,
            retryable=exc.error_type in RETRYABLE_TYPES,
        )

    # TimeoutError subclasses OSError, so it goes first.
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ErrorRecord(
            message=message if str(exc) else "Operation timed out",
            type=ErrorType.TIMEOUT,
            severity=Severity.MEDIUM,
            context=ctx,
            retryable=True,
        )
    if isinstance(exc, PermissionError):
        return ErrorRecord(message, ErrorType.IO, Severity.HIGH, ctx, retryable=False)
    if isinstance(exc, FileNotFoundError):
        return ErrorRecord(message, ErrorType.IO, Severity.MEDIUM, ctx, retryable=False)
    if isinstance(exc, OSError):
        return ErrorRecord(message, ErrorType.IO, Severity.MEDIUM, ctx, retryable=True)
    if isinstance(exc, _PARSE_EXCEPTIONS):
        return ErrorRecord(message, ErrorType.PARSE, Severity.LOW, ctx, retryable=False)
    if isinstance(exc, (ConfigurationError, ValidationError)):
        return ErrorRecord(
            message, ErrorType.CONFIGURATION, Severity.HIGH, ctx, retryable=False
        )

    lowered = message.lower()
    for needle, error_type, severity in _MESSAGE_PATTERNS:
        if needle in lowered:
            return ErrorRecord(
                message,
                error_type,
                severity,
                ctx,
                retryable=error_type in RETRYABLE_TYPES and severity != Severity.HIGH,
            )

    return ErrorRecord(message, ErrorType.UNKNOWN, Severity.MEDIUM, ctx, retryable=False)
