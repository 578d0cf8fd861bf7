"""Error recovery layer: retry, timeout and fallback around analyzer calls.

Any exception raised by a wrapped operation is classified, retried when the
classification allows it, handed to a fallback producer once the budget is
spent, and finally turned into a degraded CategoryResult. Nothing raised by
the operation reaches the caller.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from codefortify.errors import AnalyzerError, ErrorType, Severity
from codefortify.models import RetryPolicyConfig
from codefortify.recovery.classify import classify_error
from codefortify.recovery.state import AttemptState, AttemptStateMachine
from codefortify.scoring.grading import FAILING_GRADE, grade_for
from codefortify.scoring.results import CategoryResult, ErrorRecord, RecoveryRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
FallbackProducer = Callable[[ErrorRecord, dict], Any]

DEGRADED_SUGGESTION = "Review error logs and ensure all dependencies are available"


@dataclass
class RecoveryPolicy:
    """How hard to try before giving up on an operation."""

    max_attempts: int = 3
    backoff: float = 0.5  # seconds, multiplied by the attempt number
    timeout_seconds: float | None = 30.0
    fallback_producer: FallbackProducer | None = None

    @classmethod
    def from_config(
        cls,
        config: RetryPolicyConfig,
        fallback_producer: FallbackProducer | None = None,
    ) -> RecoveryPolicy:
        return cls(
            max_attempts=config.max_retries + 1,
            backoff=config.retry_delay,
            timeout_seconds=config.timeout_seconds,
            fallback_producer=fallback_producer,
        )


@dataclass
class Success(Generic[T]):
    value: T
    records: list[ErrorRecord] = field(default_factory=list)
    recoveries: list[RecoveryRecord] = field(default_factory=list)
    attempts: int = 1

    @property
    def recovered(self) -> bool:
        return bool(self.recoveries)


@dataclass
class Degraded:
    error: ErrorRecord
    records: list[ErrorRecord] = field(default_factory=list)
    attempts: int = 1


Outcome = Union[Success[T], Degraded]


async def _bounded(operation: Operation[T], timeout: float | None) -> T:
    if timeout is None:
        return await operation()
    return await asyncio.wait_for(operation(), timeout=timeout)


async def with_recovery(
    operation: Operation[T],
    policy: RecoveryPolicy,
    context: dict | None = None,
) -> Outcome[T]:
    """Run *operation* under *policy* and return a tagged outcome."""
    ctx = dict(context or {})
    sm = AttemptStateMachine(max_attempts=policy.max_attempts)
    records: list[ErrorRecord] = []
    last: ErrorRecord | None = None

    while True:
        sm.transition(AttemptState.ATTEMPT)
        try:
            value = await _bounded(operation, policy.timeout_seconds)
        except Exception as e:
            last = classify_error(e, ctx)
            records.append(last)
            if last.retryable:
                sm.transition(AttemptState.RETRYABLE_FAILURE)
            else:
                sm.transition(AttemptState.FATAL_FAILURE)

            if sm.state == AttemptState.FATAL_FAILURE:
                break

            logger.debug(
                "Retrying after %s (attempt %d/%d): %s",
                last.type.value, sm.attempts, sm.max_attempts, last.message,
            )
            if policy.backoff > 0:
                await asyncio.sleep(policy.backoff * sm.attempts)
            continue

        sm.transition(AttemptState.SUCCESS)
        return Success(value=value, records=records, attempts=sm.attempts)

    if last is None:
        raise RuntimeError("Attempt loop ended without a recorded failure")
    if policy.fallback_producer is not None:
        try:
            fallback = policy.fallback_producer(last, ctx)
            if inspect.isawaitable(fallback):
                fallback = await fallback
        except Exception as e:
            logger.warning("Recovery attempt failed: %s", e)
            failed = classify_error(e, {**ctx, "phase": "recovery"})
            records.append(replace(failed, severity=Severity.LOW))
        else:
            if fallback is not None:
                sm.transition(AttemptState.RECOVERED)
                return Success(
                    value=fallback,
                    records=records,
                    recoveries=[
                        RecoveryRecord(
                            error=last.message,
                            recovery=f"Fallback used after {last.type.value}",
                        )
                    ],
                    attempts=sm.attempts,
                )

    sm.transition(AttemptState.DEGRADED)
    return Degraded(error=last, records=records, attempts=sm.attempts)


def _split_records(
    records: list[ErrorRecord], terminal: ErrorRecord | None = None
) -> tuple[list[ErrorRecord], list[ErrorRecord]]:
    errors: list[ErrorRecord] = []
    warnings: list[ErrorRecord] = []
    for record in records:
        if record is terminal or record.severity == Severity.HIGH:
            errors.append(record)
        else:
            warnings.append(record)
    return errors, warnings


class ErrorRecoveryLayer:
    """Turns one analyzer invocation into a CategoryResult, whatever happens."""

    def __init__(self, default_policy: RecoveryPolicy | None = None) -> None:
        self.default_policy = default_policy or RecoveryPolicy()

    async def execute(
        self,
        category_id: str,
        operation: Operation[CategoryResult],
        context: dict | None = None,
        policy: RecoveryPolicy | None = None,
        *,
        max_score: float,
        category_name: str = "",
    ) -> CategoryResult:
        policy = policy or self.default_policy
        ctx = {"category": category_id, **(context or {})}

        # A caller-supplied default result is the fallback of last resort.
        default_result = ctx.pop("default_result", None)
        if policy.fallback_producer is None and default_result is not None:
            policy = replace(
                policy, fallback_producer=lambda _error, _ctx: default_result
            )

        async def checked() -> CategoryResult:
            result = await operation()
            if not isinstance(result, CategoryResult):
                raise AnalyzerError(
                    f"Analyzer returned {type(result).__name__}, expected CategoryResult",
                    ErrorType.CONFIGURATION,
                    Severity.HIGH,
                )
            return result

        outcome = await with_recovery(checked, policy, ctx)

        if isinstance(outcome, Degraded):
            logger.error(
                "%s analysis degraded after %d attempt(s): %s",
                category_id, outcome.attempts, outcome.error.message,
            )
            errors, warnings = _split_records(outcome.records, terminal=outcome.error)
            return self.degraded_result(
                outcome.error.message,
                max_score=max_score,
                category_name=category_name,
                errors=errors,
                warnings=warnings,
            )

        if outcome.recovered:
            if not isinstance(outcome.value, CategoryResult):
                invalid = ErrorRecord(
                    message=(
                        f"Fallback returned {type(outcome.value).__name__}, "
                        "expected CategoryResult"
                    ),
                    type=ErrorType.CONFIGURATION,
                    severity=Severity.HIGH,
                    context=dict(ctx),
                )
                logger.error("%s fallback rejected: %s", category_id, invalid.message)
                errors, warnings = _split_records(outcome.records)
                return self.degraded_result(
                    invalid.message,
                    max_score=max_score,
                    category_name=category_name,
                    errors=[*errors, invalid],
                    warnings=warnings,
                )
            logger.info("%s analysis recovered via fallback", category_id)
        errors, warnings = _split_records(outcome.records)
        result = self._normalize(outcome.value, max_score, category_name)
        return replace(
            result,
            errors=[*result.errors, *errors],
            warnings=[*result.warnings, *warnings],
            recoveries=[*result.recoveries, *outcome.recoveries],
        )

    @staticmethod
    def _normalize(
        result: CategoryResult, max_score: float, category_name: str
    ) -> CategoryResult:
        """Clamp the score into [0, max_score] and regrade."""
        max_value = result.max_score if result.max_score > 0 else max_score
        if result.error is not None:
            score = 0.0
        else:
            score = min(max(result.score, 0.0), max_value)
        return replace(
            result,
            score=score,
            max_score=max_value,
            grade=FAILING_GRADE if result.error is not None else grade_for(score, max_value),
            category_name=result.category_name or category_name,
        )

    @staticmethod
    def degraded_result(
        message: str,
        *,
        max_score: float,
        category_name: str = "",
        errors: list[ErrorRecord] | None = None,
        warnings: list[ErrorRecord] | None = None,
    ) -> CategoryResult:
        return CategoryResult(
            score=0.0,
            max_score=max_score,
            grade=FAILING_GRADE,
            category_name=category_name,
            issues=[f"Critical analysis error: {message}"],
            suggestions=[DEGRADED_SUGGESTION],
            errors=list(errors or []),
            warnings=list(warnings or []),
            error=message,
        )
