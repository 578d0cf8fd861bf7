"""Error Recovery: retry, timeout and fallback for analyzer calls."""

from codefortify.recovery.classify import classify_error
from codefortify.recovery.layer import (
    Degraded,
    ErrorRecoveryLayer,
    RecoveryPolicy,
    Success,
    with_recovery,
)
from codefortify.recovery.state import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    AttemptState,
    AttemptStateMachine,
)

__all__ = [
    "AttemptState",
    "AttemptStateMachine",
    "Degraded",
    "ErrorRecoveryLayer",
    "RecoveryPolicy",
    "Success",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "classify_error",
    "with_recovery",
]
