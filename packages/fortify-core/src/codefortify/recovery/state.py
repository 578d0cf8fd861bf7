"""Per-attempt state machine for a recoverable operation."""

from __future__ import annotations

from enum import Enum


class AttemptState(Enum):
    PENDING = "pending"
    ATTEMPT = "attempt"
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"
    RECOVERED = "recovered"
    DEGRADED = "degraded"


TERMINAL_STATES = {
    AttemptState.SUCCESS,
    AttemptState.RECOVERED,
    AttemptState.DEGRADED,
}

VALID_TRANSITIONS: dict[AttemptState, set[AttemptState]] = {
    AttemptState.PENDING: {AttemptState.ATTEMPT},
    AttemptState.ATTEMPT: {
        AttemptState.SUCCESS,
        AttemptState.RETRYABLE_FAILURE,
        AttemptState.FATAL_FAILURE,
    },
    AttemptState.RETRYABLE_FAILURE: {AttemptState.ATTEMPT},
    AttemptState.FATAL_FAILURE: {AttemptState.RECOVERED, AttemptState.DEGRADED},
    AttemptState.SUCCESS: set(),
    AttemptState.RECOVERED: set(),
    AttemptState.DEGRADED: set(),
}


class AttemptStateMachine:
    """Enforces valid attempt transitions and tracks the attempt budget."""

    def __init__(self, max_attempts: int = 3) -> None:
        self.state = AttemptState.PENDING
        self.max_attempts = max(1, max_attempts)
        self.attempts = 0

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: AttemptState) -> None:
        """Transition to *new_state*, raising ValueError on illegal moves."""
        if self.state in TERMINAL_STATES:
            raise ValueError(
                f"Cannot transition from terminal state {self.state.value}"
            )

        allowed = VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid transition: {self.state.value} -> {new_state.value}"
            )

        if new_state == AttemptState.ATTEMPT:
            self.attempts += 1

        # Auto-escalate when the attempt budget is spent
        if (
            new_state == AttemptState.RETRYABLE_FAILURE
            and self.attempts >= self.max_attempts
        ):
            self.state = AttemptState.FATAL_FAILURE
            return

        self.state = new_state
