"""
Attempt outcomes.

This module defines the AttemptOutcome state machine returned by
RetryClassifier.execute().

**Design Pattern**: State Machine using Union types

The caller receives either a value or a complete, ordered failure
history - never a bare exception with the context of earlier attempts
lost.

Example:
    ```python
    outcome = await classifier.execute(attempt, RetryPolicy.STANDARD)

    match outcome:
        case Success(value=value, attempts_used=n):
            print(f"Done in {n} attempt(s): {value}")
        case Exhausted(failure_history=history):
            for record in history:
                print(record.summary())
        case AttemptCancelled():
            print("Cancelled")
    ```
"""

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from pypatience.models import FailureRecord, PolicyExhaustedError

__all__ = [
    "Success",
    "Exhausted",
    "AttemptCancelled",
    "AttemptOutcome",
    "is_success",
    "is_exhausted",
]

R = TypeVar("R")


@dataclass(frozen=True)
class Success(Generic[R]):
    """
    The operation returned a value.

    Attributes:
        value: The operation's return value
        attempts_used: Executions needed (1 on immediate success)
        failure_history: Failures preceding success (empty on immediate success)
    """

    value: R
    attempts_used: int
    failure_history: tuple[FailureRecord, ...] = ()

    @property
    def was_flaky(self) -> bool:
        """True if success required more than one execution."""
        return self.attempts_used > 1

    def unwrap(self) -> R:
        """Return the value."""
        return self.value

    def __str__(self) -> str:
        return f"Success(value={self.value!r}, attempts_used={self.attempts_used})"


@dataclass(frozen=True)
class Exhausted:
    """
    No further attempts are permitted.

    Reached when a failure is not retryable (DETERMINISTIC, or UNKNOWN under
    a policy that does not list it) or when max_attempts is consumed.

    Attributes:
        failure_history: Every failure, oldest first, never truncated
    """

    failure_history: tuple[FailureRecord, ...]

    @property
    def attempts_used(self) -> int:
        """Number of failed executions (equals len(failure_history))."""
        return len(self.failure_history)

    @property
    def last_failure(self) -> FailureRecord | None:
        """The final recorded failure."""
        return self.failure_history[-1] if self.failure_history else None

    @property
    def last_error(self) -> BaseException | None:
        """The error raised by the final attempt."""
        last = self.last_failure
        return last.error if last is not None else None

    def raise_for_outcome(self) -> NoReturn:
        """Raise PolicyExhaustedError carrying the full history."""
        raise PolicyExhaustedError(self.failure_history) from self.last_error

    def unwrap(self) -> NoReturn:
        """Alias for raise_for_outcome()."""
        self.raise_for_outcome()

    def __str__(self) -> str:
        last = self.last_failure
        last_str = f", last={last.summary()}" if last is not None else ""
        return f"Exhausted(failures={len(self.failure_history)}{last_str})"


@dataclass(frozen=True)
class AttemptCancelled:
    """
    The sequence was cancelled at a poll or retry boundary.

    Attributes:
        failure_history: Failures recorded before cancellation
    """

    failure_history: tuple[FailureRecord, ...] = ()

    def __str__(self) -> str:
        return f"AttemptCancelled(failures={len(self.failure_history)})"


# AttemptOutcome is a Union type; every execute() call returns exactly one.
AttemptOutcome = Success[R] | Exhausted | AttemptCancelled


def is_success(outcome: AttemptOutcome) -> bool:
    """Type guard to check if outcome is Success."""
    return isinstance(outcome, Success)


def is_exhausted(outcome: AttemptOutcome) -> bool:
    """Type guard to check if outcome is Exhausted."""
    return isinstance(outcome, Exhausted)
