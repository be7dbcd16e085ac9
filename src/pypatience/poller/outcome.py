"""
Condition wait outcomes.

This module defines the ConditionResult state machine returned by
ConditionPoller.wait_for().

**Design Pattern**: State Machine using Union types

From Dave Cheney's principle: "If your function can suspend, you must tell the caller."
ConditionResult makes a timeout an explicit value instead of hiding it in an
exception, so the retry classifier can record and classify it.

Example:
    ```python
    result = await wait_for(lambda: page.find("#banner"), timeout=5.0, poll_interval=0.2)

    match result:
        case Satisfied(value=element):
            element.click()
        case TimedOut(last_observed=state):
            print(f"Gave up, last saw {state!r}")
        case Errored(cause=error):
            raise error
        case Cancelled():
            return
    ```
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pypatience.models.errors import (
    ConditionTimeoutError,
    PredicateError,
    WaitCancelledError,
)

__all__ = [
    "Satisfied",
    "TimedOut",
    "Errored",
    "Cancelled",
    "ConditionResult",
    "is_satisfied",
    "is_timed_out",
]

# Type variable for the predicate's payload
V = TypeVar("V")


@dataclass(frozen=True)
class Satisfied(Generic[V]):
    """
    The predicate returned a truthy value before the deadline.

    Attributes:
        value: The predicate's return payload
        elapsed: Seconds spent waiting
        polls: Number of predicate evaluations
    """

    value: V
    elapsed: float = 0.0
    polls: int = 1

    def unwrap(self) -> V:
        """Return the satisfied value."""
        return self.value

    def __str__(self) -> str:
        return f"Satisfied(value={self.value!r}, elapsed={self.elapsed:.3f}s, polls={self.polls})"


@dataclass(frozen=True)
class TimedOut:
    """
    The deadline passed without the predicate being satisfied.

    Attributes:
        last_observed: Last falsy value or absorbed exception, for diagnostics
        timeout: The configured timeout in seconds
        elapsed: Seconds spent waiting
        polls: Number of predicate evaluations
    """

    last_observed: Any
    timeout: float
    elapsed: float = 0.0
    polls: int = 0

    def to_error(self) -> ConditionTimeoutError:
        """Build the ConditionTimeoutError describing this timeout."""
        return ConditionTimeoutError(self.timeout, self.last_observed)

    def unwrap(self) -> Any:
        """Raise ConditionTimeoutError."""
        raise self.to_error()

    def __str__(self) -> str:
        return (
            f"TimedOut(last_observed={self.last_observed!r}, "
            f"elapsed={self.elapsed:.3f}s, polls={self.polls})"
        )


@dataclass(frozen=True)
class Errored:
    """
    The predicate raised an unrecognised exception.

    Returned immediately, without waiting for the deadline.

    Attributes:
        cause: The exception the predicate raised
        elapsed: Seconds spent waiting
        polls: Number of predicate evaluations
    """

    cause: BaseException
    elapsed: float = 0.0
    polls: int = 1

    def to_error(self, failure_history: tuple = ()) -> PredicateError:
        """Build a PredicateError chained to the original cause."""
        error = PredicateError(
            f"Predicate raised {type(self.cause).__name__}: {self.cause}",
            failure_history=failure_history,
        )
        error.__cause__ = self.cause
        return error

    def unwrap(self) -> Any:
        """Raise PredicateError chained from the cause."""
        raise self.to_error() from self.cause

    def __str__(self) -> str:
        return f"Errored(cause={type(self.cause).__name__}: {self.cause})"


@dataclass(frozen=True)
class Cancelled:
    """
    The wait was cancelled through its CancellationToken.

    Attributes:
        last_observed: Last non-satisfying observation, if any
        elapsed: Seconds spent waiting
        polls: Number of predicate evaluations
    """

    last_observed: Any = None
    elapsed: float = 0.0
    polls: int = 0

    def unwrap(self) -> Any:
        """Raise WaitCancelledError."""
        raise WaitCancelledError(f"Wait cancelled after {self.elapsed:.3f}s")

    def __str__(self) -> str:
        return f"Cancelled(elapsed={self.elapsed:.3f}s, polls={self.polls})"


# ConditionResult is a Union type; exactly one variant describes each wait.
#
# Type narrowing:
#     if isinstance(result, Satisfied):
#         use(result.value)
#
ConditionResult = Satisfied[Any] | TimedOut | Errored | Cancelled


def is_satisfied(result: ConditionResult) -> bool:
    """Type guard to check if result is Satisfied."""
    return isinstance(result, Satisfied)


def is_timed_out(result: ConditionResult) -> bool:
    """Type guard to check if result is TimedOut."""
    return isinstance(result, TimedOut)
