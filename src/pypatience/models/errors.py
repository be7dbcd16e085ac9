"""
Exception hierarchy for pypatience.

From Dave Cheney: "Errors are values"
Every error carries the context a caller needs to diagnose it: the last
observed state of a timed-out wait, or the full failure history of an
exhausted retry sequence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pypatience.models.failure import FailureRecord

__all__ = [
    "PatienceError",
    "NotReadyError",
    "ConditionTimeoutError",
    "PredicateError",
    "WaitCancelledError",
    "RetryableError",
    "TransientOperationFailure",
    "DeterministicOperationFailure",
    "PolicyExhaustedError",
    "SinkError",
]


class PatienceError(Exception):
    """Base class for errors raised by pypatience itself."""

    pass


class NotReadyError(PatienceError):
    """
    Raised by a predicate to say "the condition does not hold yet".

    ConditionPoller absorbs this by default and keeps polling, the same way
    an explicit wait absorbs "element not found" while a page renders.

    Example:
        def banner_visible():
            element = page.find("#banner")
            if element is None:
                raise NotReadyError("banner not rendered")
            return element
    """

    pass


class ConditionTimeoutError(PatienceError):
    """
    A wait exceeded its deadline without the predicate being satisfied.

    Attributes:
        timeout: The timeout that elapsed, in seconds
        last_observed: The last non-satisfying value or absorbed exception
    """

    def __init__(self, timeout: float, last_observed: Any = None):
        super().__init__(
            f"Condition not satisfied within {timeout:.3f}s "
            f"(last observed: {last_observed!r})"
        )
        self.timeout = timeout
        self.last_observed = last_observed


class PredicateError(PatienceError):
    """
    The predicate raised an exception the poller does not recognise.

    The original exception is chained as ``__cause__``. When raised from a
    retry sequence, failures recorded before the error are kept in
    ``failure_history``.
    """

    def __init__(self, message: str, failure_history: tuple[FailureRecord, ...] = ()):
        super().__init__(message)
        self.failure_history = failure_history


class WaitCancelledError(PatienceError):
    """A wait was cancelled through its CancellationToken."""

    pass


class RetryableError(Exception):
    """
    Base class for errors that can specify whether they should be retried.

    The default taxonomy consults is_retryable() before any type rule:
    True classifies as TRANSIENT, False as DETERMINISTIC.

    Example:
        class CheckoutError(RetryableError):
            def __init__(self, message: str, is_retryable: bool = True):
                super().__init__(message)
                self._retryable = is_retryable

            def is_retryable(self) -> bool:
                return self._retryable

        # Transient error - should retry
        raise CheckoutError("Gateway timeout", is_retryable=True)

        # Permanent error - should NOT retry
        raise CheckoutError("Card declined", is_retryable=False)
    """

    def is_retryable(self) -> bool:
        """
        Returns true if this error is transient and the operation should be retried.

        Returns:
            True if retryable, False if permanent
        """
        return True


class TransientOperationFailure(RetryableError):
    """An operation failure the caller knows to be transient."""

    def is_retryable(self) -> bool:
        return True


class DeterministicOperationFailure(RetryableError):
    """An operation failure the caller knows will repeat on every attempt."""

    def is_retryable(self) -> bool:
        return False


class PolicyExhaustedError(PatienceError):
    """
    All permitted attempts were consumed without success.

    Carries the complete failure history so no earlier attempt's context
    is lost. The last recorded error is chained as ``__cause__`` by
    Exhausted.raise_for_outcome().

    Attributes:
        failure_history: Every FailureRecord, oldest first
    """

    def __init__(self, failure_history: tuple[FailureRecord, ...]):
        self.failure_history = failure_history
        last = failure_history[-1] if failure_history else None
        if last is None:
            message = "Retry policy exhausted with no recorded failures"
        else:
            message = (
                f"Retry policy exhausted after {len(failure_history)} failed attempt(s); "
                f"last failure ({last.classification}): "
                f"{type(last.error).__name__}: {last.error}"
            )
        super().__init__(message)

    @property
    def attempts(self) -> int:
        """Number of failed attempts recorded."""
        return len(self.failure_history)

    @property
    def last_error(self) -> BaseException | None:
        """The error raised by the final attempt."""
        if not self.failure_history:
            return None
        return self.failure_history[-1].error


class SinkError(PatienceError):
    """
    A flakiness sink failed to record a signal.

    From Dave Cheney: "Errors are values"
    Custom exception with context, not generic Exception.
    """

    pass
