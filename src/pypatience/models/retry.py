"""
Retry policy and backoff configuration.

Design Pattern: Strategy Pattern
RetryPolicy owns a BackoffStrategy, allowing different delay schedules
without modifying the retry loop in RetryClassifier.

Design Rationale:
- Safe default: only TRANSIENT failures are retried
- DETERMINISTIC is never retried, even if a policy lists it
- Policies are frozen, so a policy cannot change mid-sequence
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from pypatience.models.classification import Classification

__all__ = [
    "FixedBackoff",
    "ExponentialBackoff",
    "BackoffStrategy",
    "RetryPolicy",
]


@dataclass(frozen=True)
class FixedBackoff:
    """
    Constant delay between attempts.

    Example:
        backoff = FixedBackoff(delay_ms=250)
        backoff.delay_ms_for(1)  # 250
        backoff.delay_ms_for(4)  # 250
    """

    delay_ms: int
    """Delay before every retry in milliseconds."""

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")

    def delay_ms_for(self, attempt: int) -> int:
        """Delay after the given failed attempt (1-indexed)."""
        return self.delay_ms


@dataclass(frozen=True)
class ExponentialBackoff:
    """
    Exponentially growing delay, capped at max_delay_ms.

    Each retry delay is calculated as:
    min(initial_delay_ms * backoff_multiplier^(attempt-1), max_delay_ms)

    Example:
        backoff = ExponentialBackoff(initial_delay_ms=100, backoff_multiplier=2.0)
        backoff.delay_ms_for(1)  # 100
        backoff.delay_ms_for(2)  # 200
        backoff.delay_ms_for(3)  # 400
    """

    initial_delay_ms: int = 1000
    """Delay before the first retry in milliseconds."""

    backoff_multiplier: float = 2.0
    """Multiplier applied per additional attempt."""

    max_delay_ms: int = 30000
    """Cap on any single delay in milliseconds."""

    def __post_init__(self) -> None:
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")
        if self.backoff_multiplier < 1.0:
            raise ValueError(
                f"backoff_multiplier must be >= 1.0, got {self.backoff_multiplier}"
            )
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= "
                f"initial_delay_ms ({self.initial_delay_ms})"
            )

    def delay_ms_for(self, attempt: int) -> int:
        """Delay after the given failed attempt (1-indexed)."""
        # attempt=1 (first retry): multiplier^0 = 1 → initial_delay
        # attempt=2 (second retry): multiplier^1 → initial_delay * multiplier
        if self.initial_delay_ms == 0 or self.backoff_multiplier == 1.0:
            return self.initial_delay_ms

        exponent = max(attempt - 1, 0)
        try:
            delay_ms = self.initial_delay_ms * self.backoff_multiplier**exponent
        except OverflowError:
            # Float range exceeded long after the cap was reached
            return self.max_delay_ms
        return int(min(delay_ms, self.max_delay_ms))


BackoffStrategy = FixedBackoff | ExponentialBackoff


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for retry behavior.

    Controls how many times an attempt may execute, how long to wait
    between executions, and which failure classifications trigger a retry.

    Examples:
        # Simple: just specify max attempts (uses standard delays)
        policy = RetryPolicy.with_max_attempts(3)

        # Named policy: predefined sensible defaults
        policy = RetryPolicy.STANDARD

        # Custom policy: full control
        policy = RetryPolicy(
            max_attempts=5,
            backoff=FixedBackoff(delay_ms=200),
            retryable={Classification.TRANSIENT, Classification.UNKNOWN},
        )
    """

    max_attempts: int
    """Maximum number of executions (including the first try).

    For example, max_attempts = 3 means:
    - Attempt 1: immediate (first try)
    - Attempt 2: after the first backoff delay
    - Attempt 3: after the second backoff delay
    """

    backoff: BackoffStrategy = field(default_factory=ExponentialBackoff)
    """Delay schedule between attempts."""

    retryable: frozenset[Classification] = frozenset({Classification.TRANSIENT})
    """Classifications that trigger a retry. DETERMINISTIC is ignored here."""

    # =========================================================================
    # Predefined Policies
    # =========================================================================

    if TYPE_CHECKING:
        NONE: RetryPolicy
        STANDARD: RetryPolicy
        AGGRESSIVE: RetryPolicy
    else:
        # Runtime sees these as None (set after class definition)
        NONE = cast("RetryPolicy", None)
        STANDARD = cast("RetryPolicy", None)
        AGGRESSIVE = cast("RetryPolicy", None)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if not isinstance(self.backoff, FixedBackoff | ExponentialBackoff):
            raise TypeError(f"backoff must be a BackoffStrategy, got {self.backoff!r}")

        # Accept any iterable of classifications, store a frozenset
        retryable = frozenset(self.retryable)
        for classification in retryable:
            if not isinstance(classification, Classification):
                raise TypeError(f"retryable entries must be Classification, got {classification!r}")
        object.__setattr__(self, "retryable", retryable)

    @classmethod
    def with_max_attempts(cls, max_attempts: int) -> RetryPolicy:
        """
        Create a policy with custom max_attempts (uses standard delays).

        Args:
            max_attempts: Maximum number of attempts

        Returns:
            RetryPolicy with standard delays

        Example:
            policy = RetryPolicy.with_max_attempts(5)
        """
        return cls(max_attempts=max_attempts, backoff=ExponentialBackoff())

    def retrying(self, classifications: Iterable[Classification]) -> RetryPolicy:
        """Return a copy of this policy retrying the given classifications."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff=self.backoff,
            retryable=frozenset(classifications),
        )

    def allows_retry(self, classification: Classification) -> bool:
        """
        Check whether a failure with this classification may be retried.

        DETERMINISTIC always returns False, whatever the policy lists.
        """
        if classification.is_deterministic:
            return False
        return classification in self.retryable

    @property
    def is_misconfigured(self) -> bool:
        """True if the policy lists DETERMINISTIC as retryable."""
        return Classification.DETERMINISTIC in self.retryable

    def delay_for_attempt(self, attempt: int) -> int | None:
        """
        Calculate the delay before the next retry attempt.

        Args:
            attempt: The attempt that just failed (1-indexed)

        Returns:
            Delay in milliseconds before the next retry, or None if no more retries.

        Example:
            policy = RetryPolicy.STANDARD
            delay1 = policy.delay_for_attempt(1)  # Returns 1000 (1s)
            delay2 = policy.delay_for_attempt(2)  # Returns 2000 (2s)
            delay3 = policy.delay_for_attempt(3)  # Returns None (max attempts)
        """
        if attempt >= self.max_attempts:
            return None
        return self.backoff.delay_ms_for(attempt)

    def __repr__(self) -> str:
        """Readable representation for debugging."""
        retryable = ", ".join(sorted(str(c) for c in self.retryable))
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"backoff={self.backoff!r}, retryable={{{retryable}}})"
        )


# Initialize predefined policies after class definition
RetryPolicy.NONE = RetryPolicy(max_attempts=1, backoff=FixedBackoff(delay_ms=0))

RetryPolicy.STANDARD = RetryPolicy(
    max_attempts=3,
    backoff=ExponentialBackoff(
        initial_delay_ms=1000,  # 1 second
        backoff_multiplier=2.0,
        max_delay_ms=30000,  # 30 seconds
    ),
)

RetryPolicy.AGGRESSIVE = RetryPolicy(
    max_attempts=10,
    backoff=ExponentialBackoff(
        initial_delay_ms=100,  # 100 milliseconds
        backoff_multiplier=1.5,
        max_delay_ms=10000,  # 10 seconds
    ),
)
