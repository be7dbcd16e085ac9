"""
Classification enums for captured failures.

Following Dave Cheney's principle: "Make zero values useful"
UNKNOWN is the value a taxonomy returns when it has no opinion, and the
engine treats it like DETERMINISTIC unless a policy opts in.
"""

from enum import Enum


class Classification(Enum):
    """
    Retry eligibility of a captured failure.

    Assigned exactly once per failure by a FailureTaxonomy, immediately
    after the failure is captured. Never reclassified.

    Lifecycle of a failed attempt:
    captured → classified → recorded → retried or exhausted
    """

    TRANSIENT = "TRANSIENT"
    """Failure caused by timing or infrastructure (connection reset, stale
    element, slow render). Retrying may succeed."""

    DETERMINISTIC = "DETERMINISTIC"
    """Failure that will repeat on every attempt (assertion mismatch,
    validation error, bad configuration). Never retried."""

    UNKNOWN = "UNKNOWN"
    """The taxonomy did not recognise the failure. Not retried unless the
    policy explicitly lists UNKNOWN."""

    @property
    def is_transient(self) -> bool:
        """Check if this classification marks a timing/infrastructure failure."""
        return self == Classification.TRANSIENT

    @property
    def is_deterministic(self) -> bool:
        """Check if this classification can never be retried."""
        return self == Classification.DETERMINISTIC

    def __str__(self) -> str:
        return self.value


class FailurePhase(Enum):
    """
    Which part of an attempt produced a failure.

    PRECONDITION failures mean the operation never ran on that attempt.
    """

    PRECONDITION = "PRECONDITION"
    """The precondition wait timed out before the operation could run."""

    OPERATION = "OPERATION"
    """The operation itself raised."""

    def __str__(self) -> str:
        return self.value
