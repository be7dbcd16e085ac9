"""
FlakinessSignal - "passed only after retry".

Emitted whenever an attempt succeeds after one or more failed
executions. The signal is observational: it never changes the outcome,
it exists so a human can investigate latent flakiness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from pypatience.models.failure import FailureRecord

__all__ = ["FlakinessSignal"]


@dataclass(frozen=True)
class FlakinessSignal:
    """
    Evidence that an attempt passed only after retrying.

    Attributes:
        attempt_id: Identifier of the Attempt
        attempts_used: Executions needed to succeed (always > 1)
        failure_history: Every failure preceding success, oldest first
        name: The Attempt's name, if any
        emitted_at: UTC wall-clock time the signal was created
    """

    attempt_id: str
    attempts_used: int
    failure_history: tuple[FailureRecord, ...]
    name: str | None = None
    emitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.attempts_used < 2:
            raise ValueError(
                f"FlakinessSignal requires attempts_used > 1, got {self.attempts_used}"
            )
        if not self.failure_history:
            raise ValueError("FlakinessSignal requires a non-empty failure_history")

    @property
    def label(self) -> str:
        """Name if given, otherwise the attempt id."""
        return self.name if self.name else self.attempt_id

    @property
    def fingerprints(self) -> tuple[int, ...]:
        """Fingerprints of the preceding failures, in order."""
        return tuple(record.fingerprint for record in self.failure_history)

    def describe(self) -> str:
        """Multi-part human-readable description for logs."""
        failures = "; ".join(record.summary() for record in self.failure_history)
        return (
            f"{self.label} passed only after {self.attempts_used} attempts "
            f"({len(self.failure_history)} failure(s): {failures})"
        )

    def __str__(self) -> str:
        return f"FlakinessSignal({self.describe()})"
