"""
FailureRecord - one captured, classified failure.

A retry sequence accumulates FailureRecords in chronological order.
The sequence is handed to the caller as an immutable tuple, either in
Exhausted or attached to the FlakinessSignal on eventual success.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

import xxhash

from pypatience.models.classification import Classification, FailurePhase

__all__ = ["FailureRecord", "fingerprint_error"]


def fingerprint_error(error: BaseException) -> int:
    """
    Stable fingerprint of an error's type and message.

    Two failures with the same exception type and message share a
    fingerprint, which lets recurring flaky failures be grouped across
    runs. Using xxhash (fast, stable across processes unlike hash()).
    """
    error_type = type(error)
    key = f"{error_type.__module__}.{error_type.__qualname__}:{error}"
    return xxhash.xxh64(key.encode("utf-8")).intdigest() & 0x7FFFFFFFFFFFFFFF


@dataclass(frozen=True)
class FailureRecord:
    """
    A failure captured during one execution of an Attempt.

    Attributes:
        error: The exception raised
        classification: Assigned once by the taxonomy, immediately after capture
        attempt_number: 1-indexed execution number within the sequence
        phase: Whether the precondition or the operation failed
        attempt_id: Identifier of the Attempt, for correlating retries
        timestamp: UTC wall-clock time of capture
    """

    error: BaseException
    classification: Classification
    attempt_number: int
    phase: FailurePhase = FailurePhase.OPERATION
    attempt_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {self.attempt_number}")

    @property
    def error_type(self) -> str:
        """Qualified name of the exception type."""
        return type(self.error).__qualname__

    @property
    def message(self) -> str:
        """The exception message."""
        return str(self.error)

    @property
    def fingerprint(self) -> int:
        """Stable grouping key for this failure (see fingerprint_error)."""
        return fingerprint_error(self.error)

    def summary(self) -> str:
        """One-line description for logs."""
        return (
            f"#{self.attempt_number} {self.phase.value.lower()} "
            f"{self.classification}: {self.error_type}: {self.message}"
        )

    def __repr__(self) -> str:
        """Readable representation for debugging."""
        return (
            f"FailureRecord(attempt_number={self.attempt_number}, "
            f"classification={self.classification}, phase={self.phase}, "
            f"error={self.error!r}, timestamp={self.timestamp.isoformat()})"
        )
