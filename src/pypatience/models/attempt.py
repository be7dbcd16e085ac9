"""
Attempt - one unit of caller-supplied work.

An Attempt bundles the operation to run with an optional precondition
that must hold before every execution. Both are opaque callables; they
may be plain functions or coroutine functions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from uuid_extensions import uuid7

__all__ = ["Attempt", "Operation", "Predicate"]

Operation = Callable[[], Any | Awaitable[Any]]
"""Zero-argument callable returning a value (or an awaitable of one)."""

Predicate = Callable[[], Any | Awaitable[Any]]
"""Zero-argument check; a truthy result means the condition holds."""


@dataclass(frozen=True)
class Attempt:
    """
    Caller-supplied work executed by RetryClassifier.

    Attributes:
        operation: The work to attempt
        precondition: Optional predicate re-verified before every execution
        precondition_timeout: Seconds to wait for the precondition
        precondition_poll_interval: Seconds between precondition polls
        name: Human-readable label for logs and flakiness signals
        id: Identifier correlating all executions of this attempt (uuid7)

    Example:
        attempt = Attempt(
            operation=lambda: page.click("#submit"),
            precondition=lambda: page.is_enabled("#submit"),
            precondition_timeout=5.0,
            name="submit-order",
        )
    """

    operation: Operation
    precondition: Predicate | None = None
    precondition_timeout: float = 10.0
    precondition_poll_interval: float = 0.5
    name: str | None = None
    id: str = field(default_factory=lambda: str(uuid7()))

    def __post_init__(self) -> None:
        if not callable(self.operation):
            raise TypeError(f"operation must be callable, got {self.operation!r}")
        if self.precondition is not None and not callable(self.precondition):
            raise TypeError(f"precondition must be callable, got {self.precondition!r}")
        if self.precondition_timeout <= 0:
            raise ValueError(
                f"precondition_timeout must be > 0, got {self.precondition_timeout}"
            )
        if self.precondition_poll_interval <= 0:
            raise ValueError(
                f"precondition_poll_interval must be > 0, got {self.precondition_poll_interval}"
            )

    @property
    def label(self) -> str:
        """Name if given, otherwise the id."""
        return self.name if self.name else self.id

    def __repr__(self) -> str:
        """Readable representation for debugging."""
        name_str = f", name={self.name!r}" if self.name else ""
        pre_str = ", precondition=set" if self.precondition is not None else ""
        return f"Attempt(id={self.id!r}{name_str}{pre_str})"
