"""
Poller module - deadline-bounded condition waiting.

This module contains the waiting components:
- condition: wait_for() and the configurable ConditionPoller
- outcome: ConditionResult state machine (Satisfied/TimedOut/Errored/Cancelled)
- cancellation: CancellationToken and the cancellable sleep

The poller has no concept of attempts, only of time remaining.
"""

from pypatience.poller.cancellation import CancellationToken, sleep_or_cancel
from pypatience.poller.condition import (
    DEFAULT_IGNORED_EXCEPTIONS,
    ConditionPoller,
    call_maybe_async,
    wait_for,
)
from pypatience.poller.outcome import (
    Cancelled,
    ConditionResult,
    Errored,
    Satisfied,
    TimedOut,
    is_satisfied,
    is_timed_out,
)

__all__ = [
    "ConditionPoller",
    "wait_for",
    "call_maybe_async",
    "DEFAULT_IGNORED_EXCEPTIONS",
    "CancellationToken",
    "sleep_or_cancel",
    "ConditionResult",
    "Satisfied",
    "TimedOut",
    "Errored",
    "Cancelled",
    "is_satisfied",
    "is_timed_out",
]
