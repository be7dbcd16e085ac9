"""
pypatience: condition polling and retry classification for flaky operations.

Design Pattern: Façade Pattern
This module provides a simplified interface to the poller, the retry
classifier and the flakiness sinks.

From Dave Cheney: "A good package starts with its name"
Package "pypatience" describes what it provides: waiting, and trying
again, without hiding real failures.

Example:
    ```python
    import asyncio
    from pypatience import Attempt, RetryClassifier, RetryPolicy, Success, wait_for

    async def main():
        # Wait for a condition, without fixed sleeps
        ready = await wait_for(lambda: service.is_up(), timeout=5.0, poll_interval=0.1)

        # Retry transient failures only; deterministic failures fail fast
        outcome = await RetryClassifier().execute(
            Attempt(operation=place_order, precondition=cart_loaded, name="place-order"),
            RetryPolicy.STANDARD,
        )
        if isinstance(outcome, Success):
            print(outcome.value)

    asyncio.run(main())
    ```
"""

# Models - dependency-free value types
from pypatience.models import (
    Attempt,
    BackoffStrategy,
    Classification,
    ConditionTimeoutError,
    Deadline,
    DeterministicOperationFailure,
    ExponentialBackoff,
    FailurePhase,
    FailureRecord,
    FixedBackoff,
    FlakinessSignal,
    NotReadyError,
    PatienceError,
    PolicyExhaustedError,
    PredicateError,
    RetryableError,
    RetryPolicy,
    SinkError,
    TransientOperationFailure,
    WaitCancelledError,
)

# Poller - deadline-bounded waits
from pypatience.poller import (
    CancellationToken,
    Cancelled,
    ConditionPoller,
    ConditionResult,
    Errored,
    Satisfied,
    TimedOut,
    wait_for,
)

# Retry - classification-driven retries
from pypatience.retry import (
    AttemptCancelled,
    AttemptOutcome,
    ExceptionTaxonomy,
    Exhausted,
    FailureTaxonomy,
    RetryClassifier,
    Success,
    execute,
)

# Sinks - flakiness signal destinations (Adapter pattern)
from pypatience.sinks import (
    CompositeFlakinessSink,
    FlakinessSink,
    InMemoryFlakinessSink,
    LoggingFlakinessSink,
)

# Decorators
from pypatience.decorators import retrying

# Version
__version__ = "0.1.0"

__all__ = [
    # Models
    "Attempt",
    "BackoffStrategy",
    "Classification",
    "Deadline",
    "ExponentialBackoff",
    "FailurePhase",
    "FailureRecord",
    "FixedBackoff",
    "FlakinessSignal",
    "RetryPolicy",
    # Errors
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
    # Poller
    "CancellationToken",
    "ConditionPoller",
    "ConditionResult",
    "Satisfied",
    "TimedOut",
    "Errored",
    "Cancelled",
    "wait_for",
    # Retry
    "RetryClassifier",
    "execute",
    "AttemptOutcome",
    "Success",
    "Exhausted",
    "AttemptCancelled",
    "FailureTaxonomy",
    "ExceptionTaxonomy",
    # Sinks
    "FlakinessSink",
    "CompositeFlakinessSink",
    "InMemoryFlakinessSink",
    "LoggingFlakinessSink",
    # Decorators
    "retrying",
    # Metadata
    "__version__",
]
