"""Core data models for waiting and retrying.

Defines the value types shared by the poller, the retry classifier
and the sinks: deadlines, classifications, failure records, attempts,
retry policies and the exception hierarchy.

Design: Dependency-Free Models
These types have no dependencies on poller, retry or sinks modules to
prevent circular imports and enable clean layering.
"""

from pypatience.models.attempt import Attempt, Operation, Predicate
from pypatience.models.classification import Classification, FailurePhase
from pypatience.models.deadline import Deadline
from pypatience.models.errors import (
    ConditionTimeoutError,
    DeterministicOperationFailure,
    NotReadyError,
    PatienceError,
    PolicyExhaustedError,
    PredicateError,
    RetryableError,
    SinkError,
    TransientOperationFailure,
    WaitCancelledError,
)
from pypatience.models.failure import FailureRecord, fingerprint_error
from pypatience.models.retry import (
    BackoffStrategy,
    ExponentialBackoff,
    FixedBackoff,
    RetryPolicy,
)
from pypatience.models.signal import FlakinessSignal

__all__ = [
    "Attempt",
    "Operation",
    "Predicate",
    "Classification",
    "FailurePhase",
    "Deadline",
    "FailureRecord",
    "fingerprint_error",
    "FlakinessSignal",
    "BackoffStrategy",
    "ExponentialBackoff",
    "FixedBackoff",
    "RetryPolicy",
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
