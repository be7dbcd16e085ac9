"""
Retry module - classification-driven retries of caller-supplied work.

This module contains the retry components:
- classifier: RetryClassifier and the execute() convenience function
- taxonomy: FailureTaxonomy protocol and the rule-based ExceptionTaxonomy
- outcome: AttemptOutcome state machine (Success/Exhausted/AttemptCancelled)

The classifier is the sole owner of attempt counting; the poller it
uses for preconditions only knows about time remaining.
"""

from pypatience.retry.classifier import RetryClassifier, execute
from pypatience.retry.outcome import (
    AttemptCancelled,
    AttemptOutcome,
    Exhausted,
    Success,
    is_exhausted,
    is_success,
)
from pypatience.retry.taxonomy import (
    ExceptionTaxonomy,
    FailureTaxonomy,
    FunctionTaxonomy,
    as_taxonomy,
    classify,
)

__all__ = [
    "RetryClassifier",
    "execute",
    "AttemptOutcome",
    "Success",
    "Exhausted",
    "AttemptCancelled",
    "is_success",
    "is_exhausted",
    "FailureTaxonomy",
    "ExceptionTaxonomy",
    "FunctionTaxonomy",
    "as_taxonomy",
    "classify",
]
