"""
Failure taxonomies - mapping a captured error to a Classification.

Only the caller knows which errors in their domain are transient
(connection resets, stale references) and which are deterministic
(assertion mismatches, validation errors). The taxonomy makes that
boundary an explicit, testable contract instead of an isinstance chain
buried in retry logic.

Design Pattern: Strategy Pattern
Any object with classify(error) -> Classification is a FailureTaxonomy;
plain functions are adapted with as_taxonomy().
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from pypatience.models import (
    Classification,
    ConditionTimeoutError,
    DeterministicOperationFailure,
    RetryableError,
    TransientOperationFailure,
)

__all__ = [
    "FailureTaxonomy",
    "ExceptionTaxonomy",
    "FunctionTaxonomy",
    "as_taxonomy",
    "classify",
]


@runtime_checkable
class FailureTaxonomy(Protocol):
    """Maps a captured error to a Classification."""

    def classify(self, error: BaseException) -> Classification:
        """Classify ``error``. Called exactly once per failure."""
        ...


class ExceptionTaxonomy:
    """
    Rule-based taxonomy keyed on exception types.

    Resolution order:
    1. RetryableError instances classify by is_retryable()
    2. The most specific rule along the error's MRO wins
    3. No rule matches → UNKNOWN

    Taxonomies are immutable; with_rule(), transient() and deterministic()
    return new instances.

    Example:
        taxonomy = ExceptionTaxonomy.default() \\
            .transient(StaleElementError) \\
            .deterministic(ElementNotInteractableError)

        taxonomy.classify(ConnectionResetError())  # TRANSIENT (via OSError)
        taxonomy.classify(AssertionError("total"))  # DETERMINISTIC
    """

    def __init__(self, rules: Mapping[type[BaseException], Classification] | None = None):
        """Create a taxonomy from exception-type rules.

        Args:
            rules: Mapping of exception type to classification

        Raises:
            TypeError: If a key is not an exception type or a value is not a Classification
        """
        self._rules: dict[type[BaseException], Classification] = {}
        for exc_type, classification in (rules or {}).items():
            _check_rule(exc_type, classification)
            self._rules[exc_type] = classification

    @classmethod
    def default(cls) -> ExceptionTaxonomy:
        """
        Sensible defaults for test automation.

        TRANSIENT: OSError (connection, timeout, I/O), ConditionTimeoutError,
            TransientOperationFailure
        DETERMINISTIC: AssertionError, ValueError, TypeError, LookupError,
            DeterministicOperationFailure
        """
        return cls(
            {
                OSError: Classification.TRANSIENT,
                ConditionTimeoutError: Classification.TRANSIENT,
                TransientOperationFailure: Classification.TRANSIENT,
                AssertionError: Classification.DETERMINISTIC,
                ValueError: Classification.DETERMINISTIC,
                TypeError: Classification.DETERMINISTIC,
                LookupError: Classification.DETERMINISTIC,
                DeterministicOperationFailure: Classification.DETERMINISTIC,
            }
        )

    @property
    def rules(self) -> dict[type[BaseException], Classification]:
        """Copy of the configured rules."""
        return dict(self._rules)

    def with_rule(
        self, exc_type: type[BaseException], classification: Classification
    ) -> ExceptionTaxonomy:
        """Return a new taxonomy with one rule added or replaced."""
        rules = dict(self._rules)
        rules[exc_type] = classification
        return ExceptionTaxonomy(rules)

    def transient(self, *exc_types: type[BaseException]) -> ExceptionTaxonomy:
        """Return a new taxonomy classifying ``exc_types`` as TRANSIENT."""
        taxonomy = self
        for exc_type in exc_types:
            taxonomy = taxonomy.with_rule(exc_type, Classification.TRANSIENT)
        return taxonomy

    def deterministic(self, *exc_types: type[BaseException]) -> ExceptionTaxonomy:
        """Return a new taxonomy classifying ``exc_types`` as DETERMINISTIC."""
        taxonomy = self
        for exc_type in exc_types:
            taxonomy = taxonomy.with_rule(exc_type, Classification.DETERMINISTIC)
        return taxonomy

    def classify(self, error: BaseException) -> Classification:
        """Classify ``error`` using is_retryable() or the most specific type rule."""
        if isinstance(error, RetryableError):
            return Classification.TRANSIENT if error.is_retryable() else Classification.DETERMINISTIC

        # MRO order is most specific first
        for klass in type(error).__mro__:
            classification = self._rules.get(klass)
            if classification is not None:
                return classification

        return Classification.UNKNOWN

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        rules = ", ".join(f"{t.__name__}={c}" for t, c in self._rules.items())
        return f"ExceptionTaxonomy({rules})"


class FunctionTaxonomy:
    """Adapts a plain ``error -> Classification`` function to FailureTaxonomy."""

    def __init__(self, func: Callable[[BaseException], Classification]):
        self._func = func

    def classify(self, error: BaseException) -> Classification:
        return self._func(error)

    def __repr__(self) -> str:
        name = getattr(self._func, "__qualname__", repr(self._func))
        return f"FunctionTaxonomy({name})"


def as_taxonomy(
    taxonomy: FailureTaxonomy | Callable[[BaseException], Classification] | None,
) -> FailureTaxonomy:
    """
    Normalise a taxonomy argument.

    None → ExceptionTaxonomy.default(); objects with classify() are used
    as-is; other callables are wrapped in FunctionTaxonomy.

    Raises:
        TypeError: If ``taxonomy`` is neither a taxonomy nor callable
    """
    if taxonomy is None:
        return ExceptionTaxonomy.default()
    if isinstance(taxonomy, FailureTaxonomy):
        return taxonomy
    if callable(taxonomy):
        return FunctionTaxonomy(taxonomy)
    raise TypeError(f"Expected a FailureTaxonomy or callable, got {taxonomy!r}")


def classify(taxonomy: FailureTaxonomy, error: BaseException) -> Classification:
    """
    Classify ``error`` and check the taxonomy returned a Classification.

    Raises:
        TypeError: If the taxonomy returned anything else
    """
    classification = taxonomy.classify(error)
    if not isinstance(classification, Classification):
        raise TypeError(
            f"{taxonomy!r} returned {classification!r} for {type(error).__name__}; "
            f"expected a Classification"
        )
    return classification


def _check_rule(exc_type: object, classification: object) -> None:
    if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
        raise TypeError(f"Taxonomy keys must be exception types, got {exc_type!r}")
    if not isinstance(classification, Classification):
        raise TypeError(f"Taxonomy values must be Classification, got {classification!r}")
