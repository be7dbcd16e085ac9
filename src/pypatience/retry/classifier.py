"""
RetryClassifier - bounded, classification-driven retries.

Executes an Attempt up to policy.max_attempts times. Every failure is
classified exactly once by the FailureTaxonomy and appended to the
failure history; the classification decides whether another execution
is permitted.

State machine (per execute() call):
    Pending → Running → Succeeded
                      → Failed-Retryable → (backoff) → Running
                      → Failed-Terminal → Exhausted

Retry counters live in execute()'s loop, never on the instance, so one
classifier can serve any number of concurrent sequences (parallel test
workers).
"""

import logging
from collections.abc import Callable

from pypatience.models import (
    Attempt,
    Classification,
    FailurePhase,
    FailureRecord,
    FlakinessSignal,
    RetryPolicy,
)
from pypatience.poller import (
    CancellationToken,
    Cancelled,
    Errored,
    TimedOut,
    call_maybe_async,
    sleep_or_cancel,
    wait_for,
)
from pypatience.retry.outcome import AttemptCancelled, AttemptOutcome, Exhausted, Success
from pypatience.retry.taxonomy import FailureTaxonomy, as_taxonomy, classify
from pypatience.sinks import FlakinessSink, LoggingFlakinessSink

logger = logging.getLogger(__name__)

__all__ = ["RetryClassifier", "execute"]

TaxonomyLike = FailureTaxonomy | Callable[[BaseException], Classification]


class RetryClassifier:
    """
    Runs attempts under a RetryPolicy and reports flakiness.

    Design Patterns:
    - Template Method: execute() defines the fixed retry algorithm
    - Strategy: taxonomy and sink are interchangeable
    - Builder: with_taxonomy(), with_sink() for configuration

    Usage:
        classifier = RetryClassifier() \\
            .with_taxonomy(ExceptionTaxonomy.default().transient(StaleElementError)) \\
            .with_sink(InMemoryFlakinessSink())

        outcome = await classifier.execute(
            Attempt(operation=submit_order, precondition=button_enabled),
            RetryPolicy.STANDARD,
        )
    """

    def __init__(
        self,
        taxonomy: TaxonomyLike | None = None,
        sink: FlakinessSink | None = None,
    ):
        """Initialize classifier.

        All dependencies passed explicitly, no globals.

        Args:
            taxonomy: Default taxonomy (ExceptionTaxonomy.default() if None)
            sink: Destination for flakiness signals (LoggingFlakinessSink if None)
        """
        self._taxonomy = as_taxonomy(taxonomy)
        self._sink: FlakinessSink = sink if sink is not None else LoggingFlakinessSink()

    @property
    def taxonomy(self) -> FailureTaxonomy:
        return self._taxonomy

    @property
    def sink(self) -> FlakinessSink:
        return self._sink

    def with_taxonomy(self, taxonomy: TaxonomyLike) -> "RetryClassifier":
        """Set the default taxonomy (builder pattern).

        Returns:
            self for method chaining
        """
        self._taxonomy = as_taxonomy(taxonomy)
        return self

    def with_sink(self, sink: FlakinessSink) -> "RetryClassifier":
        """Set the flakiness sink (builder pattern).

        Returns:
            self for method chaining
        """
        self._sink = sink
        return self

    async def execute(
        self,
        attempt: Attempt,
        policy: RetryPolicy,
        taxonomy: TaxonomyLike | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AttemptOutcome:
        """
        Execute ``attempt`` under ``policy``.

        Args:
            attempt: The work to run (with optional precondition)
            policy: Retry bound, backoff and retryable classifications
            taxonomy: Overrides the classifier's default taxonomy for this call
            cancel_token: Optional token checked at every poll/retry boundary

        Returns:
            Success(value, attempts_used) | Exhausted(failure_history) | AttemptCancelled

        Raises:
            PredicateError: If the precondition raised an unrecognised exception
            TypeError: If the taxonomy returned something other than a Classification
        """
        active_taxonomy = as_taxonomy(taxonomy) if taxonomy is not None else self._taxonomy

        if policy.is_misconfigured:
            logger.warning(
                f"{attempt.label}: policy lists DETERMINISTIC as retryable; "
                f"deterministic failures will still not be retried"
            )

        history: list[FailureRecord] = []

        for attempt_number in range(1, policy.max_attempts + 1):
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.debug(f"{attempt.label}: cancelled before attempt {attempt_number}")
                return AttemptCancelled(failure_history=tuple(history))

            logger.debug(f"{attempt.label}: attempt {attempt_number}/{policy.max_attempts}")

            failure: BaseException | None = None
            phase = FailurePhase.OPERATION

            # Re-verify readiness before every execution, not just the first
            if attempt.precondition is not None:
                result = await wait_for(
                    attempt.precondition,
                    attempt.precondition_timeout,
                    attempt.precondition_poll_interval,
                    cancel_token=cancel_token,
                )
                if isinstance(result, Cancelled):
                    return AttemptCancelled(failure_history=tuple(history))
                if isinstance(result, Errored):
                    logger.error(
                        f"{attempt.label}: precondition raised {type(result.cause).__name__} "
                        f"on attempt {attempt_number}"
                    )
                    raise result.to_error(tuple(history)) from result.cause
                if isinstance(result, TimedOut):
                    failure = result.to_error()
                    phase = FailurePhase.PRECONDITION

            if failure is None:
                try:
                    value = await call_maybe_async(attempt.operation)
                except Exception as e:
                    failure = e
                else:
                    failure_history = tuple(history)
                    if attempt_number > 1:
                        await self._signal_flakiness(attempt, attempt_number, failure_history)
                    return Success(
                        value=value,
                        attempts_used=attempt_number,
                        failure_history=failure_history,
                    )

            # Classified exactly once, immediately after capture
            classification = classify(active_taxonomy, failure)
            record = FailureRecord(
                error=failure,
                classification=classification,
                attempt_number=attempt_number,
                phase=phase,
                attempt_id=attempt.id,
            )
            history.append(record)

            if not policy.allows_retry(classification):
                logger.debug(f"{attempt.label}: {record.summary()} is not retryable")
                return Exhausted(failure_history=tuple(history))

            delay_ms = policy.delay_for_attempt(attempt_number)
            if delay_ms is None:
                logger.debug(f"{attempt.label}: {record.summary()}; no attempts remaining")
                return Exhausted(failure_history=tuple(history))

            logger.info(
                f"{attempt.label}: {record.summary()}; retrying in {delay_ms}ms "
                f"(attempt {attempt_number + 1}/{policy.max_attempts})"
            )
            if await sleep_or_cancel(delay_ms / 1000.0, cancel_token):
                logger.debug(f"{attempt.label}: cancelled during backoff")
                return AttemptCancelled(failure_history=tuple(history))

        # max_attempts >= 1 and the last iteration always returns
        return Exhausted(failure_history=tuple(history))

    async def _signal_flakiness(
        self,
        attempt: Attempt,
        attempts_used: int,
        failure_history: tuple[FailureRecord, ...],
    ) -> None:
        """Emit a FlakinessSignal. Always logged here, then handed to the sink."""
        signal = FlakinessSignal(
            attempt_id=attempt.id,
            attempts_used=attempts_used,
            failure_history=failure_history,
            name=attempt.name,
        )
        logger.warning(signal.describe())

        try:
            await self._sink.emit(signal)
        except Exception:
            logger.exception(f"{attempt.label}: sink {self._sink!r} failed to record flakiness signal")

    def __repr__(self) -> str:
        return f"RetryClassifier(taxonomy={self._taxonomy!r}, sink={self._sink!r})"


async def execute(
    attempt: Attempt,
    policy: RetryPolicy,
    taxonomy: TaxonomyLike | None = None,
    *,
    sink: FlakinessSink | None = None,
    cancel_token: CancellationToken | None = None,
) -> AttemptOutcome:
    """
    Execute ``attempt`` with a classifier built for this call.

    Convenience wrapper around RetryClassifier(taxonomy, sink).execute().

    Example:
        outcome = await execute(Attempt(operation=fetch_report), RetryPolicy.with_max_attempts(3))
    """
    classifier = RetryClassifier(taxonomy=taxonomy, sink=sink)
    return await classifier.execute(attempt, policy, cancel_token=cancel_token)
