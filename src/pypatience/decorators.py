"""
Retry decorator.

@retrying wraps a function with RetryClassifier so call sites read like
ordinary calls: the wrapped function returns the value on success and
raises PolicyExhaustedError (chained from the last failure) when no
further attempts are permitted.

Design: the decorator generates the Attempt/execute boilerplate around
the user's function. Every call is its own Attempt with its own id, so
no retry state survives between calls.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from pypatience.models import Classification, Predicate, RetryPolicy, WaitCancelledError
from pypatience.models.attempt import Attempt
from pypatience.poller import CancellationToken
from pypatience.retry import AttemptCancelled, Exhausted, RetryClassifier
from pypatience.retry.taxonomy import FailureTaxonomy
from pypatience.sinks import FlakinessSink

F = TypeVar("F", bound=Callable[..., Any])


def retrying(
    func: F | None = None,
    *,
    policy: RetryPolicy | None = None,
    taxonomy: FailureTaxonomy | Callable[[BaseException], Classification] | None = None,
    sink: FlakinessSink | None = None,
    precondition: Predicate | None = None,
    precondition_timeout: float = 10.0,
    precondition_poll_interval: float = 0.5,
    name: str | None = None,
    cancel_token: CancellationToken | None = None,
) -> F:
    """
    Retry a sync or async function under a RetryPolicy.

    The wrapped function is always a coroutine function.

    Args:
        func: The function to decorate
        policy: Retry policy (RetryPolicy.STANDARD if None)
        taxonomy: Failure taxonomy (ExceptionTaxonomy.default() if None)
        sink: Flakiness sink (LoggingFlakinessSink if None)
        precondition: Predicate re-verified before every execution
        precondition_timeout: Seconds to wait for the precondition
        precondition_poll_interval: Seconds between precondition polls
        name: Label for logs and signals (defaults to the function's qualname)
        cancel_token: Token checked at every poll and retry boundary of every call

    Example:
        ```python
        @retrying
        async def fetch_order(order_id: str) -> dict:
            return await api.get(f"/orders/{order_id}")

        @retrying(policy=RetryPolicy.with_max_attempts(5), precondition=login_page_loaded)
        def submit_login(user: str) -> None:
            page.fill("#user", user)
            page.click("#submit")
        ```

    Raises (from the wrapped function):
        PolicyExhaustedError: All permitted attempts failed
        PredicateError: The precondition raised an unrecognised exception
        WaitCancelledError: cancel_token was cancelled before a call could succeed
    """
    retry_policy = policy if policy is not None else RetryPolicy.STANDARD

    def decorator(f: F) -> F:
        f._patience_retry_policy = retry_policy  # type: ignore

        label = name if name is not None else f.__qualname__
        classifier = RetryClassifier(taxonomy=taxonomy, sink=sink)

        @functools.wraps(f)
        async def async_wrapper(*args, **kwargs):
            attempt = Attempt(
                operation=functools.partial(f, *args, **kwargs),
                precondition=precondition,
                precondition_timeout=precondition_timeout,
                precondition_poll_interval=precondition_poll_interval,
                name=label,
            )
            outcome = await classifier.execute(attempt, retry_policy, cancel_token=cancel_token)

            if isinstance(outcome, Exhausted):
                outcome.raise_for_outcome()
            if isinstance(outcome, AttemptCancelled):
                raise WaitCancelledError(f"{label} was cancelled")
            return outcome.value

        async_wrapper._patience_retry_policy = retry_policy  # type: ignore
        return async_wrapper  # type: ignore

    # Support both @retrying and @retrying(...) syntax
    if func is not None:
        return decorator(func)
    else:
        return decorator
