"""
Condition polling with a hard deadline.

ConditionPoller repeatedly evaluates a predicate until it returns a
truthy value or a deadline elapses, whichever comes first.

Timeline of one wait:
    evaluate → satisfied? return immediately
             → not yet? sleep min(poll_interval, remaining) → evaluate ...
             → deadline reached? return TimedOut(last_observed)

From Dave Cheney's Practical Go:
"Leave concurrency to the caller" - wait_for is a coroutine, the caller
decides whether to await it directly or run many concurrently. All
state lives in the call's stack frame, so concurrent waits never
interfere.
"""

import inspect
import logging
from typing import Any

from pypatience.models import Deadline, NotReadyError, Predicate
from pypatience.poller.cancellation import CancellationToken, sleep_or_cancel
from pypatience.poller.outcome import (
    Cancelled,
    ConditionResult,
    Errored,
    Satisfied,
    TimedOut,
)

logger = logging.getLogger(__name__)

__all__ = ["ConditionPoller", "wait_for", "call_maybe_async", "DEFAULT_IGNORED_EXCEPTIONS"]

DEFAULT_IGNORED_EXCEPTIONS: tuple[type[BaseException], ...] = (NotReadyError,)


async def call_maybe_async(func: Any) -> Any:
    """Call a zero-argument callable, awaiting the result if it is awaitable."""
    result = func()
    if inspect.isawaitable(result):
        result = await result
    return result


async def wait_for(
    predicate: Predicate,
    timeout: float,
    poll_interval: float,
    *,
    ignored_exceptions: tuple[type[BaseException], ...] = DEFAULT_IGNORED_EXCEPTIONS,
    cancel_token: CancellationToken | None = None,
) -> ConditionResult:
    """
    Wait until ``predicate`` returns a truthy value or ``timeout`` elapses.

    The first evaluation happens immediately; a predicate that already
    holds returns without any sleep.

    Args:
        predicate: Side-effect-free check, sync or async
        timeout: Hard ceiling on the wait in seconds (> 0)
        poll_interval: Seconds between evaluations (> 0)
        ignored_exceptions: Exceptions meaning "not yet"; polling continues
        cancel_token: Optional token checked at every poll boundary

    Returns:
        Satisfied(value) | TimedOut(last_observed) | Errored(cause) | Cancelled

    Raises:
        ValueError: If timeout or poll_interval is not positive

    Example:
        result = await wait_for(lambda: queue.qsize() > 0, timeout=2.0, poll_interval=0.05)
        if isinstance(result, Satisfied):
            item = queue.get_nowait()
    """
    deadline = Deadline.after(timeout, poll_interval)
    last_observed: Any = None
    polls = 0

    while True:
        if cancel_token is not None and cancel_token.is_cancelled:
            return Cancelled(last_observed=last_observed, elapsed=deadline.elapsed(), polls=polls)

        polls += 1
        try:
            value = await call_maybe_async(predicate)
        except ignored_exceptions as e:
            # Recognised "not yet" signal - keep polling
            last_observed = e
        except Exception as e:
            logger.debug(f"Predicate raised {type(e).__name__} on poll {polls}: {e}")
            return Errored(cause=e, elapsed=deadline.elapsed(), polls=polls)
        else:
            if value:
                return Satisfied(value=value, elapsed=deadline.elapsed(), polls=polls)
            last_observed = value

        if deadline.expired():
            logger.debug(
                f"Condition not satisfied after {polls} polls in {deadline.timeout:.3f}s "
                f"(last observed: {last_observed!r})"
            )
            return TimedOut(
                last_observed=last_observed,
                timeout=deadline.timeout,
                elapsed=deadline.elapsed(),
                polls=polls,
            )

        if await sleep_or_cancel(deadline.next_sleep(), cancel_token):
            return Cancelled(last_observed=last_observed, elapsed=deadline.elapsed(), polls=polls)


class ConditionPoller:
    """
    Reusable wait configuration.

    Design Pattern: Builder
    with_timeout(), with_poll_interval() and ignoring() configure the
    poller fluently. The poller itself holds configuration only; each
    wait_for() call creates its own Deadline.

    Usage:
        poller = ConditionPoller() \\
            .with_timeout(5.0) \\
            .with_poll_interval(0.1) \\
            .ignoring(LookupError)

        result = await poller.wait_for(lambda: page.find("#checkout"))
    """

    def __init__(
        self,
        timeout: float = 10.0,
        poll_interval: float = 0.5,
        ignored_exceptions: tuple[type[BaseException], ...] = DEFAULT_IGNORED_EXCEPTIONS,
    ):
        """Initialize poller configuration.

        Args:
            timeout: Default hard ceiling for waits in seconds
            poll_interval: Default seconds between predicate evaluations
            ignored_exceptions: Exceptions treated as "not yet satisfied"

        Raises:
            ValueError: If timeout or poll_interval is not positive
        """
        _check_positive("timeout", timeout)
        _check_positive("poll_interval", poll_interval)
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._ignored_exceptions = tuple(ignored_exceptions)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def ignored_exceptions(self) -> tuple[type[BaseException], ...]:
        return self._ignored_exceptions

    def with_timeout(self, timeout: float) -> "ConditionPoller":
        """Set the wait timeout in seconds (builder pattern)."""
        _check_positive("timeout", timeout)
        self._timeout = timeout
        return self

    def with_poll_interval(self, interval: float) -> "ConditionPoller":
        """Set the polling interval in seconds (builder pattern)."""
        _check_positive("poll_interval", interval)
        self._poll_interval = interval
        return self

    def ignoring(self, *exc_types: type[BaseException]) -> "ConditionPoller":
        """Add exception types treated as "not yet satisfied" (builder pattern)."""
        for exc_type in exc_types:
            if exc_type not in self._ignored_exceptions:
                self._ignored_exceptions = (*self._ignored_exceptions, exc_type)
        return self

    async def wait_for(
        self,
        predicate: Predicate,
        cancel_token: CancellationToken | None = None,
    ) -> ConditionResult:
        """Wait for ``predicate`` using this poller's configuration."""
        return await wait_for(
            predicate,
            self._timeout,
            self._poll_interval,
            ignored_exceptions=self._ignored_exceptions,
            cancel_token=cancel_token,
        )

    def __repr__(self) -> str:
        ignored = ", ".join(t.__name__ for t in self._ignored_exceptions)
        return (
            f"ConditionPoller(timeout={self._timeout}, poll_interval={self._poll_interval}, "
            f"ignored_exceptions=({ignored}))"
        )


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
