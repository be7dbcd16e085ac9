"""
Tests for ConditionPoller: fast path, deadline bounds, absorbed and
unexpected predicate errors, cancellation.

Timing assertions use real asyncio sleeps with small intervals and a
little slack on the upper bounds for scheduler jitter.
"""

import asyncio
import time

import pytest

from pypatience.models import ConditionTimeoutError, NotReadyError, PredicateError, WaitCancelledError
from pypatience.poller import (
    CancellationToken,
    Cancelled,
    ConditionPoller,
    Errored,
    Satisfied,
    TimedOut,
    is_satisfied,
    is_timed_out,
    wait_for,
)

# Slack for event-loop scheduling jitter
JITTER = 0.05


class Counter:
    """Predicate that counts evaluations and returns a fixed value."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


@pytest.mark.asyncio
async def test_fast_path_returns_without_sleeping():
    """An already-true predicate returns in well under one poll interval."""
    predicate = Counter("ready")

    start = time.monotonic()
    result = await wait_for(predicate, timeout=5.0, poll_interval=0.5)
    elapsed = time.monotonic() - start

    assert isinstance(result, Satisfied)
    assert result.value == "ready"
    assert result.polls == 1
    assert predicate.calls == 1
    assert elapsed < 0.5


@pytest.mark.asyncio
@pytest.mark.slow
async def test_timeout_bound():
    """Always-false predicate times out at >= T and < T + poll_interval."""
    predicate = Counter(False)

    start = time.monotonic()
    result = await wait_for(predicate, timeout=0.5, poll_interval=0.1)
    elapsed = time.monotonic() - start

    assert isinstance(result, TimedOut)
    assert result.last_observed is False
    assert result.timeout == pytest.approx(0.5)
    assert 0.5 <= elapsed < 0.6 + JITTER
    # Immediate check plus one per interval
    assert 5 <= predicate.calls <= 7


@pytest.mark.asyncio
@pytest.mark.slow
async def test_predicate_becomes_true_mid_wait():
    """Condition true after 450ms, polled every 200ms, resolves around 600ms."""
    start = time.monotonic()

    def ready_after_450ms():
        return time.monotonic() - start >= 0.45

    result = await wait_for(ready_after_450ms, timeout=1.0, poll_interval=0.2)
    elapsed = time.monotonic() - start

    assert isinstance(result, Satisfied)
    assert result.value is True
    assert 0.4 <= elapsed < 0.6 + 2 * JITTER
    assert result.polls in (3, 4)


@pytest.mark.asyncio
async def test_timeout_shorter_than_poll_interval_never_oversleeps():
    """With timeout < poll_interval the single sleep is capped at the timeout."""
    predicate = Counter(0)

    start = time.monotonic()
    result = await wait_for(predicate, timeout=0.1, poll_interval=1.0)
    elapsed = time.monotonic() - start

    assert isinstance(result, TimedOut)
    assert 0.1 <= elapsed < 0.1 + JITTER * 2
    assert predicate.calls in (2, 3)


@pytest.mark.asyncio
async def test_not_ready_errors_are_absorbed():
    """NotReadyError means "not yet", polling continues."""
    calls = 0

    def appears_on_third_poll():
        nonlocal calls
        calls += 1
        if calls < 3:
            raise NotReadyError("element not found")
        return "element"

    result = await wait_for(appears_on_third_poll, timeout=1.0, poll_interval=0.01)

    assert isinstance(result, Satisfied)
    assert result.value == "element"
    assert result.polls == 3


@pytest.mark.asyncio
async def test_last_absorbed_error_is_reported_on_timeout():
    def never_renders():
        raise NotReadyError("still loading")

    result = await wait_for(never_renders, timeout=0.05, poll_interval=0.01)

    assert isinstance(result, TimedOut)
    assert isinstance(result.last_observed, NotReadyError)
    assert "still loading" in str(result.last_observed)


@pytest.mark.asyncio
async def test_custom_ignored_exceptions():
    calls = 0

    def stale_then_ok():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise LookupError("stale")
        return True

    result = await wait_for(
        stale_then_ok,
        timeout=1.0,
        poll_interval=0.01,
        ignored_exceptions=(LookupError,),
    )
    assert isinstance(result, Satisfied)


@pytest.mark.asyncio
async def test_unrecognised_error_fails_fast():
    """An unexpected predicate error returns Errored without waiting for the timeout."""

    def broken():
        raise ZeroDivisionError("bug in predicate")

    start = time.monotonic()
    result = await wait_for(broken, timeout=5.0, poll_interval=1.0)
    elapsed = time.monotonic() - start

    assert isinstance(result, Errored)
    assert isinstance(result.cause, ZeroDivisionError)
    assert elapsed < 0.5


@pytest.mark.asyncio
async def test_async_predicates_are_awaited():
    calls = 0

    async def async_check():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0)
        return calls >= 2

    result = await wait_for(async_check, timeout=1.0, poll_interval=0.01)
    assert isinstance(result, Satisfied)
    assert calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "timeout, poll_interval",
    [(0, 0.1), (-1, 0.1), (1.0, 0), (1.0, -0.5)],
)
async def test_invalid_durations_rejected(timeout, poll_interval):
    with pytest.raises(ValueError):
        await wait_for(lambda: True, timeout=timeout, poll_interval=poll_interval)


@pytest.mark.asyncio
async def test_cancellation_wakes_sleeping_wait_promptly():
    token = CancellationToken()
    predicate = Counter(False)

    async def cancel_soon():
        await asyncio.sleep(0.05)
        token.cancel()

    start = time.monotonic()
    canceller = asyncio.create_task(cancel_soon())
    result = await wait_for(predicate, timeout=10.0, poll_interval=1.0, cancel_token=token)
    elapsed = time.monotonic() - start
    await canceller

    assert isinstance(result, Cancelled)
    assert result.last_observed is False
    assert elapsed < 0.5


@pytest.mark.asyncio
async def test_already_cancelled_token_skips_evaluation():
    token = CancellationToken()
    token.cancel()
    predicate = Counter(True)

    result = await wait_for(predicate, timeout=1.0, poll_interval=0.1, cancel_token=token)

    assert isinstance(result, Cancelled)
    assert predicate.calls == 0


@pytest.mark.asyncio
async def test_task_cancellation_propagates():
    task = asyncio.create_task(wait_for(lambda: False, timeout=10.0, poll_interval=0.05))
    await asyncio.sleep(0.02)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_unwrap_variants():
    satisfied = await wait_for(lambda: 42, timeout=1.0, poll_interval=0.1)
    assert satisfied.unwrap() == 42

    timed_out = await wait_for(lambda: None, timeout=0.02, poll_interval=0.01)
    with pytest.raises(ConditionTimeoutError):
        timed_out.unwrap()

    def broken():
        raise KeyError("oops")

    errored = await wait_for(broken, timeout=1.0, poll_interval=0.1)
    with pytest.raises(PredicateError) as exc_info:
        errored.unwrap()
    assert isinstance(exc_info.value.__cause__, KeyError)

    with pytest.raises(WaitCancelledError):
        Cancelled().unwrap()


@pytest.mark.asyncio
async def test_type_guards():
    assert is_satisfied(await wait_for(lambda: 1, timeout=1.0, poll_interval=0.1))
    assert is_timed_out(await wait_for(lambda: 0, timeout=0.02, poll_interval=0.01))


# =============================================================================
# ConditionPoller (builder)
# =============================================================================


@pytest.mark.asyncio
async def test_poller_builder_configuration():
    poller = ConditionPoller().with_timeout(0.05).with_poll_interval(0.01).ignoring(LookupError)

    assert poller.timeout == 0.05
    assert poller.poll_interval == 0.01
    assert LookupError in poller.ignored_exceptions
    assert NotReadyError in poller.ignored_exceptions

    def missing():
        raise LookupError("missing")

    result = await poller.wait_for(missing)
    assert isinstance(result, TimedOut)


def test_poller_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        ConditionPoller(timeout=0)
    with pytest.raises(ValueError):
        ConditionPoller().with_poll_interval(0)


def test_poller_ignoring_is_idempotent():
    poller = ConditionPoller().ignoring(LookupError).ignoring(LookupError)
    assert poller.ignored_exceptions.count(LookupError) == 1


@pytest.mark.asyncio
@pytest.mark.concurrency
async def test_concurrent_waits_are_independent():
    """Many waits share one poller without interfering."""
    poller = ConditionPoller(timeout=1.0, poll_interval=0.01)
    start = time.monotonic()

    def ready_after(delay):
        return lambda: (time.monotonic() - start >= delay) and delay

    delays = [0.02, 0.05, 0.08, 0.11]
    results = await asyncio.gather(*(poller.wait_for(ready_after(d)) for d in delays))

    assert all(isinstance(r, Satisfied) for r in results)
    assert [r.value for r in results] == delays
