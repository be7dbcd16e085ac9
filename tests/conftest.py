"""
Pytest configuration and fixtures for pypatience tests.

Provides reusable fixtures for sinks, policies, scripted operations and
hypothesis strategies.
"""

from collections.abc import AsyncGenerator

import pytest
from hypothesis import strategies as st

from pypatience.models import Classification, FixedBackoff, RetryPolicy
from pypatience.sinks import InMemoryFlakinessSink
from pypatience.sinks.sqlite import SqliteFlakinessLog


@pytest.fixture
async def memory_sink() -> AsyncGenerator[InMemoryFlakinessSink, None]:
    """In-memory sink fixture with automatic cleanup."""
    sink = InMemoryFlakinessSink()
    yield sink
    await sink.reset()


@pytest.fixture
async def sqlite_ledger() -> AsyncGenerator[SqliteFlakinessLog, None]:
    """Async SQLite in-memory ledger fixture with automatic cleanup."""
    ledger = SqliteFlakinessLog(":memory:")
    await ledger.connect()
    yield ledger
    await ledger.close()


@pytest.fixture
def fast_policy():
    """Factory for policies with no backoff delay."""

    def make(max_attempts: int = 3, retryable=(Classification.TRANSIENT,)) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=max_attempts,
            backoff=FixedBackoff(delay_ms=0),
            retryable=frozenset(retryable),
        )

    return make


class ScriptedOperation:
    """Operation that raises from a script of errors, then returns a value.

    Counts every invocation so tests can prove how many times the engine
    executed it.
    """

    def __init__(self, errors=(), value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= len(self.errors):
            raise self.errors[self.calls - 1]
        return self.value


class AsyncScriptedOperation(ScriptedOperation):
    """Coroutine flavour of ScriptedOperation."""

    async def __call__(self):
        return super().__call__()


class AlwaysFails:
    """Operation that raises a fresh error on every call."""

    def __init__(self, factory):
        self.factory = factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        raise self.factory(self.calls)


# Hypothesis strategies for property-based testing


@st.composite
def exponential_params(draw):
    """Strategy for valid ExponentialBackoff arguments."""
    initial = draw(st.integers(min_value=0, max_value=10_000))
    multiplier = draw(st.floats(min_value=1.0, max_value=5.0, allow_nan=False))
    cap = draw(st.integers(min_value=initial, max_value=120_000))
    return initial, multiplier, cap
