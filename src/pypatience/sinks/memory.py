"""In-memory flakiness sink for tests.

Design Pattern: Adapter Pattern
InMemoryFlakinessSink adapts a plain list to the FlakinessSink interface.

Instance is immediately usable after __init__.
"""

from __future__ import annotations

import asyncio

from pypatience.models import FlakinessSignal
from pypatience.sinks.base import FlakinessSink

__all__ = ["InMemoryFlakinessSink"]


class InMemoryFlakinessSink(FlakinessSink):
    """Collects signals in emission order.

    Can be substituted for SqliteFlakinessLog without changing client code.

    Usage:
        sink = InMemoryFlakinessSink()
        await RetryClassifier(sink=sink).execute(attempt, policy)
        assert len(sink) == 1
    """

    def __init__(self):
        self._signals: list[FlakinessSignal] = []
        self._lock = asyncio.Lock()

    async def emit(self, signal: FlakinessSignal) -> None:
        async with self._lock:
            self._signals.append(signal)

    @property
    def signals(self) -> tuple[FlakinessSignal, ...]:
        """Snapshot of recorded signals, oldest first."""
        return tuple(self._signals)

    def for_attempt(self, attempt_id: str) -> tuple[FlakinessSignal, ...]:
        """Signals emitted for one attempt id."""
        return tuple(s for s in self._signals if s.attempt_id == attempt_id)

    async def reset(self) -> None:
        """Drop every recorded signal."""
        async with self._lock:
            self._signals.clear()

    def __len__(self) -> int:
        return len(self._signals)

    def __repr__(self) -> str:
        return f"InMemoryFlakinessSink(signals={len(self._signals)})"
