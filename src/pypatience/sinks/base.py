"""
FlakinessSink - abstract destination for flakiness signals.

Design Pattern: Adapter Pattern
FlakinessSink defines the target interface; logging, in-memory and
SQLite destinations adapt to it.

Design Principle: Dependency Inversion (SOLID)
RetryClassifier depends on this abstraction, not on a concrete sink.
Tests substitute InMemoryFlakinessSink without changing client code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pypatience.models import FlakinessSignal

logger = logging.getLogger(__name__)

__all__ = ["FlakinessSink", "CompositeFlakinessSink"]


class FlakinessSink(ABC):
    """
    Receives a FlakinessSignal every time an attempt passes only after retry.

    Implementations must not drop signals silently: a sink that cannot
    record a signal raises (SinkError for persistence failures).
    """

    @abstractmethod
    async def emit(self, signal: FlakinessSignal) -> None:
        """Record one flakiness signal."""
        ...

    async def close(self) -> None:
        """Release resources held by the sink. Default: nothing to release."""
        return None


class CompositeFlakinessSink(FlakinessSink):
    """
    Fan-out to several sinks.

    Every sink receives every signal, even if an earlier sink raised.
    The first error is re-raised after all sinks have been tried.

    Example:
        sink = CompositeFlakinessSink(LoggingFlakinessSink(), ledger)
    """

    def __init__(self, *sinks: FlakinessSink):
        self._sinks: tuple[FlakinessSink, ...] = sinks

    @property
    def sinks(self) -> tuple[FlakinessSink, ...]:
        return self._sinks

    async def emit(self, signal: FlakinessSignal) -> None:
        first_error: Exception | None = None
        for sink in self._sinks:
            try:
                await sink.emit(signal)
            except Exception as e:
                logger.error(f"Sink {sink!r} failed to record signal for {signal.label}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    async def close(self) -> None:
        for sink in self._sinks:
            await sink.close()

    def __repr__(self) -> str:
        return f"CompositeFlakinessSink({', '.join(repr(s) for s in self._sinks)})"
