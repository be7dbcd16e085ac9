"""Destinations for flakiness signals.

Provides multiple sink implementations behind a common interface:
    - FlakinessSink: Abstract interface
    - LoggingFlakinessSink: Standard logging (default)
    - InMemoryFlakinessSink: Collects signals, for tests
    - SqliteFlakinessLog: Durable ledger grouping recurring failures
    - CompositeFlakinessSink: Fan-out to several sinks

Design: Adapter Pattern + Dependency Inversion (SOLID)
    RetryClassifier depends on FlakinessSink, not on a concrete sink.
"""

from pypatience.sinks.base import CompositeFlakinessSink, FlakinessSink
from pypatience.sinks.log import LoggingFlakinessSink
from pypatience.sinks.memory import InMemoryFlakinessSink


def __getattr__(name: str):
    """Lazy import the SQLite ledger so aiosqlite loads only when used."""
    if name in ("SqliteFlakinessLog", "RecordedSignal", "FingerprintCount"):
        from pypatience.sinks import sqlite

        return getattr(sqlite, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "FlakinessSink",
    "CompositeFlakinessSink",
    "LoggingFlakinessSink",
    "InMemoryFlakinessSink",
    "SqliteFlakinessLog",
    "RecordedSignal",
    "FingerprintCount",
]
