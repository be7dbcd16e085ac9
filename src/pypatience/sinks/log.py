"""Logging-backed flakiness sink (the default)."""

from __future__ import annotations

import logging

from pypatience.models import FlakinessSignal
from pypatience.sinks.base import FlakinessSink

__all__ = ["LoggingFlakinessSink"]


class LoggingFlakinessSink(FlakinessSink):
    """
    Writes one log record per signal, plus one per preceding failure at DEBUG.

    Usage:
        sink = LoggingFlakinessSink(logging.getLogger("tests.flaky"))
        classifier = RetryClassifier().with_sink(sink)
    """

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.WARNING):
        """
        Args:
            logger: Destination logger (defaults to this module's logger)
            level: Level of the summary record
        """
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._level = level

    async def emit(self, signal: FlakinessSignal) -> None:
        self._logger.log(
            self._level,
            f"Flaky: {signal.label} passed on attempt {signal.attempts_used} "
            f"after {len(signal.failure_history)} failure(s)",
        )
        for record in signal.failure_history:
            self._logger.debug(f"Flaky {signal.label}: {record.summary()}")

    def __repr__(self) -> str:
        return f"LoggingFlakinessSink(logger={self._logger.name!r}, level={logging.getLevelName(self._level)})"
