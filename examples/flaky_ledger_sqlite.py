"""
Flakiness ledger with SQLite persistence.

Demonstrates:
- A precondition re-verified before every attempt (page readiness)
- A flaky click that only passes after retry
- SQLite ledger grouping recurring failures by fingerprint across runs

Run:
    PYTHONPATH=src python examples/flaky_ledger_sqlite.py
"""

import asyncio
import logging
import random
import time

from pypatience import (
    Attempt,
    ExceptionTaxonomy,
    FixedBackoff,
    RetryClassifier,
    RetryPolicy,
)
from pypatience.sinks import CompositeFlakinessSink, LoggingFlakinessSink, SqliteFlakinessLog


class StaleElementError(Exception):
    """The element was re-rendered between lookup and click."""

    pass


class FakePage:
    """A page that finishes loading after a short delay and sometimes re-renders."""

    def __init__(self, load_time: float, stale_rate: float):
        self.loaded_at = time.monotonic() + load_time
        self.stale_rate = stale_rate
        self.clicks = 0

    def is_loaded(self) -> bool:
        return time.monotonic() >= self.loaded_at

    def click_submit(self) -> str:
        self.clicks += 1
        if random.random() < self.stale_rate:
            raise StaleElementError("submit button re-rendered")
        return "submitted"


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    random.seed(7)

    ledger = SqliteFlakinessLog("data/flaky.db")
    await ledger.connect()

    try:
        classifier = RetryClassifier(
            taxonomy=ExceptionTaxonomy.default().transient(StaleElementError),
            sink=CompositeFlakinessSink(LoggingFlakinessSink(), ledger),
        )
        policy = RetryPolicy(max_attempts=5, backoff=FixedBackoff(delay_ms=50))

        for run in range(10):
            page = FakePage(load_time=0.1, stale_rate=0.5)
            outcome = await classifier.execute(
                Attempt(
                    operation=page.click_submit,
                    precondition=page.is_loaded,
                    precondition_timeout=2.0,
                    precondition_poll_interval=0.02,
                    name=f"submit-run-{run}",
                ),
                policy,
            )
            print(f"Run {run}: {outcome}")

        print()
        print(f"Flaky runs recorded: {await ledger.count()}")
        print("Most frequent failures preceding success:")
        for entry in await ledger.top_fingerprints(5):
            print(f"  {entry.occurrences:3d}x {entry.error_type}: {entry.message}")
    finally:
        await ledger.close()


if __name__ == "__main__":
    asyncio.run(main())
