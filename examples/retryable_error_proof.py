"""
Retry Classification - Proof of Concept

This example demonstrates:
- Concrete evidence that classification controls retry behavior
- Differential behavior between transient and deterministic failures
- Execution counters proving the classifier respects is_retryable()
- A flakiness signal for the scenario that passed only after retry

## Scenario
Two checks run side by side on one RetryClassifier. Scenario A raises a
retryable error (ApiTimeout, is_retryable() = True) twice before
succeeding, so it executes 3 times and emits a flakiness signal.
Scenario B raises a non-retryable error (ItemNotFound, is_retryable() =
False), so it executes exactly once and is reported as Exhausted.

## Key Takeaways
- Transient failures (STEP_A_EXECUTIONS = 3) are retried automatically
- Deterministic failures (STEP_B_EXECUTIONS = 1) fail immediately
- Passing after retry is surfaced, never hidden

## Run with
```bash
PYTHONPATH=src python examples/retryable_error_proof.py
```
"""

import asyncio
import logging

from pypatience import (
    Attempt,
    Exhausted,
    FixedBackoff,
    InMemoryFlakinessSink,
    RetryableError,
    RetryClassifier,
    RetryPolicy,
    Success,
)

# Global counters - this is our EVIDENCE
STEP_A_EXECUTIONS = 0
STEP_B_EXECUTIONS = 0


class InventoryError(RetryableError):
    """Base class for inventory errors."""

    pass


class ApiTimeout(InventoryError):
    """TRANSIENT error - network timeout, should retry."""

    def __str__(self):
        return "API timeout - transient network error"

    def is_retryable(self) -> bool:
        return True


class ItemNotFound(InventoryError):
    """PERMANENT error - item doesn't exist, no point retrying."""

    def __init__(self, item: str):
        super().__init__(item)
        self.item = item

    def __str__(self):
        return f"Item '{self.item}' not found in catalog"

    def is_retryable(self) -> bool:
        return False


async def reserve_inventory() -> str:
    """Fails the first 2 times with a retryable error."""
    global STEP_A_EXECUTIONS
    STEP_A_EXECUTIONS += 1
    print(f"  [A] Checking inventory (execution #{STEP_A_EXECUTIONS})")

    if STEP_A_EXECUTIONS < 3:
        raise ApiTimeout()
    return "Inventory reserved for ORD-A-001"


async def lookup_item() -> str:
    """Always fails with a non-retryable error."""
    global STEP_B_EXECUTIONS
    STEP_B_EXECUTIONS += 1
    print(f"  [B] Looking up item (execution #{STEP_B_EXECUTIONS})")
    raise ItemNotFound("INVALID-SKU-999")


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    sink = InMemoryFlakinessSink()
    classifier = RetryClassifier(sink=sink)
    policy = RetryPolicy(max_attempts=3, backoff=FixedBackoff(delay_ms=100))

    print("=" * 70)
    print("RETRY CLASSIFICATION PROOF")
    print("=" * 70)

    result_a, result_b = await asyncio.gather(
        classifier.execute(Attempt(operation=reserve_inventory, name="reserve-inventory"), policy),
        classifier.execute(Attempt(operation=lookup_item, name="lookup-item"), policy),
    )

    print("\n" + "=" * 70)
    print("PROOF - EXECUTION COUNTERS")
    print("=" * 70)
    print()
    print("Scenario A (ApiTimeout - retryable):")
    print(f"  STEP_A_EXECUTIONS = {STEP_A_EXECUTIONS}")
    print("  Expected: 3 (initial attempt + 2 retries)")
    print(f"  Outcome: {result_a}")
    print()
    print("Scenario B (ItemNotFound - non-retryable):")
    print(f"  STEP_B_EXECUTIONS = {STEP_B_EXECUTIONS}")
    print("  Expected: 1 (no retries)")
    print(f"  Outcome: {result_b}")
    print()
    print(f"Flakiness signals recorded: {len(sink)}")
    for signal in sink.signals:
        print(f"  {signal.describe()}")

    assert isinstance(result_a, Success) and STEP_A_EXECUTIONS == 3
    assert isinstance(result_b, Exhausted) and STEP_B_EXECUTIONS == 1
    assert len(sink) == 1

    print()
    print("=" * 70)
    print("PROOF CONFIRMED [PASS]")
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(main())
