"""
Cooperative cancellation for waits and retry sequences.

From Dave Cheney's Practical Go:
"Never start a goroutine without knowing when it will stop" - every
suspension point in pypatience (poll sleep, retry backoff) can be woken
early by a CancellationToken.

Python Implementation:
- asyncio.Event instead of a context.Context done channel
- The token is owned by the caller and may be shared by many waits
"""

import asyncio

__all__ = ["CancellationToken", "sleep_or_cancel"]


class CancellationToken:
    """
    Caller-owned signal asking in-flight waits to stop.

    Setting the token wakes every sleeping waiter immediately; each
    checks the token at its next poll/retry boundary and returns a
    Cancelled-tagged result.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(wait_for(pred, 30.0, 0.5, cancel_token=token))
        ...
        token.cancel()
        result = await task  # Cancelled(...)
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    async def wait(self) -> None:
        """Suspend until cancel() is called."""
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


async def sleep_or_cancel(delay: float, token: CancellationToken | None = None) -> bool:
    """
    Sleep for ``delay`` seconds, waking early if the token is cancelled.

    Yields to the event loop even for a zero delay, so concurrent
    sequences are never starved.

    Args:
        delay: Seconds to sleep (negative values are treated as 0)
        token: Optional cancellation token

    Returns:
        True if the sleep was cut short by cancellation, False otherwise
    """
    delay = max(delay, 0.0)

    if token is None:
        await asyncio.sleep(delay)
        return False

    if token.is_cancelled:
        return True

    try:
        await asyncio.wait_for(token.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True
