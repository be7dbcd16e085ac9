"""
Deadline - absolute expiry bounding one poll loop.

Uses time.monotonic() so the deadline is immune to wall-clock
adjustments (NTP, DST). A Deadline is created at the start of a wait,
consulted on every poll, and discarded when the wait resolves.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

__all__ = ["Deadline"]


@dataclass(frozen=True)
class Deadline:
    """
    Absolute point in (monotonic) time plus an immutable polling interval.

    The deadline is fixed at creation and never extended.

    Attributes:
        started_at: Monotonic time the wait began
        expires_at: Monotonic time the wait must end
        poll_interval: Seconds between predicate evaluations

    Example:
        deadline = Deadline.after(timeout=2.0, poll_interval=0.1)
        while not deadline.expired():
            ...
            await asyncio.sleep(deadline.next_sleep())
    """

    started_at: float
    expires_at: float
    poll_interval: float

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.expires_at < self.started_at:
            raise ValueError("expires_at must not precede started_at")

    @classmethod
    def after(cls, timeout: float, poll_interval: float) -> Deadline:
        """
        Create a deadline expiring ``timeout`` seconds from now.

        Args:
            timeout: Seconds until expiry (must be > 0)
            poll_interval: Seconds between polls (must be > 0)

        Raises:
            ValueError: If timeout or poll_interval is not positive
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        now = time.monotonic()
        return cls(started_at=now, expires_at=now + timeout, poll_interval=poll_interval)

    @property
    def timeout(self) -> float:
        """Total duration of the deadline in seconds."""
        return self.expires_at - self.started_at

    def elapsed(self) -> float:
        """Seconds since the deadline was created."""
        return time.monotonic() - self.started_at

    def remaining(self) -> float:
        """Seconds until expiry, never negative."""
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        """True once the expiry time has been reached."""
        return time.monotonic() >= self.expires_at

    def next_sleep(self) -> float:
        """Seconds to sleep before the next poll; never past the deadline."""
        return min(self.poll_interval, self.remaining())
