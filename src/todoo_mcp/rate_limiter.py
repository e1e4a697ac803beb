"""
Token bucket rate limiter for outbound store requests.

The store client acquires one token per HTTP attempt, so retries are
throttled the same way as first attempts.
"""

import asyncio
import time


class InvalidRPMError(ValueError):
    """RPM must be positive."""


class InvalidBurstError(ValueError):
    """Burst must be positive."""


class TokenBucketLimiter:
    """
    Async token bucket.

    The bucket starts full (``burst`` tokens) and refills continuously at
    ``rpm / 60`` tokens per second, never above ``burst``.

    Args:
        rpm: Requests per minute (must be positive)
        burst: Maximum burst capacity (must be positive)

    Raises:
        InvalidRPMError: If rpm is not positive
        InvalidBurstError: If burst is not positive
    """

    def __init__(self, rpm: int, burst: int) -> None:
        if rpm <= 0:
            raise InvalidRPMError
        if burst <= 0:
            raise InvalidBurstError

        self._rpm = rpm
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()
        self._refill_rate = rpm / 60.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Take one token, sleeping until one is available."""
        async with self._lock:
            while not self.try_acquire():
                await asyncio.sleep(1.0 / self._refill_rate)

    def try_acquire(self) -> bool:
        """
        Take one token if available.

        Returns:
            True if a token was taken, False if the bucket is empty
        """
        self._refill_tokens()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self._burst, self._tokens + elapsed * self._refill_rate)
            self._last_refill = now

    @property
    def current_tokens(self) -> float:
        """Current token count, refilled up to now."""
        self._refill_tokens()
        return self._tokens

    @property
    def rpm(self) -> int:
        """Configured requests per minute."""
        return self._rpm

    @property
    def burst(self) -> int:
        """Configured burst capacity."""
        return self._burst

    def __repr__(self) -> str:
        return (
            f"TokenBucketLimiter(rpm={self._rpm}, burst={self._burst}, tokens={self._tokens:.2f})"
        )
