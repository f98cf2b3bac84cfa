"""Transfer speed cap applied between upload chunks."""

from __future__ import annotations

import time
from typing import Callable

# Resumable upload chunks must be a multiple of 256 KiB.
CHUNK_GRANULARITY: int = 256 * 1024
DEFAULT_CHUNK_SIZE: int = 32 * CHUNK_GRANULARITY


def chunk_size_for(rate_limit: int | None) -> int:
    """Pick a chunk size that takes roughly one second at the given rate."""
    if not rate_limit:
        return DEFAULT_CHUNK_SIZE
    chunks = max(1, rate_limit // CHUNK_GRANULARITY)
    return min(chunks * CHUNK_GRANULARITY, DEFAULT_CHUNK_SIZE)


class Throttle:
    """Sleeps so that bytes sent since start never exceed rate_limit per second."""

    def __init__(
        self,
        rate_limit: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_limit <= 0:
            raise ValueError("rate_limit must be positive")
        self._rate_limit = rate_limit
        self._clock = clock
        self._sleep = sleep
        self._started = clock()

    def consumed(self, total_bytes: int) -> float:
        """Record total bytes sent so far; returns the time slept."""
        expected = total_bytes / self._rate_limit
        elapsed = self._clock() - self._started
        delay = expected - elapsed
        if delay > 0:
            self._sleep(delay)
            return delay
        return 0.0
