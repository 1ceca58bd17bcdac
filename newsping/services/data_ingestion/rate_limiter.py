"""
Per-source request pacing for outbound fetches.

A collection run fans one source out to every topic and keyword; the
limiter spaces those calls so each source stays within its request budget.
"""

import asyncio
import time
from collections import defaultdict, deque
from typing import NamedTuple, Optional
import logging

logger = logging.getLogger(__name__)


class RateLimit(NamedTuple):
    requests: int
    period_seconds: float


class RateLimiter:
    """
    Sliding-window limiter keyed by source name.

    Callers for the same source queue on a per-source lock, so a burst is
    released in arrival order once the window has room.
    """

    # Naver's search API allows 10 calls per second per application
    DEFAULT_LIMITS = {
        "Naver": RateLimit(10, 1.0),
    }
    FALLBACK_LIMIT = RateLimit(30, 60.0)

    def __init__(self, limits: Optional[dict[str, RateLimit]] = None):
        self._limits = {**self.DEFAULT_LIMITS, **(limits or {})}
        self._sent: dict[str, deque[float]] = defaultdict(deque)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def limit_for(self, source: str) -> RateLimit:
        return self._limits.get(source, self.FALLBACK_LIMIT)

    async def wait_if_needed(self, source: str) -> None:
        """Block until ``source`` may send another request, then record it."""
        limit = self.limit_for(source)

        async with self._locks[source]:
            sent = self._sent[source]
            while True:
                now = time.monotonic()
                while sent and now - sent[0] >= limit.period_seconds:
                    sent.popleft()

                if len(sent) < limit.requests:
                    sent.append(now)
                    return

                delay = limit.period_seconds - (now - sent[0])
                logger.debug(f"Rate limited for {source}, waiting {delay:.2f}s")
                await asyncio.sleep(delay)


_global_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Shared limiter for fetchers created without one."""
    global _global_limiter
    if _global_limiter is None:
        _global_limiter = RateLimiter()
    return _global_limiter
