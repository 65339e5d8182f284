"""
Fixed-window rate limiting backed by the Django cache.

Counters live in Redis in deployment, so limits hold across workers.
Used by the WebSocket consumer, where DRF throttles do not apply.

Usage:
    from core.rate_limit import RateLimiter

    message_limiter = RateLimiter(key="chat_message", limit=10, period=60)

    message_limiter.hit(f"user:{user.id}")  # Raises RateLimitError when exceeded
"""

from __future__ import annotations

import logging

from django.core.cache import cache

from core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Allow at most ``limit`` hits per ``period`` seconds for one identifier.

    Attributes:
        key: Unique key prefix for this limit (e.g., "chat_message")
        limit: Maximum number of hits per window
        period: Window length in seconds
    """

    def __init__(self, key: str, limit: int, period: int):
        self.key = key
        self.limit = limit
        self.period = period

    def _cache_key(self, identifier: str) -> str:
        return f"rate_limit:{self.key}:{identifier}"

    def hit(self, identifier: str) -> int:
        """
        Count one hit for ``identifier``.

        Returns:
            The hit count inside the current window

        Raises:
            RateLimitError: If the hit exceeds the limit
        """
        cache_key = self._cache_key(identifier)

        # add() only sets the key when absent, so the window starts on the first hit
        if cache.add(cache_key, 1, timeout=self.period):
            current = 1
        else:
            try:
                current = cache.incr(cache_key)
            except ValueError:
                # Window expired between add() and incr()
                cache.set(cache_key, 1, timeout=self.period)
                current = 1

        if current > self.limit:
            logger.warning(f"Rate limit exceeded for {identifier}: {self.key}")
            raise RateLimitError(
                "Rate limit exceeded. Try again later.",
                details={"retry_after": self.period, "limit": self.limit},
            )
        return current

    def reset(self, identifier: str) -> None:
        """Clear the counter for ``identifier``."""
        cache.delete(self._cache_key(identifier))
