"""
Tests for the cache-backed RateLimiter.
"""

from __future__ import annotations

import pytest
from django.core.cache import cache

from core.exceptions import RateLimitError
from core.rate_limit import RateLimiter


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


class TestRateLimiter:
    """
    Verifies:
    - Hits up to the limit are allowed
    - The first hit over the limit raises RateLimitError
    - Identifiers and keys are counted independently
    """

    def test_allows_hits_up_to_limit(self):
        limiter = RateLimiter(key="typing", limit=3, period=60)

        assert [limiter.hit("user:1") for _ in range(3)] == [1, 2, 3]

    def test_raises_when_limit_exceeded(self):
        limiter = RateLimiter(key="message", limit=2, period=60)
        limiter.hit("user:1")
        limiter.hit("user:1")

        with pytest.raises(RateLimitError) as exc_info:
            limiter.hit("user:1")

        assert exc_info.value.error_code == "RATE_LIMIT_EXCEEDED"
        assert exc_info.value.details["retry_after"] == 60

    def test_identifiers_are_independent(self):
        limiter = RateLimiter(key="message", limit=1, period=60)
        limiter.hit("user:1")

        assert limiter.hit("user:2") == 1

    def test_reset_clears_counter(self):
        limiter = RateLimiter(key="message", limit=1, period=60)
        limiter.hit("user:1")

        limiter.reset("user:1")

        assert limiter.hit("user:1") == 1
