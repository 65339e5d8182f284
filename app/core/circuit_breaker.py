"""
Circuit breaker for calls into collaborator services.

State lives in Django's cache backend (Redis in deployment) so every
worker process sees the same circuit.

States:
    - CLOSED: Normal operation, all calls pass through
    - OPEN: Dependency is failing, calls are refused without being made
    - HALF_OPEN: Recovery probe, a limited number of calls pass through

An open circuit refuses the call by raising CircuitOpenError. Callers
decide what a refusal means. For authorization checks it must mean
"deny": a breaker never turns a failing dependency into an implicit
"allow".

Usage:
    from core.circuit_breaker import CircuitBreaker

    follow_circuit = CircuitBreaker(
        name="follow-oracle",
        failure_threshold=5,
        recovery_timeout=60,
    )

    with follow_circuit.call():
        answer = oracle.is_following(a, b)

Design Notes:
    - Cache outages are absorbed by django-redis (IGNORE_EXCEPTIONS), in
      which case reads return defaults and the circuit reads as closed
    - Only exceptions raised inside call() count as failures; a normal
      return, whatever its value, is a success
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from django.core.cache import cache

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from collections.abc import Generator

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Configuration for a circuit breaker instance."""

    failure_threshold: int = 5
    """Number of consecutive failures before opening circuit."""

    recovery_timeout: int = 60
    """Seconds to wait before attempting recovery (half-open state)."""

    half_open_max_calls: int = 1
    """Number of probe calls allowed in half-open state."""

    cache_ttl: int = 3600
    """TTL for cache keys in seconds (should exceed recovery_timeout)."""


class CircuitOpenError(ExternalServiceError):
    """
    Raised when attempting to call through an open circuit.

    Signals that the dependency is considered unavailable, not that an
    actual call failed.
    """

    default_error_code: str = "CIRCUIT_OPEN"


class CircuitBreaker:
    """
    Distributed circuit breaker using the Django cache backend.

    Attributes:
        name: Unique identifier for this circuit breaker
        config: Circuit breaker configuration

    Example:
        cb = CircuitBreaker("follow-oracle", failure_threshold=3)

        with cb.call():
            result = oracle.is_following(a, b)  # Raises if circuit is open
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        half_open_max_calls: int = 1,
    ):
        self.name = name
        self.config = CircuitBreakerConfig(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            half_open_max_calls=half_open_max_calls,
        )

        self._state_key = f"circuit:{name}:state"
        self._failures_key = f"circuit:{name}:failures"
        self._opened_at_key = f"circuit:{name}:opened_at"
        self._half_open_calls_key = f"circuit:{name}:half_open_calls"

    @property
    def state(self) -> CircuitState:
        """Current circuit state as stored in the cache."""
        try:
            return CircuitState(cache.get(self._state_key, CircuitState.CLOSED.value))
        except ValueError:
            return CircuitState.CLOSED

    def is_available(self) -> bool:
        """
        Check if the circuit allows a call through.

        Moves an open circuit to half-open once the recovery timeout has
        elapsed, and counts half-open probes against the probe budget.
        """
        state = self.state

        if state == CircuitState.CLOSED:
            return True

        if state == CircuitState.OPEN:
            opened_at = cache.get(self._opened_at_key)
            if opened_at is None or (
                time.time() - opened_at < self.config.recovery_timeout
            ):
                return False
            self._set_state(CircuitState.HALF_OPEN)
            cache.set(self._half_open_calls_key, 0, timeout=self.config.cache_ttl)
            logger.info(
                "Circuit breaker transitioning to half-open",
                extra={"circuit": self.name},
            )

        probes = cache.get(self._half_open_calls_key, 0)
        if probes >= self.config.half_open_max_calls:
            return False
        cache.set(self._half_open_calls_key, probes + 1, timeout=self.config.cache_ttl)
        return True

    def record_success(self) -> None:
        """Record a successful call. Closes a half-open circuit."""
        if self.state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.CLOSED)
            logger.info(
                "Circuit breaker closed after successful recovery",
                extra={"circuit": self.name},
            )
        cache.set(self._failures_key, 0, timeout=self.config.cache_ttl)

    def record_failure(self) -> None:
        """
        Record a failed call.

        A failed half-open probe reopens the circuit immediately; otherwise
        the circuit opens once consecutive failures reach the threshold.
        """
        if self.state == CircuitState.HALF_OPEN:
            self._open()
            logger.warning(
                "Circuit breaker reopened after failed recovery attempt",
                extra={"circuit": self.name},
            )
            return

        failures = cache.get(self._failures_key, 0) + 1
        cache.set(self._failures_key, failures, timeout=self.config.cache_ttl)

        if failures >= self.config.failure_threshold:
            self._open()
            logger.warning(
                f"Circuit breaker opened after {failures} failures",
                extra={
                    "circuit": self.name,
                    "failure_count": failures,
                    "threshold": self.config.failure_threshold,
                },
            )

    @contextmanager
    def call(self) -> Generator[None, None, None]:
        """
        Context manager for automatic success/failure recording.

        Raises:
            CircuitOpenError: If the circuit refuses the call
        """
        if not self.is_available():
            raise CircuitOpenError(
                f"Circuit '{self.name}' is open",
                details={"circuit": self.name},
            )

        try:
            yield
        except Exception:
            self.record_failure()
            raise
        self.record_success()

    def reset(self) -> None:
        """Manually reset the circuit breaker to closed state."""
        self._set_state(CircuitState.CLOSED)
        cache.delete_many(
            [self._failures_key, self._opened_at_key, self._half_open_calls_key]
        )
        logger.info("Circuit breaker manually reset", extra={"circuit": self.name})

    def get_status(self) -> dict:
        """Get current circuit breaker status for monitoring."""
        status = {
            "name": self.name,
            "state": self.state.value,
            "failure_count": cache.get(self._failures_key, 0),
            "failure_threshold": self.config.failure_threshold,
        }
        opened_at = cache.get(self._opened_at_key)
        if opened_at and self.state == CircuitState.OPEN:
            elapsed = time.time() - opened_at
            status["recovery_in_seconds"] = max(
                0, int(self.config.recovery_timeout - elapsed)
            )
        return status

    # =========================================================================
    # Private cache operations
    # =========================================================================

    def _set_state(self, state: CircuitState) -> None:
        cache.set(self._state_key, state.value, timeout=self.config.cache_ttl)

    def _open(self) -> None:
        self._set_state(CircuitState.OPEN)
        cache.set(self._opened_at_key, time.time(), timeout=self.config.cache_ttl)

    def __repr__(self) -> str:
        return f"CircuitBreaker(name={self.name!r}, state={self.state.value})"
