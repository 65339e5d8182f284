"""
Tests for the CircuitBreaker class.

These tests verify the distributed circuit breaker behavior including:
- State transitions (closed -> open -> half-open -> closed)
- Failure counting and threshold detection
- Context manager usage
- Shared state between instances via the cache backend
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core.cache import cache

from core.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from core.exceptions import ExternalServiceError


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before each test to ensure isolation."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def circuit():
    """Create a circuit breaker with test-friendly settings."""
    return CircuitBreaker(
        name="test-oracle",
        failure_threshold=3,
        recovery_timeout=5,
        half_open_max_calls=1,
    )


def _open(circuit: CircuitBreaker) -> float:
    """Trip the circuit and return the time it opened."""
    for _ in range(circuit.config.failure_threshold):
        circuit.record_failure()
    return cache.get(circuit._opened_at_key)


class TestCircuitBreakerFailureTracking:
    """Test failure counting and threshold behavior."""

    def test_starts_closed_and_available(self, circuit: CircuitBreaker):
        assert circuit.state == CircuitState.CLOSED
        assert circuit.is_available() is True

    def test_failures_below_threshold_keep_circuit_closed(
        self, circuit: CircuitBreaker
    ):
        circuit.record_failure()
        circuit.record_failure()

        assert circuit.is_available() is True
        assert circuit.get_status()["failure_count"] == 2

    def test_reaching_threshold_opens_circuit(self, circuit: CircuitBreaker):
        _open(circuit)

        assert circuit.is_available() is False
        assert circuit.get_status()["state"] == "open"
        assert "recovery_in_seconds" in circuit.get_status()

    def test_success_resets_failure_count(self, circuit: CircuitBreaker):
        circuit.record_failure()
        circuit.record_failure()

        circuit.record_success()

        assert circuit.get_status()["failure_count"] == 0


class TestCircuitBreakerRecovery:
    """Test circuit breaker recovery behavior."""

    def test_transitions_to_half_open_after_timeout(self, circuit: CircuitBreaker):
        opened_at = _open(circuit)

        with patch("core.circuit_breaker.time.time", return_value=opened_at + 6):
            assert circuit.is_available() is True
            assert circuit.state == CircuitState.HALF_OPEN

    def test_half_open_allows_limited_probes(self, circuit: CircuitBreaker):
        opened_at = _open(circuit)

        with patch("core.circuit_breaker.time.time", return_value=opened_at + 6):
            assert circuit.is_available() is True
            assert circuit.is_available() is False

    def test_successful_probe_closes_circuit(self, circuit: CircuitBreaker):
        opened_at = _open(circuit)

        with patch("core.circuit_breaker.time.time", return_value=opened_at + 6):
            circuit.is_available()
            circuit.record_success()

        assert circuit.state == CircuitState.CLOSED
        assert circuit.is_available() is True

    def test_failed_probe_reopens_circuit(self, circuit: CircuitBreaker):
        opened_at = _open(circuit)

        with patch("core.circuit_breaker.time.time", return_value=opened_at + 6):
            circuit.is_available()
            circuit.record_failure()

        assert circuit.state == CircuitState.OPEN
        assert circuit.is_available() is False


class TestCircuitBreakerContextManager:
    """Test context manager usage."""

    def test_records_success(self, circuit: CircuitBreaker):
        circuit.record_failure()

        with circuit.call():
            pass

        assert circuit.get_status()["failure_count"] == 0

    def test_records_failure_and_reraises(self, circuit: CircuitBreaker):
        with pytest.raises(ConnectionError):
            with circuit.call():
                raise ConnectionError("oracle down")

        assert circuit.get_status()["failure_count"] == 1

    def test_refuses_calls_when_open(self, circuit: CircuitBreaker):
        """
        An open circuit refuses the call instead of letting it through.

        Why it matters: callers doing authorization checks translate the
        refusal into a denial, never into an implicit allow.
        """
        _open(circuit)

        with pytest.raises(CircuitOpenError) as exc_info:
            with circuit.call():
                pytest.fail("call body must not run while the circuit is open")

        assert isinstance(exc_info.value, ExternalServiceError)
        assert exc_info.value.details == {"circuit": "test-oracle"}

    def test_refusal_does_not_count_as_failure(self, circuit: CircuitBreaker):
        _open(circuit)
        before = circuit.get_status()["failure_count"]

        with pytest.raises(CircuitOpenError):
            with circuit.call():
                pass

        assert circuit.get_status()["failure_count"] == before


class TestCircuitBreakerSharedState:
    """Test distributed behavior via cache backend."""

    def test_state_shared_across_instances(self):
        first = CircuitBreaker(name="shared", failure_threshold=2)
        second = CircuitBreaker(name="shared", failure_threshold=2)

        first.record_failure()
        first.record_failure()

        assert second.is_available() is False

    def test_reset_closes_open_circuit(self, circuit: CircuitBreaker):
        _open(circuit)

        circuit.reset()

        assert circuit.is_available() is True
        assert circuit.get_status()["failure_count"] == 0
        assert "closed" in repr(circuit)
