"""
Tests for the health check endpoint.
"""

from core.circuit_breaker import CircuitBreaker

HEALTH_URL = "/health/"


class TestHealthCheck:
    """
    Verifies:
    - A working database and cache report healthy
    - Monitored circuit breakers are reported with their state
    - An open circuit is reported without failing the check

    Why it matters:
        Load balancers pull instances on a 503; a follow store outage
        must show up on the dashboard without taking the API down.
    """

    def test_healthy(self, client, db, settings):
        settings.MONITORED_CIRCUITS = {}

        response = client.get(HEALTH_URL)

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "circuits": {},
        }

    def test_closed_circuit_reported(self, client, db, settings):
        settings.MONITORED_CIRCUITS = {"health-test": {"failure_threshold": 2}}

        circuits = client.get(HEALTH_URL).json()["circuits"]

        assert circuits["health-test"]["state"] == "closed"
        assert circuits["health-test"]["failure_count"] == 0
        assert circuits["health-test"]["failure_threshold"] == 2

    def test_open_circuit_reported_but_still_healthy(self, client, db, settings):
        settings.MONITORED_CIRCUITS = {
            "health-test": {"failure_threshold": 2, "recovery_timeout": 60}
        }
        breaker = CircuitBreaker("health-test", failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        breaker.record_failure()

        response = client.get(HEALTH_URL)

        assert response.status_code == 200
        status = response.json()["circuits"]["health-test"]
        assert status["state"] == "open"
        assert 0 < status["recovery_in_seconds"] <= 60
