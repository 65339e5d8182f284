"""
Core views providing infrastructure endpoints.
"""

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

from core.circuit_breaker import CircuitBreaker


def health_check(request):
    """
    Health check endpoint for Docker, Kubernetes probes and load balancers.

    Returns:
        JsonResponse with overall status plus database, cache and circuit
        breaker status. 200 when the database answers, 503 otherwise.

        The cache and the circuits are reported but do not fail the
        check: rate limits and circuit state degrade to defaults without
        the cache, and an open circuit already denies the guarded calls.
    """
    health_status = {"status": "healthy", "database": "connected", "cache": "connected"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"

    cache.set("health_check", "ok", timeout=1)
    if cache.get("health_check") != "ok":
        health_status["cache"] = "disconnected"

    health_status["circuits"] = {
        name: CircuitBreaker(name, **options).get_status()
        for name, options in getattr(settings, "MONITORED_CIRCUITS", {}).items()
    }

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)
