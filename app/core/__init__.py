"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps. Nothing in
here knows about chat rooms, follows, or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer (logger, atomic)

Exceptions (import from core.exceptions):
    - BaseApplicationError and its subclasses, plus http_status_for()

Resilience (import from core.circuit_breaker / core.rate_limit):
    - CircuitBreaker: Cache-backed circuit breaker
    - RateLimiter: Cache-backed fixed-window rate limiter

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServerConfigurationError,
    ValidationError,
    http_status_for,
)
from .services import BaseService

__all__ = [
    "BaseService",
    "BaseApplicationError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "RateLimitError",
    "ServerConfigurationError",
    "ExternalServiceError",
    "http_status_for",
]
