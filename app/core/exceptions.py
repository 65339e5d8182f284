"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across HTTP views and WebSocket consumers
- Machine-readable error codes for client handling
- A single place that maps error classes to HTTP status codes

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures (400)
    ├── AuthenticationError - Missing or invalid caller identity (401)
    ├── PermissionDeniedError - Authorization failures (403)
    ├── NotFoundError - Resource not found (404)
    ├── ConflictError - State conflicts such as duplicates (409)
    ├── RateLimitError - Rate limit exceeded (429)
    ├── ServerConfigurationError - Deployment is misconfigured (500)
    └── ExternalServiceError - Collaborator service failures (503)

Usage:
    from core.exceptions import ValidationError, http_status_for

    raise ValidationError(
        "DM chats must have exactly 2 members",
        error_code="INVALID_DM_MEMBER_COUNT",
        details={"member_count": 3},
    )

    # In a view
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=http_status_for(e))

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, limits, etc.)

    Example:
        try:
            room = RoomService.get_by_id(room_id)
        except NotFoundError as e:
            return Response(e.to_dict(), status=404)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Chat room not found",
                "error_code": "CHAT_ROOM_NOT_FOUND",
                "details": {"room_id": "6f1c..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Bad input shape (wrong DM member count, requester missing from members)
    - Content rules (empty after sanitizing, too long)
    - Operations the target does not support (renaming a DM)

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class AuthenticationError(BaseApplicationError):
    """
    Raised when the caller identity is missing or invalid.

    The transport layer owns authentication; services only raise this
    when they are handed an anonymous caller.
    """

    default_error_code: str = "AUTHENTICATION_FAILED"
    http_status: int = 401


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    Use for:
    - Acting on a chat room the caller is not a member of
    - Editing a message the caller did not write
    - Mutual-follow requirement not met

    Example:
        raise PermissionDeniedError(
            "You can only remove yourself from chat rooms",
            error_code="SELF_REMOVAL_ONLY",
        )
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        room = ChatRoom.objects.filter(id=room_id).first()
        if not room:
            raise NotFoundError(
                "Chat room not found",
                error_code="CHAT_ROOM_NOT_FOUND",
                details={"room_id": str(room_id)},
            )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Duplicate entries (unique constraint violations)
    - Concurrent modification conflicts
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class RateLimitError(BaseApplicationError):
    """
    Raised when a rate limit is exceeded.

    Note:
        Include retry_after in details when possible to help clients.
    """

    default_error_code: str = "RATE_LIMIT_EXCEEDED"
    http_status: int = 429


class ServerConfigurationError(BaseApplicationError):
    """
    Raised when the deployment is missing required configuration.

    Use for:
    - Encryption required but no master key configured

    Note:
        These errors are never recovered from at runtime. Falling back
        to a weaker mode would silently downgrade security.
    """

    default_error_code: str = "SERVER_CONFIGURATION_ERROR"
    http_status: int = 500


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a collaborator service call fails.

    Use for:
    - Follow relationship lookups that keep failing
    - Circuit breaker open for a dependency

    Note:
        Log the original error for debugging but don't expose
        internal details to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 503


def http_status_for(exc: BaseApplicationError) -> int:
    """Return the HTTP status code a transport should use for ``exc``."""
    return exc.http_status
