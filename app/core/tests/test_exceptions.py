"""
Tests for the application error hierarchy.
"""

import pytest

from core.exceptions import (
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


class TestErrorResponses:
    """Verifies error serialization and HTTP status mapping."""

    def test_to_dict_includes_details_when_present(self):
        error = NotFoundError(
            "Chat room not found",
            error_code="CHAT_ROOM_NOT_FOUND",
            details={"room_id": "abc"},
        )

        assert error.to_dict() == {
            "error": "Chat room not found",
            "error_code": "CHAT_ROOM_NOT_FOUND",
            "details": {"room_id": "abc"},
        }

    def test_to_dict_omits_empty_details(self):
        assert "details" not in ValidationError("bad").to_dict()

    def test_default_error_code_used(self):
        assert ServerConfigurationError("no key").error_code == (
            "SERVER_CONFIGURATION_ERROR"
        )
        assert str(ValidationError("bad")) == "[VALIDATION_ERROR] bad"

    @pytest.mark.parametrize(
        ("error_class", "expected"),
        [
            (ValidationError, 400),
            (AuthenticationError, 401),
            (PermissionDeniedError, 403),
            (NotFoundError, 404),
            (ConflictError, 409),
            (RateLimitError, 429),
            (ServerConfigurationError, 500),
            (ExternalServiceError, 503),
        ],
    )
    def test_http_status_mapping(self, error_class, expected):
        error = error_class("message")

        assert isinstance(error, BaseApplicationError)
        assert http_status_for(error) == expected
