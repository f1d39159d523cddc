"""Tests for identity provider error translation."""
from __future__ import annotations

import pytest

from identity_directory.infra.identity.errors import (
    USER_NOT_FOUND,
    IdentityProviderError,
)


@pytest.mark.unit
class TestFromResponseBody:
    def test_toolkit_error_body(self):
        error = IdentityProviderError.from_response_body(
            {"error": {"code": 400, "message": "EMAIL_EXISTS"}}, 400
        )

        assert error.provider_code == "auth/email-already-exists"
        assert error.reason == "EMAIL_EXISTS"
        assert error.status_code == 400
        assert error.code == "UPSTREAM_ERROR"

    def test_reason_with_suffix(self):
        error = IdentityProviderError.from_response_body(
            {"error": {"code": 400, "message": "INVALID_ID_TOKEN : Token expired"}}, 400
        )

        assert error.reason == "INVALID_ID_TOKEN"
        assert error.provider_code == "auth/invalid-id-token"
        assert error.detail == "INVALID_ID_TOKEN : Token expired"

    def test_user_not_found_reason(self):
        error = IdentityProviderError.from_response_body(
            {"error": {"code": 400, "message": "USER_NOT_FOUND"}}, 400
        )

        assert error.is_not_found

    def test_oauth_error_body(self):
        error = IdentityProviderError.from_response_body(
            {"error": "invalid_grant", "error_description": "Invalid JWT Signature."}, 400
        )

        assert error.reason == "invalid_grant"
        assert error.detail == "Invalid JWT Signature."
        assert error.provider_code == "auth/unknown-error"

    def test_unknown_reason(self):
        error = IdentityProviderError.from_response_body(
            {"error": {"code": 503, "message": "BACKEND_UNAVAILABLE"}}, 503
        )

        assert error.provider_code == "auth/unknown-error"
        assert error.status_code == 503

    def test_plain_text_body(self):
        error = IdentityProviderError.from_response_body("Bad Gateway", 502)

        assert error.detail == "Bad Gateway"
        assert error.reason is None

    def test_empty_body(self):
        error = IdentityProviderError.from_response_body("", 500)

        assert error.detail == "Identity provider returned HTTP 500"


@pytest.mark.unit
def test_user_not_found_factory():
    error = IdentityProviderError.user_not_found(email="ada@example.com")

    assert error.provider_code == USER_NOT_FOUND
    assert error.status_code == 404
    assert error.extra["email"] == "ada@example.com"
    assert error.extra["provider_code"] == USER_NOT_FOUND
