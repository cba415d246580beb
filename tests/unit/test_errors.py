# -*- coding: utf-8 -*-

"""
Unit tests for rejection bodies and gateway exceptions.
"""

import pytest

from simgate.config import TOKEN_HEADER
from simgate.errors import (
    AuthRejectionReason,
    RateLimitExceededError,
    build_auth_rejection,
    build_internal_error,
    build_payload_too_large,
    build_rate_limit_rejection,
    describe_exception,
)


class TestBuildAuthRejection:
    """Tests for build_auth_rejection()."""

    @pytest.mark.parametrize(
        "reason,message",
        [
            (AuthRejectionReason.MISSING_TOKEN, f"{TOKEN_HEADER} header is required"),
            (AuthRejectionReason.INVALID_FORMAT, "Invalid token format"),
            (AuthRejectionReason.CACHED_INVALID, "Token invalid (cached)"),
            (AuthRejectionReason.VALIDATION_FAILED, "Token validation failed"),
            (AuthRejectionReason.SERVICE_UNAVAILABLE, "Token validation service unavailable"),
        ],
    )
    def test_messages(self, reason, message):
        """What it does: every reason maps to its fixed client-facing message."""
        assert build_auth_rejection(reason) == {"error": "Unauthorized", "message": message}

    def test_body_has_only_error_and_message(self):
        """
        What it does: Inspects the keys of every auth rejection body.
        Purpose: Ensure no internal detail can leak through extra fields.
        """
        for reason in AuthRejectionReason:
            assert set(build_auth_rejection(reason)) == {"error", "message"}

    def test_missing_token_message_names_given_header(self):
        """What it does: the missing-token message quotes the header actually checked."""
        body = build_auth_rejection(AuthRejectionReason.MISSING_TOKEN, token_header="X-Other-Token")

        assert body["message"] == "X-Other-Token header is required"


class TestOtherBodies:
    """Tests for the 429, 413 and 500 body builders."""

    def test_rate_limit_body(self):
        """What it does: builds the 429 body with retry guidance."""
        body = build_rate_limit_rejection("Too many", retry_after=12, limit=50, current=51)

        assert body == {
            "error": "Rate limit exceeded",
            "message": "Too many",
            "retryAfter": 12,
            "limit": 50,
            "current": 51,
        }

    def test_payload_too_large_body(self):
        """What it does: builds the 413 body with sizes in MB."""
        body = build_payload_too_large(1, 2.5)

        print(f"Body: {body}")
        assert body["success"] is False
        assert body["error"] == "Payload Too Large"
        assert body["maxSizeMB"] == 1
        assert body["requestSizeMB"] == 2.5
        assert "1MB" in body["message"]

    def test_internal_error_body(self):
        """What it does: builds the 500 body with the support code."""
        body = build_internal_error("Something broke", "/chat")

        assert body == {
            "error": "Internal Server Error",
            "errorCode": "ERR_INTERNAL_UNEXPECTED",
            "message": "Something broke",
            "path": "/chat",
        }


class TestRateLimitExceededError:
    """Tests for RateLimitExceededError."""

    def test_defaults_and_str(self):
        """What it does: status defaults to 429 and str() is the message."""
        error = RateLimitExceededError(body={"message": "Slow down."}, headers={"Retry-After": "5"})

        assert error.status_code == 429
        assert str(error) == "Slow down."

    def test_can_be_raised_and_caught(self):
        """What it does: behaves like a regular exception."""
        with pytest.raises(RateLimitExceededError) as exc_info:
            raise RateLimitExceededError(body={})

        assert exc_info.value.headers == {}
        assert str(exc_info.value) == "Rate limit exceeded"


class TestDescribeException:
    """Tests for describe_exception()."""

    def test_uses_message(self):
        assert describe_exception(ValueError("bad value")) == "bad value"

    def test_falls_back_to_type_name(self):
        assert describe_exception(TimeoutError()) == "TimeoutError"

    def test_none(self):
        assert describe_exception(None) == "Unknown error"
