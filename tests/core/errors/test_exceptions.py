"""
Tests for exception hierarchy and error classification.
"""

import asyncio

import pytest

from core.errors.exceptions import (
    ErrorCategory,
    SdkError,
    classify_exception,
    classify_http_status,
    is_transient_error,
)


class _Throttled(SdkError):
    category = ErrorCategory.TRANSIENT


class _Rejected(SdkError):
    category = ErrorCategory.PERMANENT


class _Unauthorized(SdkError):
    category = ErrorCategory.AUTH


class TestErrorCategory:
    """Test ErrorCategory enum."""

    def test_all_categories_exist(self):
        """All expected categories are defined."""
        assert ErrorCategory.TRANSIENT.value == "transient"
        assert ErrorCategory.AUTH.value == "auth"
        assert ErrorCategory.PERMANENT.value == "permanent"
        assert ErrorCategory.UNKNOWN.value == "unknown"


class TestSdkError:
    """Test base SdkError class."""

    def test_basic_error(self):
        """Can create basic error with message."""
        err = SdkError("Something went wrong")
        assert err.message == "Something went wrong"
        assert err.cause is None
        assert err.context == {}
        assert err.category == ErrorCategory.UNKNOWN

    def test_error_with_cause(self):
        """Can wrap another exception."""
        cause = ValueError("Invalid value")
        err = SdkError("Wrapper message", cause=cause)
        assert err.cause == cause
        assert str(err) == "Wrapper message | Caused by: Invalid value"

    def test_error_with_context(self):
        """Can add context dict."""
        err = SdkError("Error", context={"registration_id": "dev-1", "status_code": 412})
        assert err.context["registration_id"] == "dev-1"
        assert err.context["status_code"] == 412

    def test_is_retryable_default(self):
        """Unknown category is retryable."""
        err = SdkError("Error")
        assert err.is_retryable is True
        assert err.is_transient is False


class TestCategorySubclasses:
    """Test category set on SdkError subclasses."""

    def test_auth_error(self):
        """Auth errors are retryable but not transient."""
        err = _Unauthorized("Token expired")
        assert err.category == ErrorCategory.AUTH
        assert err.is_retryable is True
        assert err.is_transient is False

    def test_transient_error(self):
        """Transient errors are transient and retryable."""
        err = _Throttled("Service unavailable")
        assert err.is_transient is True
        assert err.is_retryable is True

    def test_permanent_error(self):
        """Permanent errors are not retryable."""
        err = _Rejected("Not found")
        assert err.is_retryable is False


class TestClassifyHttpStatus:
    """Test HTTP status classification."""

    @pytest.mark.parametrize("status", [200, 201, 204])
    def test_success_is_unknown(self, status):
        """2xx is not an error."""
        assert classify_http_status(status) == ErrorCategory.UNKNOWN

    def test_unauthorized_is_auth(self):
        """401 is an auth error."""
        assert classify_http_status(401) == ErrorCategory.AUTH

    @pytest.mark.parametrize("status", [408, 429])
    def test_timeout_and_throttling_are_transient(self, status):
        """408 and 429 may succeed later."""
        assert classify_http_status(status) == ErrorCategory.TRANSIENT

    @pytest.mark.parametrize("status", [400, 403, 404, 409, 412])
    def test_client_errors_are_permanent(self, status):
        """Other 4xx are permanent."""
        assert classify_http_status(status) == ErrorCategory.PERMANENT

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors_are_transient(self, status):
        """5xx are transient."""
        assert classify_http_status(status) == ErrorCategory.TRANSIENT

    def test_informational_is_unknown(self):
        """Statuses outside 2xx-5xx are unknown."""
        assert classify_http_status(101) == ErrorCategory.UNKNOWN


class TestClassifyException:
    """Test exception classification."""

    def test_sdk_error_keeps_category(self):
        """Already classified errors keep their category."""
        assert classify_exception(_Rejected("x")) == ErrorCategory.PERMANENT

    @pytest.mark.parametrize(
        "exc", [TimeoutError(), asyncio.TimeoutError(), ConnectionRefusedError()]
    )
    def test_timeouts_and_connection_errors(self, exc):
        """Timeouts and connection failures are transient."""
        assert classify_exception(exc) == ErrorCategory.TRANSIENT

    def test_connection_markers_in_message(self):
        """Connection failure messages are transient."""
        assert classify_exception(Exception("Connection reset by peer")) == ErrorCategory.TRANSIENT

    def test_unauthorized_in_message(self):
        """Unauthorized messages are auth errors."""
        assert classify_exception(Exception("401 Unauthorized")) == ErrorCategory.AUTH

    def test_unrecognized(self):
        """Anything else is unknown."""
        assert classify_exception(ValueError("bad value")) == ErrorCategory.UNKNOWN


class TestIsTransientError:
    """Test is_transient_error."""

    def test_is_transient_error(self):
        """Transient check uses classification."""
        assert is_transient_error(_Throttled("x")) is True
        assert is_transient_error(TimeoutError()) is True
        assert is_transient_error(_Rejected("x")) is False
        assert is_transient_error(ValueError("x")) is False
