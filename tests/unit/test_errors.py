"""Tests for error module."""

from tradestation_api.errors import (
    ConfigurationError,
    ErrorClass,
    ErrorContext,
    FrameParseError,
    NoCredentialAvailable,
    NoRefreshToken,
    RefreshFailed,
    RefreshFailureKind,
    RemoteError,
    StreamError,
    TooManyConcurrentStreams,
    TradeStationError,
    TransportError,
    ValidationError,
    classify_http_error,
    extract_error_message,
    is_retryable,
)


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_empty_context(self) -> None:
        """Test empty context string representation."""
        assert str(ErrorContext()) == ""

    def test_context_with_source_and_hint(self) -> None:
        """Test source and hint appear in the string."""
        ctx = ErrorContext(source="auth", field_path="refresh_token", hint="Set it")
        assert str(ctx) == "[auth] at 'refresh_token' (hint: Set it)"


class TestTradeStationError:
    """Tests for base error class."""

    def test_basic_error(self) -> None:
        """Test basic error creation."""
        error = TradeStationError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_with_hint(self) -> None:
        """Test adding hint to error."""
        error = TradeStationError("Failed").with_hint("Check the config")
        assert error.context.hint == "Check the config"

    def test_configuration_error_setting(self) -> None:
        """Test configuration error records the setting."""
        error = ConfigurationError("Missing", setting="client_id")
        assert error.setting == "client_id"
        assert "[config]" in str(error)

    def test_validation_error_details(self) -> None:
        """Test validation error carries expected and actual values."""
        error = ValidationError("Too many", field="symbols", expected=100, actual=101)
        assert error.field == "symbols"
        assert error.context.details == {"expected": 100, "actual": 101}

    def test_transport_error_cause(self) -> None:
        """Test transport error chains its cause."""
        cause = OSError("reset")
        error = TransportError("Connection failed", url="https://x", cause=cause)
        assert error.__cause__ is cause
        assert error.url == "https://x"


class TestAuthenticationErrors:
    """Tests for credential lifecycle errors."""

    def test_no_refresh_token_is_no_credential(self) -> None:
        """Test hierarchy and default message."""
        error = NoRefreshToken()
        assert isinstance(error, NoCredentialAvailable)
        assert "No refresh token available" in error.message
        assert error.context.hint is not None

    def test_refresh_failed_message(self) -> None:
        """Test refresh failure message and rejection flag."""
        error = RefreshFailed(
            "invalid_grant",
            kind=RefreshFailureKind.REJECTED,
            status_code=400,
            error_code="invalid_grant",
        )
        assert error.message == "Token refresh failed: invalid_grant"
        assert error.is_rejection
        assert error.context.details["kind"] == "rejected"

    def test_refresh_failed_transport_not_rejection(self) -> None:
        """Test transport failures are not rejections."""
        error = RefreshFailed("boom", kind=RefreshFailureKind.TRANSPORT)
        assert not error.is_rejection
        assert error.status_code is None


class TestStreamErrors:
    """Tests for streaming errors."""

    def test_too_many_streams(self) -> None:
        """Test ceiling error message."""
        error = TooManyConcurrentStreams(10)
        assert isinstance(error, StreamError)
        assert error.message == "Maximum number of concurrent streams (10) reached"
        assert error.max_streams == 10

    def test_frame_parse_error_truncates(self) -> None:
        """Test long lines are truncated in the message."""
        error = FrameParseError("x" * 500)
        assert len(error.line) == 500
        assert error.message.endswith("...'")


class TestRemoteError:
    """Tests for RemoteError."""

    def test_from_response_brokerage_body(self) -> None:
        """Test Error/Message envelope."""
        error = RemoteError.from_response(
            404,
            {"Error": "NotFound", "Message": "Account not found"},
            {"X-Request-Id": "req-1"},
        )
        assert error.message == "NotFound: Account not found"
        assert error.error_class == ErrorClass.NOT_FOUND
        assert error.request_id == "req-1"
        assert not error.retryable

    def test_from_response_retry_after(self) -> None:
        """Test retry-after header parsing."""
        error = RemoteError.from_response(429, None, {"Retry-After": "2"})
        assert error.message == "HTTP 429"
        assert error.retryable
        assert error.retry_after == 2.0


class TestClassification:
    """Tests for error classification."""

    def test_status_mapping(self) -> None:
        """Test known status codes."""
        assert classify_http_error(401) == ErrorClass.AUTHENTICATION
        assert classify_http_error(403) == ErrorClass.PERMISSION_DENIED
        assert classify_http_error(503) == ErrorClass.OVERLOADED
        assert classify_http_error(418) == ErrorClass.INVALID_REQUEST
        assert classify_http_error(599) == ErrorClass.SERVER_ERROR

    def test_oauth_invalid_grant(self) -> None:
        """Test OAuth 400 bodies classify as authentication."""
        assert classify_http_error(400, {"error": "invalid_grant"}) == ErrorClass.AUTHENTICATION
        assert classify_http_error(400, {"error": "other"}) == ErrorClass.INVALID_REQUEST

    def test_is_retryable(self) -> None:
        """Test retryable classes."""
        assert is_retryable(ErrorClass.RATE_LIMITED)
        assert is_retryable(ErrorClass.SERVER_ERROR)
        assert not is_retryable(ErrorClass.AUTHENTICATION)

    def test_extract_error_message(self) -> None:
        """Test message extraction from each envelope."""
        assert extract_error_message(None) is None
        assert extract_error_message({"Message": "Bad symbol"}) == "Bad symbol"
        assert (
            extract_error_message({"error": "invalid_grant", "error_description": "expired"})
            == "expired"
        )
        assert extract_error_message({"error": {"message": "nested"}}) == "nested"
