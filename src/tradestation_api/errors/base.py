"""
Base error classes for tradestation-api-python.

Provides a layered error hierarchy:
- TradeStationError: Base class for all library errors
- ConfigurationError: Missing or invalid client configuration
- TransportError: HTTP/network errors
- RemoteError: API errors with classification
- AuthenticationError: Credential acquisition and refresh errors
- StreamError: Streaming multiplexer errors
- ValidationError: Endpoint argument validation errors
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tradestation_api.errors.classification import ErrorClass


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    field_path: str | None = None
    """Path to the problematic field (e.g., 'symbols')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'auth', 'transport', 'streaming')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class TradeStationError(Exception):
    """Base class for all tradestation-api-python errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> TradeStationError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self


class ConfigurationError(TradeStationError):
    """Invalid or incomplete client configuration.

    Raised when:
    - Client ID or secret cannot be resolved
    - Environment is missing or unknown
    - A configuration file cannot be read
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        setting: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="config")
        if setting:
            ctx.field_path = setting
        super().__init__(message, ctx)
        self.setting = setting


class TransportError(TradeStationError):
    """Error during HTTP transport.

    Raised when:
    - Network connection failure
    - Timeout
    - SSL/TLS errors
    - Proxy errors
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        if status_code:
            ctx.details["status_code"] = status_code
        super().__init__(message, ctx)
        self.url = url
        self.status_code = status_code
        self.__cause__ = cause


class ValidationError(TradeStationError):
    """Validation error for endpoint arguments.

    Raised before any request is sent, e.g. too many symbols in one call.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        ctx = context or ErrorContext(source="validation")
        if field:
            ctx.field_path = field
        if expected is not None:
            ctx.details["expected"] = expected
        if actual is not None:
            ctx.details["actual"] = actual
        super().__init__(message, ctx)
        self.field = field
        self.expected = expected
        self.actual = actual


class RemoteError(TradeStationError):
    """Error returned by the TradeStation API.

    Attributes:
        status_code: HTTP status code
        error_class: Standardized error classification
        retryable: Whether the error is retryable
        raw_error: Raw error response from the API
        retry_after: Suggested retry delay in seconds (from header)
        request_id: Server request identifier, when present
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_class: ErrorClass,
        retryable: bool = False,
        raw_error: dict[str, Any] | None = None,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="remote")
        ctx.details["status_code"] = status_code
        ctx.details["error_class"] = error_class.value
        ctx.details["retryable"] = retryable
        if request_id:
            ctx.details["request_id"] = request_id

        super().__init__(message, ctx)

        self.status_code = status_code
        self.error_class = error_class
        self.retryable = retryable
        self.raw_error = raw_error or {}
        self.retry_after = retry_after
        self.request_id = request_id

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> RemoteError:
        """Create RemoteError from HTTP response.

        Args:
            status_code: HTTP status code
            body: Response body (parsed JSON)
            headers: Response headers

        Returns:
            RemoteError with appropriate classification
        """
        from tradestation_api.errors.classification import (
            classify_http_error,
            extract_error_message,
            is_retryable,
        )

        error_class = classify_http_error(status_code, body)
        message = extract_error_message(body) or f"HTTP {status_code}"

        headers = {k.lower(): v for k, v in (headers or {}).items()}

        retry_after = None
        retry_after_str = headers.get("retry-after")
        if retry_after_str:
            with contextlib.suppress(ValueError):
                retry_after = float(retry_after_str)

        request_id = headers.get("x-request-id") or headers.get("request-id")

        return cls(
            message=message,
            status_code=status_code,
            error_class=error_class,
            retryable=is_retryable(error_class),
            raw_error=body,
            retry_after=retry_after,
            request_id=request_id,
        )


class AuthenticationError(TradeStationError):
    """Base class for credential lifecycle errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context or ErrorContext(source="auth"))


class NoCredentialAvailable(AuthenticationError):
    """No usable access token exists and none can be obtained."""


class NoRefreshToken(NoCredentialAvailable):
    """A refresh is required but no refresh token is held.

    Raised when neither a refresh token nor a primary acquisition hook is
    configured on the token manager.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No refresh token available. Provide a refresh token in the "
            "client configuration."
        )
        self.with_hint("set REFRESH_TOKEN or pass refresh_token=...")


class RefreshFailureKind(str, Enum):
    """Why a token refresh failed."""

    TRANSPORT = "transport"
    """The token endpoint could not be reached."""

    REJECTED = "rejected"
    """The token endpoint rejected the credential (e.g. invalid_grant)."""

    MALFORMED_RESPONSE = "malformed_response"
    """The token endpoint answered 2xx with an unusable body."""


class RefreshFailed(AuthenticationError):
    """Token refresh failed.

    Attributes:
        reason: Human-readable reason
        kind: Transport failure, server rejection or malformed response
        status_code: HTTP status of a rejection, if any
        error_code: OAuth ``error`` value of a rejection, if any
    """

    def __init__(
        self,
        reason: str,
        *,
        kind: RefreshFailureKind,
        status_code: int | None = None,
        error_code: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = ErrorContext(source="auth")
        ctx.details["kind"] = kind.value
        if status_code:
            ctx.details["status_code"] = status_code
        if error_code:
            ctx.details["error"] = error_code
        super().__init__(f"Token refresh failed: {reason}", ctx)
        self.reason = reason
        self.kind = kind
        self.status_code = status_code
        self.error_code = error_code
        self.__cause__ = cause

    @property
    def is_rejection(self) -> bool:
        """True when the server refused the refresh token itself."""
        return self.kind is RefreshFailureKind.REJECTED


class StreamError(TradeStationError):
    """Base class for streaming multiplexer errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        stream_key: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="streaming")
        if stream_key:
            ctx.details["stream_key"] = stream_key
        super().__init__(message, ctx)
        self.stream_key = stream_key


class TooManyConcurrentStreams(StreamError):
    """The open-stream ceiling has been reached; the stream was not created."""

    def __init__(self, max_streams: int) -> None:
        super().__init__(
            f"Maximum number of concurrent streams ({max_streams}) reached"
        )
        self.context.details["max_streams"] = max_streams
        self.max_streams = max_streams


class StreamTransportError(StreamError):
    """The connection behind a logical stream failed.

    Delivered as the terminal ``error`` event of the stream.
    """

    def __init__(
        self,
        message: str,
        *,
        stream_key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, stream_key=stream_key)
        self.__cause__ = cause


class FrameParseError(StreamError):
    """A single stream line was not valid JSON.

    Never raised to callers; logged and the line is dropped.
    """

    def __init__(self, line: str, cause: Exception | None = None) -> None:
        preview = line if len(line) <= 200 else f"{line[:200]}..."
        super().__init__(f"Failed to parse stream line: {preview!r}")
        self.line = line
        self.__cause__ = cause
