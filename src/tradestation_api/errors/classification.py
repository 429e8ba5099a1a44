"""
Error classification for TradeStation API responses.

Maps HTTP status codes and response bodies onto a small set of standard
error classes used for retry decisions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorClass(str, Enum):
    """Standard error classification."""

    INVALID_REQUEST = "invalid_request"
    """Malformed request, invalid parameters, or unsupported operation."""

    AUTHENTICATION = "authentication"
    """Missing/invalid/expired bearer token."""

    PERMISSION_DENIED = "permission_denied"
    """Authenticated but not permitted (e.g. account not entitled)."""

    NOT_FOUND = "not_found"
    """Requested resource not found."""

    RATE_LIMITED = "rate_limited"
    """Throttled by the server."""

    TIMEOUT = "timeout"
    """Request timed out or gateway timeout."""

    CONFLICT = "conflict"
    """Request conflict."""

    SERVER_ERROR = "server_error"
    """Transient server-side failure (5xx)."""

    OVERLOADED = "overloaded"
    """Service temporarily unavailable."""

    OTHER = "other"
    """Unknown classification."""


_RETRYABLE_CLASSES: set[ErrorClass] = {
    ErrorClass.RATE_LIMITED,
    ErrorClass.TIMEOUT,
    ErrorClass.CONFLICT,
    ErrorClass.SERVER_ERROR,
    ErrorClass.OVERLOADED,
}

_DEFAULT_STATUS_MAPPING: dict[int, ErrorClass] = {
    400: ErrorClass.INVALID_REQUEST,
    401: ErrorClass.AUTHENTICATION,
    403: ErrorClass.PERMISSION_DENIED,
    404: ErrorClass.NOT_FOUND,
    408: ErrorClass.TIMEOUT,
    409: ErrorClass.CONFLICT,
    422: ErrorClass.INVALID_REQUEST,
    429: ErrorClass.RATE_LIMITED,
    500: ErrorClass.SERVER_ERROR,
    502: ErrorClass.SERVER_ERROR,
    503: ErrorClass.OVERLOADED,
    504: ErrorClass.TIMEOUT,
}


def classify_http_error(
    status_code: int,
    body: dict[str, Any] | None = None,
) -> ErrorClass:
    """Classify an HTTP error into a standard error class.

    Args:
        status_code: HTTP status code
        body: Response body (parsed JSON)

    Returns:
        ErrorClass representing the error type
    """
    # OAuth failures come back as 400 with an error code in the body
    if status_code == 400 and body:
        code = body.get("error")
        if isinstance(code, str) and code in ("invalid_grant", "invalid_client", "unauthorized_client"):
            return ErrorClass.AUTHENTICATION

    if status_code in _DEFAULT_STATUS_MAPPING:
        return _DEFAULT_STATUS_MAPPING[status_code]

    if 400 <= status_code < 500:
        return ErrorClass.INVALID_REQUEST
    if 500 <= status_code < 600:
        return ErrorClass.SERVER_ERROR

    return ErrorClass.OTHER


def is_retryable(error_class: ErrorClass) -> bool:
    """Check if an error class is retryable by default.

    Args:
        error_class: The error class to check

    Returns:
        True if the error is typically retryable
    """
    return error_class in _RETRYABLE_CLASSES


def extract_error_message(body: dict[str, Any] | None) -> str | None:
    """Extract error message from response body.

    Supports the envelopes the API uses:
    - Brokerage style: {"Error": "...", "Message": "..."}
    - OAuth style: {"error": "...", "error_description": "..."}
    - Simple: {"message": "..."}

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not body:
        return None

    message = body.get("Message")
    if isinstance(message, str) and message:
        error = body.get("Error")
        if isinstance(error, str) and error:
            return f"{error}: {message}"
        return message

    description = body.get("error_description")
    if isinstance(description, str) and description:
        return description

    for key in ("error", "Error", "message"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict):
            nested = value.get("message")
            if isinstance(nested, str):
                return nested

    return None
