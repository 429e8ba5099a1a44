"""
Error hierarchy for tradestation-api-python.
"""

from tradestation_api.errors.base import (
    AuthenticationError,
    ConfigurationError,
    ErrorContext,
    FrameParseError,
    NoCredentialAvailable,
    NoRefreshToken,
    RefreshFailed,
    RefreshFailureKind,
    RemoteError,
    StreamError,
    StreamTransportError,
    TooManyConcurrentStreams,
    TradeStationError,
    TransportError,
    ValidationError,
)
from tradestation_api.errors.classification import (
    ErrorClass,
    classify_http_error,
    extract_error_message,
    is_retryable,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    # Classification
    "ErrorClass",
    "ErrorContext",
    "FrameParseError",
    "NoCredentialAvailable",
    "NoRefreshToken",
    "RefreshFailed",
    "RefreshFailureKind",
    "RemoteError",
    "StreamError",
    "StreamTransportError",
    "TooManyConcurrentStreams",
    # Base errors
    "TradeStationError",
    "TransportError",
    "ValidationError",
    "classify_http_error",
    "extract_error_message",
    "is_retryable",
]
