"""
tradestation-api-python: async client for the TradeStation v3 API.

The access layer keeps a valid credential (single-flight refresh), throttles
requests per endpoint from the server's rate-limit headers, and multiplexes
NDJSON streams into shared, deduplicated logical streams.
"""

from __future__ import annotations

from tradestation_api._features import HAS_HTTP2, HAS_KEYRING, require_extra
from tradestation_api.client import TradeStationClient, TradeStationClientBuilder
from tradestation_api.config import ClientConfig, Environment
from tradestation_api.errors import (
    AuthenticationError,
    ConfigurationError,
    NoRefreshToken,
    RefreshFailed,
    RemoteError,
    StreamTransportError,
    TooManyConcurrentStreams,
    TradeStationError,
    TransportError,
    ValidationError,
)
from tradestation_api.streaming import LogicalStream, StreamState

__version__ = "0.1.0"

__all__ = [
    # Client
    "TradeStationClient",
    "TradeStationClientBuilder",
    # Config
    "ClientConfig",
    "Environment",
    # Feature flags
    "HAS_HTTP2",
    "HAS_KEYRING",
    "require_extra",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "NoRefreshToken",
    "RefreshFailed",
    "RemoteError",
    "StreamTransportError",
    "TooManyConcurrentStreams",
    "TradeStationError",
    "TransportError",
    "ValidationError",
    # Streaming
    "LogicalStream",
    "StreamState",
    # Version
    "__version__",
]
