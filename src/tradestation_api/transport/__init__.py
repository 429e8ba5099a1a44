"""
Transport layer - authenticated, throttled httpx client.

Provides:
- Bearer token injection from the token manager
- Per-endpoint throttling from rate-limit headers
- Async streaming support
- Timeout and proxy configuration
"""

from tradestation_api.transport.http import STREAM_ACCEPT, HttpTransport

__all__ = [
    "STREAM_ACCEPT",
    "HttpTransport",
]
