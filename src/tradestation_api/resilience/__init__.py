"""
Resilience layer - server-driven, per-endpoint request throttling.
"""

from tradestation_api.resilience.rate_limiter import (
    LIMIT_HEADER,
    REMAINING_HEADER,
    RESET_HEADER,
    EndpointThrottle,
    RateWindow,
    ThrottleConfig,
)

__all__ = [
    "LIMIT_HEADER",
    "REMAINING_HEADER",
    "RESET_HEADER",
    "EndpointThrottle",
    "RateWindow",
    "ThrottleConfig",
]
