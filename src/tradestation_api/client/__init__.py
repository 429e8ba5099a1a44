"""
Client layer - User-facing API.

This module provides:
- TradeStationClient: Main entry point wiring auth, throttling and streaming
- TradeStationClientBuilder: Fluent construction
"""

from tradestation_api.client.builder import TradeStationClientBuilder
from tradestation_api.client.core import TradeStationClient

__all__ = [
    "TradeStationClient",
    "TradeStationClientBuilder",
]
