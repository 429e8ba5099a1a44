"""
Endpoint services - thin wrappers over the transport and stream manager.
"""

from tradestation_api.services.brokerage import BrokerageService
from tradestation_api.services.market_data import MarketDataService
from tradestation_api.services.order_execution import OrderExecutionService

__all__ = [
    "BrokerageService",
    "MarketDataService",
    "OrderExecutionService",
]
