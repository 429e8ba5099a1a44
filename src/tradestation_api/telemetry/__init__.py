"""
Telemetry - structured logging with credential masking.
"""

from tradestation_api.telemetry.logger import (
    JsonFormatter,
    LogContext,
    LogLevel,
    SensitiveDataMasker,
    TextFormatter,
    TradeStationLogger,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "SensitiveDataMasker",
    "TextFormatter",
    "TradeStationLogger",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
