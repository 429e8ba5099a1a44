"""
Streaming layer - NDJSON framing and the logical stream multiplexer.

Provides:
- NdjsonFramer: chunk-boundary independent record framing
- LogicalStream: shared, cancellable event sink per subscription
- StreamManager: deduplication, concurrency ceiling and teardown
"""

from tradestation_api.streaming.framing import NdjsonFramer
from tradestation_api.streaming.manager import (
    DEFAULT_MAX_STREAMS,
    StreamManager,
    stream_key,
)
from tradestation_api.streaming.stream import (
    LogicalStream,
    StreamEvent,
    StreamEventType,
    StreamState,
)

__all__ = [
    "DEFAULT_MAX_STREAMS",
    "LogicalStream",
    "NdjsonFramer",
    "StreamEvent",
    "StreamEventType",
    "StreamManager",
    "StreamState",
    "stream_key",
]
