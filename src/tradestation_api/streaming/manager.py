"""
Streaming multiplexer.

Turns chunked NDJSON HTTP responses into logical streams keyed by
(endpoint, params). Identical subscriptions share one connection, the
number of open streams is capped, and every termination path (end, error,
explicit close) converges on one idempotent teardown.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

from tradestation_api.errors import (
    StreamTransportError,
    TooManyConcurrentStreams,
    TradeStationError,
)
from tradestation_api.streaming.framing import NdjsonFramer
from tradestation_api.streaming.stream import (
    LogicalStream,
    StreamEvent,
    StreamEventType,
    StreamState,
)
from tradestation_api.telemetry import get_logger

if TYPE_CHECKING:
    from tradestation_api.transport.http import HttpTransport

logger = get_logger("tradestation_api.streaming")

DEFAULT_MAX_STREAMS = 10


def stream_key(endpoint: str, params: dict[str, Any] | None = None) -> str:
    """Composite identity of a logical stream.

    Params are serialized with sorted keys, so the same subscription
    written in a different order maps to the same stream.
    """
    return f"{endpoint}:{json.dumps(params or {}, sort_keys=True, default=str)}"


class StreamManager:
    """Owns the logical streams of one client.

    Example:
        >>> manager = StreamManager(transport, max_concurrent_streams=5)
        >>> quotes = await manager.create_stream("/v3/marketdata/stream/quotes/MSFT,AAPL")
        >>> async for record in quotes:
        ...     print(record)
        >>> manager.close_all_streams()
    """

    def __init__(
        self,
        transport: HttpTransport,
        max_concurrent_streams: int = DEFAULT_MAX_STREAMS,
    ) -> None:
        """Initialize the stream manager.

        Args:
            transport: Transport used to open streaming requests
            max_concurrent_streams: Ceiling on open logical streams
        """
        if max_concurrent_streams < 1:
            raise ValueError("max_concurrent_streams must be at least 1")
        self._transport = transport
        self._max_streams = max_concurrent_streams
        self._streams: dict[str, LogicalStream] = {}
        self._tasks: dict[LogicalStream, asyncio.Task[None]] = {}

    @property
    def max_streams(self) -> int:
        return self._max_streams

    @property
    def active_count(self) -> int:
        """Number of open (or opening) logical streams."""
        return len(self._streams)

    def get_active_streams(self) -> list[str]:
        """Composite keys of every open logical stream."""
        return list(self._streams)

    def get_stream(self, key: str) -> LogicalStream | None:
        return self._streams.get(key)

    async def create_stream(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> LogicalStream:
        """Open, or join, the logical stream for ``endpoint`` + ``params``.

        A subscription identical to an open one returns the existing stream
        without a new connection. Returns once the server has accepted the
        request; records then arrive as ``data`` events. The ceiling is
        checked first, so at the ceiling even a duplicate is refused.

        Args:
            endpoint: Streaming endpoint path
            params: Query parameters
            headers: Extra request headers (e.g. a versioned Accept)

        Returns:
            The logical stream

        Raises:
            TooManyConcurrentStreams: If the open-stream ceiling is reached
            RemoteError: If the server rejected the request
            TransportError: If the connection could not be established
        """
        params = dict(params or {})
        key = stream_key(endpoint, params)

        if len(self._streams) >= self._max_streams:
            raise TooManyConcurrentStreams(self._max_streams)

        stream = self._streams.get(key)
        if stream is None:
            stream = LogicalStream(key, endpoint, params, closer=self._close)
            self._streams[key] = stream
            task = asyncio.create_task(self._pump(stream, headers), name=f"stream:{key}")
            self._tasks[stream] = task
            task.add_done_callback(lambda _: self._tasks.pop(stream, None))

        await self._await_open(stream)
        return stream

    async def _await_open(self, stream: LogicalStream) -> None:
        """Wait for the open handshake on behalf of one caller.

        A cancelled caller abandons the connection only if nobody else is
        still waiting for it. Open failures are torn down by the pump.
        """
        stream._pending_openers += 1
        try:
            await stream.wait_open()
        except asyncio.CancelledError:
            if stream._pending_openers == 1 and stream.state is StreamState.OPENING:
                self._close(stream)
            raise
        finally:
            stream._pending_openers -= 1

    async def _pump(self, stream: LogicalStream, headers: dict[str, str] | None) -> None:
        """Read the connection behind ``stream`` until it ends, fails or is closed."""
        framer = NdjsonFramer()
        try:
            async with self._transport.stream_request(
                "GET", stream.endpoint, params=stream.params or None, headers=headers
            ) as response:
                stream._mark_open()
                logger.info("Stream opened", stream_key=stream.key)

                async for record in framer.decode(response.aiter_bytes()):
                    stream._emit_data(record)

        except asyncio.CancelledError:
            self._teardown(stream, StreamState.CLOSED, StreamEvent(StreamEventType.CLOSE))
            raise
        except Exception as e:
            if stream.state is StreamState.OPENING:
                stream._fail_open(e)
            message = e.message if isinstance(e, TradeStationError) else str(e)
            if isinstance(e, StreamTransportError):
                error = e
            else:
                error = StreamTransportError(message, stream_key=stream.key, cause=e)
            logger.warning("Stream failed", stream_key=stream.key, error=message)
            self._teardown(
                stream,
                StreamState.ERRORED,
                StreamEvent(StreamEventType.ERROR, error=error),
            )
        else:
            self._teardown(stream, StreamState.ENDED, StreamEvent(StreamEventType.END))
        finally:
            if framer.dropped:
                logger.debug(
                    "Stream dropped malformed lines",
                    stream_key=stream.key,
                    dropped=framer.dropped,
                )

    def _teardown(self, stream: LogicalStream, state: StreamState, event: StreamEvent) -> bool:
        """Single teardown path for end, error and close. Idempotent."""
        if self._streams.get(stream.key) is stream:
            del self._streams[stream.key]
        finished = stream._finish(state, event)
        if finished:
            logger.info(f"Stream {state.value}", stream_key=stream.key)
        return finished

    def _close(self, stream: LogicalStream) -> bool:
        finished = self._teardown(stream, StreamState.CLOSED, StreamEvent(StreamEventType.CLOSE))
        task = self._tasks.get(stream)
        if task is not None and not task.done():
            task.cancel()
        return finished

    def close_stream(self, key: str) -> bool:
        """Close the logical stream with composite key ``key``.

        Cancels the pump, which closes the HTTP response. Unknown or
        already closed keys are ignored.

        Returns:
            True if a stream was closed
        """
        stream = self._streams.get(key)
        if stream is None:
            return False
        return self._close(stream)

    def close_all_streams(self) -> None:
        """Close every logical stream."""
        for stream in list(self._streams.values()):
            self._close(stream)

    async def shutdown(self) -> None:
        """Close every stream and wait for the pumps to exit."""
        self.close_all_streams()
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
