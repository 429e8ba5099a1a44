"""
Logical streams: the event sink handed to callers of the multiplexer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from tradestation_api.errors import StreamError
from tradestation_api.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from tradestation_api.errors import StreamTransportError

logger = get_logger("tradestation_api.streaming")


class StreamState(str, Enum):
    """Lifecycle of a logical stream."""

    OPENING = "opening"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"
    ENDED = "ended"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.CLOSED, StreamState.ERRORED, StreamState.ENDED)


class StreamEventType(str, Enum):
    """Events emitted by a logical stream."""

    DATA = "data"
    ERROR = "error"
    END = "end"
    CLOSE = "close"


@dataclass(frozen=True)
class StreamEvent:
    """One emitted event.

    Attributes:
        type: Event type
        data: Parsed record for DATA events
        error: Transport error for ERROR events
    """

    type: StreamEventType
    data: Any = None
    error: StreamTransportError | None = None


class LogicalStream:
    """Shared event sink for one (endpoint, params) subscription.

    Every subscriber sees the same ordered sequence of records. Subscribe
    with callbacks or iterate:

    Example:
        >>> stream = await manager.create_stream("/v3/marketdata/stream/quotes/MSFT")
        >>> stream.on("data", handle_quote)
        >>> stream.on("error", handle_error)

        >>> async for record in stream:
        ...     if "Heartbeat" in record:
        ...         continue
        ...     handle_quote(record)

    ``data`` listeners receive the record, ``error`` listeners the
    StreamTransportError, ``end`` and ``close`` listeners no arguments.
    Events emitted before anyone subscribes are replayed to the first
    subscribers. An error event is terminal.
    """

    def __init__(
        self,
        key: str,
        endpoint: str,
        params: dict[str, Any],
        closer: Callable[[LogicalStream], object],
    ) -> None:
        self._key = key
        self._endpoint = endpoint
        self._params = params
        self._closer = closer

        self._state = StreamState.OPENING
        self._listeners: dict[StreamEventType, list[Callable[..., Any]]] = {}
        self._queues: list[asyncio.Queue[StreamEvent]] = []
        self._backlog: list[StreamEvent] = []
        self._replay_scheduled = False
        self._terminal_event: StreamEvent | None = None
        # Callers of create_stream still waiting for the open handshake
        self._pending_openers = 0

        loop = asyncio.get_running_loop()
        self._opened: asyncio.Future[None] = loop.create_future()
        self._opened.add_done_callback(_consume_result)
        self._finished = asyncio.Event()

    @property
    def key(self) -> str:
        return self._key

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_open(self) -> bool:
        return not self._state.is_terminal

    # Subscription

    def on(self, event: StreamEventType | str, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Register a listener.

        Args:
            event: 'data', 'error', 'end' or 'close'
            callback: Listener

        Returns:
            The callback
        """
        event_type = StreamEventType(event)
        if self._state.is_terminal and not self._backlog:
            return callback
        self._listeners.setdefault(event_type, []).append(callback)
        self._schedule_replay()
        return callback

    def off(self, event: StreamEventType | str, callback: Callable[..., Any]) -> None:
        """Remove a listener if registered."""
        callbacks = self._listeners.get(StreamEventType(event), [])
        if callback in callbacks:
            callbacks.remove(callback)

    def remove_all_listeners(self, event: StreamEventType | str | None = None) -> None:
        """Remove every listener, or every listener of one event type."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(StreamEventType(event), None)

    def listener_count(self, event: StreamEventType | str | None = None) -> int:
        if event is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(StreamEventType(event), []))

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        if self._terminal_event is not None and not self._backlog:
            queue.put_nowait(self._terminal_event)
        self._queues.append(queue)
        self._schedule_replay()
        try:
            while True:
                event = await queue.get()
                if event.type is StreamEventType.DATA:
                    yield event.data
                elif event.type is StreamEventType.ERROR:
                    assert event.error is not None
                    raise event.error
                else:
                    return
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    # Lifecycle

    async def wait_open(self) -> None:
        """Wait until the underlying connection is established.

        Raises:
            TradeStationError: The error that prevented opening
        """
        await asyncio.shield(self._opened)

    async def wait_closed(self) -> None:
        """Wait until the stream reaches a terminal state.

        Also waits for a pending backlog replay, so listeners registered
        just before have seen every event on return.
        """
        await self._finished.wait()
        while self._replay_scheduled:
            await asyncio.sleep(0)

    def close(self) -> None:
        """Close the stream and release its connection. Idempotent."""
        self._closer(self)

    # Emission, driven by the stream manager

    def _has_subscribers(self) -> bool:
        return bool(self._queues) or any(self._listeners.values())

    def _schedule_replay(self) -> None:
        if self._backlog and not self._replay_scheduled:
            self._replay_scheduled = True
            asyncio.get_running_loop().call_soon(self._replay)

    def _replay(self) -> None:
        self._replay_scheduled = False
        backlog, self._backlog = self._backlog, []
        for event in backlog:
            self._deliver(event)
        if self._state.is_terminal:
            self._listeners.clear()

    def _emit(self, event: StreamEvent) -> None:
        if self._replay_scheduled or not self._has_subscribers():
            self._backlog.append(event)
            return
        self._deliver(event)

    def _deliver(self, event: StreamEvent) -> None:
        for callback in list(self._listeners.get(event.type, ())):
            try:
                if event.type is StreamEventType.DATA:
                    callback(event.data)
                elif event.type is StreamEventType.ERROR:
                    callback(event.error)
                else:
                    callback()
            except Exception:
                logger.exception(
                    "Stream listener raised", stream_key=self._key, event=event.type.value
                )
        for queue in self._queues:
            queue.put_nowait(event)

    def _mark_open(self) -> None:
        if self._state is StreamState.OPENING:
            self._state = StreamState.OPEN
        if not self._opened.done():
            self._opened.set_result(None)

    def _fail_open(self, error: BaseException) -> None:
        if not self._opened.done():
            self._opened.set_exception(error)

    def _emit_data(self, record: Any) -> None:
        if not self._state.is_terminal:
            self._emit(StreamEvent(StreamEventType.DATA, data=record))

    def _finish(self, state: StreamState, event: StreamEvent) -> bool:
        """Move to a terminal state, emit the terminal event, detach listeners.

        Returns:
            False if the stream was already terminal
        """
        if self._state.is_terminal:
            return False
        self._state = state
        self._terminal_event = event
        self._fail_open(StreamError("Stream closed before it opened", stream_key=self._key))
        self._emit(event)
        if not self._backlog:
            self._listeners.clear()
        self._finished.set()
        return True

    def __repr__(self) -> str:
        return f"LogicalStream(key={self._key!r}, state={self._state.value})"


def _consume_result(future: asyncio.Future[None]) -> None:
    if not future.cancelled():
        future.exception()
