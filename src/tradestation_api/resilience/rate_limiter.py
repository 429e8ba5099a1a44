"""
Per-endpoint throttle driven by server rate-limit headers.

The server publishes its limit, remaining count and reset time on every
response. The throttle stores that window per endpoint and, once the
remaining count reaches zero, admits callers in strict arrival order after
the window resets. Only the head of the queue runs a timer.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tradestation_api.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

logger = get_logger("tradestation_api.resilience")

LIMIT_HEADER = "x-ratelimit-limit"
REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"


@dataclass
class RateWindow:
    """Server-reported rate window for one endpoint.

    Attributes:
        limit: Requests allowed per window
        remaining: Requests left in the current window
        reset_at: Epoch seconds at which the window resets
    """

    limit: int
    remaining: int
    reset_at: float


@dataclass
class ThrottleConfig:
    """Configuration for the endpoint throttle.

    Attributes:
        default_limit: Limit assumed when the limit header is absent
        window_seconds: Length of a window after a local reset
    """

    default_limit: int = 120
    window_seconds: float = 60.0


def _parse_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return default


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


class EndpointThrottle:
    """Cooperative admission control per endpoint.

    Not a token bucket: it never estimates capacity locally. The remaining
    count is whatever the server last reported.

    Example:
        >>> throttle = EndpointThrottle()
        >>> await throttle.wait_for_slot("/v3/brokerage/accounts")
        >>> response = await client.get("/v3/brokerage/accounts")
        >>> throttle.record_limits("/v3/brokerage/accounts", response.headers)
    """

    def __init__(
        self,
        config: ThrottleConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the throttle.

        Args:
            config: Throttle configuration
            clock: Wall clock returning epoch seconds
            sleep: Coroutine used for the reset wait
        """
        self._config = config or ThrottleConfig()
        self._clock = clock
        self._sleep = sleep
        self._windows: dict[str, RateWindow] = {}
        self._queues: dict[str, deque[asyncio.Future[None]]] = {}

    @property
    def config(self) -> ThrottleConfig:
        return self._config

    def record_limits(self, endpoint: str, headers: Mapping[str, str]) -> RateWindow:
        """Store the rate window reported by a response.

        Missing headers default to the configured limit, zero remaining and
        a reset time in the past. The new window replaces any previous one.

        Args:
            endpoint: Endpoint key (request path)
            headers: Response headers

        Returns:
            The stored window
        """
        if not hasattr(headers, "getlist"):
            headers = {k.lower(): v for k, v in headers.items()}

        window = RateWindow(
            limit=_parse_int(headers.get(LIMIT_HEADER), self._config.default_limit),
            remaining=_parse_int(headers.get(REMAINING_HEADER), 0),
            reset_at=float(_parse_int(headers.get(RESET_HEADER), 0)),
        )
        self._windows[endpoint] = window
        return window

    def get_rate_limit(self, endpoint: str) -> RateWindow | None:
        """Get the stored window for an endpoint, if any."""
        return self._windows.get(endpoint)

    def queue_length(self, endpoint: str) -> int:
        """Number of callers currently queued for an endpoint."""
        return len(self._queues.get(endpoint, ()))

    async def wait_for_slot(self, endpoint: str) -> float:
        """Wait until a request to ``endpoint`` may be sent.

        Returns at once when no window is known or capacity remains and
        nobody is queued. Otherwise joins the endpoint's FIFO queue; the
        head waits for the reset and restores full capacity, every other
        caller waits for its predecessor.

        Args:
            endpoint: Endpoint key (request path)

        Returns:
            Seconds spent sleeping (0.0 when admitted immediately)
        """
        window = self._windows.get(endpoint)
        queue = self._queues.get(endpoint)
        if window is None or (window.remaining > 0 and not queue):
            return 0.0

        if queue is None:
            queue = self._queues[endpoint] = deque()
        predecessor = queue[-1] if queue else None
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        queue.append(done)

        waited = 0.0
        try:
            if predecessor is not None:
                await asyncio.shield(predecessor)

            window = self._windows[endpoint]
            # A predecessor that gave up before resetting leaves us as head
            if window.remaining <= 0:
                delay = window.reset_at - self._clock()
                if delay > 0:
                    logger.debug(
                        "Rate limit reached, waiting for reset",
                        endpoint=endpoint,
                        delay=round(delay, 3),
                        queued=len(queue),
                    )
                    await self._sleep(delay)
                    waited = delay
                self._windows[endpoint] = RateWindow(
                    limit=window.limit,
                    remaining=window.limit,
                    reset_at=self._clock() + self._config.window_seconds,
                )
        finally:
            if predecessor is not None and not predecessor.done():
                # Cancelled while queued: keep the successor behind our predecessor
                predecessor.add_done_callback(lambda _: _resolve(done))
            else:
                _resolve(done)
            queue.remove(done)
            if not queue and self._queues.get(endpoint) is queue:
                del self._queues[endpoint]

        return waited
