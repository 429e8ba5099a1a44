"""
Core TradeStationClient implementation.

The client wires the access layer together: one token manager, one
per-endpoint throttle, one HTTP transport and one stream manager, shared
by every endpoint service.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from tradestation_api.auth import TokenManager, resolve_refresh_token
from tradestation_api.config import ClientConfig
from tradestation_api.errors import ConfigurationError
from tradestation_api.resilience import EndpointThrottle, ThrottleConfig
from tradestation_api.services import (
    BrokerageService,
    MarketDataService,
    OrderExecutionService,
)
from tradestation_api.streaming import StreamManager
from tradestation_api.telemetry import get_logger
from tradestation_api.transport import HttpTransport

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    import httpx

logger = get_logger("tradestation_api.client")


class TradeStationClient:
    """Async client for the TradeStation v3 API.

    Example:
        >>> async with TradeStationClient(environment="Simulation") as client:
        ...     accounts = await client.brokerage.get_accounts()
        ...     quotes = await client.market_data.stream_quotes(["MSFT", "AAPL"])
        ...     async for record in quotes:
        ...         print(record)

    Configuration not passed explicitly is read from ``CLIENT_ID``,
    ``CLIENT_SECRET``, ``REFRESH_TOKEN`` and ``ENVIRONMENT``.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        acquire: Callable[[], Awaitable[Mapping[str, Any]]] | None = None,
        proxy: str | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        token_transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        **overrides: Any,
    ) -> None:
        """Initialize the client.

        Args:
            config: Complete configuration; built from the environment and
                ``overrides`` when omitted
            acquire: Primary credential acquisition hook, used when no
                refresh token is held
            proxy: Proxy URL for API requests
            http_transport: httpx transport override for API requests (tests)
            token_transport: httpx transport override for the token endpoint (tests)
            clock: Wall clock returning epoch seconds
            sleep: Async sleep used by the throttle
            **overrides: Configuration fields overriding the environment

        Raises:
            ConfigurationError: If required settings are missing or invalid, or
                if both ``config`` and ``overrides`` are given
        """
        if config is not None and overrides:
            raise ConfigurationError(
                "Pass either a complete config or keyword settings, not both",
                setting=", ".join(sorted(overrides)),
            )
        self._config = config if config is not None else ClientConfig.from_env(**overrides)

        refresh_token = resolve_refresh_token(
            self._config.client_id, explicit_token=self._config.refresh_token
        )
        self._token_manager = TokenManager.from_config(
            self._config,
            refresh_token=refresh_token,
            acquire=acquire,
            transport=token_transport,
            clock=clock,
        )
        self._throttle = EndpointThrottle(
            ThrottleConfig(
                default_limit=self._config.default_rate_limit,
                window_seconds=self._config.rate_limit_window,
            ),
            clock=clock,
            sleep=sleep,
        )
        self._transport = HttpTransport(
            self._config.resolved_base_url,
            self._token_manager,
            self._throttle,
            timeout=self._config.timeout,
            proxy=proxy,
            transport=http_transport,
        )
        self._streams = StreamManager(self._transport, self._config.max_concurrent_streams)

        self.market_data = MarketDataService(self._transport, self._streams)
        self.brokerage = BrokerageService(self._transport, self._streams)
        self.order_execution = OrderExecutionService(self._transport, self._streams)

        logger.debug(
            "Client created",
            environment=self._config.environment.value,
            base_url=self._config.resolved_base_url,
        )

    @classmethod
    def from_file(cls, path: str, **kwargs: Any) -> TradeStationClient:
        """Create a client from a YAML or JSON configuration file."""
        return cls(ClientConfig.from_file(path), **kwargs)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    @property
    def throttle(self) -> EndpointThrottle:
        return self._throttle

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    @property
    def streams(self) -> StreamManager:
        return self._streams

    async def authenticate(self) -> None:
        """Obtain a credential now instead of on the first request.

        Raises:
            NoRefreshToken: If there is no way to obtain a credential
            RefreshFailed: If the token endpoint rejects the refresh
        """
        await self._token_manager.authenticate()

    def get_refresh_token(self) -> str | None:
        """Current refresh token, e.g. to persist it after a rotation."""
        return self._token_manager.get_refresh_token()

    def get_active_streams(self) -> list[str]:
        """Composite keys of every open logical stream."""
        return self._streams.get_active_streams()

    def close_stream(self, key: str) -> bool:
        return self._streams.close_stream(key)

    def close_all_streams(self) -> None:
        self._streams.close_all_streams()

    async def aclose(self) -> None:
        """Close every stream and release all connections."""
        await self._streams.shutdown()
        await self._transport.close()
        await self._token_manager.close()

    async def __aenter__(self) -> TradeStationClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
