"""
Builder for fluent client construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradestation_api.config import ClientConfig

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from tradestation_api.client.core import TradeStationClient


class TradeStationClientBuilder:
    """Builder for creating TradeStationClient instances.

    Settings not given here fall back to the environment.

    Example:
        >>> client = await (
        ...     TradeStationClientBuilder()
        ...     .credentials("client-id", "secret")
        ...     .refresh_token("r1")
        ...     .environment("Simulation")
        ...     .max_concurrent_streams(5)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._settings: dict[str, Any] = {}
        self._config_path: str | None = None
        self._acquire: Callable[[], Awaitable[Mapping[str, Any]]] | None = None
        self._proxy: str | None = None
        self._authenticate = False

    def credentials(self, client_id: str, client_secret: str) -> TradeStationClientBuilder:
        """Set the OAuth client credentials.

        Args:
            client_id: OAuth client ID (API key)
            client_secret: OAuth client secret

        Returns:
            Self for chaining
        """
        self._settings["client_id"] = client_id
        self._settings["client_secret"] = client_secret
        return self

    def refresh_token(self, token: str) -> TradeStationClientBuilder:
        """Set the initial refresh token.

        Args:
            token: Refresh token

        Returns:
            Self for chaining
        """
        self._settings["refresh_token"] = token
        return self

    def environment(self, environment: str) -> TradeStationClientBuilder:
        """Select "Live" or "Simulation".

        Returns:
            Self for chaining
        """
        self._settings["environment"] = environment
        return self

    def config_file(self, path: str) -> TradeStationClientBuilder:
        """Load settings from a YAML or JSON file; builder settings win.

        Returns:
            Self for chaining
        """
        self._config_path = path
        return self

    def max_concurrent_streams(self, n: int) -> TradeStationClientBuilder:
        self._settings["max_concurrent_streams"] = n
        return self

    def timeout(self, seconds: float) -> TradeStationClientBuilder:
        self._settings["timeout"] = seconds
        return self

    def base_url(self, url: str) -> TradeStationClientBuilder:
        self._settings["base_url"] = url
        return self

    def proxy(self, url: str) -> TradeStationClientBuilder:
        self._proxy = url
        return self

    def serve_stale_credentials(self, enable: bool = True) -> TradeStationClientBuilder:
        """Return a still-unexpired token when a refresh attempt fails.

        Returns:
            Self for chaining
        """
        self._settings["serve_stale_credentials"] = enable
        return self

    def acquire_with(
        self, acquire: Callable[[], Awaitable[Mapping[str, Any]]]
    ) -> TradeStationClientBuilder:
        """Set the primary acquisition hook used when no refresh token is held.

        Args:
            acquire: Coroutine function returning a token endpoint response

        Returns:
            Self for chaining
        """
        self._acquire = acquire
        return self

    def authenticate_on_build(self, enable: bool = True) -> TradeStationClientBuilder:
        """Obtain a credential during ``build`` instead of on first use.

        Returns:
            Self for chaining
        """
        self._authenticate = enable
        return self

    async def build(self) -> TradeStationClient:
        """Build the client.

        Returns:
            Configured TradeStationClient

        Raises:
            ConfigurationError: If required settings are missing
            AuthenticationError: If ``authenticate_on_build`` is set and
                authentication fails
        """
        from tradestation_api.client.core import TradeStationClient

        if self._config_path is not None:
            config = ClientConfig.from_file(self._config_path, **self._settings)
        else:
            config = ClientConfig.from_env(**self._settings)

        client = TradeStationClient(config, acquire=self._acquire, proxy=self._proxy)
        if self._authenticate:
            try:
                await client.authenticate()
            except BaseException:
                await client.aclose()
                raise
        return client
