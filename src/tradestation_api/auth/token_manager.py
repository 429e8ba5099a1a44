"""
Access token lifecycle: acquisition, caching and single-flight refresh.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from contextlib import suppress
from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from tradestation_api.auth.credential import Credential, CredentialState, TokenResponse
from tradestation_api.config.settings import DEFAULT_TOKEN_URL
from tradestation_api.errors import (
    ConfigurationError,
    NoCredentialAvailable,
    NoRefreshToken,
    RefreshFailed,
    RefreshFailureKind,
    extract_error_message,
)
from tradestation_api.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from tradestation_api.config.settings import ClientConfig

logger = get_logger("tradestation_api.auth")

_DEFAULT_TIMEOUT = 30.0


class TokenManager:
    """Owns the bearer credential of one client.

    Hands out a usable access token, refreshing it when it is absent or
    close to expiry. Concurrent callers share one in-flight refresh, so the
    refresh token is only ever spent once per cycle.

    Example:
        >>> manager = TokenManager("client-id", "secret", refresh_token="r1")
        >>> token = await manager.get_valid_access_token()
        >>> headers = {"Authorization": f"Bearer {token}"}
    """

    REFRESH_THRESHOLD = 5 * 60.0
    """Refresh when fewer than this many seconds of validity remain."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        refresh_token: str | None = None,
        token_url: str = DEFAULT_TOKEN_URL,
        acquire: Callable[[], Awaitable[Mapping[str, Any]]] | None = None,
        serve_stale: bool = True,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the token manager.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            refresh_token: Initial refresh token
            token_url: OAuth token endpoint
            acquire: Primary acquisition hook used when no refresh token is
                held; returns a token endpoint style mapping
            serve_stale: Return a still-unexpired token when refresh fails
            timeout: Token endpoint timeout in seconds
            transport: httpx transport override (tests)
            clock: Wall clock returning epoch seconds
        """
        if not client_id or not client_secret:
            raise ConfigurationError(
                "Client ID and Client Secret are required", setting="client_id"
            )

        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._acquire = acquire
        self._serve_stale = serve_stale
        self._timeout = timeout
        self._transport = transport
        self._clock = clock

        self._credential = Credential(refresh_token=refresh_token)
        self._refreshing: asyncio.Task[None] | None = None
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        refresh_token: str | None = None,
        **kwargs: Any,
    ) -> TokenManager:
        """Create a token manager from a client configuration."""
        return cls(
            config.client_id,
            config.client_secret,
            refresh_token=refresh_token or config.refresh_token,
            token_url=config.token_url,
            serve_stale=config.serve_stale_credentials,
            timeout=config.timeout,
            **kwargs,
        )

    @property
    def state(self) -> CredentialState:
        """Current lifecycle state."""
        if self._refreshing is not None:
            return CredentialState.REFRESHING
        if self.has_valid_token():
            return CredentialState.VALID
        return CredentialState.NO_CREDENTIAL

    @property
    def credential(self) -> Credential:
        """Snapshot of the current credential."""
        return dataclasses.replace(self._credential)

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing is not None

    def get_refresh_token(self) -> str | None:
        """Return the current refresh token for persistence by the caller."""
        return self._credential.refresh_token

    def is_token_expired(self) -> bool:
        return self._credential.is_expired(self._clock())

    def has_valid_token(self) -> bool:
        return bool(self._credential.access_token) and not self.is_token_expired()

    def _should_refresh(self) -> bool:
        return not self._credential.access_token or self._credential.expires_within(
            self.REFRESH_THRESHOLD, self._clock()
        )

    async def get_valid_access_token(self) -> str:
        """Get a usable access token, refreshing first when needed.

        Returns:
            Access token

        Raises:
            NoRefreshToken: If a refresh is needed but impossible
            RefreshFailed: If the refresh failed and no unexpired token exists
        """
        if not self._should_refresh():
            return self._credential.access_token  # type: ignore[return-value]

        try:
            await self.refresh()
        except RefreshFailed as e:
            if self._serve_stale and self.has_valid_token():
                logger.warning(
                    "Token refresh failed, serving existing token until expiry",
                    reason=e.reason,
                    kind=e.kind.value,
                    expires_in=round(self._credential.expires_at - self._clock(), 1),  # type: ignore[operator]
                )
                return self._credential.access_token  # type: ignore[return-value]
            raise

        token = self._credential.access_token
        if not token:
            raise NoCredentialAvailable("No access token available")
        return token

    async def refresh(self) -> None:
        """Refresh the access token.

        If a refresh is already in flight, waits for that one instead of
        starting another. The refresh itself is shielded: cancelling a
        caller does not cancel the refresh, and its result is still cached.

        Raises:
            NoRefreshToken: If no refresh token or acquisition hook is available
            RefreshFailed: If the token endpoint call failed
        """
        if self._refreshing is None:
            if not self._credential.refresh_token and self._acquire is None:
                raise NoRefreshToken()
            task = asyncio.ensure_future(self._run_refresh())
            task.add_done_callback(_consume_result)
            self._refreshing = task

        await asyncio.shield(self._refreshing)

    async def authenticate(self) -> None:
        """Obtain a token now instead of on first request."""
        await self.refresh()

    async def _run_refresh(self) -> None:
        try:
            refresh_token = self._credential.refresh_token
            if refresh_token:
                logger.info("Refreshing access token")
                payload = await self._request_token(refresh_token)
            else:
                logger.info("Acquiring access token")
                payload = await self._acquire_primary()

            try:
                response = TokenResponse.model_validate(payload)
            except pydantic.ValidationError as e:
                raise RefreshFailed(
                    "token endpoint returned an invalid body",
                    kind=RefreshFailureKind.MALFORMED_RESPONSE,
                    cause=e,
                ) from e

            rotated = bool(response.refresh_token) and (
                response.refresh_token != self._credential.refresh_token
            )
            self._credential.apply(response, self._clock())
            logger.info(
                "Access token refreshed",
                expires_in=response.expires_in,
                refresh_token_rotated=rotated,
            )
        except RefreshFailed as e:
            logger.warning(
                "Access token refresh failed",
                reason=e.reason,
                kind=e.kind.value,
                status_code=e.status_code,
            )
            raise
        finally:
            self._refreshing = None

    async def _acquire_primary(self) -> Mapping[str, Any]:
        assert self._acquire is not None
        try:
            return await self._acquire()
        except RefreshFailed:
            raise
        except Exception as e:
            # Hooks may fail with anything; surface it as a refresh failure
            raise RefreshFailed(
                str(e) or type(e).__name__,
                kind=RefreshFailureKind.TRANSPORT,
                cause=e,
            ) from e

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                transport=self._transport,
            )
        return self._client

    async def _request_token(self, refresh_token: str) -> Any:
        client = self._get_client()
        data = {
            "grant_type": "refresh_token",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "refresh_token": refresh_token,
        }

        try:
            response = await client.post(self._token_url, data=data)
        except httpx.HTTPError as e:
            raise RefreshFailed(
                str(e) or type(e).__name__,
                kind=RefreshFailureKind.TRANSPORT,
                cause=e,
            ) from e

        if response.status_code >= 400:
            body = None
            with suppress(ValueError):
                body = response.json()
            if not isinstance(body, dict):
                body = None

            error_code = body.get("error") if body else None
            raise RefreshFailed(
                extract_error_message(body) or f"HTTP {response.status_code}",
                kind=RefreshFailureKind.REJECTED,
                status_code=response.status_code,
                error_code=error_code if isinstance(error_code, str) else None,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RefreshFailed(
                "token endpoint returned a non-JSON body",
                kind=RefreshFailureKind.MALFORMED_RESPONSE,
                cause=e,
            ) from e

    async def close(self) -> None:
        """Close the token endpoint client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _consume_result(task: asyncio.Task[None]) -> None:
    # Retrieve the exception so an unobserved failure is not reported as lost
    if not task.cancelled():
        task.exception()
