"""
HTTP transport using httpx for async requests.

Every request, plain or streaming, passes the same two hooks:
- before send: wait for a throttle slot, then attach the bearer token
- after receive: record the rate-limit headers for the endpoint
"""

from __future__ import annotations

import json as json_module
import os
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING, Any

import httpx

from tradestation_api._features import HAS_HTTP2
from tradestation_api.errors import RemoteError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tradestation_api.auth.token_manager import TokenManager
    from tradestation_api.resilience.rate_limiter import EndpointThrottle


_DEFAULT_TIMEOUT = 30.0
_DEFAULT_CONNECT_TIMEOUT = 10.0

STREAM_ACCEPT = "application/vnd.tradestation.streams.v2+json"

_UA_VERSION: str | None = None


def _trust_env_enabled() -> bool:
    """Use env proxy settings only when explicitly enabled."""
    return os.getenv("TS_HTTP_TRUST_ENV", "0") == "1"


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        try:
            from importlib.metadata import PackageNotFoundError, version

            _UA_VERSION = version("tradestation-api-python")
        except PackageNotFoundError:
            _UA_VERSION = "0.0.0"
    return _UA_VERSION


def _error_body(raw: bytes) -> dict[str, Any] | None:
    with suppress(ValueError):
        body = json_module.loads(raw)
        if isinstance(body, dict):
            return body
    return None


class HttpTransport:
    """Authenticated, throttled HTTP transport for the TradeStation API.

    Example:
        >>> transport = HttpTransport(base_url, token_manager, throttle)
        >>> accounts = await transport.get("/v3/brokerage/accounts")
        >>> async with transport.stream_request("GET", "/v3/marketdata/stream/quotes/MSFT") as resp:
        ...     async for chunk in resp.aiter_bytes():
        ...         process(chunk)
    """

    def __init__(
        self,
        base_url: str,
        token_manager: TokenManager,
        throttle: EndpointThrottle,
        *,
        timeout: float | None = None,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            base_url: API base URL
            token_manager: Source of bearer tokens
            throttle: Per-endpoint throttle consulted before each request
            timeout: Request timeout in seconds
            proxy: Proxy URL
            transport: httpx transport override (tests)
        """
        self._base_url = base_url.rstrip("/")
        self._token_manager = token_manager
        self._throttle = throttle
        self._timeout = timeout if timeout is not None else _DEFAULT_TIMEOUT
        self._proxy = proxy
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            timeout = httpx.Timeout(self._timeout, connect=_DEFAULT_CONNECT_TIMEOUT)

            kwargs: dict[str, Any] = {}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            else:
                kwargs["proxy"] = self._proxy
                kwargs["http2"] = HAS_HTTP2

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=timeout,
                trust_env=_trust_env_enabled(),
                **kwargs,
            )

        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _build_headers(
        self,
        path: str,
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Wait for a throttle slot and build authenticated request headers."""
        await self._throttle.wait_for_slot(path)
        token = await self._token_manager.get_valid_access_token()

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"tradestation-api-python/{_get_ua_version()}",
        }
        if extra_headers:
            headers.update(extra_headers)
        headers["Authorization"] = f"Bearer {token}"
        return headers

    def _observe(self, path: str, response: httpx.Response) -> None:
        self._throttle.record_limits(path, response.headers)

    def _transport_error(self, path: str, e: httpx.HTTPError) -> TransportError:
        url = f"{self._base_url}{path}"
        if isinstance(e, httpx.ConnectError):
            return TransportError(f"Connection failed: {e}", url=url, cause=e)
        if isinstance(e, httpx.TimeoutException):
            return TransportError(f"Request timed out: {e}", url=url, cause=e)
        return TransportError(f"HTTP error: {e}", url=url, cause=e)

    async def request_raw(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request and return the response.

        Args:
            method: HTTP method
            path: Request path (relative to base URL)
            json: JSON body
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTP response

        Raises:
            TransportError: On network/connection errors
            RemoteError: On API errors (4xx, 5xx)
        """
        client = self._get_client()
        request_headers = await self._build_headers(path, headers)

        try:
            response = await client.request(
                method=method,
                url=path,
                json=json,
                params=params,
                headers=request_headers,
            )
        except httpx.HTTPError as e:
            raise self._transport_error(path, e) from e

        self._observe(path, response)

        if response.status_code >= 400:
            raise RemoteError.from_response(
                status_code=response.status_code,
                body=_error_body(response.content),
                headers=dict(response.headers),
            )

        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body.

        Empty bodies decode to None.
        """
        response = await self.request_raw(
            method, path, json=json, params=params, headers=headers
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Response body is not valid JSON",
                url=f"{self._base_url}{path}",
                status_code=response.status_code,
                cause=e,
            ) from e

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a GET request."""
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a POST request."""
        return await self.request("POST", path, json=json, headers=headers)

    async def put(
        self,
        path: str,
        json: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a PUT request."""
        return await self.request("PUT", path, json=json, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    @asynccontextmanager
    async def stream_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Make a streaming HTTP request.

        Leaving the context closes the response and releases the connection.

        Args:
            method: HTTP method
            path: Request path
            params: Query parameters
            headers: Additional headers (e.g. a versioned Accept)

        Yields:
            HTTP response for streaming

        Raises:
            TransportError: On network/connection errors, including mid-stream
            RemoteError: If the server answers with an error status
        """
        client = self._get_client()
        request_headers = await self._build_headers(
            path, {"Accept": STREAM_ACCEPT, **(headers or {})}
        )

        try:
            async with client.stream(
                method=method,
                url=path,
                params=params,
                headers=request_headers,
            ) as response:
                self._observe(path, response)

                if response.status_code >= 400:
                    body_text = await response.aread()
                    raise RemoteError.from_response(
                        status_code=response.status_code,
                        body=_error_body(body_text),
                        headers=dict(response.headers),
                    )

                yield response

        except httpx.HTTPError as e:
            raise self._transport_error(path, e) from e

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
