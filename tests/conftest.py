"""Root pytest fixtures for tradestation-api-python tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

_ENV_VARS = (
    "CLIENT_ID",
    "CLIENT_SECRET",
    "REFRESH_TOKEN",
    "ENVIRONMENT",
    "TS_MAX_CONCURRENT_STREAMS",
    "TS_HTTP_TIMEOUT",
    "TS_BASE_URL",
    "TS_HTTP_TRUST_ENV",
)


class FakeClock:
    """Manually advanced wall clock, paired with a sleep that advances it."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ChunkedBody(httpx.AsyncByteStream):
    """Response body delivered as explicit chunks.

    With ``hold_open`` the body never ends until the response is closed;
    with ``fail`` the given exception is raised after the last chunk.
    """

    def __init__(
        self,
        chunks: list[bytes],
        *,
        hold_open: bool = False,
        fail: Exception | None = None,
    ) -> None:
        self._chunks = chunks
        self._hold_open = hold_open
        self._fail = fail
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
            await asyncio.sleep(0)
        if self._fail is not None:
            raise self._fail
        if self._hold_open:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


def _token_body(
    access_token: str = "access-1",
    refresh_token: str | None = None,
    expires_in: int = 1200,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "access_token": access_token,
        "expires_in": expires_in,
        "token_type": "Bearer",
    }
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return body


def _ndjson(*records: Any) -> bytes:
    return b"".join(json.dumps(r).encode() + b"\n" for r in records)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of the developer's environment and keyring."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("tradestation_api.auth.sources._try_keyring", lambda client_id: None)


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def token_body() -> Callable[..., dict[str, Any]]:
    """Factory for token endpoint response bodies."""
    return _token_body


@pytest.fixture
def ndjson() -> Callable[..., bytes]:
    """Serialize records as newline-delimited JSON."""
    return _ndjson


@pytest.fixture
def chunked_body() -> type[ChunkedBody]:
    """Chunked response body class for streaming tests."""
    return ChunkedBody


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast tests with mocked HTTP")
