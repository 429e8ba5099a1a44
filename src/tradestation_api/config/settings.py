"""
Client configuration models.

These Pydantic models describe everything a client instance needs: OAuth
client credentials, target environment, and the limits used by the token
manager, throttle and stream multiplexer.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

LIVE_BASE_URL = "https://api.tradestation.com"
SIMULATION_BASE_URL = "https://sim.api.tradestation.com"
DEFAULT_TOKEN_URL = "https://signin.tradestation.com/oauth/token"


class Environment(str, Enum):
    """Trading environment."""

    LIVE = "Live"
    SIMULATION = "Simulation"

    @classmethod
    def parse(cls, value: str | Environment) -> Environment:
        """Parse an environment name case-insensitively."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("simulation", "sim"):
            return cls.SIMULATION
        if normalized == "live":
            return cls.LIVE
        raise ValueError(f"Unknown environment: {value!r} (expected 'Live' or 'Simulation')")

    @property
    def base_url(self) -> str:
        return SIMULATION_BASE_URL if self is Environment.SIMULATION else LIVE_BASE_URL


class ClientConfig(BaseModel):
    """TradeStation client configuration.

    Example:
        >>> config = ClientConfig(
        ...     client_id="abc",
        ...     client_secret="xyz",
        ...     refresh_token="r1",
        ...     environment="Simulation",
        ... )
        >>> config.resolved_base_url
        'https://sim.api.tradestation.com'
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    client_id: str = Field(min_length=1, description="OAuth client ID (API key)")
    client_secret: str = Field(min_length=1, description="OAuth client secret")
    refresh_token: str | None = Field(
        default=None, description="Initial refresh token"
    )
    environment: Environment = Field(description="Live or Simulation")
    max_concurrent_streams: int = Field(
        default=10, ge=1, description="Ceiling on concurrently open logical streams"
    )
    default_rate_limit: int = Field(
        default=120, ge=1, description="Limit assumed when x-ratelimit-limit is absent"
    )
    rate_limit_window: float = Field(
        default=60.0, gt=0, description="Seconds in one rate-limit window"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    base_url: str | None = Field(default=None, description="Override the API base URL")
    token_url: str = Field(default=DEFAULT_TOKEN_URL, description="OAuth token endpoint")
    serve_stale_credentials: bool = Field(
        default=True,
        description="Return a still-unexpired token when a refresh attempt fails",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def _parse_environment(cls, value: object) -> Environment:
        if isinstance(value, (str, Environment)):
            return Environment.parse(value)
        raise ValueError("environment must be a string")

    @property
    def resolved_base_url(self) -> str:
        """Base URL after applying the override."""
        return (self.base_url or self.environment.base_url).rstrip("/")

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Build a configuration from environment variables.

        See :func:`tradestation_api.config.loader.load_from_env`.
        """
        from tradestation_api.config.loader import load_from_env

        return load_from_env(**overrides)

    @classmethod
    def from_file(cls, path: str, **overrides: object) -> ClientConfig:
        """Build a configuration from a YAML or JSON file.

        See :func:`tradestation_api.config.loader.load_from_file`.
        """
        from tradestation_api.config.loader import load_from_file

        return load_from_file(path, **overrides)
