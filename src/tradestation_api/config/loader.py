"""
Configuration loading from environment variables and files.

Resolution order for every setting:
1. Explicit keyword override
2. Configuration file (when loading from a file)
3. Environment variable
4. Model default
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pydantic
import yaml

from tradestation_api.config.settings import ClientConfig
from tradestation_api.errors import ConfigurationError

# Environment variable for each setting
_ENV_VARS: dict[str, str] = {
    "client_id": "CLIENT_ID",
    "client_secret": "CLIENT_SECRET",
    "refresh_token": "REFRESH_TOKEN",
    "environment": "ENVIRONMENT",
    "max_concurrent_streams": "TS_MAX_CONCURRENT_STREAMS",
    "timeout": "TS_HTTP_TIMEOUT",
    "base_url": "TS_BASE_URL",
}


def _env_settings() -> dict[str, Any]:
    settings: dict[str, Any] = {}
    for name, env_var in _ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            settings[name] = value
    return settings


def _build(settings: dict[str, Any]) -> ClientConfig:
    if not settings.get("client_id") or not settings.get("client_secret"):
        raise ConfigurationError(
            "Client ID and Client Secret are required",
            setting="client_id",
        ).with_hint("set CLIENT_ID and CLIENT_SECRET or pass them explicitly")
    if not settings.get("environment"):
        raise ConfigurationError(
            "Environment must be specified either in config or ENVIRONMENT env var",
            setting="environment",
        )

    try:
        return ClientConfig.model_validate(settings)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg')}",
            setting=setting or None,
        ) from e


def load_from_env(**overrides: Any) -> ClientConfig:
    """Build a configuration from environment variables.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Validated client configuration

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    settings = _env_settings()
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return _build(settings)


def load_from_file(path: str | Path, **overrides: Any) -> ClientConfig:
    """Build a configuration from a YAML or JSON file.

    Keys absent from the file fall back to environment variables.

    Args:
        path: Path to a ``.yaml``/``.yml`` or ``.json`` file
        **overrides: Explicit values that take precedence over the file

    Returns:
        Validated client configuration

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {path}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse configuration file: {path}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

    settings = _env_settings()
    settings.update(data)
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return _build(settings)
