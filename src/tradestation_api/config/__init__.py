"""
Client configuration - models, environment and file loading.
"""

from tradestation_api.config.loader import load_from_env, load_from_file
from tradestation_api.config.settings import (
    DEFAULT_TOKEN_URL,
    LIVE_BASE_URL,
    SIMULATION_BASE_URL,
    ClientConfig,
    Environment,
)

__all__ = [
    "DEFAULT_TOKEN_URL",
    "LIVE_BASE_URL",
    "SIMULATION_BASE_URL",
    "ClientConfig",
    "Environment",
    "load_from_env",
    "load_from_file",
]
