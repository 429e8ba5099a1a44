"""
Refresh token resolution.

Resolves the initial refresh token from multiple sources:
1. Explicit value
2. Environment variable
3. System keyring (optional)
"""

from __future__ import annotations

import os

from tradestation_api.telemetry import get_logger

KEYRING_SERVICE = "tradestation"

logger = get_logger("tradestation_api.auth")


def resolve_refresh_token(
    client_id: str,
    explicit_token: str | None = None,
    env_var: str = "REFRESH_TOKEN",
) -> str | None:
    """Resolve the refresh token for a client.

    Args:
        client_id: OAuth client ID, used as the keyring user name
        explicit_token: Explicitly provided refresh token
        env_var: Environment variable to consult

    Returns:
        Resolved refresh token or None if not found
    """
    if explicit_token:
        return explicit_token

    token = os.getenv(env_var)
    if token:
        return token

    return _try_keyring(client_id)


def _try_keyring(client_id: str) -> str | None:
    """Try to get the refresh token from the system keyring."""
    try:
        import keyring
    except ImportError:
        return None

    try:
        return keyring.get_password(KEYRING_SERVICE, client_id)
    except Exception as e:
        # Keyring backends fail in containers, WSL, CI
        logger.debug("Keyring lookup failed", error=str(e))
        return None


def store_refresh_token(client_id: str, refresh_token: str) -> None:
    """Persist a refresh token in the system keyring.

    Args:
        client_id: OAuth client ID, used as the keyring user name
        refresh_token: Token to store

    Raises:
        ImportError: If the ``keyring`` extra is not installed
    """
    from tradestation_api._features import require_extra

    require_extra("keyring", "keyring")
    import keyring

    keyring.set_password(KEYRING_SERVICE, client_id, refresh_token)
