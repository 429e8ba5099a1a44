"""
Authentication - credential state, refresh token sources and the token manager.
"""

from tradestation_api.auth.credential import Credential, CredentialState, TokenResponse
from tradestation_api.auth.sources import resolve_refresh_token, store_refresh_token
from tradestation_api.auth.token_manager import TokenManager

__all__ = [
    "Credential",
    "CredentialState",
    "TokenManager",
    "TokenResponse",
    "resolve_refresh_token",
    "store_refresh_token",
]
