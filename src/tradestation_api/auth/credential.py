"""
Credential state held by the token manager.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Body returned by the OAuth token endpoint."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1, description="Bearer access token")
    refresh_token: str | None = Field(
        default=None, description="Replacement refresh token; absent means unchanged"
    )
    expires_in: float = Field(gt=0, description="Access token lifetime in seconds")
    token_type: str | None = Field(default=None, description="Usually 'Bearer'")


class CredentialState(str, Enum):
    """Lifecycle state of a token manager."""

    NO_CREDENTIAL = "no_credential"
    REFRESHING = "refreshing"
    VALID = "valid"


@dataclass
class Credential:
    """The single live credential of a token manager.

    Attributes:
        access_token: Bearer token, None until the first refresh
        refresh_token: Token exchanged for a new access token
        expires_at: Absolute expiry (epoch seconds), None until the first refresh
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: float | None = None

    def apply(self, response: TokenResponse, now: float) -> None:
        """Replace the credential in place from a token response.

        The refresh token is only replaced when the response carries one.
        """
        self.access_token = response.access_token
        if response.refresh_token:
            self.refresh_token = response.refresh_token
        self.expires_at = now + response.expires_in

    def is_expired(self, now: float) -> bool:
        return self.expires_at is None or now >= self.expires_at

    def expires_within(self, seconds: float, now: float) -> bool:
        """True when absent or within ``seconds`` of expiry."""
        return self.expires_at is None or now >= self.expires_at - seconds
