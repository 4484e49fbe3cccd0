# OAuth2 data models.
# Created: 2026-10-12

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class RegisteredClient:
    """OAuth2 client, registered dynamically or provisioned at startup."""

    client_id: str
    client_secret: str
    client_name: str
    redirect_uris: list[str] = field(default_factory=list)
    grant_types: list[str] = field(default_factory=lambda: ["authorization_code"])
    response_types: list[str] = field(default_factory=lambda: ["code"])
    token_endpoint_auth_method: str = "client_secret_post"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def registration_response(self) -> dict:
        """RFC 7591 client information response."""
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "client_name": self.client_name,
            "redirect_uris": list(self.redirect_uris),
            "grant_types": list(self.grant_types),
            "response_types": list(self.response_types),
            "token_endpoint_auth_method": self.token_endpoint_auth_method,
            "client_id_issued_at": int(self.created_at.timestamp()),
            "client_secret_expires_at": 0,  # never expires
        }


@dataclass(frozen=True)
class AuthorizationCode:
    """One-time authorization code bound to a client and redirect URI."""

    code: str
    client_id: str
    redirect_uri: str
    expires_at: datetime
    code_challenge: str | None = None
    code_challenge_method: str | None = None  # "S256" or "plain"
    scope: str | None = None


@dataclass(frozen=True)
class IssuedToken:
    """Bearer access token. Not refreshable."""

    access_token: str
    client_id: str
    expires_at: datetime
    scope: str | None = None


@dataclass(frozen=True)
class CodeValidation:
    """Outcome of validating an authorization code."""

    valid: bool
    error: str | None = None
    scope: str | None = None
