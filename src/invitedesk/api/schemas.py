# OAuth2 schemas.
# Created: 2026-10-16

from __future__ import annotations

from pydantic import BaseModel


class TokenRequest(BaseModel):
    """Token endpoint parameters, from a form or a JSON body."""

    grant_type: str
    code: str | None = None
    code_verifier: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    scope: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    scope: str | None = None


class ClientRegistrationResponse(BaseModel):
    """RFC 7591 client information response."""

    client_id: str
    client_secret: str
    client_name: str
    redirect_uris: list[str]
    grant_types: list[str]
    response_types: list[str]
    token_endpoint_auth_method: str
    client_id_issued_at: int
    client_secret_expires_at: int = 0


class OAuthErrorResponse(BaseModel):
    """RFC 6749 section 5.2 error body."""

    error: str
    error_description: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    demo_mode: bool = False
