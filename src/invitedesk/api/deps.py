# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-16

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from invitedesk.config import Settings
from invitedesk.oauth2.server import AuthorizationServer
from invitedesk.security.rate_limiter import RateLimiter


def get_app_settings(request: Request) -> Settings:
    """Settings the app was built with (see ``create_app``)."""
    return request.app.state.settings


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limited(request: Request, limiter: RateLimiter) -> JSONResponse | None:
    """429 response if the caller's IP is over *limiter*'s budget, else None."""
    info = limiter.check(client_ip(request))
    if info.allowed:
        return None
    return JSONResponse(
        status_code=429,
        content={"error": "rate_limited", "error_description": "Too many requests"},
        headers=info.headers(),
    )


def get_oauth_server(request: Request) -> AuthorizationServer:
    """The authorization server owned by this app (see ``create_app``)."""
    return request.app.state.oauth_server
