# OAuth2 router: discovery metadata, client registration, authorize, token.
# Created: 2026-10-16
#
# The token endpoint follows RFC 6749: errors are JSON bodies with an
# ``error`` code, ``invalid_client`` answers 401 and everything else 400.

from __future__ import annotations

import base64
import binascii
import html
import logging
from typing import Any
from urllib.parse import unquote_plus, urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError

from invitedesk.api.deps import get_app_settings, get_oauth_server, rate_limited
from invitedesk.api.schemas import (
    ClientRegistrationResponse,
    OAuthErrorResponse,
    TokenRequest,
    TokenResponse,
)
from invitedesk.config import Settings
from invitedesk.oauth2.server import AuthorizationServer
from invitedesk.security.rate_limiter import authorize_limiter, register_limiter, token_limiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth2"])

_NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}

_CONSENT_HTML = """<!DOCTYPE html>
<html><head><title>InviteDesk Authorization</title>
<style>
body {{ font-family: system-ui; max-width: 480px; margin: 40px auto; padding: 20px; }}
.btn {{ padding: 10px 24px; border: none; border-radius: 6px; cursor: pointer; font-size: 16px; }}
.allow {{ background: #2563eb; color: white; }} .allow:hover {{ background: #1d4ed8; }}
.deny {{ background: #e5e7eb; color: #374151; margin-left: 12px; }}
h2 {{ margin-bottom: 8px; }}
.scopes {{ background: #f3f4f6; padding: 12px; border-radius: 8px; margin: 16px 0; }}
.scope {{ display: inline-block; background: #dbeafe; padding: 4px 8px;
  border-radius: 4px; margin: 2px; font-size: 14px; }}
</style></head><body>
<h2>Authorize {client_name}</h2>
<p>This app wants to read and answer your calendar invitations.</p>
<div class="scopes"><strong>Requested permissions:</strong><br>{scope_badges}</div>
<form method="POST" action="/oauth/authorize/consent">
<input type="hidden" name="client_id" value="{client_id}">
<input type="hidden" name="redirect_uri" value="{redirect_uri}">
<input type="hidden" name="scope" value="{scope}">
<input type="hidden" name="code_challenge" value="{code_challenge}">
<input type="hidden" name="code_challenge_method" value="{code_challenge_method}">
<input type="hidden" name="state" value="{state}">
<button type="submit" name="action" value="allow" class="btn allow">Allow</button>
<button type="submit" name="action" value="deny" class="btn deny">Deny</button>
</form></body></html>"""


def _oauth_error(error: str, description: str, status_code: int = 400) -> JSONResponse:
    headers = dict(_NO_STORE)
    if status_code == 401:
        headers["WWW-Authenticate"] = "Basic"
    body = OAuthErrorResponse(error=error, error_description=description)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def _token_json(server: AuthorizationServer, token: str, scope: str | None) -> JSONResponse:
    body = TokenResponse.model_validate(server.token_response(token, scope))
    return JSONResponse(body.model_dump(exclude_none=True), headers=_NO_STORE)


def _redirect_with(redirect_uri: str, params: dict[str, str], state: str) -> RedirectResponse:
    if state:
        params["state"] = state
    separator = "&" if "?" in redirect_uri else "?"
    return RedirectResponse(f"{redirect_uri}{separator}{urlencode(params)}", status_code=302)


def _check_authorize_request(
    server: AuthorizationServer,
    client_id: str,
    redirect_uri: str,
    code_challenge: str,
    code_challenge_method: str,
) -> None:
    """Reject requests that must never be redirected back to the client."""
    if server.get_client(client_id) is None:
        raise HTTPException(status_code=400, detail="Unknown client_id")
    if not server.is_redirect_allowed(client_id, redirect_uri):
        raise HTTPException(status_code=400, detail="Invalid redirect_uri")
    if code_challenge and code_challenge_method != "S256":
        raise HTTPException(status_code=400, detail="Only S256 code_challenge_method is supported")


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@router.get("/.well-known/oauth-authorization-server")
async def authorization_server_metadata(settings: Settings = Depends(get_app_settings)):
    """RFC 8414 authorization server metadata."""
    base = settings.base_url.rstrip("/")
    return {
        "issuer": base,
        "authorization_endpoint": f"{base}/oauth/authorize",
        "token_endpoint": f"{base}/oauth/token",
        "registration_endpoint": f"{base}/oauth/register",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code", "client_credentials"],
        "code_challenge_methods_supported": ["S256"],
        "token_endpoint_auth_methods_supported": [
            "client_secret_post",
            "client_secret_basic",
            "none",
        ],
    }


@router.get("/.well-known/oauth-protected-resource")
async def protected_resource_metadata(settings: Settings = Depends(get_app_settings)):
    """RFC 9728 metadata for the MCP endpoint."""
    base = settings.base_url.rstrip("/")
    return {
        "resource": f"{base}/mcp",
        "authorization_servers": [base],
        "bearer_methods_supported": ["header"],
    }


# ---------------------------------------------------------------------------
# Dynamic client registration (RFC 7591)
# ---------------------------------------------------------------------------


@router.post("/oauth/register", status_code=201, response_model=ClientRegistrationResponse)
async def register_client(
    request: Request, server: AuthorizationServer = Depends(get_oauth_server)
):
    """Register a client. The secret is only ever returned here."""
    if limited := rate_limited(request, register_limiter):
        return limited

    try:
        metadata = await request.json()
    except ValueError:
        metadata = {}
    if not isinstance(metadata, dict):
        return _oauth_error("invalid_client_metadata", "Registration body must be a JSON object")

    return server.register_client(metadata)


# ---------------------------------------------------------------------------
# Authorization code flow
# ---------------------------------------------------------------------------


@router.get("/oauth/authorize")
async def authorize(
    request: Request,
    client_id: str = Query(...),
    redirect_uri: str = Query(""),
    response_type: str = Query("code"),
    scope: str = Query(""),
    code_challenge: str = Query(""),
    code_challenge_method: str = Query("S256"),
    state: str = Query(""),
    server: AuthorizationServer = Depends(get_oauth_server),
):
    """Show the consent screen."""
    if limited := rate_limited(request, authorize_limiter):
        return limited

    if response_type != "code":
        raise HTTPException(status_code=400, detail="Unsupported response_type")

    client = server.get_client(client_id)
    if client is not None and not redirect_uri and client.redirect_uris:
        redirect_uri = client.redirect_uris[0]
    _check_authorize_request(server, client_id, redirect_uri, code_challenge, code_challenge_method)

    scope_badges = " ".join(
        f'<span class="scope">{html.escape(s)}</span>' for s in scope.split()
    ) or '<span class="scope">calendar</span>'

    page = _CONSENT_HTML.format(
        client_name=html.escape(client.client_name),
        client_id=html.escape(client_id, quote=True),
        redirect_uri=html.escape(redirect_uri, quote=True),
        scope=html.escape(scope, quote=True),
        scope_badges=scope_badges,
        code_challenge=html.escape(code_challenge, quote=True),
        code_challenge_method=html.escape(code_challenge_method, quote=True),
        state=html.escape(state, quote=True),
    )
    return HTMLResponse(page)


@router.post("/oauth/authorize/consent")
async def authorize_consent(
    request: Request, server: AuthorizationServer = Depends(get_oauth_server)
):
    """Process the consent form and redirect back with a code or an error."""
    if limited := rate_limited(request, authorize_limiter):
        return limited

    form = await request.form()
    action = str(form.get("action", "deny"))
    client_id = str(form.get("client_id", ""))
    redirect_uri = str(form.get("redirect_uri", ""))
    scope = str(form.get("scope", ""))
    code_challenge = str(form.get("code_challenge", ""))
    code_challenge_method = str(form.get("code_challenge_method", "S256"))
    state = str(form.get("state", ""))

    _check_authorize_request(server, client_id, redirect_uri, code_challenge, code_challenge_method)

    if action != "allow":
        logger.info("Authorization denied for client %s", client_id)
        return _redirect_with(redirect_uri, {"error": "access_denied"}, state)

    code = server.generate_authorization_code(
        client_id=client_id,
        redirect_uri=redirect_uri,
        code_challenge=code_challenge or None,
        code_challenge_method=code_challenge_method if code_challenge else None,
        scope=scope or None,
    )
    logger.info("Issued authorization code for client %s", client_id)
    return _redirect_with(redirect_uri, {"code": code}, state)


# ---------------------------------------------------------------------------
# Token endpoint
# ---------------------------------------------------------------------------


async def _read_token_params(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _basic_credentials(auth_header: str | None) -> tuple[str, str] | None:
    """Client id and secret from an HTTP Basic header (RFC 6749 2.3.1)."""
    if not auth_header or not auth_header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(auth_header[len("Basic ") :].strip()).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    client_id, sep, client_secret = decoded.partition(":")
    if not sep:
        return None
    return unquote_plus(client_id), unquote_plus(client_secret)


_TOKEN_ERRORS = {400: {"model": OAuthErrorResponse}, 401: {"model": OAuthErrorResponse}}


@router.post("/oauth/token", response_model=TokenResponse, responses=_TOKEN_ERRORS)
async def token_exchange(
    request: Request, server: AuthorizationServer = Depends(get_oauth_server)
):
    """Issue an access token for the client credentials or authorization code grant."""
    if limited := rate_limited(request, token_limiter):
        return limited

    try:
        body = TokenRequest.model_validate(await _read_token_params(request))
    except ValidationError:
        return _oauth_error("invalid_request", "Missing or malformed token request parameters")

    client_id, client_secret = body.client_id, body.client_secret
    basic = _basic_credentials(request.headers.get("Authorization"))
    if basic is not None:
        client_id, client_secret = basic


    if body.grant_type == "client_credentials":
        if not client_id or client_secret is None:
            return _oauth_error("invalid_client", "Client authentication failed", 401)
        if not server.validate_client_credentials(client_id, client_secret):
            logger.warning("Rejected client credentials for %s", client_id)
            return _oauth_error("invalid_client", "Client authentication failed", 401)
        token = server.generate_access_token(client_id, body.scope)
        logger.info("Issued client_credentials token to %s", client_id)
        return _token_json(server, token, body.scope)

    if body.grant_type == "authorization_code":
        if not body.code or not client_id or not body.redirect_uri:
            return _oauth_error("invalid_request", "code, client_id and redirect_uri are required")
        if not server.validate_client_id(client_id):
            return _oauth_error("invalid_client", "Unknown client", 401)
        if client_secret and not server.validate_client_credentials(client_id, client_secret):
            return _oauth_error("invalid_client", "Client authentication failed", 401)

        result = server.validate_authorization_code(
            body.code, client_id, body.redirect_uri, body.code_verifier
        )
        if not result.valid:
            logger.info("Rejected authorization code for %s: %s", client_id, result.error)
            return _oauth_error("invalid_grant", result.error or "Invalid authorization code")

        token = server.generate_access_token(client_id, result.scope)
        logger.info("Issued authorization_code token to %s", client_id)
        return _token_json(server, token, result.scope)

    return _oauth_error("unsupported_grant_type", f"Unsupported grant_type: {body.grant_type}")
