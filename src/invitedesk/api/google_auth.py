# Google sign-in router: connects the calendar account used by the tools.
# Created: 2026-10-16

from __future__ import annotations

import html
import logging

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from invitedesk.api.deps import get_app_settings
from invitedesk.config import Settings
from invitedesk.integrations.google_oauth import GoogleOAuthManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Google"])

_RESULT_HTML = """<!DOCTYPE html>
<html><head><title>InviteDesk</title>
<style>body {{ font-family: system-ui; max-width: 480px; margin: 60px auto; }}</style>
</head><body><h2>{title}</h2><p>{message}</p></body></html>"""


def _page(title: str, message: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        _RESULT_HTML.format(title=html.escape(title), message=html.escape(message)),
        status_code=status_code,
    )


def _oauth_manager(request: Request) -> GoogleOAuthManager | None:
    return request.app.state.google_oauth


@router.get("/auth/google")
async def google_sign_in(
    request: Request,
    user_id: str = Query(""),
    settings: Settings = Depends(get_app_settings),
):
    """Send the browser to Google's consent screen."""
    oauth = _oauth_manager(request)
    if oauth is None:
        return _page(
            "Google sign-in unavailable",
            "Google OAuth client credentials are not configured on this server.",
            status_code=503,
        )
    state = user_id or settings.default_user_id
    return RedirectResponse(oauth.get_auth_url(settings.google_redirect_uri, state=state))


@router.get("/auth/google/callback")
async def google_callback(
    request: Request,
    code: str = Query(""),
    state: str = Query(""),
    error: str = Query(""),
    settings: Settings = Depends(get_app_settings),
):
    """Exchange Google's code and store the account's tokens."""
    oauth = _oauth_manager(request)
    if oauth is None:
        return _page(
            "Google sign-in unavailable",
            "Google OAuth client credentials are not configured on this server.",
            status_code=503,
        )
    if error:
        logger.warning("Google sign-in failed: %s", error)
        return _page("Sign-in cancelled", f"Google returned: {error}", status_code=400)
    if not code:
        return _page("Sign-in failed", "Missing authorization code.", status_code=400)

    user_id = state or settings.default_user_id
    try:
        tokens = await oauth.exchange_code(user_id, code, settings.google_redirect_uri)
    except httpx.HTTPError as e:
        logger.error("Google code exchange failed for %s: %s", user_id, e)
        return _page("Sign-in failed", "Could not complete sign-in with Google.", 502)

    return _page(
        "Calendar connected",
        f"Signed in as {tokens.email or 'your Google account'}. "
        "You can close this window and return to the chat.",
    )
