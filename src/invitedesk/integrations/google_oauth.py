# Google OAuth 2.0: auth code flow, token refresh and account lookup.
# Created: 2026-10-14

from __future__ import annotations

import logging
import time
import urllib.parse

import httpx

from invitedesk.integrations.token_store import GoogleTokens, TokenStore

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/userinfo.email",
]


class GoogleOAuthManager:
    """Authorization code flow against Google for calendar access.

    Supports:
    - Authorization URL generation
    - Code exchange (also resolves the account email)
    - Token refresh
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_store: TokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = token_store or TokenStore()
        self._transport = transport

    def get_auth_url(self, redirect_uri: str, state: str = "") -> str:
        """URL that sends the user to Google's consent screen."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(CALENDAR_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{AUTH_URL}?{urllib.parse.urlencode(params)}"

    async def exchange_code(self, user_id: str, code: str, redirect_uri: str) -> GoogleTokens:
        """Exchange a callback code for tokens and store them under *user_id*."""
        async with httpx.AsyncClient(timeout=15, transport=self._transport) as client:
            resp = await client.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            resp.raise_for_status()
            data = resp.json()

            info = await client.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {data['access_token']}"},
            )
            info.raise_for_status()
            email = info.json().get("email")

        tokens = GoogleTokens(
            user_id=user_id,
            access_token=data["access_token"],
            email=email,
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "Bearer"),
            expires_at=time.time() + data.get("expires_in", 3600),
            scopes=data.get("scope", "").split() or list(CALENDAR_SCOPES),
        )
        self.store.save(tokens)
        logger.info("Google account %s connected for %s", email, user_id)
        return tokens

    async def refresh(self, tokens: GoogleTokens) -> GoogleTokens | None:
        """Refresh an expired access token. Returns None if refresh fails."""
        if not tokens.refresh_token:
            return None
        try:
            async with httpx.AsyncClient(timeout=15, transport=self._transport) as client:
                resp = await client.post(
                    TOKEN_URL,
                    data={
                        "refresh_token": tokens.refresh_token,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "grant_type": "refresh_token",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            logger.warning("Google token refresh failed for %s: %s", tokens.user_id, e)
            return None

        tokens.access_token = data["access_token"]
        tokens.expires_at = time.time() + data.get("expires_in", 3600)
        if "refresh_token" in data:
            tokens.refresh_token = data["refresh_token"]
        self.store.save(tokens)
        logger.info("Refreshed Google token for %s", tokens.user_id)
        return tokens
