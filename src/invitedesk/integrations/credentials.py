# Per-user calendar credentials.
# Created: 2026-10-14

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol

from invitedesk.integrations.google_oauth import GoogleOAuthManager
from invitedesk.integrations.token_store import TokenStore

logger = logging.getLogger(__name__)

# Refresh this many seconds before the access token actually expires
_EXPIRY_MARGIN = 60


@dataclass(frozen=True)
class UserCredentials:
    access_token: str
    email: str | None


class NotAuthenticatedError(Exception):
    """No usable calendar credentials for the user."""


class CredentialProvider(Protocol):
    """What the calendar engine needs from the credential store."""

    async def get_credentials(self, user_id: str) -> UserCredentials:
        """Valid credentials for *user_id*; raises NotAuthenticatedError."""
        ...

    def is_authenticated(self, user_id: str) -> bool: ...

    def get_email(self, user_id: str) -> str | None: ...

    def get_auth_url(self, user_id: str) -> str | None: ...


class GoogleCredentialStore:
    """Credential provider backed by stored Google tokens."""

    def __init__(
        self,
        oauth: GoogleOAuthManager | None,
        redirect_uri: str,
        token_store: TokenStore | None = None,
    ):
        self.oauth = oauth
        self.redirect_uri = redirect_uri
        self.store = token_store or (oauth.store if oauth else TokenStore())

    def is_authenticated(self, user_id: str) -> bool:
        tokens = self.store.load(user_id)
        return tokens is not None and bool(tokens.refresh_token or tokens.access_token)

    def get_email(self, user_id: str) -> str | None:
        tokens = self.store.load(user_id)
        return tokens.email if tokens else None

    def get_auth_url(self, user_id: str) -> str | None:
        if self.oauth is None:
            return None
        return self.oauth.get_auth_url(self.redirect_uri, state=user_id)

    async def get_credentials(self, user_id: str) -> UserCredentials:
        tokens = self.store.load(user_id)
        if tokens is None:
            raise NotAuthenticatedError(f"No Google account connected for {user_id}")

        if tokens.expires_at is None or tokens.expires_at > time.time() + _EXPIRY_MARGIN:
            return UserCredentials(access_token=tokens.access_token, email=tokens.email)

        if self.oauth is None:
            raise NotAuthenticatedError("Google OAuth is not configured")

        refreshed = await self.oauth.refresh(tokens)
        if refreshed is None:
            self.store.delete(user_id)
            raise NotAuthenticatedError("Google session expired. Please sign in again.")
        return UserCredentials(access_token=refreshed.access_token, email=refreshed.email)
