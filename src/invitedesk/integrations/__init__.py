"""Google account integration: token storage, OAuth flow and credential lookup.

Created: 2026-10-14
"""

from invitedesk.integrations.credentials import (
    CredentialProvider,
    GoogleCredentialStore,
    NotAuthenticatedError,
    UserCredentials,
)
from invitedesk.integrations.google_oauth import GoogleOAuthManager
from invitedesk.integrations.token_store import GoogleTokens, TokenStore

__all__ = [
    "CredentialProvider",
    "GoogleCredentialStore",
    "GoogleOAuthManager",
    "GoogleTokens",
    "NotAuthenticatedError",
    "TokenStore",
    "UserCredentials",
]
