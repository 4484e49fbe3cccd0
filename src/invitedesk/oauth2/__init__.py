"""In-memory OAuth 2.1 authorization server for MCP clients.

Created: 2026-10-12
"""

from invitedesk.oauth2.models import (
    AuthorizationCode,
    CodeValidation,
    IssuedToken,
    RegisteredClient,
)
from invitedesk.oauth2.server import (
    AuthorizationServer,
    extract_bearer_token,
)
from invitedesk.oauth2.storage import InMemoryStore, KeyValueStore, OAuthStorage

__all__ = [
    "AuthorizationCode",
    "AuthorizationServer",
    "CodeValidation",
    "InMemoryStore",
    "IssuedToken",
    "KeyValueStore",
    "OAuthStorage",
    "RegisteredClient",
    "extract_bearer_token",
]
