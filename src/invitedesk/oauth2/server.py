# OAuth 2.1 authorization server emulator.
# Created: 2026-10-12
#
# Supports dynamic client registration (RFC 7591), the client credentials
# grant and the authorization code grant with PKCE (RFC 7636). All state is
# in memory and lives as long as the process.

from __future__ import annotations

import base64
import fnmatch
import hashlib
import hmac
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from invitedesk.oauth2.models import (
    AuthorizationCode,
    CodeValidation,
    IssuedToken,
    RegisteredClient,
)
from invitedesk.oauth2.storage import OAuthStorage

if TYPE_CHECKING:
    from invitedesk.config import Settings

logger = logging.getLogger(__name__)

# Lifetimes
ACCESS_TOKEN_TTL = timedelta(hours=1)
CODE_TTL = timedelta(minutes=10)

DEFAULT_REDIRECT_URI = "https://chatgpt.com/aip/g-*/oauth/callback"
DEFAULT_CLIENT_NAME = "Default MCP Client"

# Validation failures reported by validate_authorization_code()
ERR_INVALID_CODE = "Invalid authorization code"
ERR_CODE_EXPIRED = "Authorization code expired"
ERR_CLIENT_MISMATCH = "Client ID mismatch"
ERR_REDIRECT_MISMATCH = "Redirect URI mismatch"
ERR_VERIFIER_REQUIRED = "Code verifier required"
ERR_INVALID_VERIFIER = "Invalid code verifier"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _string_list(value: Any, default: list[str]) -> list[str]:
    """Keep *value* only if it is a non-empty list of strings."""
    if isinstance(value, list) and value and all(isinstance(v, str) and v for v in value):
        return list(value)
    return list(default)


def pkce_s256(code_verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode()).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()


def _safe_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode(), b.encode())


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header[len("Bearer ") :].strip()
    return token or None


class AuthorizationServer:
    """In-memory OAuth 2.1 authorization server.

    Validation methods never raise for unknown or malformed credentials; they
    return booleans or a ``CodeValidation``.
    """

    def __init__(
        self,
        storage: OAuthStorage | None = None,
        default_client_id: str = "chatgpt-mcp-client",
        default_client_secret: str = "chatgpt-mcp-secret-key-2024",
        default_redirect_uri: str = DEFAULT_REDIRECT_URI,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._clock = clock
        self.default_client_id = default_client_id
        self._default_client_secret = default_client_secret
        self.default_redirect_uri = default_redirect_uri
        self.storage = storage or OAuthStorage(
            default_client=RegisteredClient(
                client_id=default_client_id,
                client_secret=default_client_secret,
                client_name=DEFAULT_CLIENT_NAME,
                redirect_uris=[default_redirect_uri],
                grant_types=["authorization_code", "client_credentials"],
                response_types=["code"],
                token_endpoint_auth_method="client_secret_post",
                created_at=clock(),
            )
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthorizationServer:
        """Server whose built-in client comes from ``settings``."""
        return cls(
            default_client_id=settings.oauth_client_id,
            default_client_secret=settings.oauth_client_secret,
            default_redirect_uri=settings.default_redirect_uri,
        )

    # ------------------------------------------------------------------
    # Dynamic client registration
    # ------------------------------------------------------------------

    def register_client(self, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Register a client and return its RFC 7591 record.

        The secret is disclosed here and nowhere else. Missing or malformed
        optional fields fall back to defaults.
        """
        metadata = metadata or {}
        name = metadata.get("client_name")
        auth_method = metadata.get("token_endpoint_auth_method")

        client = RegisteredClient(
            client_id=f"client_{secrets.token_hex(16)}",
            client_secret=secrets.token_hex(32),
            client_name=name if isinstance(name, str) and name else "Dynamic Client",
            redirect_uris=_string_list(
                metadata.get("redirect_uris"), [self.default_redirect_uri]
            ),
            grant_types=_string_list(metadata.get("grant_types"), ["authorization_code"]),
            response_types=_string_list(metadata.get("response_types"), ["code"]),
            token_endpoint_auth_method=(
                auth_method
                if isinstance(auth_method, str) and auth_method
                else "client_secret_post"
            ),
            created_at=self._clock(),
        )
        self.storage.clients.set(client.client_id, client)
        logger.info("Registered OAuth client %s (%s)", client.client_id, client.client_name)
        return client.registration_response()

    def get_client(self, client_id: str) -> RegisteredClient | None:
        return self.storage.get_client(client_id)

    # ------------------------------------------------------------------
    # Client validation
    # ------------------------------------------------------------------

    def validate_client_credentials(self, client_id: str, client_secret: str) -> bool:
        """True iff the id/secret pair matches a registered or the default client."""
        if not client_id or client_secret is None:
            return False
        client = self.storage.get_client(client_id)
        if client is not None:
            return _safe_equals(client.client_secret, client_secret)
        return client_id == self.default_client_id and _safe_equals(
            self._default_client_secret, client_secret
        )

    def validate_client_id(self, client_id: str) -> bool:
        """Existence check for the authorization code flow (no secret)."""
        if not client_id:
            return False
        return client_id in self.storage.clients or client_id == self.default_client_id

    def is_redirect_allowed(self, client_id: str, redirect_uri: str) -> bool:
        """True if *redirect_uri* matches one of the client's registered URIs.

        Registered URIs may carry ``*`` wildcards (``https://chatgpt.com/aip/g-*/...``).
        """
        client = self.storage.get_client(client_id)
        if client is None or not redirect_uri:
            return False
        for pattern in client.redirect_uris:
            if redirect_uri == pattern:
                return True
            if "*" in pattern and fnmatch.fnmatchcase(redirect_uri, pattern):
                return True
        return False

    # ------------------------------------------------------------------
    # Authorization codes
    # ------------------------------------------------------------------

    def generate_authorization_code(
        self,
        client_id: str,
        redirect_uri: str,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
        scope: str | None = None,
    ) -> str:
        """Mint a one-time code valid for ``CODE_TTL``."""
        code = secrets.token_hex(32)
        self.storage.codes.set(
            code,
            AuthorizationCode(
                code=code,
                client_id=client_id,
                redirect_uri=redirect_uri,
                expires_at=self._clock() + CODE_TTL,
                code_challenge=code_challenge or None,
                code_challenge_method=code_challenge_method or None,
                scope=scope or None,
            ),
        )
        return code

    def validate_authorization_code(
        self,
        code: str,
        client_id: str,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> CodeValidation:
        """Validate and consume an authorization code.

        Every check up to PKCE runs synchronously, and the code is popped in
        the same step that declares it valid, so two callers racing on the
        same code cannot both succeed.
        """
        auth_code = self.storage.codes.get(code) if code else None
        if auth_code is None:
            return CodeValidation(valid=False, error=ERR_INVALID_CODE)

        if self._clock() > auth_code.expires_at:
            self.storage.codes.delete(code)
            return CodeValidation(valid=False, error=ERR_CODE_EXPIRED)

        if auth_code.client_id != client_id:
            return CodeValidation(valid=False, error=ERR_CLIENT_MISMATCH)

        if auth_code.redirect_uri != redirect_uri:
            return CodeValidation(valid=False, error=ERR_REDIRECT_MISMATCH)

        if auth_code.code_challenge and auth_code.code_challenge_method == "S256":
            if not code_verifier:
                return CodeValidation(valid=False, error=ERR_VERIFIER_REQUIRED)
            if not _safe_equals(pkce_s256(code_verifier), auth_code.code_challenge):
                return CodeValidation(valid=False, error=ERR_INVALID_VERIFIER)

        if self.storage.codes.pop(code) is None:
            return CodeValidation(valid=False, error=ERR_INVALID_CODE)

        return CodeValidation(valid=True, scope=auth_code.scope)

    # ------------------------------------------------------------------
    # Access tokens
    # ------------------------------------------------------------------

    def generate_access_token(self, client_id: str, scope: str | None = None) -> str:
        """Mint a bearer token valid for ``ACCESS_TOKEN_TTL``."""
        token = secrets.token_hex(32)
        self.storage.tokens.set(
            token,
            IssuedToken(
                access_token=token,
                client_id=client_id,
                expires_at=self._clock() + ACCESS_TOKEN_TTL,
                scope=scope or None,
            ),
        )
        self.cleanup_expired()
        return token

    def validate_access_token(self, token: str | None) -> bool:
        """True iff the token is known and unexpired. Expired tokens are dropped."""
        if not token:
            return False
        issued = self.storage.tokens.get(token)
        if issued is None:
            return False
        if self._clock() > issued.expires_at:
            self.storage.tokens.delete(token)
            return False
        return True

    def get_token(self, token: str | None) -> IssuedToken | None:
        """The live token record, or None if unknown or expired."""
        if not self.validate_access_token(token):
            return None
        return self.storage.tokens.get(token)

    def cleanup_expired(self) -> None:
        """Remove expired tokens and codes."""
        now = self._clock()
        tokens = self.storage.tokens.sweep(lambda t: now > t.expires_at)
        codes = self.storage.codes.sweep(lambda c: now > c.expires_at)
        if tokens or codes:
            logger.debug("Swept %d expired tokens and %d expired codes", tokens, codes)

    @staticmethod
    def token_response(access_token: str, scope: str | None = None) -> dict[str, Any]:
        """Token endpoint response body."""
        response: dict[str, Any] = {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": int(ACCESS_TOKEN_TTL.total_seconds()),
        }
        if scope:
            response["scope"] = scope
        return response
