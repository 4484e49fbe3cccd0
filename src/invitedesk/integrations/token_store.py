# Token Store: per-user Google tokens at ~/.invitedesk/google_tokens/.
# Created: 2026-10-14

from __future__ import annotations

import json
import logging
import os
import re
import stat
from dataclasses import asdict, dataclass, field
from pathlib import Path

from invitedesk.config import get_config_dir

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass
class GoogleTokens:
    """Google OAuth token set plus the account email it belongs to."""

    user_id: str
    access_token: str
    email: str | None = None
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: float | None = None  # Unix timestamp
    scopes: list[str] = field(default_factory=list)


def _get_token_dir() -> Path:
    d = get_config_dir() / "google_tokens"
    d.mkdir(exist_ok=True)
    return d


class TokenStore:
    """File-based token store, one chmod-0600 JSON file per user."""

    def __init__(self, directory: Path | None = None):
        self._directory = directory

    def _path(self, user_id: str) -> Path:
        directory = self._directory or _get_token_dir()
        return directory / f"{_SAFE_ID.sub('_', user_id)}.json"

    def save(self, tokens: GoogleTokens) -> None:
        path = self._path(tokens.user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(tokens), indent=2))
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
        logger.info("Saved Google tokens for %s", tokens.user_id)

    def load(self, user_id: str) -> GoogleTokens | None:
        """Tokens for *user_id*, or None if missing or unreadable."""
        path = self._path(user_id)
        if not path.exists():
            return None
        try:
            return GoogleTokens(**json.loads(path.read_text()))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to load tokens for %s: %s", user_id, e)
            return None

    def delete(self, user_id: str) -> bool:
        path = self._path(user_id)
        if path.exists():
            path.unlink()
            logger.info("Deleted Google tokens for %s", user_id)
            return True
        return False
