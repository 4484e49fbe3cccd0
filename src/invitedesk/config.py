# Settings: environment-driven configuration for the InviteDesk server.
# Created: 2026-10-12

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_CONFIG_DIR_NAME = ".invitedesk"


def get_config_dir() -> Path:
    """Get/create the configuration directory (``~/.invitedesk``)."""
    d = Path.home() / _CONFIG_DIR_NAME
    d.mkdir(parents=True, exist_ok=True)
    return d


class Settings(BaseSettings):
    """Process-wide settings.

    Every field can be overridden with an ``INVITEDESK_``-prefixed environment
    variable or a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="INVITEDESK_",
        env_file=".env",
        extra="ignore",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    base_url: str = "http://localhost:8000"
    cors_allowed_origins: list[str] = Field(default_factory=list)
    log_level: str = "INFO"

    # OAuth emulator: the default client is always registered
    oauth_client_id: str = "chatgpt-mcp-client"
    oauth_client_secret: str = "chatgpt-mcp-secret-key-2024"
    default_redirect_uri: str = "https://chatgpt.com/aip/g-*/oauth/callback"
    require_mcp_auth: bool = True

    # Google sign-in for the calendar account
    google_oauth_client_id: str | None = None
    google_oauth_client_secret: str | None = None

    # Tool dispatch
    default_user_id: str = "default_user"
    demo_mode: bool = False
    widget_assets_dir: Path | None = None

    @classmethod
    def load(cls) -> Settings:
        """Build settings from the environment."""
        return cls()

    @property
    def google_redirect_uri(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/google/callback"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached process settings."""
    return Settings.load()
