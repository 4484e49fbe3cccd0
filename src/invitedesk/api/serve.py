"""HTTP server: OAuth endpoints, Google sign-in and the MCP SSE transport.

``create_app`` wires one authorization server, one credential store and one
calendar service per process; the MCP tools act for ``default_user_id``.
"""

from __future__ import annotations

import logging

from invitedesk.config import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None):
    """Build the FastAPI application."""
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from invitedesk import __version__
    from invitedesk.api import google_auth, health, oauth2
    from invitedesk.api.mcp_auth import mcp_auth_middleware
    from invitedesk.calendar.demo import DemoCalendarService
    from invitedesk.calendar.service import CalendarService
    from invitedesk.config import get_settings
    from invitedesk.integrations.credentials import GoogleCredentialStore
    from invitedesk.integrations.google_oauth import GoogleOAuthManager
    from invitedesk.mcp.server import MESSAGES_PATH, SSE_PATH, MCPTransport, create_mcp_server
    from invitedesk.mcp.tools import ToolContext, build_tools
    from invitedesk.oauth2.server import AuthorizationServer

    settings = settings or get_settings()

    google_oauth = None
    if settings.google_oauth_client_id and settings.google_oauth_client_secret:
        google_oauth = GoogleOAuthManager(
            settings.google_oauth_client_id, settings.google_oauth_client_secret
        )
    else:
        logger.warning("Google OAuth is not configured; only demo mode can serve calendar data")

    credentials = GoogleCredentialStore(google_oauth, settings.google_redirect_uri)
    ctx = ToolContext(
        service=CalendarService(credentials),
        credentials=credentials,
        user_id=settings.default_user_id,
        demo=DemoCalendarService() if settings.demo_mode else None,
    )
    transport = MCPTransport(
        create_mcp_server(build_tools(ctx), settings.widget_assets_dir), MESSAGES_PATH
    )

    app = FastAPI(
        title="InviteDesk",
        description="Calendar invitation assistant served over MCP.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.oauth_server = AuthorizationServer.from_settings(settings)
    app.state.google_oauth = google_oauth
    app.state.credentials = credentials
    app.state.tool_context = ctx

    # --- CORS -----------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["https://chatgpt.com", *settings.cors_allowed_origins],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # --- MCP bearer guard -----------------------------------------------
    app.middleware("http")(mcp_auth_middleware)

    # --- Routes ---------------------------------------------------------
    app.include_router(health.router)
    app.include_router(oauth2.router)
    app.include_router(google_auth.router)
    app.add_route(SSE_PATH, transport.handle_sse, methods=["GET"])
    app.mount(MESSAGES_PATH.rstrip("/"), app=transport.handle_post_message)

    if settings.demo_mode:
        logger.info("Demo mode: tools serve fixture invites")
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    dev: bool = False,
) -> None:
    """Start the server under uvicorn."""
    import uvicorn

    print("\n" + "=" * 50)
    print("INVITEDESK MCP SERVER")
    print("=" * 50)
    print(f"\nMCP endpoint: http://{host}:{port}/mcp")
    print(f"OAuth metadata: http://{host}:{port}/.well-known/oauth-authorization-server\n")

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "invitedesk.api.serve:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        app = create_app()
        uvicorn.run(app, host=host, port=port)
