# Bearer guard for the MCP endpoints (registered via app.middleware).
# Created: 2026-10-16

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from invitedesk.api.deps import get_oauth_server
from invitedesk.mcp.server import SSE_PATH
from invitedesk.oauth2.server import extract_bearer_token

logger = logging.getLogger(__name__)


def _is_mcp_path(path: str) -> bool:
    return path == SSE_PATH or path.startswith(SSE_PATH + "/")


async def mcp_auth_middleware(request: Request, call_next):
    if not _is_mcp_path(request.url.path) or request.method == "OPTIONS":
        return await call_next(request)

    settings = request.app.state.settings
    if not settings.require_mcp_auth:
        return await call_next(request)

    token = extract_bearer_token(request.headers.get("Authorization"))
    issued = get_oauth_server(request).get_token(token)
    if issued is not None:
        request.state.oauth_client_id = issued.client_id
        return await call_next(request)

    logger.info("Rejected MCP request to %s: missing or invalid bearer token", request.url.path)
    metadata_url = f"{settings.base_url.rstrip('/')}/.well-known/oauth-protected-resource"
    return JSONResponse(
        status_code=401,
        content={"error": "invalid_token", "error_description": "Missing or invalid access token"},
        headers={"WWW-Authenticate": f'Bearer resource_metadata="{metadata_url}"'},
    )
