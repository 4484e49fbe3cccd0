"""MCP server: calendar tools and widget resources over SSE.

The server is built on the low-level ``mcp`` ``Server`` so each tool can
advertise its widget template in ``_meta`` and return structured content
next to the text reply. Widgets are plain HTML files read from the
configured asset directory; a hashed build name (``calendar-widget-3f2a.html``)
is accepted when the exact file is missing.

Created: 2026-10-15
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.sse import SseServerTransport
from pydantic import AnyUrl
from starlette.requests import Request
from starlette.responses import Response

from invitedesk import __version__
from invitedesk.mcp.protocol import WIDGET_MIME_TYPE, WIDGETS, BaseTool, Widget

logger = logging.getLogger(__name__)

SERVER_NAME = "invitedesk"
SSE_PATH = "/mcp"
MESSAGES_PATH = "/mcp/messages/"


class WidgetNotFoundError(LookupError):
    pass


def read_widget_html(assets_dir: Path | None, widget: Widget) -> str:
    """Return the widget's HTML, falling back to the newest hashed build."""
    if assets_dir is None or not assets_dir.is_dir():
        raise WidgetNotFoundError(f"Widget assets directory not available: {assets_dir}")

    exact = assets_dir / widget.file
    if exact.is_file():
        return exact.read_text(encoding="utf-8")

    stem = Path(widget.file).stem
    candidates = sorted(assets_dir.glob(f"{stem}*.html"))
    if candidates:
        return candidates[-1].read_text(encoding="utf-8")

    raise WidgetNotFoundError(f'Widget HTML "{widget.file}" not found in {assets_dir}')


def create_mcp_server(tools: Mapping[str, BaseTool], assets_dir: Path | None = None) -> Server:
    """Build a low-level MCP server around *tools*."""
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        listed = []
        for tool in tools.values():
            definition = tool.definition
            listed.append(
                types.Tool(
                    name=definition.name,
                    title=definition.title,
                    description=definition.description,
                    inputSchema=definition.parameters,
                    _meta=definition.meta,
                )
            )
        return listed

    @server.call_tool()
    async def call_tool(
        name: str, arguments: dict[str, Any]
    ) -> tuple[list[types.TextContent], dict[str, Any]]:
        tool = tools.get(name)
        if tool is None:
            raise ValueError(f"Unknown tool: {name}")

        logger.info("Tool call: %s", name)
        result = await tool.execute(**(arguments or {}))
        if result.is_error:
            logger.info("Tool %s returned an error: %s", name, result.structured.get("error"))
        return [types.TextContent(type="text", text=result.text)], result.structured

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return [
            types.Resource(
                uri=AnyUrl(widget.uri),
                name=widget.name,
                description=f"{widget.name} markup",
                mimeType=WIDGET_MIME_TYPE,
                _meta=widget.meta(),
            )
            for widget in WIDGETS
        ]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        widget = next((w for w in WIDGETS if w.uri == str(uri)), None)
        if widget is None:
            raise ValueError(f"Resource not found: {uri}")
        html = read_widget_html(assets_dir, widget)
        return [ReadResourceContents(content=html, mime_type=WIDGET_MIME_TYPE)]

    return server


class MCPTransport:
    """SSE endpoint plus the message sink clients post JSON-RPC requests to."""

    def __init__(self, server: Server, messages_path: str = MESSAGES_PATH):
        self.server = server
        self.sse = SseServerTransport(messages_path)

    async def handle_sse(self, request: Request) -> Response:
        async with self.sse.connect_sse(request.scope, request.receive, request._send) as (
            read_stream,
            write_stream,
        ):
            await self.server.run(
                read_stream, write_stream, self.server.create_initialization_options()
            )
        return Response()

    @property
    def handle_post_message(self):
        return self.sse.handle_post_message
