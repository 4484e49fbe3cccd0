"""MCP surface: calendar tools, widget resources and the SSE transport.

Created: 2026-10-15
"""

from invitedesk.mcp.protocol import WIDGETS, BaseTool, ToolDefinition, ToolResult, Widget
from invitedesk.mcp.server import MCPTransport, create_mcp_server, read_widget_html
from invitedesk.mcp.tools import ToolContext, build_tools

__all__ = [
    "WIDGETS",
    "BaseTool",
    "MCPTransport",
    "ToolContext",
    "ToolDefinition",
    "ToolResult",
    "Widget",
    "build_tools",
    "create_mcp_server",
    "read_widget_html",
]
