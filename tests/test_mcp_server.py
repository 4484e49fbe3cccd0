# Tests for mcp/server.py
# Created: 2026-10-18

import mcp.types as types
import pytest
from pydantic import AnyUrl

from invitedesk.calendar.demo import DemoCalendarService
from invitedesk.mcp.protocol import AUTH_WIDGET, CALENDAR_WIDGET, WIDGET_MIME_TYPE
from invitedesk.mcp.server import WidgetNotFoundError, create_mcp_server, read_widget_html
from invitedesk.mcp.tools import ToolContext, build_tools


class NoCredentials:
    async def get_credentials(self, user_id):
        raise AssertionError("unused")

    def is_authenticated(self, user_id):
        return False

    def get_email(self, user_id):
        return None

    def get_auth_url(self, user_id):
        return "https://accounts.example/auth"


@pytest.fixture
def assets(tmp_path):
    (tmp_path / "calendar-widget.html").write_text("<div>calendar</div>")
    (tmp_path / "auth-status-1a2b.html").write_text("<div>old</div>")
    (tmp_path / "auth-status-9f8e.html").write_text("<div>auth</div>")
    return tmp_path


def _server(assets, demo=True):
    ctx = ToolContext(
        None, NoCredentials(), "u1", demo=DemoCalendarService() if demo else None
    )
    return create_mcp_server(build_tools(ctx), assets)


async def _request(server, request):
    handler = server.request_handlers[type(request)]
    return (await handler(request)).root


class TestReadWidgetHtml:
    def test_exact_file(self, assets):
        assert read_widget_html(assets, CALENDAR_WIDGET) == "<div>calendar</div>"

    def test_hashed_build_fallback(self, assets):
        assert read_widget_html(assets, AUTH_WIDGET) == "<div>auth</div>"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(WidgetNotFoundError):
            read_widget_html(tmp_path / "nope", CALENDAR_WIDGET)
        with pytest.raises(WidgetNotFoundError):
            read_widget_html(None, CALENDAR_WIDGET)

    def test_missing_file(self, tmp_path):
        with pytest.raises(WidgetNotFoundError, match="calendar-widget.html"):
            read_widget_html(tmp_path, CALENDAR_WIDGET)


class TestMCPHandlers:
    async def test_list_tools(self, assets):
        result = await _request(_server(assets), types.ListToolsRequest(method="tools/list"))

        by_name = {tool.name: tool for tool in result.tools}
        assert len(by_name) == 6
        pending = by_name["get_pending_invites"]
        assert pending.meta["openai/outputTemplate"] == CALENDAR_WIDGET.uri
        assert pending.inputSchema["type"] == "object"

    async def test_call_tool_returns_structured_content(self, assets):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="get_pending_invites", arguments={}),
        )

        result = await _request(_server(assets), request)

        assert not result.isError
        assert result.structuredContent["view"] == "invites"
        assert result.structuredContent["totalCount"] == 6
        assert "6 pending calendar invitations" in result.content[0].text

    async def test_call_tool_auth_required(self, assets):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="get_conflicting_events", arguments={}),
        )

        result = await _request(_server(assets, demo=False), request)

        assert result.structuredContent["authRequired"] is True

    async def test_list_resources(self, assets):
        result = await _request(
            _server(assets), types.ListResourcesRequest(method="resources/list")
        )

        uris = [str(resource.uri) for resource in result.resources]
        assert CALENDAR_WIDGET.uri in uris
        assert all(resource.mimeType == WIDGET_MIME_TYPE for resource in result.resources)

    async def test_read_resource(self, assets):
        request = types.ReadResourceRequest(
            method="resources/read",
            params=types.ReadResourceRequestParams(uri=AnyUrl(CALENDAR_WIDGET.uri)),
        )

        result = await _request(_server(assets), request)

        assert result.contents[0].text == "<div>calendar</div>"
        assert result.contents[0].mimeType == WIDGET_MIME_TYPE
