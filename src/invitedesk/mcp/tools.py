# Calendar tools exposed over MCP.
# Created: 2026-10-15
#
# Each tool resolves the calendar backend for the session's user, runs one
# engine operation and shapes the outcome for the widgets. Engine errors
# come back as ``{success: false, error}`` results; an expired Google
# session additionally carries ``authRequired`` and a fresh ``authUrl``.

from __future__ import annotations

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any

from invitedesk.calendar.conflicts import group_conflicts
from invitedesk.calendar.demo import DEMO_EMAIL, DemoCalendarService, is_demo_user
from invitedesk.calendar.errors import AuthenticationExpiredError, CalendarError
from invitedesk.calendar.models import VALID_RESPONSES, AuthStatus
from invitedesk.calendar.normalize import format_conflicts_as_text, format_invites_as_text
from invitedesk.calendar.service import CalendarService
from invitedesk.integrations.credentials import CredentialProvider
from invitedesk.mcp.protocol import (
    AUTH_WIDGET,
    CALENDAR_WIDGET,
    RESULT_WIDGET,
    BaseTool,
    ToolResult,
    Widget,
)

logger = logging.getLogger(__name__)

_DATE_RANGE_SCHEMA = {
    "start_date": {
        "type": "string",
        "description": "Start of the range in ISO 8601 format. Defaults to now.",
    },
    "end_date": {
        "type": "string",
        "description": "End of the range in ISO 8601 format.",
    },
}

_EVENT_ID_SCHEMA = {
    "type": "string",
    "description": "The unique identifier of the calendar event.",
}


@dataclass
class ToolContext:
    """Everything a tool needs to act for one user."""

    service: CalendarService | None
    credentials: CredentialProvider
    user_id: str
    demo: DemoCalendarService | None = None

    def __post_init__(self) -> None:
        if self.demo is None and is_demo_user(self.user_id):
            self.demo = DemoCalendarService()

    @property
    def demo_active(self) -> bool:
        return self.demo is not None

    @property
    def engine(self) -> CalendarService | DemoCalendarService:
        if self.demo is not None:
            return self.demo
        if self.service is None:
            raise RuntimeError("No calendar service configured")
        return self.service

    def is_authenticated(self) -> bool:
        return self.demo_active or self.credentials.is_authenticated(self.user_id)

    def auth_url(self) -> str | None:
        return self.credentials.get_auth_url(self.user_id)


class CalendarTool(BaseTool):
    """Tool that needs a connected calendar before it can run."""

    def __init__(self, ctx: ToolContext):
        self.ctx = ctx

    def _auth_required(self, message: str = "Not authenticated") -> ToolResult:
        return ToolResult(
            text="Please connect your Google Calendar first, then try again.",
            structured={
                "success": False,
                "authenticated": False,
                "authRequired": True,
                "authUrl": self.ctx.auth_url(),
                "error": message,
            },
            widget=AUTH_WIDGET,
        )

    async def execute(self, **params: Any) -> ToolResult:
        if not self.ctx.is_authenticated():
            return self._auth_required()
        try:
            return await self.run(**params)
        except AuthenticationExpiredError as e:
            logger.info("%s: Google session expired for %s", self.name, self.ctx.user_id)
            return self._auth_required(str(e))
        except CalendarError as e:
            logger.warning("%s failed: %s", self.name, e)
            return self._error(str(e))

    @abstractmethod
    async def run(self, **params: Any) -> ToolResult:
        """Do the work once the calendar is connected."""


class CheckAuthStatusTool(CalendarTool):
    """Report whether a Google account is connected."""

    invoking = "Checking authentication..."
    invoked = "Authentication status retrieved"

    @property
    def name(self) -> str:
        return "check_auth_status"

    @property
    def title(self) -> str:
        return "Check Authentication Status"

    @property
    def description(self) -> str:
        return "Check if the user is authenticated with Google Calendar."

    @property
    def widget(self) -> Widget:
        return AUTH_WIDGET

    async def execute(self, **params: Any) -> ToolResult:
        # answers unauthenticated callers too
        return await self.run()

    async def run(self) -> ToolResult:
        if self.ctx.demo_active:
            status = AuthStatus(authenticated=True, email=DEMO_EMAIL)
        elif self.ctx.credentials.is_authenticated(self.ctx.user_id):
            status = AuthStatus(
                authenticated=True, email=self.ctx.credentials.get_email(self.ctx.user_id)
            )
        else:
            status = AuthStatus(authenticated=False, auth_url=self.ctx.auth_url())

        if status.authenticated:
            text = f"Authenticated as {status.email or 'unknown account'}"
        else:
            text = "Not authenticated. Please click the link to sign in with Google."
        return ToolResult(text=text, structured=status.to_wire(), widget=self.widget)


class GetPendingInvitesTool(CalendarTool):
    invoking = "Fetching pending invitations..."
    invoked = "Invitations retrieved"

    @property
    def name(self) -> str:
        return "get_pending_invites"

    @property
    def title(self) -> str:
        return "Get Pending Invites"

    @property
    def description(self) -> str:
        return (
            "Fetch pending calendar invitations that the user has not responded to yet. "
            "Defaults to the next 14 days."
        )

    @property
    def widget(self) -> Widget:
        return CALENDAR_WIDGET

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": dict(_DATE_RANGE_SCHEMA),
            "required": [],
            "additionalProperties": False,
        }

    async def run(self, start_date: str | None = None, end_date: str | None = None) -> ToolResult:
        response = await self.ctx.engine.get_pending_invites(
            self.ctx.user_id, start_date, end_date
        )
        return ToolResult(
            text=format_invites_as_text(response.invites),
            structured={**response.to_wire(), "view": "invites"},
            widget=self.widget,
        )


class RespondToInviteTool(CalendarTool):
    invoking = "Sending response..."
    invoked = "Response sent"

    @property
    def name(self) -> str:
        return "respond_to_invite"

    @property
    def title(self) -> str:
        return "Respond to Invite"

    @property
    def description(self) -> str:
        return (
            "Accept, decline, or mark a calendar invitation as tentative. "
            "The organizer and other guests are notified."
        )

    @property
    def widget(self) -> Widget:
        return RESULT_WIDGET

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "event_id": _EVENT_ID_SCHEMA,
                "response": {
                    "type": "string",
                    "enum": list(VALID_RESPONSES),
                    "description": "The response to send.",
                },
            },
            "required": ["event_id", "response"],
            "additionalProperties": False,
        }

    async def run(self, event_id: str, response: str) -> ToolResult:
        result = await self.ctx.engine.respond_to_invite(self.ctx.user_id, event_id, response)
        return ToolResult(text=result.message, structured=result.to_wire(), widget=self.widget)


class AddCommentToInviteTool(CalendarTool):
    invoking = "Adding comment..."
    invoked = "Comment added"

    @property
    def name(self) -> str:
        return "add_comment_to_invite"

    @property
    def title(self) -> str:
        return "Add Comment to Invite"

    @property
    def description(self) -> str:
        return (
            "Attach a note for the organizer to the user's response on an invitation. "
            "Replaces any earlier comment."
        )

    @property
    def widget(self) -> Widget:
        return RESULT_WIDGET

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "event_id": _EVENT_ID_SCHEMA,
                "comment": {"type": "string", "description": "The comment text."},
            },
            "required": ["event_id", "comment"],
            "additionalProperties": False,
        }

    async def run(self, event_id: str, comment: str) -> ToolResult:
        result = await self.ctx.engine.add_comment_to_invite(self.ctx.user_id, event_id, comment)
        return ToolResult(text=result.message, structured=result.to_wire(), widget=self.widget)


class RescheduleEventTool(CalendarTool):
    invoking = "Rescheduling event..."
    invoked = "Event rescheduled"

    @property
    def name(self) -> str:
        return "reschedule_event"

    @property
    def title(self) -> str:
        return "Reschedule Event"

    @property
    def description(self) -> str:
        return (
            "Move an event the user organizes to a new start and end time. "
            "All attendees are notified."
        )

    @property
    def widget(self) -> Widget:
        return RESULT_WIDGET

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "event_id": _EVENT_ID_SCHEMA,
                "new_start": {
                    "type": "string",
                    "description": "New start time in ISO 8601 (e.g. 2026-03-02T10:00:00Z)",
                },
                "new_end": {
                    "type": "string",
                    "description": "New end time in ISO 8601, after the start",
                },
            },
            "required": ["event_id", "new_start", "new_end"],
            "additionalProperties": False,
        }

    async def run(self, event_id: str, new_start: str, new_end: str) -> ToolResult:
        result = await self.ctx.engine.reschedule_event(
            self.ctx.user_id, event_id, new_start, new_end
        )
        return ToolResult(text=result.message, structured=result.to_wire(), widget=self.widget)


class GetConflictingEventsTool(CalendarTool):
    invoking = "Looking for conflicts..."
    invoked = "Conflicts retrieved"

    @property
    def name(self) -> str:
        return "get_conflicting_events"

    @property
    def title(self) -> str:
        return "Get Conflicting Events"

    @property
    def description(self) -> str:
        return (
            "Find events that overlap in time across all of the user's calendars. "
            "Defaults to the next 30 days. All-day events are ignored."
        )

    @property
    def widget(self) -> Widget:
        return CALENDAR_WIDGET

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": dict(_DATE_RANGE_SCHEMA),
            "required": [],
            "additionalProperties": False,
        }

    async def run(self, start_date: str | None = None, end_date: str | None = None) -> ToolResult:
        response = await self.ctx.engine.get_conflicting_events(
            self.ctx.user_id, start_date, end_date
        )
        groups = group_conflicts(response.invites)
        return ToolResult(
            text=format_conflicts_as_text(response.invites, len(groups)),
            structured={
                **response.to_wire(),
                "groups": [group.to_wire() for group in groups],
                "view": "conflicts",
            },
            widget=self.widget,
        )


TOOL_CLASSES: tuple[type[CalendarTool], ...] = (
    CheckAuthStatusTool,
    GetPendingInvitesTool,
    RespondToInviteTool,
    AddCommentToInviteTool,
    RescheduleEventTool,
    GetConflictingEventsTool,
)


def build_tools(ctx: ToolContext) -> dict[str, CalendarTool]:
    """Instantiate every tool for *ctx*, keyed by tool name."""
    tools = [cls(ctx) for cls in TOOL_CLASSES]
    return {tool.name: tool for tool in tools}
