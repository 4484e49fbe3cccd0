# Tool protocol: MCP tools that answer with text plus widget data.
# Created: 2026-10-15

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

WIDGET_MIME_TYPE = "text/html+skybridge"


@dataclass(frozen=True)
class Widget:
    """An HTML widget the chat client renders from a tool's structured output."""

    uri: str
    file: str
    name: str

    def meta(self, invoking: str = "", invoked: str = "") -> dict[str, Any]:
        return {
            "openai/outputTemplate": self.uri,
            "openai/toolInvocation/invoking": invoking,
            "openai/toolInvocation/invoked": invoked,
            "openai/widgetAccessible": True,
        }


CALENDAR_WIDGET = Widget("ui://widget/calendar.html", "calendar-widget.html", "Calendar Widget")
AUTH_WIDGET = Widget("ui://widget/auth-status.html", "auth-status.html", "Auth Status Widget")
RESULT_WIDGET = Widget(
    "ui://widget/respond-result.html", "respond-result.html", "Respond Result Widget"
)
WIDGETS: tuple[Widget, ...] = (CALENDAR_WIDGET, AUTH_WIDGET, RESULT_WIDGET)


@dataclass
class ToolResult:
    """Outcome of a tool call.

    ``text`` is the short reply for the conversation, ``structured`` the
    payload handed to ``widget``.
    """

    text: str
    structured: dict[str, Any] = field(default_factory=dict)
    widget: Widget | None = None

    @property
    def is_error(self) -> bool:
        return self.structured.get("success") is False


@dataclass
class ToolDefinition:
    """Tool definition as advertised to the MCP client."""

    name: str
    title: str
    description: str
    parameters: dict[str, Any]  # JSON Schema
    meta: dict[str, Any] = field(default_factory=dict)


class BaseTool(ABC):
    """Base class for calendar tools."""

    invoking: str = ""
    invoked: str = ""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def title(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def widget(self) -> Widget: ...

    @property
    def parameters(self) -> dict[str, Any]:
        """Parameter schema. Override in subclass."""
        return {"type": "object", "properties": {}, "required": [], "additionalProperties": False}

    @property
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            title=self.title,
            description=self.description,
            parameters=self.parameters,
            meta=self.widget.meta(self.invoking, self.invoked),
        )

    @abstractmethod
    async def execute(self, **params: Any) -> ToolResult:
        """Run the tool. Expected failures come back as error results."""
        ...

    def _error(self, message: str, **extra: Any) -> ToolResult:
        return ToolResult(
            text=f"Error: {message}",
            structured={"success": False, "error": message, **extra},
            widget=self.widget,
        )
