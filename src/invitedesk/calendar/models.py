# Calendar data models.
# Created: 2026-10-13
#
# Remote events are parsed once into frozen dataclasses so the rest of the
# engine never inspects optional keys of the raw API payload. The pydantic
# models are the wire contract consumed by the widgets; their camelCase
# field names must stay stable.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NEEDS_ACTION = "needsAction"
InviteResponse = Literal["accepted", "declined", "tentative"]
VALID_RESPONSES: tuple[str, ...] = ("accepted", "declined", "tentative")
RESPONSE_PHRASES = {
    "accepted": "accepted",
    "declined": "declined",
    "tentative": "marked as tentative",
}


def parse_instant(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC.

    Raises ValueError for anything unparseable.
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ---------------------------------------------------------------------------
# Remote event projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventTime:
    """Start or end of an event: either a calendar date or a precise instant."""

    date: str | None = None
    date_time: str | None = None
    time_zone: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> EventTime:
        raw = raw or {}
        return cls(
            date=raw.get("date") or None,
            date_time=raw.get("dateTime") or None,
            time_zone=raw.get("timeZone") or None,
        )

    @property
    def is_all_day(self) -> bool:
        return self.date is not None and self.date_time is None

    @property
    def display(self) -> str:
        if self.date:
            return self.date
        if self.date_time:
            return self.date_time
        return "Unknown"

    def instant(self) -> datetime | None:
        """Comparable instant, or None for all-day and malformed values."""
        if self.date_time is None:
            return None
        try:
            return parse_instant(self.date_time)
        except ValueError:
            return None


@dataclass(frozen=True)
class RemoteAttendee:
    email: str | None
    display_name: str | None = None
    response_status: str | None = None
    comment: str | None = None
    organizer: bool = False
    is_self: bool = False
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> RemoteAttendee:
        return cls(
            email=raw.get("email") or None,
            display_name=raw.get("displayName") or None,
            response_status=raw.get("responseStatus") or None,
            comment=raw.get("comment") or None,
            organizer=bool(raw.get("organizer", False)),
            is_self=bool(raw.get("self", False)),
            raw=dict(raw),
        )

    def matches(self, email: str) -> bool:
        return bool(self.email) and self.email.lower() == email.lower()


@dataclass(frozen=True)
class RemoteEvent:
    id: str | None
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    start: EventTime = field(default_factory=EventTime)
    end: EventTime = field(default_factory=EventTime)
    organizer_email: str | None = None
    organizer_name: str | None = None
    attendees: tuple[RemoteAttendee, ...] = ()
    has_attendees: bool = False
    html_link: str = ""
    status: str = "confirmed"
    calendar_id: str | None = None
    calendar_name: str | None = None

    def find_attendee(self, email: str) -> RemoteAttendee | None:
        for attendee in self.attendees:
            if attendee.matches(email):
                return attendee
        return None

    def is_organized_by(self, email: str) -> bool:
        return bool(self.organizer_email) and self.organizer_email.lower() == email.lower()


@dataclass(frozen=True)
class CalendarInfo:
    id: str
    summary: str = ""
    primary: bool = False


# ---------------------------------------------------------------------------
# Wire contract
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=False)


class InviteAttendee(_CamelModel):
    email: str
    name: str | None = None
    status: str
    comment: str | None = None
    self_: bool = Field(default=False, alias="self")
    organizer: bool = False


class PendingInvite(_CamelModel):
    """Normalized invite as rendered by the invites and conflicts widgets."""

    event_id: str
    summary: str
    description: str | None = None
    location: str | None = None
    start_time: str
    end_time: str
    is_all_day: bool = False
    organizer_email: str
    organizer_name: str | None = None
    attendees: list[InviteAttendee] = Field(default_factory=list)
    calendar_link: str = ""
    user_comment: str | None = None
    calendar_id: str | None = None
    calendar_name: str | None = None


class DateRange(BaseModel):
    start: str
    end: str


class PendingInvitesResponse(_CamelModel):
    invites: list[PendingInvite]
    date_range: DateRange
    total_count: int


class RespondResult(_CamelModel):
    success: bool
    message: str
    event_id: str
    new_status: str
    event_summary: str | None = None


class AuthStatus(_CamelModel):
    authenticated: bool
    email: str | None = None
    auth_url: str | None = None


class ConflictGroup(_CamelModel):
    """Transitively overlapping events plus their combined span."""

    events: list[PendingInvite]
    time_range: DateRange
