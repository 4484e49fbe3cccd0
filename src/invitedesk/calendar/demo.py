# Demo mode: fixture invites served without a Google account.
# Created: 2026-10-15

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from invitedesk.calendar.conflicts import find_conflicting_events
from invitedesk.calendar.errors import (
    EventNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
)
from invitedesk.calendar.models import (
    RESPONSE_PHRASES,
    VALID_RESPONSES,
    DateRange,
    InviteAttendee,
    PendingInvite,
    PendingInvitesResponse,
    RespondResult,
    parse_instant,
)
from invitedesk.calendar.normalize import parse_event

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo_test_user"
DEMO_EMAIL = "demo@example.com"

# (summary, location, days ahead, minutes long, organizer email, organizer name, others)
_FIXTURES: list[tuple[str, str | None, int, int, str, str, list[tuple[str, str, str]]]] = [
    (
        "Team Standup Meeting",
        "Conference Room A",
        1,
        30,
        "manager@company.com",
        "Sarah Johnson",
        [
            ("john@company.com", "John Smith", "accepted"),
            ("alice@company.com", "Alice Chen", "accepted"),
        ],
    ),
    (
        "Q1 Budget Review",
        "Executive Conference Room",
        2,
        90,
        "cfo@company.com",
        "Michael Williams",
        [("director1@company.com", "Emily Davis", "tentative")],
    ),
    (
        "Client Presentation - Product Demo",
        "Zoom Meeting (link in calendar)",
        3,
        60,
        "sales@company.com",
        "David Martinez",
        [("client@protech.com", "Jennifer Parker", "accepted")],
    ),
    (
        "Lunch with Marketing Team",
        "Bella Italia Restaurant",
        5,
        90,
        "lisa@company.com",
        "Lisa Brown",
        [
            ("mark@company.com", "Mark Wilson", "accepted"),
            ("sophie@company.com", "Sophie Taylor", "tentative"),
        ],
    ),
    (
        "Sprint Planning Session",
        "Development Lab",
        7,
        120,
        "scrummaster@company.com",
        "Alex Thompson",
        [("dev1@company.com", "Chris Martin", "accepted")],
    ),
    (
        "All-Hands Company Meeting",
        "Main Auditorium",
        10,
        60,
        "ceo@company.com",
        "Jessica White",
        [("cto@company.com", "Andrew Kim", "accepted")],
    ),
]

# Events the demo user organizes: (summary, location, days ahead, minutes long, attendees)
_ORGANIZED: list[tuple[str, str | None, int, int, list[tuple[str, str, str]]]] = [
    (
        "Project Kickoff Prep",
        "Huddle Room 3",
        4,
        45,
        [("john@company.com", "John Smith", "needsAction")],
    ),
]


def is_demo_user(user_id: str) -> bool:
    return user_id == DEMO_USER_ID


def demo_invites(now: datetime | None = None) -> list[PendingInvite]:
    """Six needs-action invites spread over the next ten days."""
    now = (now or datetime.now(UTC)).replace(microsecond=0)
    invites = []
    for n, (summary, location, days, minutes, org_email, org_name, others) in enumerate(
        _FIXTURES, 1
    ):
        start = now + timedelta(days=days)
        end = start + timedelta(minutes=minutes)
        attendees = [
            InviteAttendee(email=DEMO_EMAIL, name="Demo User", status="needsAction", self_=True)
        ]
        attendees += [InviteAttendee(email=e, name=name, status=s) for e, name, s in others]
        attendees.append(
            InviteAttendee(email=org_email, name=org_name, status="accepted", organizer=True)
        )
        invites.append(
            PendingInvite(
                event_id=f"demo_event_{n}",
                summary=summary,
                location=location,
                start_time=start.isoformat(),
                end_time=end.isoformat(),
                organizer_email=org_email,
                organizer_name=org_name,
                attendees=attendees,
                calendar_link=f"https://calendar.google.com/calendar/event?eid=demo{n}",
            )
        )
    return invites


def demo_organized_events(now: datetime | None = None) -> list[PendingInvite]:
    """Events the demo user organizes, so reschedule has something to move."""
    now = (now or datetime.now(UTC)).replace(microsecond=0)
    events = []
    for n, (summary, location, days, minutes, others) in enumerate(
        _ORGANIZED, len(_FIXTURES) + 1
    ):
        start = now + timedelta(days=days)
        attendees = [
            InviteAttendee(
                email=DEMO_EMAIL, name="Demo User", status="accepted", self_=True, organizer=True
            )
        ]
        attendees += [InviteAttendee(email=e, name=name, status=s) for e, name, s in others]
        events.append(
            PendingInvite(
                event_id=f"demo_event_{n}",
                summary=summary,
                location=location,
                start_time=start.isoformat(),
                end_time=(start + timedelta(minutes=minutes)).isoformat(),
                organizer_email=DEMO_EMAIL,
                organizer_name="Demo User",
                attendees=attendees,
                calendar_link=f"https://calendar.google.com/calendar/event?eid=demo{n}",
            )
        )
    return events


class DemoCalendarService:
    """Same operations as ``CalendarService``, acknowledged locally."""

    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(UTC)):
        self._clock = clock
        now = clock()
        self._invites = {
            i.event_id: i for i in demo_invites(now) + demo_organized_events(now)
        }

    def _require(self, event_id: str) -> PendingInvite:
        invite = self._invites.get(event_id)
        if invite is None:
            raise EventNotFoundError()
        return invite

    def _window(self, start: str | None, end: str | None, days: int) -> DateRange:
        now = self._clock()
        return DateRange(
            start=start or now.isoformat(),
            end=end or (now + timedelta(days=days)).isoformat(),
        )

    async def get_pending_invites(
        self, user_id: str, start: str | None = None, end: str | None = None
    ) -> PendingInvitesResponse:
        pending = [
            i
            for i in self._invites.values()
            if any(a.self_ and a.status == "needsAction" for a in i.attendees)
        ]
        return PendingInvitesResponse(
            invites=pending, date_range=self._window(start, end, 14), total_count=len(pending)
        )

    async def respond_to_invite(
        self, user_id: str, event_id: str, response: str
    ) -> RespondResult:
        if response not in VALID_RESPONSES:
            raise InvalidInputError(f"Invalid response {response!r}")
        invite = self._require(event_id)
        for attendee in invite.attendees:
            if attendee.self_:
                attendee.status = response
        logger.info("Demo: %s %s", response, event_id)
        phrase = RESPONSE_PHRASES[response]
        return RespondResult(
            success=True,
            message=f'You have {phrase} the invitation "{invite.summary}" (demo mode)',
            event_id=event_id,
            new_status=response,
            event_summary=invite.summary,
        )

    async def add_comment_to_invite(
        self, user_id: str, event_id: str, comment: str
    ) -> RespondResult:
        text = (comment or "").strip()
        if not text:
            raise InvalidInputError("Comment cannot be empty")
        invite = self._require(event_id)
        invite.user_comment = text
        return RespondResult(
            success=True,
            message=f'Comment added to "{invite.summary}": "{text}" (demo mode)',
            event_id=event_id,
            new_status="comment_added",
            event_summary=invite.summary,
        )

    async def reschedule_event(
        self, user_id: str, event_id: str, new_start: str, new_end: str
    ) -> RespondResult:
        try:
            start_at, end_at = parse_instant(new_start), parse_instant(new_end)
        except (AttributeError, ValueError) as e:
            raise InvalidInputError("Invalid date/time format") from e
        if end_at <= start_at:
            raise InvalidInputError("End time must be after start time")
        invite = self._require(event_id)
        if invite.organizer_email != DEMO_EMAIL:
            raise PermissionDeniedError("Only the organizer can reschedule this event")
        invite.start_time, invite.end_time = new_start, new_end
        return RespondResult(
            success=True,
            message=f'Event "{invite.summary}" rescheduled (demo mode)',
            event_id=event_id,
            new_status="rescheduled",
            event_summary=invite.summary,
        )

    async def get_conflicting_events(
        self, user_id: str, start: str | None = None, end: str | None = None
    ) -> PendingInvitesResponse:
        events = [
            parse_event(
                {
                    "id": i.event_id,
                    "summary": i.summary,
                    "start": {"dateTime": i.start_time},
                    "end": {"dateTime": i.end_time},
                    "organizer": {"email": i.organizer_email, "displayName": i.organizer_name},
                }
            )
            for i in self._invites.values()
        ]
        conflicts = [
            self._invites[c.event_id] for c in find_conflicting_events(events, DEMO_EMAIL)
        ]
        return PendingInvitesResponse(
            invites=conflicts,
            date_range=self._window(start, end, 30),
            total_count=len(conflicts),
        )
