# Normalization of remote calendar events into widget-facing invites.
# Created: 2026-10-13

from __future__ import annotations

from typing import Any

from invitedesk.calendar.models import (
    NEEDS_ACTION,
    CalendarInfo,
    EventTime,
    InviteAttendee,
    PendingInvite,
    RemoteAttendee,
    RemoteEvent,
    parse_instant,
)

NO_TITLE = "(No title)"


def parse_event(raw: dict[str, Any], calendar: CalendarInfo | None = None) -> RemoteEvent:
    """Build a ``RemoteEvent`` from an API payload, optionally tagging its calendar."""
    organizer = raw.get("organizer") or {}
    raw_attendees = raw.get("attendees")
    return RemoteEvent(
        id=raw.get("id") or None,
        summary=raw.get("summary") or None,
        description=raw.get("description") or None,
        location=raw.get("location") or None,
        start=EventTime.from_raw(raw.get("start")),
        end=EventTime.from_raw(raw.get("end")),
        organizer_email=organizer.get("email") or None,
        organizer_name=organizer.get("displayName") or None,
        attendees=tuple(RemoteAttendee.from_raw(a) for a in raw_attendees or []),
        has_attendees=raw_attendees is not None,
        html_link=raw.get("htmlLink") or "",
        status=raw.get("status") or "confirmed",
        calendar_id=calendar.id if calendar else None,
        calendar_name=calendar.summary if calendar else None,
    )


def parse_calendar(raw: dict[str, Any]) -> CalendarInfo | None:
    cal_id = raw.get("id")
    if not cal_id:
        return None
    return CalendarInfo(
        id=cal_id,
        summary=raw.get("summary") or cal_id,
        primary=bool(raw.get("primary", False)),
    )


def _attendees(event: RemoteEvent, user_email: str) -> list[InviteAttendee]:
    return [
        InviteAttendee(
            email=a.email or "Unknown",
            name=a.display_name,
            status=a.response_status or "unknown",
            comment=a.comment,
            self_=a.matches(user_email),
            organizer=a.organizer,
        )
        for a in event.attendees
    ]


def _to_invite(
    event: RemoteEvent, user_email: str, organizer_fallback: str
) -> PendingInvite:
    user = event.find_attendee(user_email)
    return PendingInvite(
        event_id=event.id or "",
        summary=event.summary or NO_TITLE,
        description=event.description,
        location=event.location,
        start_time=event.start.display,
        end_time=event.end.display,
        is_all_day=event.start.is_all_day,
        organizer_email=event.organizer_email or organizer_fallback,
        organizer_name=event.organizer_name,
        attendees=_attendees(event, user_email),
        calendar_link=event.html_link,
        user_comment=user.comment if user else None,
        calendar_id=event.calendar_id,
        calendar_name=event.calendar_name,
    )


def event_to_pending_invite(event: RemoteEvent, user_email: str) -> PendingInvite | None:
    """Invite view of *event*, or None unless the user still owes a response.

    The user must be listed as an attendee, must not be the organizer, and
    their response status must be exactly ``needsAction``.
    """
    if not event.id:
        return None
    user = event.find_attendee(user_email)
    if user is None or user.organizer:
        return None
    if user.response_status != NEEDS_ACTION:
        return None
    return _to_invite(event, user_email, organizer_fallback="Unknown")


def event_to_conflict_entry(event: RemoteEvent, user_email: str) -> PendingInvite | None:
    """Invite-shaped view of any event, used for conflict listings.

    Events without an organizer are the user's own.
    """
    if not event.id:
        return None
    return _to_invite(event, user_email, organizer_fallback=user_email)


def _describe_when(invite: PendingInvite) -> str:
    try:
        start = parse_instant(invite.start_time)
    except ValueError:
        return invite.start_time
    day = f"{start:%A}, {start:%B} {start.day}, {start.year}"
    if invite.is_all_day:
        return f"{day} (all day)"
    return f"{day} at {start.strftime('%I:%M %p').lstrip('0')}"


def format_invites_as_text(invites: list[PendingInvite]) -> str:
    """Plain-language summary of pending invites for the conversational reply."""
    if not invites:
        return "You have no pending calendar invitations that need a response."

    plural = "s" if len(invites) > 1 else ""
    lines = [f"You have {len(invites)} pending calendar invitation{plural}:", ""]
    for i, invite in enumerate(invites, 1):
        lines.append(f"{i}. **{invite.summary}**")
        lines.append(f"   - When: {_describe_when(invite)}")
        lines.append(f"   - Organizer: {invite.organizer_name or invite.organizer_email}")
        if invite.location:
            lines.append(f"   - Location: {invite.location}")
        lines.append(f"   - Event ID: {invite.event_id}")
        lines.append("")
    lines.append("You can accept, decline, or mark as tentative any of these invitations.")
    return "\n".join(lines)


def format_conflicts_as_text(invites: list[PendingInvite], group_count: int) -> str:
    if not invites:
        return "No scheduling conflicts found in the selected period."
    return (
        f"Found {len(invites)} conflicting event(s) in {group_count} "
        f"overlapping time slot(s)."
    )
