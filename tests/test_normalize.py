# Tests for calendar/normalize.py and the wire models.
# Created: 2026-10-17

from invitedesk.calendar.models import EventTime, PendingInvite
from invitedesk.calendar.normalize import (
    event_to_pending_invite,
    format_conflicts_as_text,
    format_invites_as_text,
    parse_calendar,
    parse_event,
)

ME = "me@example.com"


def _raw(status="needsAction", organizer="boss@example.com", **extra):
    return {
        "id": "evt1",
        "summary": "Planning",
        "location": "Room 4",
        "htmlLink": "https://calendar.google.com/event?eid=evt1",
        "start": {"dateTime": "2026-03-02T10:00:00Z", "timeZone": "Europe/Paris"},
        "end": {"dateTime": "2026-03-02T11:00:00Z"},
        "organizer": {"email": organizer, "displayName": "The Boss"},
        "attendees": [
            {"email": organizer, "responseStatus": "accepted", "organizer": True},
            {"email": "ME@example.com", "responseStatus": status, "comment": "maybe"},
            {"email": "other@example.com", "displayName": "Other"},
        ],
        **extra,
    }


class TestEventTime:
    def test_date_time(self):
        t = EventTime.from_raw({"dateTime": "2026-03-02T10:00:00Z", "timeZone": "UTC"})
        assert not t.is_all_day
        assert t.display == "2026-03-02T10:00:00Z"
        assert t.instant().hour == 10

    def test_all_day(self):
        t = EventTime.from_raw({"date": "2026-03-02"})
        assert t.is_all_day
        assert t.display == "2026-03-02"
        assert t.instant() is None

    def test_missing(self):
        t = EventTime.from_raw(None)
        assert t.display == "Unknown"
        assert t.instant() is None

    def test_malformed(self):
        assert EventTime.from_raw({"dateTime": "soon"}).instant() is None


class TestPendingInvite:
    def test_needs_action_invite(self):
        invite = event_to_pending_invite(parse_event(_raw()), ME)
        assert invite is not None
        assert invite.event_id == "evt1"
        assert invite.organizer_email == "boss@example.com"
        assert invite.organizer_name == "The Boss"
        assert invite.user_comment == "maybe"
        assert invite.is_all_day is False
        me = [a for a in invite.attendees if a.self_]
        assert len(me) == 1
        assert me[0].email == "ME@example.com"

    def test_accepted_is_excluded(self):
        assert event_to_pending_invite(parse_event(_raw(status="accepted")), ME) is None

    def test_tentative_is_excluded(self):
        assert event_to_pending_invite(parse_event(_raw(status="tentative")), ME) is None

    def test_organizer_is_excluded(self):
        raw = _raw(organizer=ME)
        raw["attendees"] = [
            {"email": ME, "responseStatus": "needsAction", "organizer": True},
        ]
        assert event_to_pending_invite(parse_event(raw), ME) is None

    def test_not_an_attendee(self):
        assert event_to_pending_invite(parse_event(_raw()), "stranger@example.com") is None

    def test_missing_summary_and_organizer(self):
        raw = _raw()
        del raw["summary"]
        del raw["organizer"]
        invite = event_to_pending_invite(parse_event(raw), ME)
        assert invite.summary == "(No title)"
        assert invite.organizer_email == "Unknown"

    def test_unknown_attendee_status(self):
        invite = event_to_pending_invite(parse_event(_raw()), ME)
        other = next(a for a in invite.attendees if a.email == "other@example.com")
        assert other.status == "unknown"
        assert other.name == "Other"

    def test_wire_field_names(self):
        wire = event_to_pending_invite(parse_event(_raw()), ME).to_wire()
        for key in (
            "eventId",
            "summary",
            "startTime",
            "endTime",
            "isAllDay",
            "organizerEmail",
            "organizerName",
            "calendarLink",
            "userComment",
        ):
            assert key in wire
        assert wire["attendees"][1]["self"] is True


class TestParseCalendar:
    def test_summary_defaults_to_id(self):
        cal = parse_calendar({"id": "team@group.calendar.google.com"})
        assert cal.summary == "team@group.calendar.google.com"
        assert cal.primary is False

    def test_missing_id(self):
        assert parse_calendar({"summary": "No id"}) is None


class TestTextSummaries:
    def test_no_invites(self):
        assert "no pending calendar invitations" in format_invites_as_text([])

    def test_invite_listing(self):
        invite = event_to_pending_invite(parse_event(_raw()), ME)
        text = format_invites_as_text([invite])
        assert text.startswith("You have 1 pending calendar invitation:")
        assert "**Planning**" in text
        assert "Monday, March 2, 2026 at 10:00 AM" in text
        assert "Organizer: The Boss" in text
        assert "Location: Room 4" in text
        assert "Event ID: evt1" in text

    def test_all_day_listing(self):
        invite = PendingInvite(
            event_id="d",
            summary="Offsite",
            start_time="2026-03-02",
            end_time="2026-03-03",
            is_all_day=True,
            organizer_email="boss@example.com",
        )
        assert "(all day)" in format_invites_as_text([invite, invite])
        assert "2 pending calendar invitations" in format_invites_as_text([invite, invite])

    def test_conflict_summary(self):
        assert "No scheduling conflicts" in format_conflicts_as_text([], 0)
        invite = event_to_pending_invite(parse_event(_raw()), ME)
        assert "2 conflicting event(s) in 1" in format_conflicts_as_text([invite, invite], 1)
