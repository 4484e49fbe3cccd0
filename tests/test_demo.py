# Tests for calendar/demo.py
# Created: 2026-10-18

from datetime import UTC, datetime

import pytest

from invitedesk.calendar.demo import (
    DEMO_EMAIL,
    DEMO_USER_ID,
    DemoCalendarService,
    demo_invites,
    demo_organized_events,
    is_demo_user,
)
from invitedesk.calendar.errors import (
    EventNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def demo():
    return DemoCalendarService(clock=lambda: NOW)


class TestFixtures:
    def test_six_invites_in_the_next_ten_days(self):
        invites = demo_invites(NOW)
        assert len(invites) == 6
        assert invites[0].start_time == "2026-03-02T09:00:00+00:00"
        assert invites[-1].start_time == "2026-03-11T09:00:00+00:00"

    def test_user_is_a_pending_attendee(self):
        for invite in demo_invites(NOW):
            me = [a for a in invite.attendees if a.self_]
            assert [a.email for a in me] == [DEMO_EMAIL]
            assert me[0].status == "needsAction"

    def test_organized_event_is_not_pending(self):
        [event] = demo_organized_events(NOW)
        assert event.event_id == "demo_event_7"
        assert event.organizer_email == DEMO_EMAIL
        me = [a for a in event.attendees if a.self_]
        assert me[0].organizer
        assert me[0].status == "accepted"

    def test_demo_user(self):
        assert is_demo_user(DEMO_USER_ID)
        assert not is_demo_user("default_user")


class TestDemoCalendarService:
    async def test_pending_invites(self, demo):
        result = await demo.get_pending_invites(DEMO_USER_ID)
        assert result.total_count == 6
        assert result.date_range.start == NOW.isoformat()

    async def test_response_removes_invite_from_pending(self, demo):
        result = await demo.respond_to_invite(DEMO_USER_ID, "demo_event_1", "accepted")

        assert result.success
        assert result.message == (
            'You have accepted the invitation "Team Standup Meeting" (demo mode)'
        )
        pending = await demo.get_pending_invites(DEMO_USER_ID)
        assert "demo_event_1" not in [i.event_id for i in pending.invites]
        assert pending.total_count == 5

    async def test_invalid_response(self, demo):
        with pytest.raises(InvalidInputError):
            await demo.respond_to_invite(DEMO_USER_ID, "demo_event_1", "maybe")

    async def test_unknown_event(self, demo):
        with pytest.raises(EventNotFoundError):
            await demo.respond_to_invite(DEMO_USER_ID, "nope", "declined")

    async def test_comment(self, demo):
        result = await demo.add_comment_to_invite(DEMO_USER_ID, "demo_event_2", " On my way ")
        assert result.new_status == "comment_added"
        pending = await demo.get_pending_invites(DEMO_USER_ID)
        invite = next(i for i in pending.invites if i.event_id == "demo_event_2")
        assert invite.user_comment == "On my way"

    async def test_empty_comment(self, demo):
        with pytest.raises(InvalidInputError):
            await demo.add_comment_to_invite(DEMO_USER_ID, "demo_event_2", "  ")

    async def test_reschedule_requires_organizer(self, demo):
        with pytest.raises(PermissionDeniedError):
            await demo.reschedule_event(
                DEMO_USER_ID, "demo_event_1", "2026-03-05T10:00:00Z", "2026-03-05T11:00:00Z"
            )

    async def test_reschedule_validates_times_first(self, demo):
        with pytest.raises(InvalidInputError):
            await demo.reschedule_event(
                DEMO_USER_ID, "nope", "2026-03-05T11:00:00Z", "2026-03-05T10:00:00Z"
            )

    async def test_reschedule_organized_event(self, demo):
        result = await demo.reschedule_event(
            DEMO_USER_ID, "demo_event_7", "2026-03-06T10:00:00Z", "2026-03-06T11:00:00Z"
        )

        assert result.success
        assert result.new_status == "rescheduled"
        assert result.message == 'Event "Project Kickoff Prep" rescheduled (demo mode)'
        pending = await demo.get_pending_invites(DEMO_USER_ID)
        assert "demo_event_7" not in [i.event_id for i in pending.invites]

    async def test_reschedule_rejects_non_string_times(self, demo):
        with pytest.raises(InvalidInputError, match="Invalid date/time format"):
            await demo.reschedule_event(DEMO_USER_ID, "demo_event_7", None, "2026-03-06T11:00:00Z")

    async def test_fixtures_do_not_conflict(self, demo):
        result = await demo.get_conflicting_events(DEMO_USER_ID)
        assert result.total_count == 0
