# Calendar reconciliation service: invites, responses, comments,
# rescheduling and cross-calendar conflict detection.
# Created: 2026-10-14
#
# Fetch-then-patch sequences are not atomic: two concurrent updates of the
# same event race and the last write wins. Callers that need ordering must
# serialize above this layer.

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, NoReturn

import httpx

from invitedesk.calendar.client import MAX_RESULTS_PER_PAGE, CalendarClient
from invitedesk.calendar.conflicts import find_conflicting_events
from invitedesk.calendar.errors import (
    AuthenticationExpiredError,
    CalendarAPIError,
    CalendarError,
    CalendarOperationError,
    EventNotFoundError,
    InvalidInputError,
    MissingIdentityError,
    PermissionDeniedError,
)
from invitedesk.calendar.models import (
    RESPONSE_PHRASES,
    VALID_RESPONSES,
    DateRange,
    PendingInvite,
    PendingInvitesResponse,
    RemoteEvent,
    RespondResult,
    parse_instant,
)
from invitedesk.calendar.normalize import (
    NO_TITLE,
    event_to_pending_invite,
    parse_calendar,
    parse_event,
)
from invitedesk.calendar.retry import DEFAULT_POLICY, RetryPolicy
from invitedesk.integrations.credentials import CredentialProvider, NotAuthenticatedError

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"
PENDING_WINDOW = timedelta(days=14)
CONFLICT_WINDOW = timedelta(days=30)


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def _raise_for(exc: Exception, prefix: str, not_found: bool = True) -> NoReturn:
    """Translate a remote failure into the engine's error taxonomy."""
    if isinstance(exc, CalendarAPIError):
        if exc.status_code == 401:
            raise AuthenticationExpiredError() from exc
        if not_found and exc.status_code == 404:
            raise EventNotFoundError() from exc
        raise CalendarOperationError(f"{prefix}: {exc.message}") from exc
    if isinstance(exc, CalendarError):
        raise exc
    raise CalendarOperationError(f"{prefix}: {exc}") from exc


class CalendarService:
    """Engine operations for one credential provider.

    ``client_factory`` builds a ``CalendarClient`` from an access token; tests
    swap it for a fake.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        client_factory: Callable[[str], Any] = CalendarClient,
        retry_policy: RetryPolicy = DEFAULT_POLICY,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.credentials = credentials
        self._client_factory = client_factory
        self._retry = retry_policy
        self._clock = clock

    async def _open(self, user_id: str) -> tuple[Any, str]:
        """Authorized client plus the user's own email."""
        if not user_id:
            raise MissingIdentityError("User identity is required")
        try:
            creds = await self.credentials.get_credentials(user_id)
        except NotAuthenticatedError as e:
            raise AuthenticationExpiredError() from e
        if not creds.email:
            raise MissingIdentityError()
        return self._client_factory(creds.access_token), creds.email

    def _window(
        self, start: str | None, end: str | None, span: timedelta
    ) -> tuple[str, str]:
        now = self._clock()
        return start or _iso(now), end or _iso(now + span)

    async def _fetch_event(self, client: Any, event_id: str) -> RemoteEvent:
        raw = await self._retry.run(lambda: client.get_event(PRIMARY_CALENDAR, event_id))
        return parse_event(raw)

    async def _patch(self, client: Any, event_id: str, body: dict[str, Any]) -> None:
        await self._retry.run(
            lambda: client.patch_event(PRIMARY_CALENDAR, event_id, body, send_updates="all")
        )

    # ------------------------------------------------------------------
    # Pending invites
    # ------------------------------------------------------------------

    async def get_pending_invites(
        self, user_id: str, start: str | None = None, end: str | None = None
    ) -> PendingInvitesResponse:
        """Invites on the primary calendar still awaiting the user's response."""
        client, email = await self._open(user_id)
        time_min, time_max = self._window(start, end, PENDING_WINDOW)

        try:
            items = await self._retry.run(
                lambda: client.list_events(
                    PRIMARY_CALENDAR, time_min, time_max, max_results=MAX_RESULTS_PER_PAGE
                )
            )
        except (CalendarError, httpx.HTTPError) as e:
            logger.error("Error fetching calendar events for %s: %s", user_id, e)
            _raise_for(e, "Failed to fetch calendar events", not_found=False)

        invites: list[PendingInvite] = []
        for raw in items:
            invite = event_to_pending_invite(parse_event(raw), email)
            if invite is not None:
                invites.append(invite)

        return PendingInvitesResponse(
            invites=invites,
            date_range=DateRange(start=time_min, end=time_max),
            total_count=len(invites),
        )

    # ------------------------------------------------------------------
    # Responses and comments
    # ------------------------------------------------------------------

    async def respond_to_invite(
        self, user_id: str, event_id: str, response: str
    ) -> RespondResult:
        """Set the user's response status and notify every participant."""
        if response not in VALID_RESPONSES:
            raise InvalidInputError(
                f"Invalid response {response!r}; expected one of {', '.join(VALID_RESPONSES)}"
            )
        client, email = await self._open(user_id)

        try:
            event = await self._fetch_event(client, event_id)
            attendees = self._rewrite_attendee(event, email, {"responseStatus": response})
            await self._patch(client, event_id, {"attendees": attendees})
        except (CalendarError, httpx.HTTPError) as e:
            logger.error("Error responding to invite %s: %s", event_id, e)
            _raise_for(e, "Failed to respond to invite")

        logger.info("%s %s event %s", email, response, event_id)
        title = event.summary or NO_TITLE
        return RespondResult(
            success=True,
            message=f'You have {RESPONSE_PHRASES[response]} the invitation "{title}"',
            event_id=event_id,
            new_status=response,
            event_summary=event.summary,
        )

    async def add_comment_to_invite(
        self, user_id: str, event_id: str, comment: str
    ) -> RespondResult:
        """Replace the user's attendee comment on an event."""
        text = (comment or "").strip()
        if not text:
            raise InvalidInputError("Comment cannot be empty")
        client, email = await self._open(user_id)

        try:
            event = await self._fetch_event(client, event_id)
            attendees = self._rewrite_attendee(event, email, {"comment": text})
            await self._patch(client, event_id, {"attendees": attendees})
        except (CalendarError, httpx.HTTPError) as e:
            logger.error("Error adding comment to invite %s: %s", event_id, e)
            _raise_for(e, "Failed to add comment")

        return RespondResult(
            success=True,
            message=f'Comment added to "{event.summary or NO_TITLE}": "{text}"',
            event_id=event_id,
            new_status="comment_added",
            event_summary=event.summary,
        )

    @staticmethod
    def _rewrite_attendee(
        event: RemoteEvent, email: str, changes: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Attendee list with *changes* applied to the user's entry only."""
        if not event.attendees:
            raise CalendarOperationError("Event has no attendees")
        if event.find_attendee(email) is None:
            raise PermissionDeniedError("You are not on the guest list for this event")
        return [
            {**attendee.raw, **changes} if attendee.matches(email) else dict(attendee.raw)
            for attendee in event.attendees
        ]

    # ------------------------------------------------------------------
    # Rescheduling
    # ------------------------------------------------------------------

    async def reschedule_event(
        self, user_id: str, event_id: str, new_start: str, new_end: str
    ) -> RespondResult:
        """Move an event the user organizes, notifying all attendees."""
        try:
            start_at = parse_instant(new_start)
            end_at = parse_instant(new_end)
        except (AttributeError, ValueError) as e:
            raise InvalidInputError("Invalid date/time format") from e
        if end_at <= start_at:
            raise InvalidInputError("End time must be after start time")

        client, email = await self._open(user_id)

        try:
            event = await self._fetch_event(client, event_id)
            if not event.is_organized_by(email):
                raise PermissionDeniedError("Only the organizer can reschedule this event")
            await self._patch(
                client,
                event_id,
                {
                    "start": {"dateTime": new_start, "timeZone": event.start.time_zone or "UTC"},
                    "end": {"dateTime": new_end, "timeZone": event.end.time_zone or "UTC"},
                },
            )
        except (CalendarError, httpx.HTTPError) as e:
            logger.error("Error rescheduling event %s: %s", event_id, e)
            _raise_for(e, "Failed to reschedule event")

        title = event.summary or NO_TITLE
        return RespondResult(
            success=True,
            message=f'Event "{title}" rescheduled to {start_at:%Y-%m-%d %H:%M %Z}',
            event_id=event_id,
            new_status="rescheduled",
            event_summary=event.summary,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_event(self, user_id: str, event_id: str) -> RemoteEvent | None:
        """Single event from the primary calendar, or None if it is gone."""
        client, _ = await self._open(user_id)
        try:
            return await self._fetch_event(client, event_id)
        except (CalendarError, httpx.HTTPError) as e:
            if isinstance(e, CalendarAPIError) and e.status_code == 404:
                return None
            _raise_for(e, "Failed to fetch event")

    async def get_conflicting_events(
        self, user_id: str, start: str | None = None, end: str | None = None
    ) -> PendingInvitesResponse:
        """Overlapping events across every calendar the user can see.

        A calendar that fails to load is logged and skipped; the scan carries
        on with the rest.
        """
        client, email = await self._open(user_id)
        time_min, time_max = self._window(start, end, CONFLICT_WINDOW)

        try:
            raw_calendars = await self._retry.run(client.list_calendars)
        except (CalendarError, httpx.HTTPError) as e:
            logger.error("Error listing calendars for %s: %s", user_id, e)
            _raise_for(e, "Failed to fetch conflicting events", not_found=False)

        events: list[RemoteEvent] = []
        for raw_calendar in raw_calendars:
            calendar = parse_calendar(raw_calendar)
            if calendar is None:
                continue
            try:
                items = await self._retry.run(
                    lambda: client.list_events(
                        calendar.id, time_min, time_max, max_results=MAX_RESULTS_PER_PAGE
                    )
                )
            except (CalendarError, httpx.HTTPError) as e:
                logger.warning("Skipping calendar %s: %s", calendar.summary, e)
                continue
            events.extend(parse_event(raw, calendar) for raw in items)

        conflicts = find_conflicting_events(events, email)
        logger.info(
            "Scanned %d events across %d calendars: %d in conflict",
            len(events),
            len(raw_calendars),
            len(conflicts),
        )
        return PendingInvitesResponse(
            invites=conflicts,
            date_range=DateRange(start=time_min, end=time_max),
            total_count=len(conflicts),
        )
