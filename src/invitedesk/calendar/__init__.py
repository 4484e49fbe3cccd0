"""Calendar reconciliation engine.

Created: 2026-10-13
"""

from invitedesk.calendar.client import CalendarClient
from invitedesk.calendar.conflicts import events_overlap, find_conflicting_events, group_conflicts
from invitedesk.calendar.demo import DemoCalendarService, is_demo_user
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
    AuthStatus,
    ConflictGroup,
    PendingInvite,
    PendingInvitesResponse,
    RespondResult,
)
from invitedesk.calendar.retry import RetryPolicy, with_backoff
from invitedesk.calendar.service import CalendarService

__all__ = [
    "AuthStatus",
    "AuthenticationExpiredError",
    "CalendarAPIError",
    "CalendarClient",
    "CalendarError",
    "CalendarOperationError",
    "CalendarService",
    "ConflictGroup",
    "DemoCalendarService",
    "EventNotFoundError",
    "InvalidInputError",
    "MissingIdentityError",
    "PendingInvite",
    "PendingInvitesResponse",
    "PermissionDeniedError",
    "RespondResult",
    "RetryPolicy",
    "events_overlap",
    "find_conflicting_events",
    "group_conflicts",
    "is_demo_user",
    "with_backoff",
]
