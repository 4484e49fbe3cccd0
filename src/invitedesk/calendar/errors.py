# Calendar engine exceptions.
# Created: 2026-10-13

from __future__ import annotations


class CalendarError(Exception):
    """Base class for every failure raised by the calendar engine."""


class InvalidInputError(CalendarError):
    """Request rejected before any remote call (empty comment, bad dates...)."""


class MissingIdentityError(CalendarError):
    """No calendar account email is known for the user."""

    def __init__(self, message: str = "User email not found"):
        super().__init__(message)


class AuthenticationExpiredError(CalendarError):
    """The remote API rejected the user's credentials; re-authentication needed."""

    def __init__(self, message: str = "Authentication expired. Please re-authenticate."):
        super().__init__(message)


class PermissionDeniedError(CalendarError):
    """The user is not allowed to perform the operation on this event."""


class EventNotFoundError(CalendarError):
    """The event was deleted, cancelled or never existed."""

    def __init__(
        self, message: str = "Event not found. It may have been cancelled or deleted."
    ):
        super().__init__(message)


class CalendarOperationError(CalendarError):
    """Any other remote failure, carrying the upstream message."""


class CalendarAPIError(CalendarError):
    """Non-2xx response from the remote calendar API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
