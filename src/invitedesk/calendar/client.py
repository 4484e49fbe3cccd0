# Google Calendar client: thin HTTP wrapper over the Calendar v3 REST API.
# Created: 2026-10-13

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from invitedesk.calendar.errors import CalendarAPIError

logger = logging.getLogger(__name__)

_CALENDAR_BASE = "https://www.googleapis.com/calendar/v3"
MAX_RESULTS_PER_PAGE = 250


def _error_message(resp: httpx.Response) -> str:
    """Best-effort extraction of the API's error message."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return resp.reason_phrase


class CalendarClient:
    """HTTP client for one user's Google Calendar.

    Every method performs exactly one request; retries are the caller's
    concern. Non-2xx responses raise ``CalendarAPIError``.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = _CALENDAR_BASE,
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        if resp.is_error:
            raise CalendarAPIError(resp.status_code, _error_message(resp))
        if not resp.content:
            return {}
        return resp.json()

    @staticmethod
    def _events_path(calendar_id: str) -> str:
        return f"/calendars/{quote(calendar_id, safe='')}/events"

    async def list_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        max_results: int = MAX_RESULTS_PER_PAGE,
    ) -> list[dict[str, Any]]:
        """List single (expanded) events in a window, ordered by start time.

        Only the first page is fetched.
        """
        data = await self._request(
            "GET",
            self._events_path(calendar_id),
            params={
                "timeMin": time_min,
                "timeMax": time_max,
                "maxResults": max_results,
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        return list(data.get("items", []))

    async def get_event(self, calendar_id: str, event_id: str) -> dict[str, Any]:
        return await self._request(
            "GET", f"{self._events_path(calendar_id)}/{quote(event_id, safe='')}"
        )

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: dict[str, Any],
        send_updates: str = "all",
    ) -> dict[str, Any]:
        """Partially update an event; ``send_updates="all"`` notifies every guest."""
        return await self._request(
            "PATCH",
            f"{self._events_path(calendar_id)}/{quote(event_id, safe='')}",
            params={"sendUpdates": send_updates},
            json=body,
        )

    async def list_calendars(self) -> list[dict[str, Any]]:
        """Calendars on the user's calendar list (first page)."""
        data = await self._request("GET", "/users/me/calendarList")
        return list(data.get("items", []))
