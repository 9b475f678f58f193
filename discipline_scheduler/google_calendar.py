# discipline_scheduler/google_calendar.py
"""
Google Calendar as a scheduling collaborator.

GoogleCalendar implements both sides the orchestrator needs:
- get_busy_intervals (read): FreeBusy for the user's day; fatal on API errors
- create_event (write): insert on primary; failures are logged and return None

Users are resolved to a refresh token through `token_lookup`; a user without a
token is "not connected" (get_busy_intervals returns None).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from googleapiclient.errors import HttpError

from discipline_scheduler.busy import busy_from_freebusy
from discipline_scheduler.errors import UpstreamReadError
from discipline_scheduler.gcal_tools import build_event_payload, create_event_primary, freebusy_query
from discipline_scheduler.google_auth import get_calendar_service
from discipline_scheduler.intervals import Interval

logger = logging.getLogger(__name__)


class GoogleCalendar:
    def __init__(
        self,
        token_lookup: Callable[[str], Optional[str]],
        client_id: str,
        client_secret: str,
        tz_name: str,
        calendar_ids: Sequence[str] = ("primary",),
        service_factory: Callable[..., Any] = get_calendar_service,
    ):
        self._token_lookup = token_lookup
        self._client_id = client_id
        self._client_secret = client_secret
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)
        self.calendar_ids = list(calendar_ids)
        self._service_factory = service_factory
        self._services: Dict[str, Any] = {}

    def _service(self, user_id: str):
        """
        Cached API client for a user, or None if the user has no refresh token.
        """
        if user_id in self._services:
            return self._services[user_id]

        refresh_token = self._token_lookup(user_id)
        if not refresh_token:
            return None

        service = self._service_factory(refresh_token, self._client_id, self._client_secret)
        self._services[user_id] = service
        return service

    def get_busy_intervals(self, user_id: str, target_date: date) -> Optional[List[Interval]]:
        service = self._service(user_id)
        if service is None:
            return None

        # Query the whole local day; the planner clips to its own window.
        day_start = datetime.combine(target_date, time.min, tzinfo=self.tz)
        day_end = day_start + timedelta(days=1)

        try:
            calendars_busy = freebusy_query(
                service=service,
                time_min=day_start.isoformat(),
                time_max=day_end.isoformat(),
                calendar_ids=self.calendar_ids,
            )
        except HttpError as e:
            raise UpstreamReadError(f"FreeBusy query failed for user {user_id}: {e}") from e

        for cal_id, data in calendars_busy.items():
            if data.get("errors"):
                logger.warning("FreeBusy reported errors for calendar %s: %s", cal_id, data["errors"])

        busy = busy_from_freebusy(calendars_busy, self.tz)
        logger.info("Fetched %d busy blocks for user %s on %s", len(busy), user_id, target_date.isoformat())
        return busy

    def create_event(self, user_id: str, event: Dict[str, Any]) -> Optional[str]:
        """
        Insert an event built from the orchestrator's draft
        ({title, description, start, end, reminders}). Returns the event id or None.
        """
        service = self._service(user_id)
        if service is None:
            return None

        payload = build_event_payload(
            title=event["title"],
            start=event["start"],
            end=event["end"],
            tz_name=self.tz_name,
            description=event.get("description"),
            reminders=event.get("reminders"),
        )

        logger.info("Creating calendar event: %s (%s -> %s)", payload["summary"], event["start"], event["end"])
        try:
            created = create_event_primary(service, payload)
        except HttpError as e:
            logger.error("Error creating calendar event %r: %s", payload["summary"], e)
            return None

        event_id = created.get("id")
        if not event_id:
            logger.warning("Calendar event created but no ID returned")
        return event_id
