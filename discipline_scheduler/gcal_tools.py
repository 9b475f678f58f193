# discipline_scheduler/gcal_tools.py
"""
Thin Google Calendar API calls.

Rules kept by these helpers:
- Read busy time from any calendars the caller names
- Write ONLY to the primary calendar
- Never delete events
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

DEFAULT_COLOR_ID = "11"  # red, used for every discipline block


def freebusy_query(
    service,
    time_min: str,
    time_max: str,
    calendar_ids: List[str],
) -> Dict[str, Any]:
    """
    Query busy blocks across multiple calendars.

    Args:
        time_min/time_max: RFC3339 timestamps
        calendar_ids: calendar IDs to query

    Returns:
        Dict keyed by calendarId with busy intervals, like:
        { "calendarId": { "busy": [{"start": "...", "end": "..."}, ...] }, ... }
    """
    body = {
        "timeMin": time_min,
        "timeMax": time_max,
        "items": [{"id": cid} for cid in calendar_ids],
    }
    resp = service.freebusy().query(body=body).execute()
    return resp.get("calendars", {})


def build_event_payload(
    title: str,
    start: datetime,
    end: datetime,
    tz_name: str,
    description: Optional[str] = None,
    reminders: Optional[List[int]] = None,
    color_id: str = DEFAULT_COLOR_ID,
) -> Dict[str, Any]:
    """
    Convert a scheduled block into a Google Calendar event payload.

    reminders: popup reminder offsets in minutes (default [15]).
    """
    return {
        "summary": title,
        "description": description or "Scheduled by DisciplineOS",
        "start": {"dateTime": start.isoformat(), "timeZone": tz_name},
        "end": {"dateTime": end.isoformat(), "timeZone": tz_name},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": m} for m in (reminders or [15])],
        },
        "colorId": color_id,
    }


def create_event_primary(service, event_payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create an event on the PRIMARY calendar and return the created event.
    """
    return service.events().insert(calendarId="primary", body=event_payload).execute()
