# discipline_scheduler/web/api.py
"""
FastAPI wrapper around the scheduling engine.

Endpoints (the caller identifies the user with the x-user-id header):
- GET  /health
- POST /schedule/generate      plan, push and persist a day's schedule
- GET  /schedule/free-slots    read-only preview of busy + free time for a date
- GET  /schedule/today         persisted blocks for a date

The engine (planner + orchestrator) does the work; this file maps HTTP to it
and maps fatal scheduling errors to status codes:
- ConfigurationError -> 400 (e.g. calendar not connected)
- UpstreamReadError  -> 502 (Supabase / Google unreachable)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from discipline_scheduler.busy import aggregate_busy
from discipline_scheduler.config import Settings, configure_logging
from discipline_scheduler.errors import ConfigurationError, SchedulerError, UpstreamReadError
from discipline_scheduler.google_calendar import GoogleCalendar
from discipline_scheduler.intervals import merge_intervals
from discipline_scheduler.planner import compute_free_slots, day_window
from discipline_scheduler.scheduler import read_upstream, schedule_day
from discipline_scheduler.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)

configure_logging(os.getenv("LOG_LEVEL", "INFO"))

app = FastAPI(title="DisciplineOS Scheduler API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:5173")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------
# Dependencies (internal plumbing)
# ----------------------------

@dataclass
class Services:
    """
    Everything an endpoint needs to run the engine for a request.
    """
    store: Any
    calendar: Any
    tz_name: str

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.tz_name)


def get_services() -> Services:
    """
    Build the production collaborators from environment settings.

    Tests replace this with app.dependency_overrides.
    """
    settings = Settings.from_env()
    try:
        url, key = settings.require_supabase()
        client_id, client_secret = settings.require_google()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    store = SupabaseStore(url, key)
    calendar = GoogleCalendar(
        token_lookup=store.get_refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        tz_name=settings.schedule_tz,
        calendar_ids=settings.planning_calendar_ids,
    )
    return Services(store=store, calendar=calendar, tz_name=settings.schedule_tz)


def require_user(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def _parse_date(raw: Optional[str], tz: ZoneInfo) -> date:
    """
    YYYY-MM-DD, or today in the schedule timezone when omitted.
    """
    if not raw:
        return datetime.now(tz).date()
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date format: {raw}") from e


def _http_error(e: SchedulerError) -> HTTPException:
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, UpstreamReadError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


# ----------------------------
# Request models (API contracts)
# ----------------------------

class GenerateRequest(BaseModel):
    date: Optional[str] = Field(None, description="Target date in YYYY-MM-DD (default: today)")


# ----------------------------
# Endpoints
# ----------------------------

@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/schedule/generate")
def generate_schedule(
    req: Optional[GenerateRequest] = None,
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
):
    """
    Plan the day, push each block to Google Calendar and persist it.
    """
    target = _parse_date(req.date if req else None, services.tz)

    try:
        result = schedule_day(
            user_id,
            target,
            goals=services.store,
            busy=services.calendar,
            shifts=services.store,
            tz=services.tz,
            calendar=services.calendar,
            persistence=services.store,
        )
    except SchedulerError as e:
        logger.error("Schedule generation failed for user %s: %s", user_id, e)
        raise _http_error(e)

    body = result.to_dict()
    count = len(result.blocks)
    if count:
        body["message"] = f"Generated {count} scheduled events! They've been synced to your Google Calendar."
    elif result.goal_count == 0:
        body["message"] = "No active goals. Add a goal to start scheduling."
    else:
        body["message"] = f"No free time fit your {result.goal_count} goal(s) today."
    body["success"] = True
    return body


@app.get("/schedule/free-slots")
def free_slots(
    date_str: Optional[str] = Query(None, alias="date"),
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
):
    """
    Read-only: busy time (calendar + shifts) and the free slots left in the day window.
    """
    tz = services.tz
    target = _parse_date(date_str, tz)

    try:
        remote = read_upstream("busy time", services.calendar.get_busy_intervals, user_id, target)
        if remote is None:
            raise ConfigurationError("Google Calendar not connected")
        shifts = read_upstream("shifts", services.store.list_shifts_for_date, user_id, target)
    except SchedulerError as e:
        raise _http_error(e)

    window = day_window(target, tz)
    busy = aggregate_busy(remote, shifts, target, tz)
    free = compute_free_slots(busy, window.start, window.end)

    return {
        "date": target.isoformat(),
        "tz": services.tz_name,
        "window": {"start": window.start.isoformat(), "end": window.end.isoformat()},
        "busy": [{"start": b.start.isoformat(), "end": b.end.isoformat()} for b in merge_intervals(busy)],
        "free": [
            {"start": s.start.isoformat(), "end": s.end.isoformat(), "minutes": s.minutes()}
            for s in free
        ],
    }


@app.get("/schedule/today")
def todays_schedule(
    date_str: Optional[str] = Query(None, alias="date"),
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
):
    target = _parse_date(date_str, services.tz)
    try:
        return services.store.list_scheduled_events(user_id, target)
    except SchedulerError as e:
        raise _http_error(e)
