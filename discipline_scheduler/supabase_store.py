# discipline_scheduler/supabase_store.py
"""
Supabase (PostgREST over HTTPS) storage for users, goals, shifts and
scheduled events.

Tables used:
- users(id, google_refresh_token, ...)
- goals(id, user_id, type, name, weekly_target, daily_hours, preferred_times,
        priority, active, relaxation_time_after)
- shifts(id, user_id, date, start_time, end_time)
- scheduled_events(id, user_id, goal_id, google_event_id, title, start_time,
                   end_time, date, status, reminded)

Reads raise UpstreamReadError when Supabase is unreachable or answers with an
error. Writes raise requests exceptions; the orchestrator decides what to do.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import requests

from discipline_scheduler.errors import UpstreamReadError
from discipline_scheduler.models import Goal, Shift

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class SupabaseStore:
    def __init__(
        self,
        url: str,
        service_key: str,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            }
        )

    # ----------------------------
    # Helpers (internal plumbing)
    # ----------------------------

    def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        GET /rest/v1/<table> with PostgREST filter params.
        """
        try:
            resp = self.session.get(f"{self.base_url}/{table}", params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamReadError(f"Supabase read from {table} failed: {e}") from e
        return resp.json()

    # ----------------------------
    # Reads
    # ----------------------------

    def get_refresh_token(self, user_id: str) -> Optional[str]:
        rows = self._select("users", {"id": f"eq.{user_id}", "select": "google_refresh_token"})
        if not rows:
            return None
        return rows[0].get("google_refresh_token") or None

    def list_connected_user_ids(self) -> List[str]:
        """
        Users with a Google refresh token (the daily run's population).
        """
        rows = self._select("users", {"google_refresh_token": "not.is.null", "select": "id"})
        return [str(r["id"]) for r in rows]

    def list_active_goals(self, user_id: str) -> List[Goal]:
        """
        Active goals for a user. Rows that fail validation are skipped with a warning.
        """
        rows = self._select(
            "goals",
            {"user_id": f"eq.{user_id}", "active": "eq.true", "order": "priority.desc"},
        )
        goals: List[Goal] = []
        for row in rows:
            try:
                goals.append(Goal.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid goal row %s: %s", row.get("id"), e)
        return goals

    def list_shifts_for_date(self, user_id: str, target_date: date) -> List[Shift]:
        rows = self._select(
            "shifts",
            {"user_id": f"eq.{user_id}", "date": f"eq.{target_date.isoformat()}"},
        )
        shifts: List[Shift] = []
        for row in rows:
            try:
                shifts.append(Shift.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid shift row %s: %s", row.get("id"), e)
        return shifts

    def list_scheduled_events(self, user_id: str, target_date: date) -> List[Dict[str, Any]]:
        return self._select(
            "scheduled_events",
            {
                "user_id": f"eq.{user_id}",
                "date": f"eq.{target_date.isoformat()}",
                "order": "start_time.asc",
            },
        )

    # ----------------------------
    # Writes
    # ----------------------------

    def save_scheduled_block(
        self,
        user_id: str,
        goal_id: str,
        start: datetime,
        end: datetime,
        target_date: date,
        title: Optional[str] = None,
        external_event_id: Optional[str] = None,
    ) -> str:
        """
        Upsert a scheduled block and return its row id.

        (user_id, goal_id, date) is the conflict key, so re-running a day
        updates the existing row instead of inserting a duplicate.
        """
        row = {
            "user_id": user_id,
            "goal_id": goal_id,
            "google_event_id": external_event_id,
            "title": title,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "date": target_date.isoformat(),
            "status": "scheduled",
            "reminded": False,
        }
        resp = self.session.post(
            f"{self.base_url}/scheduled_events",
            params={"on_conflict": "user_id,goal_id,date"},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            timeout=self.timeout,
        )
        resp.raise_for_status()

        data = resp.json()
        saved = data[0] if isinstance(data, list) else data
        return str(saved["id"])
