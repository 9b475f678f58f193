# discipline_scheduler/daily_run.py
"""
Daily trigger: generate today's schedule for every user with a connected calendar.

Meant to be run once a day by an external timer (cron, a platform scheduler):

    python -m discipline_scheduler.daily_run

At most one run per (user, date) should be in flight; persistence upserts on
(user, goal, date) so a repeated run does not duplicate rows.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Iterable, Optional
from zoneinfo import ZoneInfo

from discipline_scheduler.config import Settings, configure_logging
from discipline_scheduler.errors import SchedulerError
from discipline_scheduler.google_calendar import GoogleCalendar
from discipline_scheduler.models import ScheduleStatus
from discipline_scheduler.scheduler import schedule_day
from discipline_scheduler.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)


def generate_daily_schedules(
    user_ids: Iterable[str],
    target_date: date,
    *,
    store,
    calendar,
    tz,
) -> Dict[str, Optional[ScheduleStatus]]:
    """
    Run schedule_day for each user.

    A failing user is logged and recorded as None; the others still run.
    """
    outcomes: Dict[str, Optional[ScheduleStatus]] = {}
    for user_id in user_ids:
        try:
            result = schedule_day(
                user_id,
                target_date,
                goals=store,
                busy=calendar,
                shifts=store,
                tz=tz,
                calendar=calendar,
                persistence=store,
            )
        except SchedulerError as e:
            logger.error("Failed to schedule for user %s: %s", user_id, e)
            outcomes[user_id] = None
            continue
        except Exception:
            logger.exception("Unexpected error scheduling user %s", user_id)
            outcomes[user_id] = None
            continue
        outcomes[user_id] = result.status

    ok = sum(1 for s in outcomes.values() if s is not None)
    logger.info("Generated schedules for %d/%d users on %s", ok, len(outcomes), target_date.isoformat())
    return outcomes


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    url, key = settings.require_supabase()
    client_id, client_secret = settings.require_google()

    store = SupabaseStore(url, key)
    calendar = GoogleCalendar(
        token_lookup=store.get_refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        tz_name=settings.schedule_tz,
        calendar_ids=settings.planning_calendar_ids,
    )
    tz = ZoneInfo(settings.schedule_tz)

    logger.info("Running daily schedule generation...")
    generate_daily_schedules(
        store.list_connected_user_ids(),
        datetime.now(tz).date(),
        store=store,
        calendar=calendar,
        tz=tz,
    )


if __name__ == "__main__":
    main()
