# discipline_scheduler/scheduler.py
"""
Schedule orchestrator: one user, one date.

LOAD_INPUTS -> COMPUTE_FREE_SLOTS -> PLACE_GOALS -> EMIT

Reads (goals, busy time, shifts) are fatal when they fail: no partial schedule
is produced. Writes (calendar push, persistence) are best effort per block.
A goal that fits nowhere is reported in ScheduleResult.unscheduled.

Collaborators are duck-typed; the Protocols below document what is called.
The Supabase and Google adapters implement them for production, tests pass
in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

from discipline_scheduler.busy import aggregate_busy
from discipline_scheduler.errors import ConfigurationError, SchedulerError, UpstreamReadError
from discipline_scheduler.intervals import Interval
from discipline_scheduler.models import Goal, ScheduledBlock, ScheduleResult, Shift
from discipline_scheduler.planner import compute_free_slots, day_window, plan_day
from discipline_scheduler.planning.rules import rule_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_REMINDER_MINUTES = [15, 5]


class GoalStore(Protocol):
    def list_active_goals(self, user_id: str) -> List[Goal]: ...


class BusyTimeSource(Protocol):
    def get_busy_intervals(self, user_id: str, target_date: date) -> Optional[List[Interval]]:
        """Busy intervals for the day, or None when the user has no connected calendar."""
        ...


class ShiftStore(Protocol):
    def list_shifts_for_date(self, user_id: str, target_date: date) -> List[Shift]: ...


class CalendarPush(Protocol):
    def create_event(self, user_id: str, event: Dict[str, Any]) -> Optional[str]: ...


class SchedulePersistence(Protocol):
    def save_scheduled_block(
        self,
        user_id: str,
        goal_id: str,
        start: datetime,
        end: datetime,
        target_date: date,
        title: Optional[str] = None,
        external_event_id: Optional[str] = None,
    ) -> str: ...


def event_draft(block: ScheduledBlock) -> Dict[str, Any]:
    """
    The calendar event requested for a placed block.
    """
    icon = rule_for(block.goal.type).icon
    return {
        "title": f"{icon} {block.goal.name}",
        "description": f"Scheduled by DisciplineOS - {block.goal.name}",
        "start": block.start,
        "end": block.end,
        "reminders": list(EVENT_REMINDER_MINUTES),
    }


def read_upstream(what: str, fn: Callable[..., T], *args: Any) -> T:
    """
    Call a read collaborator; anything but a SchedulerError becomes UpstreamReadError.
    """
    try:
        return fn(*args)
    except SchedulerError:
        raise
    except Exception as e:
        raise UpstreamReadError(f"Could not load {what}: {e}") from e


def schedule_day(
    user_id: str,
    target_date: date,
    *,
    goals: GoalStore,
    busy: BusyTimeSource,
    shifts: ShiftStore,
    tz,
    calendar: Optional[CalendarPush] = None,
    persistence: Optional[SchedulePersistence] = None,
    require_calendar: bool = True,
) -> ScheduleResult:
    """
    Generate, push and persist one user's schedule for target_date.

    Args:
        goals/busy/shifts: read collaborators (failures abort the run)
        tz: tzinfo of the user's day
        calendar: where placed blocks are pushed (skipped if None or not connected)
        persistence: where placed blocks are saved (skipped if None)
        require_calendar: if True, a user without a connected calendar is a
            ConfigurationError; otherwise the day is planned without remote busy time.

    Raises:
        ConfigurationError, UpstreamReadError
    """
    # --- LOAD_INPUTS ---
    active_goals = [g for g in read_upstream("goals", goals.list_active_goals, user_id) if g.active]
    if not active_goals:
        logger.info("User %s has no active goals; nothing to schedule", user_id)
        return ScheduleResult(user_id=user_id, date=target_date, goal_count=0)

    remote = read_upstream("busy time", busy.get_busy_intervals, user_id, target_date)
    connected = remote is not None
    if not connected:
        if require_calendar:
            raise ConfigurationError("Google Calendar not connected")
        logger.info("User %s has no connected calendar; planning without remote busy time", user_id)
        remote = []

    day_shifts = read_upstream("shifts", shifts.list_shifts_for_date, user_id, target_date)

    # --- COMPUTE_FREE_SLOTS ---
    window = day_window(target_date, tz)
    busy_set = aggregate_busy(remote, day_shifts, target_date, tz)
    free_slots = compute_free_slots(busy_set, window.start, window.end)
    logger.info(
        "Free slots available: %s",
        [f"{s.start.strftime('%H:%M')}-{s.end.strftime('%H:%M')}" for s in free_slots],
    )

    # --- PLACE_GOALS ---
    placed, unscheduled = plan_day(active_goals, free_slots, target_date, tz)
    if unscheduled:
        logger.warning("%d goal(s) unscheduled for user %s on %s", len(unscheduled), user_id, target_date)

    # --- EMIT ---
    result = ScheduleResult(
        user_id=user_id,
        date=target_date,
        goal_count=len(active_goals),
        unscheduled=unscheduled,
        calendar_connected=connected,
    )

    for block in placed:
        event_id: Optional[str] = None
        if calendar is not None and connected:
            try:
                event_id = calendar.create_event(user_id, event_draft(block))
            except Exception:
                logger.exception("Calendar push failed for goal %s; keeping the block", block.goal.id)
            if event_id is None:
                logger.warning("No calendar event created for goal %s", block.goal.id)
        block = replace(block, external_event_id=event_id)

        if persistence is not None:
            try:
                block_id = persistence.save_scheduled_block(
                    user_id,
                    block.goal.id,
                    block.start,
                    block.end,
                    target_date,
                    title=block.goal.name,
                    external_event_id=event_id,
                )
            except Exception:
                logger.exception("Could not persist block for goal %s; dropping it", block.goal.id)
                result.dropped.append(block)
                continue
            block = replace(block, block_id=block_id)

        result.blocks.append(block)

    logger.info(
        "Scheduled %d/%d goals for user %s on %s",
        len(result.blocks),
        result.goal_count,
        user_id,
        target_date.isoformat(),
    )
    return result
