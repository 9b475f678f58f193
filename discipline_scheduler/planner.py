# discipline_scheduler/planner.py
"""
Planning logic: turn busy time into free slots, then place goals into them.

This module is deterministic and testable (no I/O):
- day_window: the fixed 06:00-22:00 planning window for a date
- compute_free_slots: complement of the busy set inside the window (>= 30 min gaps)
- find_placement: three-tier search for one goal (preferred -> optimal -> first fit)
- consume_slot: remove a placed block plus its trailing buffer from the free list
- plan_day: greedy loop over goals in type/priority order

Placement is greedy and never backtracks: once a goal is placed, later goals
only see what is left. Same inputs always give the same schedule.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from discipline_scheduler.intervals import Interval, sort_by_start, subtract
from discipline_scheduler.models import Goal, GoalType, PlacementTier, ScheduledBlock
from discipline_scheduler.planning.rules import GOAL_RULES, GoalRule, duration_for, order_goals

logger = logging.getLogger(__name__)

DAY_START_HOUR = 6
DAY_END_HOUR = 22

# Gaps shorter than this are not reported as usable free time.
MIN_SLOT_MINUTES = 30


def day_window(target_date: date, tz) -> Interval:
    """
    The planning window [06:00, 22:00) on target_date in tz.
    """
    return Interval(
        start=datetime.combine(target_date, time(DAY_START_HOUR), tzinfo=tz),
        end=datetime.combine(target_date, time(DAY_END_HOUR), tzinfo=tz),
    )


def compute_free_slots(
    busy: Iterable[Interval],
    window_start: datetime,
    window_end: datetime,
    min_minutes: int = MIN_SLOT_MINUTES,
) -> List[Interval]:
    """
    Given a window and busy blocks, return the free intervals within the window.

    Args:
        busy: busy intervals, any order, may overlap each other or the window edges
        window_start/window_end: the planning window
        min_minutes: gaps shorter than this are dropped

    Returns:
        Ascending, non-overlapping free intervals, each at least min_minutes long.
        No busy time -> the whole window. Fully booked -> [].
    """
    if window_end <= window_start:
        return []

    # Clip busy blocks to the window; anything entirely outside is irrelevant.
    clipped: List[Interval] = []
    for b in busy:
        start = max(b.start, window_start)
        end = min(b.end, window_end)
        if end > start:
            clipped.append(Interval(start=start, end=end))

    free: List[Interval] = []
    cursor = window_start

    for b in sort_by_start(clipped):
        # Gap between the cursor and the next busy start is free time
        if b.start > cursor:
            gap = Interval(start=cursor, end=min(b.start, window_end))
            if gap.minutes() >= min_minutes:
                free.append(gap)

        cursor = max(cursor, b.end)

    if cursor < window_end:
        tail = Interval(start=cursor, end=window_end)
        if tail.minutes() >= min_minutes:
            free.append(tail)

    return free


def find_placement(
    goal: Goal,
    free_slots: List[Interval],
    target_date: date,
    tz,
    rules: Optional[Dict[GoalType, GoalRule]] = None,
) -> Optional[ScheduledBlock]:
    """
    Find where one goal goes in the current free slots.

    Tiers, first success wins:
    1. preferred: for each preferred window (goal order), for each slot that
       overlaps it and is long enough, start at max(slot start, window start)
       if the block still fits inside the slot.
    2. optimal: for each optimal hour range of the goal type, the first slot
       whose start hour is inside the range and which is long enough; start at
       the slot start.
    3. first fit: the first slot that is long enough; start at the slot start.

    Returns None when no slot is long enough. That is a normal outcome.
    """
    rules = rules or GOAL_RULES
    minutes = duration_for(goal, rules)
    length = timedelta(minutes=minutes)

    def _block(start: datetime, tier: PlacementTier) -> ScheduledBlock:
        return ScheduledBlock(
            goal=goal,
            start=start,
            end=start + length,
            relaxation_minutes=goal.relaxation_minutes,
            tier=tier,
        )

    # --- Tier 1: explicit preferred windows ---
    for pref_start, pref_end in goal.preferred_windows:
        window = Interval(
            start=datetime.combine(target_date, pref_start, tzinfo=tz),
            end=datetime.combine(target_date, pref_end, tzinfo=tz),
        )
        for slot in free_slots:
            if not slot.overlaps(window) or slot.minutes() < minutes:
                continue
            candidate = max(slot.start, window.start)
            if candidate + length <= slot.end:
                return _block(candidate, PlacementTier.PREFERRED)

    # --- Tier 2: type-specific optimal hours ---
    for start_hour, end_hour in rules[goal.type].optimal_hours:
        for slot in free_slots:
            if start_hour <= slot.start.astimezone(tz).hour < end_hour and slot.minutes() >= minutes:
                return _block(slot.start, PlacementTier.OPTIMAL)

    # --- Tier 3: first fit ---
    for slot in free_slots:
        if slot.minutes() >= minutes:
            if goal.preferred_times:
                logger.warning(
                    "Goal %s (%s): preferred times %s could not be honored, using first free slot at %s",
                    goal.id,
                    goal.name,
                    list(goal.preferred_times),
                    slot.start.isoformat(),
                )
            return _block(slot.start, PlacementTier.FIRST_FIT)

    return None


def consume_slot(
    free_slots: List[Interval],
    start: datetime,
    end: datetime,
    relaxation_minutes: int = 0,
    min_minutes: int = MIN_SLOT_MINUTES,
) -> List[Interval]:
    """
    Remove [start, end + relaxation) from the free slots.

    Returns a NEW list (the input is not modified):
    - slots fully inside the used span disappear
    - a slot containing the span splits into before/after pieces
    - a slot overlapping one edge is trimmed
    Pieces shorter than min_minutes are dropped, matching compute_free_slots.
    """
    used = Interval(start=start, end=end + timedelta(minutes=int(relaxation_minutes)))

    out: List[Interval] = []
    for slot in free_slots:
        if not slot.overlaps(used):
            out.append(slot)
            continue
        out.extend(p for p in subtract(slot, used) if p.minutes() >= min_minutes)
    return out


def plan_day(
    goals: Iterable[Goal],
    free_slots: List[Interval],
    target_date: date,
    tz,
    rules: Optional[Dict[GoalType, GoalRule]] = None,
) -> Tuple[List[ScheduledBlock], List[Goal]]:
    """
    Place every active goal, in order, into the free slots.

    Returns:
        (blocks in placement order, goals that could not be placed)
    """
    remaining = list(free_slots)
    blocks: List[ScheduledBlock] = []
    unscheduled: List[Goal] = []

    for goal in order_goals(g for g in goals if g.active):
        block = find_placement(goal, remaining, target_date, tz, rules=rules)
        if block is None:
            logger.info("No free slot fits goal %s (%s) on %s", goal.id, goal.name, target_date.isoformat())
            unscheduled.append(goal)
            continue

        logger.info(
            "Placed %s (%s) %s-%s via %s tier",
            goal.name,
            goal.type.value,
            block.start.strftime("%H:%M"),
            block.end.strftime("%H:%M"),
            block.tier.value,
        )
        blocks.append(block)
        remaining = consume_slot(remaining, block.start, block.end, block.relaxation_minutes)

    return blocks, unscheduled
