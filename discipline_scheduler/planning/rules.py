# discipline_scheduler/planning/rules.py
"""
Per-goal-type planning rules.

The planner never branches on goal type directly; it looks up a GoalRule here:
- how long the block is
- which hour ranges are "optimal" for the type (tier 2 of the search)
- the icon used in the calendar event title

Ordering across a run lives here too: work -> gym -> study -> custom, then
higher priority first inside each group.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from discipline_scheduler.models import Goal, GoalType


@dataclass(frozen=True)
class GoalRule:
    """
    default_minutes: fixed block length for the type.
    honors_daily_hours: if True, goal.daily_hours (when set) overrides the default.
    optimal_hours: (start_hour, end_hour) ranges; a slot qualifies when its
    start hour h satisfies start_hour <= h < end_hour.
    """
    default_minutes: int
    optimal_hours: Tuple[Tuple[int, int], ...]
    icon: str
    honors_daily_hours: bool = False


GOAL_RULES: Dict[GoalType, GoalRule] = {
    GoalType.GYM: GoalRule(default_minutes=90, optimal_hours=((6, 9), (17, 20)), icon="💪"),
    GoalType.STUDY: GoalRule(
        default_minutes=120,
        optimal_hours=((6, 10), (14, 18), (19, 22)),
        icon="📚",
        honors_daily_hours=True,
    ),
    GoalType.WORK: GoalRule(
        default_minutes=480,
        optimal_hours=((9, 17),),
        icon="💼",
        honors_daily_hours=True,
    ),
    GoalType.CUSTOM: GoalRule(default_minutes=60, optimal_hours=((8, 22),), icon="🎯"),
}

# Rigid, narrow-window goal types get first pick of the day's free time.
TYPE_ORDER: Tuple[GoalType, ...] = (GoalType.WORK, GoalType.GYM, GoalType.STUDY, GoalType.CUSTOM)


def rule_for(goal_type: GoalType) -> GoalRule:
    return GOAL_RULES[GoalType(goal_type)]


def duration_for(goal: Goal, rules: Optional[Dict[GoalType, GoalRule]] = None) -> int:
    """
    Block length in minutes for a goal.

    study/work use daily_hours * 60 when daily_hours is set (and positive);
    every other type uses the fixed default.
    """
    rule = (rules or GOAL_RULES)[goal.type]
    if rule.honors_daily_hours and goal.daily_hours:
        return int(round(float(goal.daily_hours) * 60))
    return rule.default_minutes


def optimal_windows_for(goal_type: GoalType) -> List[Tuple[int, int]]:
    return list(rule_for(goal_type).optimal_hours)


def order_goals(goals: Iterable[Goal]) -> List[Goal]:
    """
    Sort goals into placement order.

    Primary key: type group (TYPE_ORDER). Secondary: priority, descending.
    Python's sort is stable, so equal (type, priority) keep their input order.
    """
    rank = {t: i for i, t in enumerate(TYPE_ORDER)}
    return sorted(goals, key=lambda g: (rank[g.type], -g.priority))
