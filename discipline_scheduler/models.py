# discipline_scheduler/models.py
"""
Domain types shared by the planner, the orchestrator and the store adapters.

Goals and shifts are read-only inputs to a scheduling run. Scheduled blocks are
produced by the planner and never mutated afterwards; ids assigned by side
effects (calendar event id, persisted row id) are attached with
dataclasses.replace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_RELAXATION_MINUTES = 15


class GoalType(str, Enum):
    WORK = "work"
    GYM = "gym"
    STUDY = "study"
    CUSTOM = "custom"


class PlacementTier(str, Enum):
    """Which search tier produced a placement."""
    PREFERRED = "preferred"
    OPTIMAL = "optimal"
    FIRST_FIT = "first_fit"


def parse_clock(value: str) -> time:
    """
    Parse "HH:MM" or "HH:MM:SS" into a time.

    Raises ValueError on anything else (including 24:00).
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid clock time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def parse_shift_clock(value: str) -> timedelta:
    """
    Parse a shift time ("HH:MM" or "HH:MM:SS") into an offset from midnight.

    Postgres `time` columns allow "24:00:00" for end-of-day, so exactly 24:00
    is accepted here (one day); any other out-of-range value raises ValueError.
    """
    parts = value.strip().split(":")
    if len(parts) in (2, 3) and all(p.isdigit() for p in parts) and int(parts[0]) == 24:
        if any(int(p) for p in parts[1:]):
            raise ValueError(f"Invalid clock time: {value!r}")
        return timedelta(days=1)
    t = parse_clock(value)
    return timedelta(hours=t.hour, minutes=t.minute, seconds=t.second)


def parse_time_window(value: str) -> Tuple[time, time]:
    """
    Parse a preferred-time string like "06:00-08:00".

    Windows are same-day only: the end must be strictly after the start.
    """
    pieces = value.split("-")
    if len(pieces) != 2 or any(p.count(":") != 1 for p in pieces):
        raise ValueError(f"Preferred time must look like 'HH:MM-HH:MM', got {value!r}")

    start, end = parse_clock(pieces[0]), parse_clock(pieces[1])
    if end <= start:
        raise ValueError(f"Preferred time {value!r} must end after it starts (no overnight windows)")
    return start, end


@dataclass(frozen=True)
class Goal:
    """
    A recurring commitment.

    priority: higher is scheduled first within its type group.
    relaxation_time_after: buffer (minutes) kept free after this goal's block;
    None means the default of 15.
    """
    id: str
    user_id: str
    type: GoalType
    name: str
    weekly_target: int = 1
    daily_hours: Optional[float] = None
    preferred_times: Tuple[str, ...] = ()
    priority: int = 0
    active: bool = True
    relaxation_time_after: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept plain strings / lists from callers and rows; store canonical forms.
        object.__setattr__(self, "type", GoalType(self.type))
        object.__setattr__(self, "preferred_times", tuple(self.preferred_times or ()))

        if self.active and self.weekly_target < 1:
            raise ValueError(f"Goal {self.id!r}: weekly_target must be >= 1 when active")
        for pref in self.preferred_times:
            parse_time_window(pref)
        if self.relaxation_time_after is not None and self.relaxation_time_after < 0:
            raise ValueError(f"Goal {self.id!r}: relaxation_time_after cannot be negative")
        if self.daily_hours is not None and float(self.daily_hours) < 0:
            raise ValueError(f"Goal {self.id!r}: daily_hours cannot be negative")

    @property
    def relaxation_minutes(self) -> int:
        if self.relaxation_time_after is None:
            return DEFAULT_RELAXATION_MINUTES
        return int(self.relaxation_time_after)

    @property
    def preferred_windows(self) -> List[Tuple[time, time]]:
        return [parse_time_window(p) for p in self.preferred_times]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Goal":
        """
        Build a Goal from a `goals` table row.
        """
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            type=row["type"],
            name=row.get("name") or row["type"],
            weekly_target=int(row.get("weekly_target") or 0),
            daily_hours=row.get("daily_hours"),
            preferred_times=tuple(row.get("preferred_times") or ()),
            priority=int(row.get("priority") or 0),
            active=bool(row.get("active", True)),
            relaxation_time_after=row.get("relaxation_time_after"),
        )


@dataclass(frozen=True)
class Shift:
    """
    A work shift on a given date, with local wall-clock "HH:MM:SS" times.

    end_time may be "24:00:00" (end of day); start_time may not.
    """
    id: str
    user_id: str
    date: date
    start_time: str
    end_time: str

    def __post_init__(self) -> None:
        parse_shift_clock(self.end_time)
        if self.start_offset >= timedelta(days=1):
            raise ValueError(f"Shift {self.id!r}: start_time {self.start_time!r} is out of range")

    @property
    def start_offset(self) -> timedelta:
        return parse_shift_clock(self.start_time)

    @property
    def end_offset(self) -> timedelta:
        return parse_shift_clock(self.end_time)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Shift":
        raw_date = row["date"]
        return cls(
            id=str(row.get("id", "")),
            user_id=str(row["user_id"]),
            date=raw_date if isinstance(raw_date, date) else date.fromisoformat(raw_date),
            start_time=row["start_time"],
            end_time=row["end_time"],
        )


@dataclass(frozen=True)
class ScheduledBlock:
    """
    A goal's concrete placement for the day.
    """
    goal: Goal
    start: datetime
    end: datetime
    relaxation_minutes: int
    tier: PlacementTier
    block_id: Optional[str] = None
    external_event_id: Optional[str] = None

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.block_id,
            "goal_id": self.goal.id,
            "goal_type": self.goal.type.value,
            "title": self.goal.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "minutes": self.minutes,
            "relaxation_minutes": self.relaxation_minutes,
            "tier": self.tier.value,
            "google_event_id": self.external_event_id,
        }


class ScheduleStatus(str, Enum):
    SCHEDULED = "scheduled"
    NO_GOALS = "no_goals"
    NO_PLACEMENTS = "no_placements"


@dataclass
class ScheduleResult:
    """
    Outcome of one scheduling run for one user and one date.

    status separates "no active goals" from "goals exist but nothing fit";
    fatal problems are raised instead of being reported here.

    dropped: blocks that were placed but could not be persisted.
    """
    user_id: str
    date: date
    goal_count: int
    blocks: List[ScheduledBlock] = field(default_factory=list)
    unscheduled: List[Goal] = field(default_factory=list)
    dropped: List[ScheduledBlock] = field(default_factory=list)
    calendar_connected: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "status": self.status.value,
            "calendar_connected": self.calendar_connected,
            "events": [b.to_dict() for b in self.blocks],
            "unscheduled": [{"goal_id": g.id, "name": g.name, "type": g.type.value} for g in self.unscheduled],
        }

    @property
    def status(self) -> ScheduleStatus:
        if self.goal_count == 0:
            return ScheduleStatus.NO_GOALS
        if not self.blocks:
            return ScheduleStatus.NO_PLACEMENTS
        return ScheduleStatus.SCHEDULED
