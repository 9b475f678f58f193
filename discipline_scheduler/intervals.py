# discipline_scheduler/intervals.py
"""
Interval model: half-open [start, end) time ranges on a single day.

Everything in here is pure and deterministic:
- Interval: the value type (minutes + overlap test)
- sort_by_start / merge_intervals: ordering and coalescing busy time
- subtract: cut one interval out of another (used when a goal consumes a slot)
- parse_rfc3339 / normalize_intervals_tz: Google timestamp helpers
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List


@dataclass(frozen=True)
class Interval:
    """
    Simple half-open time interval [start, end).
    """
    start: datetime
    end: datetime

    def minutes(self) -> int:
        """
        Return the length of the interval in whole minutes.
        """
        # Floor to whole minutes to keep behavior deterministic and predictable
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "Interval") -> bool:
        """
        True if the two intervals share any time.

        Touching endpoints (10:00-11:00 and 11:00-12:00) do NOT overlap.
        """
        return overlaps(self, other)


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and a.end > b.start


def sort_by_start(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Return a new list ordered ascending by start (then end, for stable ties).
    """
    return sorted(intervals, key=lambda x: (x.start, x.end))


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Merge overlapping or touching intervals into a non-overlapping, sorted list.

    Degenerate intervals (end <= start) are dropped.
    """
    merged: List[Interval] = []
    for it in sort_by_start(i for i in intervals if i.end > i.start):
        if not merged:
            merged.append(it)
            continue

        last = merged[-1]

        # If the new interval starts after the last ends, it doesn't overlap
        if it.start > last.end:
            merged.append(it)
        else:
            # Otherwise, merge by extending the end if needed
            merged[-1] = Interval(start=last.start, end=max(last.end, it.end))

    return merged


def subtract(interval: Interval, cut: Interval) -> List[Interval]:
    """
    Remove `cut` from `interval`.

    Returns 0, 1 or 2 pieces:
    - no overlap          -> [interval]
    - cut covers interval -> []
    - cut inside interval -> [before, after]
    - cut over one edge   -> the trimmed remainder
    """
    if not overlaps(interval, cut):
        return [interval]

    pieces: List[Interval] = []
    if cut.start > interval.start:
        pieces.append(Interval(start=interval.start, end=cut.start))
    if cut.end < interval.end:
        pieces.append(Interval(start=cut.end, end=interval.end))
    return pieces


def parse_rfc3339(dt_str: str) -> datetime:
    """
    Parse an RFC3339 / ISO-8601 datetime string into a timezone-aware datetime.

    Google FreeBusy returns UTC with a trailing 'Z', which older
    datetime.fromisoformat versions reject, so it is rewritten to '+00:00'.
    """
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))


def normalize_intervals_tz(intervals: List[Interval], tz) -> List[Interval]:
    """
    Convert all interval start/end datetimes to a single timezone.

    FreeBusy answers in UTC while the schedule window is local; converting
    keeps wall-clock comparisons (hours, preferred windows) meaningful.

    Args:
        intervals: list of Interval objects with timezone-aware datetimes
        tz: a tzinfo object (e.g., ZoneInfo("America/Edmonton"))

    Returns:
        New list of intervals converted into tz (same instants in time).
    """
    return [Interval(start=it.start.astimezone(tz), end=it.end.astimezone(tz)) for it in intervals]
