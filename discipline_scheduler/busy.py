# discipline_scheduler/busy.py
"""
Busy-time aggregation: remote calendar busy blocks + local work shifts.

The result is an unsorted union; compute_free_slots does the sorting.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List

from discipline_scheduler.intervals import Interval, normalize_intervals_tz, parse_rfc3339
from discipline_scheduler.models import Shift

logger = logging.getLogger(__name__)


def busy_from_freebusy(calendars_busy: Dict[str, Any], tz) -> List[Interval]:
    """
    Flatten a FreeBusy response into busy intervals in `tz`.

    Args:
        calendars_busy: Output from freebusy.query, typically:
            {
              "calId": {"busy": [{"start": "...", "end": "..."}, ...]},
              ...
            }
        tz: tzinfo of the user's day

    Zero-length or inverted blocks are discarded.
    """
    out: List[Interval] = []
    for _, data in calendars_busy.items():
        for b in data.get("busy", []):
            start = parse_rfc3339(b["start"])
            end = parse_rfc3339(b["end"])
            if end > start:
                out.append(Interval(start=start, end=end))
    return normalize_intervals_tz(out, tz)


def shift_to_interval(shift: Shift, tz) -> Interval | None:
    """
    Convert a shift's local start/end times into an interval on shift.date.

    Overnight shifts (end earlier than start, e.g. 23:00-07:00) roll the end
    over to the next day. Only the part inside the day window ends up blocking
    free time. An end of 24:00 is midnight at the end of shift.date.
    A shift whose start equals its end is degenerate: None.
    """
    midnight = datetime.combine(shift.date, time.min, tzinfo=tz)
    start = midnight + shift.start_offset
    end = midnight + shift.end_offset

    if end == start:
        return None
    if end < start:
        end += timedelta(days=1)
    return Interval(start=start, end=end)


def aggregate_busy(
    remote: Iterable[Interval],
    shifts: Iterable[Shift],
    target_date: date,
    tz,
) -> List[Interval]:
    """
    Union of remote busy intervals and the target date's shifts.

    Shifts dated on other days are ignored.
    """
    busy: List[Interval] = [it for it in remote if it.end > it.start]

    shift_count = 0
    for shift in shifts:
        if shift.date != target_date:
            continue
        interval = shift_to_interval(shift, tz)
        if interval is None:
            logger.warning("Ignoring zero-length shift %s on %s", shift.id, shift.date)
            continue
        busy.append(interval)
        shift_count += 1

    logger.info("Found %d work shifts for %s", shift_count, target_date.isoformat())
    return busy
