"""
Goal placement: three-tier search, slot consumption and the greedy day plan.

Scenario tests mirror the behaviour users see:
- empty day + gym goal -> 06:00-07:30
- work shift 09-17 + study 2h preferring 19:00-22:00 -> 19:00-21:00
- no slot long enough -> goal omitted, not an error
- relaxation buffer keeps the time after a block free
- work is placed first, so gym lands after work + buffer
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from discipline_scheduler.busy import aggregate_busy
from discipline_scheduler.intervals import Interval
from discipline_scheduler.models import Goal, PlacementTier, Shift
from discipline_scheduler.planner import compute_free_slots, consume_slot, day_window, find_placement, plan_day

TZ = ZoneInfo("America/Edmonton")
DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute, tzinfo=TZ)


def full_day():
    window = day_window(DAY, TZ)
    return compute_free_slots([], window.start, window.end)


def goal(goal_id: str, goal_type: str, **kwargs) -> Goal:
    return Goal(id=goal_id, user_id="u1", type=goal_type, name=kwargs.pop("name", goal_id), **kwargs)


# ----------------------------
# find_placement
# ----------------------------

def test_gym_on_empty_day_uses_morning_optimal_window():
    block = find_placement(goal("g1", "gym"), full_day(), DAY, TZ)

    assert block is not None
    assert (block.start, block.end) == (at(6), at(7, 30))
    assert block.tier is PlacementTier.OPTIMAL
    assert block.relaxation_minutes == 15


def test_study_after_work_shift_uses_preferred_evening():
    window = day_window(DAY, TZ)
    shift = Shift(id="s1", user_id="u1", date=DAY, start_time="09:00:00", end_time="17:00:00")
    slots = compute_free_slots(aggregate_busy([], [shift], DAY, TZ), window.start, window.end)

    study = goal("s", "study", daily_hours=2, preferred_times=["19:00-22:00"])
    block = find_placement(study, slots, DAY, TZ)

    assert (block.start, block.end) == (at(19), at(21))
    assert block.tier is PlacementTier.PREFERRED


def test_goal_is_not_placed_when_no_slot_is_long_enough():
    slots = [Interval(at(6), at(7)), Interval(at(12), at(13))]
    assert find_placement(goal("g1", "gym"), slots, DAY, TZ) is None


def test_preferred_window_fully_free_wins_over_optimal():
    block = find_placement(goal("g1", "gym", preferred_times=["10:00-12:00"]), full_day(), DAY, TZ)
    assert block.tier is PlacementTier.PREFERRED
    assert (block.start, block.end) == (at(10), at(11, 30))


def test_preferred_times_are_tried_in_goal_order():
    g = goal("g1", "gym", preferred_times=["19:00-21:00", "07:00-09:00"])
    block = find_placement(g, full_day(), DAY, TZ)
    assert block.start == at(19)


def test_preferred_candidate_must_fit_inside_slot():
    """
    Slot 06:00-09:00, preference 08:00-09:00: starting at 08:00 would run to
    09:30, past the slot, so the optimal tier places the block at 06:00.
    """
    slots = [Interval(at(6), at(9)), Interval(at(12), at(12, 45))]
    block = find_placement(goal("g1", "gym", preferred_times=["08:00-09:00"]), slots, DAY, TZ)
    assert block.tier is PlacementTier.OPTIMAL
    assert block.start == at(6)


def test_preferred_placement_may_run_past_window_end_inside_slot():
    block = find_placement(goal("g1", "gym", preferred_times=["18:00-18:30"]), full_day(), DAY, TZ)
    assert (block.start, block.end) == (at(18), at(19, 30))
    assert block.tier is PlacementTier.PREFERRED


def test_optimal_tier_checks_slot_start_hour():
    """
    Study optimal ranges: 06-10, 14-18, 19-22. A slot starting 11:00 does not
    qualify, the one starting 14:30 does.
    """
    slots = [Interval(at(11), at(13, 30)), Interval(at(14, 30), at(17))]
    block = find_placement(goal("s", "study"), slots, DAY, TZ)
    assert block.tier is PlacementTier.OPTIMAL
    assert (block.start, block.end) == (at(14, 30), at(16, 30))


def test_first_fit_when_no_preference_or_optimal_slot():
    slots = [Interval(at(10), at(10, 45)), Interval(at(10, 50), at(12, 30))]
    block = find_placement(goal("g1", "gym"), slots, DAY, TZ)
    assert block.tier is PlacementTier.FIRST_FIT
    assert (block.start, block.end) == (at(10, 50), at(12, 20))


def test_first_fit_with_unmet_preference_logs_warning(caplog):
    slots = [Interval(at(10), at(12))]
    g = goal("g1", "gym", preferred_times=["06:00-07:00"])

    with caplog.at_level(logging.WARNING, logger="discipline_scheduler.planner"):
        block = find_placement(g, slots, DAY, TZ)

    assert block.tier is PlacementTier.FIRST_FIT
    assert any("could not be honored" in r.getMessage() for r in caplog.records)


def test_first_fit_without_preferences_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING, logger="discipline_scheduler.planner"):
        find_placement(goal("g1", "gym"), [Interval(at(10), at(12))], DAY, TZ)
    assert not caplog.records


def test_work_goal_uses_full_day_duration():
    block = find_placement(goal("w", "work"), full_day(), DAY, TZ)
    # 06:00 slot start is outside the 09-17 optimal range -> first fit
    assert block.tier is PlacementTier.FIRST_FIT
    assert block.minutes == 480


# ----------------------------
# consume_slot
# ----------------------------

def test_consume_removes_block_and_relaxation():
    slots = consume_slot(full_day(), at(10), at(11, 30), relaxation_minutes=30)

    used = Interval(at(10), at(12))
    assert not any(s.overlaps(used) for s in slots)
    assert slots == [Interval(at(6), at(10)), Interval(at(12), at(22))]


def test_consume_does_not_mutate_input():
    original = full_day()
    snapshot = list(original)
    consume_slot(original, at(10), at(11))
    assert original == snapshot


def test_consume_drops_fragments_under_thirty_minutes():
    slots = consume_slot(full_day(), at(6, 20), at(7), relaxation_minutes=0)
    assert slots == [Interval(at(7), at(22))]


def test_consume_trims_and_deletes_across_slots():
    slots = [Interval(at(6), at(8)), Interval(at(9), at(10)), Interval(at(11), at(14))]
    out = consume_slot(slots, at(7), at(12), relaxation_minutes=0)
    assert out == [Interval(at(6), at(7)), Interval(at(12), at(14))]


def test_consume_matches_recomputing_from_busy_set():
    """
    Consuming a buffer-free block gives the same list as recomputing free
    slots with that block added to the busy set.
    """
    window = day_window(DAY, TZ)
    busy = [Interval(at(8), at(9)), Interval(at(15), at(16))]
    before = compute_free_slots(busy, window.start, window.end)

    for start, end in [(at(10), at(11)), (at(6), at(7, 45)), (at(16), at(16, 20)), (at(21, 40), at(22))]:
        consumed = consume_slot(before, start, end, relaxation_minutes=0)
        recomputed = compute_free_slots(busy + [Interval(start, end)], window.start, window.end)
        assert consumed == recomputed, f"mismatch for {start.time()}-{end.time()}"


# ----------------------------
# plan_day
# ----------------------------

def test_work_then_gym_after_buffer():
    work = goal("w", "work", preferred_times=["09:00-17:00"])
    gym = goal("g", "gym", preferred_times=["17:00-20:00"])

    blocks, unscheduled = plan_day([gym, work], full_day(), DAY, TZ)

    assert unscheduled == []
    assert [b.goal.id for b in blocks] == ["w", "g"]
    assert (blocks[0].start, blocks[0].end) == (at(9), at(17))
    assert (blocks[1].start, blocks[1].end) == (at(17, 15), at(18, 45))
    # the slot after the buffer still fits inside the 17:00-20:00 preference
    assert blocks[1].tier is PlacementTier.PREFERRED


def test_goals_are_placed_by_type_group_regardless_of_input_order():
    goals = [goal("c", "custom"), goal("s", "study"), goal("g", "gym"), goal("w", "work")]
    blocks, _ = plan_day(goals, full_day(), DAY, TZ)
    assert [b.goal.type.value for b in blocks] == ["work", "gym", "study", "custom"]


def test_higher_priority_first_within_type():
    low = goal("low", "gym", priority=1)
    high = goal("high", "gym", priority=5)
    blocks, _ = plan_day([low, high], full_day(), DAY, TZ)
    assert blocks[0].goal.id == "high"
    assert blocks[0].start == at(6)


def test_unplaceable_goal_is_reported_not_raised():
    slots = [Interval(at(6), at(7, 30))]
    blocks, unscheduled = plan_day([goal("g", "gym"), goal("c", "custom")], slots, DAY, TZ)

    assert [b.goal.id for b in blocks] == ["g"]
    assert [g.id for g in unscheduled] == ["c"]


def test_inactive_goals_are_skipped():
    blocks, unscheduled = plan_day([goal("g", "gym", active=False, weekly_target=0)], full_day(), DAY, TZ)
    assert blocks == []
    assert unscheduled == []


def test_later_blocks_respect_earlier_relaxation():
    goals = [
        goal("g", "gym", relaxation_time_after=45),
        goal("s", "study", relaxation_time_after=0),
        goal("c1", "custom", relaxation_time_after=20),
        goal("c2", "custom"),
    ]
    blocks, _ = plan_day(goals, full_day(), DAY, TZ)
    assert len(blocks) == 4

    for i, earlier in enumerate(blocks):
        for later in blocks[i + 1:]:
            if later.start >= earlier.end:
                gap = (later.start - earlier.end).total_seconds() / 60
                assert gap >= earlier.relaxation_minutes, f"{later.goal.id} too close to {earlier.goal.id}"
            else:
                assert later.end <= earlier.start, f"{later.goal.id} overlaps {earlier.goal.id}"


def test_plan_is_deterministic():
    goals = [goal("s", "study", daily_hours=3), goal("g", "gym"), goal("c", "custom", preferred_times=["12:00-13:00"])]
    out1 = plan_day(goals, full_day(), DAY, TZ)
    out2 = plan_day(goals, full_day(), DAY, TZ)
    assert out1 == out2
