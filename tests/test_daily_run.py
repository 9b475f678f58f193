"""
Daily trigger: every connected user gets a run; one failure does not stop the rest.
"""

from __future__ import annotations

from datetime import date
from zoneinfo import ZoneInfo

from discipline_scheduler import daily_run
from discipline_scheduler.daily_run import generate_daily_schedules
from discipline_scheduler.models import Goal, ScheduleStatus, Shift

from fakes import FakeCalendar, FakeStore

TZ = ZoneInfo("America/Edmonton")
DAY = date(2026, 3, 2)


class PerUserCalendar(FakeCalendar):
    """Not connected for one user, connected for everyone else."""

    def __init__(self, disconnected_user):
        super().__init__()
        self.disconnected_user = disconnected_user

    def get_busy_intervals(self, user_id, target_date):
        if user_id == self.disconnected_user:
            return None
        return super().get_busy_intervals(user_id, target_date)


def test_generates_for_each_user_and_isolates_failures():
    store = FakeStore(
        goals=[
            Goal(id="a-gym", user_id="a", type="gym", name="Gym"),
            Goal(id="b-gym", user_id="b", type="gym", name="Gym"),
        ]
    )
    calendar = PerUserCalendar(disconnected_user="b")

    outcomes = generate_daily_schedules(["a", "b", "c"], DAY, store=store, calendar=calendar, tz=TZ)

    assert outcomes == {
        "a": ScheduleStatus.SCHEDULED,
        "b": None,
        "c": ScheduleStatus.NO_GOALS,
    }
    assert [s[1] for s in store.saved] == ["a-gym"]


def test_end_of_day_shift_does_not_stop_the_run():
    store = FakeStore(
        goals=[
            Goal(id="a-gym", user_id="a", type="gym", name="Gym"),
            Goal(id="b-gym", user_id="b", type="gym", name="Gym"),
        ],
        shifts=[Shift(id="s1", user_id="a", date=DAY, start_time="18:00:00", end_time="24:00:00")],
    )

    outcomes = generate_daily_schedules(["a", "b"], DAY, store=store, calendar=FakeCalendar(), tz=TZ)

    assert outcomes == {"a": ScheduleStatus.SCHEDULED, "b": ScheduleStatus.SCHEDULED}
    assert [s[1] for s in store.saved] == ["a-gym", "b-gym"]


def test_unexpected_error_for_one_user_does_not_stop_the_rest(monkeypatch):
    real_schedule_day = daily_run.schedule_day

    def flaky_schedule_day(user_id, *args, **kwargs):
        if user_id == "a":
            raise ValueError("hour must be in 0..23")
        return real_schedule_day(user_id, *args, **kwargs)

    monkeypatch.setattr(daily_run, "schedule_day", flaky_schedule_day)
    store = FakeStore(
        goals=[
            Goal(id="a-gym", user_id="a", type="gym", name="Gym"),
            Goal(id="b-gym", user_id="b", type="gym", name="Gym"),
        ]
    )

    outcomes = generate_daily_schedules(["a", "b"], DAY, store=store, calendar=FakeCalendar(), tz=TZ)

    assert outcomes == {"a": None, "b": ScheduleStatus.SCHEDULED}
    assert [s[1] for s in store.saved] == ["b-gym"]
