# discipline_scheduler/errors.py
"""
Errors that abort a scheduling run.

A goal that finds no slot is NOT an error (it is reported in
ScheduleResult.unscheduled), and calendar-push / persistence failures for a
single block are logged by the orchestrator instead of raised.
"""


class SchedulerError(RuntimeError):
    """Base class for fatal scheduling-run errors."""


class ConfigurationError(SchedulerError):
    """
    The run cannot start: e.g. the user has no connected Google Calendar,
    or required settings are missing.
    """


class UpstreamReadError(SchedulerError):
    """
    A required input (goals, shifts, busy time) could not be read.
    The caller may retry the whole run later.
    """
