from __future__ import annotations


class ScheduleDataError(Exception):
    """The static schedule cannot back lookback-bounded queries."""


class EmptyScheduleError(ScheduleDataError):
    pass


class NoTimedStopTimesError(ScheduleDataError):
    pass


class UninitializedIndexError(RuntimeError):
    pass
