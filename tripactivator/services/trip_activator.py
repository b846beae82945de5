from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator
from datetime import datetime
from zoneinfo import ZoneInfo

from tripactivator.config import settings
from tripactivator.domain.models import (
    SECONDS_PER_DAY,
    ActivatedTrip,
    StopTime,
    TripSpan,
    previous_service_dates,
)
from tripactivator.errors import (
    EmptyScheduleError,
    NoTimedStopTimesError,
    UninitializedIndexError,
)
from tripactivator.services.trip_interval_index import TripIntervalIndex

log = logging.getLogger("trip_activator")


def compute_max_lookback(stop_times: Iterable[StopTime]) -> int:
    """Number of service days a query has to walk back from its start date."""
    max_second = max((s for st in stop_times for s in st.timed_seconds()), default=None)
    if max_second is None:
        raise NoTimedStopTimesError("no stop time in the schedule has an arrival or departure")
    return math.ceil(max_second / float(SECONDS_PER_DAY))


def _to_epoch(instant: datetime | int | float) -> int:
    if isinstance(instant, datetime):
        if instant.tzinfo is None:
            raise ValueError("naive datetime; pass an aware datetime or epoch seconds")
        return int(instant.timestamp())
    return int(instant)


class TripActivator:
    """Finds the scheduled trips running on a set of routes during a time window.

    ``start()`` has to be called once before any query; it indexes every trip of the
    schedule by the service-day seconds its stop times cover.
    """

    def __init__(self, schedule, calendar, agency_id: str | None = None) -> None:
        self._schedule = schedule
        self._calendar = calendar
        self._agency_id = agency_id
        self._index: TripIntervalIndex | None = None
        self._max_lookback = 0
        self._tz: ZoneInfo | None = None

    # -------------------- Build --------------------

    def start(self) -> TripActivator:
        index = TripIntervalIndex()
        untimed = 0
        for trip in self._schedule.all_trips():
            span = TripSpan.from_stop_times(trip, self._schedule.stop_times_for_trip(trip))
            if span is None:
                untimed += 1
                continue
            index.insert(span.min_second, span.max_second, span)
        if len(index) == 0:
            raise EmptyScheduleError("schedule has no trip with a timed stop time")
        index.build()

        max_lookback = compute_max_lookback(self._schedule.all_stop_times())
        tz = self._calendar.timezone_for_agency(self._agency_id)

        self._index, self._max_lookback, self._tz = index, max_lookback, tz
        log.info(
            "TripActivator built: %d spans, %d untimed trips skipped, lookback=%d days, tz=%s",
            len(index),
            untimed,
            max_lookback,
            tz.key,
        )
        return self

    @property
    def is_started(self) -> bool:
        return self._index is not None

    @property
    def max_lookback(self) -> int:
        self._require_started()
        return self._max_lookback

    @property
    def timezone(self) -> ZoneInfo:
        self._require_started()
        return self._tz

    @property
    def span_count(self) -> int:
        self._require_started()
        return len(self._index)

    # -------------------- Queries --------------------

    def trips_for_range_and_routes(
        self,
        start: datetime | int,
        end: datetime | int,
        route_ids: Iterable[str],
    ) -> Iterator[ActivatedTrip]:
        # resolved eagerly so an unstarted activator fails at call time
        index, tz, lookback = self._require_started(), self._tz, self._max_lookback
        if isinstance(route_ids, str):
            route_ids = (route_ids,)
        return self._iter_activated(index, tz, lookback, start, end, frozenset(route_ids))

    def trips_for_range_and_route(
        self, start: datetime | int, end: datetime | int, route_id: str
    ) -> Iterator[ActivatedTrip]:
        return self.trips_for_range_and_routes(start, end, (route_id,))

    def _iter_activated(
        self,
        index: TripIntervalIndex,
        tz: ZoneInfo,
        lookback: int,
        start: datetime | int,
        end: datetime | int,
        route_ids: frozenset[str],
    ) -> Iterator[ActivatedTrip]:
        start_epoch = _to_epoch(start)
        end_epoch = _to_epoch(end)
        try:
            start_date = self._calendar.service_date_for_instant(start_epoch, tz)
        except (ValueError, OverflowError, OSError):
            log.debug("instant %d outside the representable date range", start_epoch)
            return

        for sd in previous_service_dates(start_date, lookback):
            try:
                origin = self._calendar.service_day_origin(sd, tz)
            except (ValueError, OverflowError, OSError):
                continue
            service_ids = self._calendar.service_ids_for_date(sd)

            for span in index.query(start_epoch - origin, end_epoch - origin):
                trip = span.trip
                if trip.route_id not in route_ids:
                    continue
                if trip.service_id not in service_ids:
                    continue
                yield ActivatedTrip(
                    service_date=sd,
                    trip=trip,
                    start_time=span.min_second,
                    end_time=span.max_second,
                    stop_times=tuple(self._schedule.stop_times_for_trip(trip)),
                )

    def _require_started(self) -> TripIntervalIndex:
        if self._index is None:
            raise UninitializedIndexError("TripActivator.start() has not been called")
        return self._index


# -------------------- Singleton --------------------

_SINGLETON: TripActivator | None = None


def get_activator() -> TripActivator:
    global _SINGLETON
    if _SINGLETON is None:
        from tripactivator.services.calendar_repo import get_repo as get_calendar_repo
        from tripactivator.services.schedule_repo import get_repo as get_schedule_repo

        _SINGLETON = TripActivator(
            get_schedule_repo(),
            get_calendar_repo(),
            agency_id=getattr(settings, "AGENCY_ID", None),
        ).start()
    return _SINGLETON


def reset_activator() -> None:
    global _SINGLETON
    _SINGLETON = None
