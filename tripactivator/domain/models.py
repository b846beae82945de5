from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

SECONDS_PER_DAY = 24 * 3600


@dataclass(frozen=True)
class Trip:
    trip_id: str
    route_id: str
    service_id: str
    direction_id: str | None = None
    headsign: str | None = None


@dataclass(frozen=True)
class StopTime:
    trip_id: str
    stop_id: str  # GTFS stop_id
    stop_sequence: int  # GTFS stop_sequence

    # seconds since service-day start, None when unset
    arrival_time: int | None = None
    departure_time: int | None = None

    @property
    def is_arrival_time_set(self) -> bool:
        return self.arrival_time is not None

    @property
    def is_departure_time_set(self) -> bool:
        return self.departure_time is not None

    def timed_seconds(self) -> Iterator[int]:
        if self.arrival_time is not None:
            yield self.arrival_time
        if self.departure_time is not None:
            yield self.departure_time


class TripSpan:
    """A trip together with the [min, max] service-day seconds covered by its stop times.

    Two spans are the same span when they refer to the same trip, whatever their bounds.
    """

    __slots__ = ("trip", "min_second", "max_second")

    def __init__(self, trip: Trip, min_second: int, max_second: int) -> None:
        if min_second > max_second:
            raise ValueError(
                f"span for trip {trip.trip_id!r} has min {min_second} > max {max_second}"
            )
        self.trip = trip
        self.min_second = min_second
        self.max_second = max_second

    @classmethod
    def from_stop_times(cls, trip: Trip, stop_times: Iterable[StopTime]) -> TripSpan | None:
        seconds = [s for st in stop_times for s in st.timed_seconds()]
        if not seconds:
            return None
        return cls(trip, min(seconds), max(seconds))

    @property
    def trip_id(self) -> str:
        return self.trip.trip_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TripSpan):
            return NotImplemented
        return self.trip_id == other.trip_id

    def __hash__(self) -> int:
        return hash(self.trip_id)

    def __repr__(self) -> str:
        return f"TripSpan({self.trip_id!r}, {self.min_second}, {self.max_second})"


@dataclass(frozen=True)
class ActivatedTrip:
    service_date: date
    trip: Trip
    start_time: int  # service-day relative seconds
    end_time: int
    stop_times: tuple[StopTime, ...] = field(default=(), repr=False)

    @property
    def trip_id(self) -> str:
        return self.trip.trip_id

    @property
    def route_id(self) -> str:
        return self.trip.route_id

    def start_epoch(self, tz: ZoneInfo) -> int:
        return service_day_origin(self.service_date, tz) + self.start_time

    def end_epoch(self, tz: ZoneInfo) -> int:
        return service_day_origin(self.service_date, tz) + self.end_time

    def to_dict(self, tz: ZoneInfo | None = None) -> dict[str, Any]:
        out: dict[str, Any] = {
            "service_date": self.service_date.strftime("%Y%m%d"),
            "trip_id": self.trip.trip_id,
            "route_id": self.trip.route_id,
            "service_id": self.trip.service_id,
            "direction_id": self.trip.direction_id,
            "headsign": self.trip.headsign,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "stop_times": [
                {
                    "stop_id": st.stop_id,
                    "stop_sequence": st.stop_sequence,
                    "arrival_time": st.arrival_time,
                    "departure_time": st.departure_time,
                }
                for st in self.stop_times
            ],
        }
        if tz is not None:
            out["start_epoch"] = self.start_epoch(tz)
            out["end_epoch"] = self.end_epoch(tz)
        return out


def service_day_origin(service_date: date, tz: ZoneInfo) -> int:
    """Epoch second at which ``service_date`` starts in ``tz``.

    GTFS measures stop times from "noon minus 12h", which only differs from local
    midnight on days with a DST transition.
    """
    noon = datetime(service_date.year, service_date.month, service_date.day, 12, tzinfo=tz)
    return int(noon.timestamp()) - 12 * 3600


def service_date_for_instant(epoch: int, tz: ZoneInfo) -> date:
    return datetime.fromtimestamp(epoch, tz).date()


def previous_service_dates(start: date, count: int) -> Iterator[date]:
    d = start
    for i in range(max(0, count)):
        if i:
            if d == date.min:
                return
            d -= timedelta(days=1)
        yield d


def format_hhmmss(seconds: int) -> str:
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
