from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from tripactivator.domain.models import StopTime, Trip
from tripactivator.services.calendar_repo import CalendarRepo, CalendarRow
from tripactivator.services.schedule_repo import ScheduleRepo
from tripactivator.services.trip_activator import TripActivator

NY = ZoneInfo("America/New_York")
WEEKDAYS = (True, True, True, True, True, False, False)


def local_epoch(y: int, m: int, d: int, hh: int = 0, mm: int = 0, tz: ZoneInfo = NY) -> int:
    return int(datetime(y, m, d, hh, mm, tzinfo=tz).timestamp())


def make_trip(
    trip_id: str, times: list[tuple[int | None, int | None]], route_id: str = "A", service_id: str = "WKDY"
) -> tuple[Trip, list[StopTime]]:
    trip = Trip(trip_id=trip_id, route_id=route_id, service_id=service_id)
    sts = [
        StopTime(trip_id, f"S{i}", i + 1, arrival_time=arr, departure_time=dep)
        for i, (arr, dep) in enumerate(times)
    ]
    return trip, sts


def build_schedule(*trips: tuple[Trip, list[StopTime]]) -> ScheduleRepo:
    return ScheduleRepo.from_records(
        [t for t, _ in trips], [st for _, sts in trips for st in sts]
    )


def weekday_calendar(**extra_services: tuple[bool, ...]) -> CalendarRepo:
    rows = [CalendarRow("WKDY", 20240101, 20241231, WEEKDAYS)]
    rows.extend(CalendarRow(sid, 20240101, 20241231, dow) for sid, dow in extra_services.items())
    return CalendarRepo.from_records(rows, agencies={"MTA": "America/New_York"})


class FixedCalendar:
    """Calendar returning the same service ids for any date."""

    def __init__(self, service_ids: set[str], tz: ZoneInfo = NY) -> None:
        self.service_ids = frozenset(service_ids)
        self.tz = tz
        self.asked: list[date] = []

    def service_ids_for_date(self, d: date) -> frozenset[str]:
        self.asked.append(d)
        return self.service_ids

    def timezone_for_agency(self, agency_id: str | None = None) -> ZoneInfo:
        return self.tz

    def service_date_for_instant(self, epoch: int, tz: ZoneInfo) -> date:
        return datetime.fromtimestamp(epoch, tz).date()

    def service_day_origin(self, d: date, tz: ZoneInfo) -> int:
        return int(datetime(d.year, d.month, d.day, tzinfo=tz).timestamp())


@pytest.fixture
def e2e_activator() -> TripActivator:
    # T1 08:00-08:30, T2 23:55-00:15 next day
    schedule = build_schedule(
        make_trip("T1", [(28800, 28800), (30600, 30600)]),
        make_trip("T2", [(86100, 86100), (87300, 87300)]),
    )
    return TripActivator(schedule, weekday_calendar(), agency_id="MTA").start()


GTFS_FILES = {
    "agency.txt": (
        "agency_id,agency_name,agency_url,agency_timezone\n"
        "MTA,MTA New York City Transit,http://www.mta.info,America/New_York\n"
    ),
    "trips.txt": (
        "route_id,service_id,trip_id,trip_headsign,direction_id\n"
        "A,WKDY,T1,Far Rockaway,0\n"
        "A,WKDY,T2,Inwood,1\n"
        "B,SAT,T3,Brighton Beach,0\n"
        "A,WKDY,T4,,0\n"
    ),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        "T1,08:00:00,08:00:00,101,1\n"
        "T1,08:30:00,08:30:00,102,2\n"
        "T2,23:55:00,23:55:00,101,1\n"
        "T2,,,103,2\n"
        "T2,24:15:00,24:15:00,102,3\n"
        "T3,10:00:00,10:05:00,201,1\n"
        "T3,10:40:00,,202,2\n"
        "T4,,,101,1\n"
        "T4,,,102,2\n"
        "T9,09:00:00,09:00:00,101,1\n"
        "T1,09:00:00,09:00:00,104,x\n"
    ),
    "calendar.txt": (
        "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date\n"
        "WKDY,1,1,1,1,1,0,0,20240101,20241231\n"
        "SAT,0,0,0,0,0,1,0,20240101,20241231\n"
    ),
    "calendar_dates.txt": (
        "service_id,date,exception_type\n"
        "WKDY,20240704,2\n"
        "SAT,20240704,1\n"
    ),
}


@pytest.fixture
def gtfs_path(tmp_path: Path) -> Path:
    for name, body in GTFS_FILES.items():
        (tmp_path / name).write_text(body, encoding="utf-8")
    return tmp_path
