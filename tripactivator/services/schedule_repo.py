from __future__ import annotations

import logging
from pathlib import Path

from tripactivator.domain.models import StopTime, Trip
from tripactivator.services.gtfs_csv import (
    gtfs_dir,
    iter_csv_dict,
    parse_gtfs_time,
    require,
    try_int,
)

log = logging.getLogger("schedule_repo")


class ScheduleRepo:
    """Trips and stop times of a static GTFS feed, held in memory."""

    def __init__(self, gtfs_path: Path | None = None) -> None:
        self.gtfs_dir = gtfs_path or gtfs_dir()
        self.trips_path = self.gtfs_dir / "trips.txt"
        self.stop_times_path = self.gtfs_dir / "stop_times.txt"

        self._trips: dict[str, Trip] = {}
        self._stop_times_by_trip: dict[str, tuple[StopTime, ...]] = {}
        self._loaded = False

    @classmethod
    def from_records(
        cls, trips: list[Trip], stop_times: list[StopTime]
    ) -> ScheduleRepo:
        repo = cls(gtfs_path=Path("."))
        repo._index(trips, stop_times)
        repo._loaded = True
        return repo

    # -------------------- Public API --------------------

    def load(self) -> None:
        log.info("ScheduleRepo.load() gtfs_dir=%s", self.gtfs_dir)
        trips = self._read_trips()
        known = {t.trip_id for t in trips}
        self._index(trips, self._read_stop_times(known))
        self._loaded = True

    def reload(self) -> None:
        self.load()

    def all_trips(self) -> list[Trip]:
        self._ensure_loaded()
        return list(self._trips.values())

    def get_trip(self, trip_id: str) -> Trip | None:
        self._ensure_loaded()
        return self._trips.get(trip_id)

    def stop_times_for_trip(self, trip: Trip | str) -> tuple[StopTime, ...]:
        self._ensure_loaded()
        tid = trip if isinstance(trip, str) else trip.trip_id
        return self._stop_times_by_trip.get(tid, ())

    def all_stop_times(self) -> list[StopTime]:
        self._ensure_loaded()
        return [st for sts in self._stop_times_by_trip.values() for st in sts]

    def route_id_for_trip(self, trip_id: str) -> str | None:
        t = self.get_trip(trip_id)
        return t.route_id if t else None

    def service_id_for_trip(self, trip_id: str) -> str | None:
        t = self.get_trip(trip_id)
        return t.service_id if t else None

    # ------------------- Internals -------------------

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _index(self, trips: list[Trip], stop_times: list[StopTime]) -> None:
        by_trip: dict[str, list[StopTime]] = {}
        for st in stop_times:
            by_trip.setdefault(st.trip_id, []).append(st)
        self._trips = {t.trip_id: t for t in trips}
        self._stop_times_by_trip = {
            tid: tuple(sorted(sts, key=lambda st: st.stop_sequence))
            for tid, sts in by_trip.items()
        }

    def _read_trips(self) -> list[Trip]:
        p = require(self.trips_path)
        trips: list[Trip] = []
        rows = 0
        for row in iter_csv_dict(p):
            rows += 1
            trip_id = row.get("trip_id") or ""
            route_id = row.get("route_id") or ""
            service_id = row.get("service_id") or ""
            if not trip_id or not route_id:
                continue
            trips.append(
                Trip(
                    trip_id=trip_id,
                    route_id=route_id,
                    service_id=service_id,
                    direction_id=(row.get("direction_id") or None),
                    headsign=(row.get("trip_headsign") or None),
                )
            )
        log.info("Loaded %d trips (rows=%d) from %s", len(trips), rows, p)
        return trips

    def _read_stop_times(self, known_trips: set[str]) -> list[StopTime]:
        p = require(self.stop_times_path)
        out: list[StopTime] = []
        rows = 0
        for row in iter_csv_dict(p):
            rows += 1
            trip_id = row.get("trip_id") or ""
            if not trip_id or trip_id not in known_trips:
                continue
            seq = try_int(row.get("stop_sequence"))
            if seq is None:
                continue
            out.append(
                StopTime(
                    trip_id=trip_id,
                    stop_id=row.get("stop_id") or "",
                    stop_sequence=seq,
                    arrival_time=parse_gtfs_time(row.get("arrival_time")),
                    departure_time=parse_gtfs_time(row.get("departure_time")),
                )
            )
        log.info("Loaded %d stop_times (rows=%d) from %s", len(out), rows, p)
        return out


# -------------------- Singleton --------------------

_SINGLETON: ScheduleRepo | None = None


def get_repo() -> ScheduleRepo:
    global _SINGLETON
    if _SINGLETON is None:
        _SINGLETON = ScheduleRepo()
        _SINGLETON.load()
    return _SINGLETON
