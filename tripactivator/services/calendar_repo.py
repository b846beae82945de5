from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from tripactivator.config import settings
from tripactivator.domain.models import service_date_for_instant, service_day_origin
from tripactivator.services.gtfs_csv import gtfs_dir, iter_csv_dict, try_int

log = logging.getLogger("calendar_repo")

_DOW_FIELDS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class CalendarRow:
    service_id: str
    start_date: int  # YYYYMMDD
    end_date: int
    dow: tuple[bool, ...]

    def active_on(self, d: date) -> bool:
        ymd = _date_to_yyyymmdd(d)
        if not (self.start_date <= ymd <= self.end_date):
            return False
        return self.dow[d.weekday()]


def _date_to_yyyymmdd(d: date) -> int:
    return d.year * 10000 + d.month * 100 + d.day


class CalendarRepo:
    """Service calendar and agency timezones of a static GTFS feed."""

    def __init__(self, gtfs_path: Path | None = None) -> None:
        self.gtfs_dir = gtfs_path or gtfs_dir()
        self.calendar_path = self.gtfs_dir / "calendar.txt"
        self.calendar_dates_path = self.gtfs_dir / "calendar_dates.txt"
        self.agency_path = self.gtfs_dir / "agency.txt"

        self._calendar: dict[str, CalendarRow] = {}
        # YYYYMMDD -> (added, removed)
        self._exceptions: dict[int, tuple[set[str], set[str]]] = {}
        self._agency_tz: dict[str, str] = {}
        self._default_agency: str | None = None

        self._active_on = lru_cache(maxsize=1024)(self._compute_service_ids)
        self._loaded = False

    @classmethod
    def from_records(
        cls,
        calendar: list[CalendarRow],
        exceptions: dict[int, tuple[set[str], set[str]]] | None = None,
        agencies: dict[str, str] | None = None,
    ) -> CalendarRepo:
        repo = cls(gtfs_path=Path("."))
        repo._calendar = {c.service_id: c for c in calendar}
        repo._exceptions = dict(exceptions or {})
        repo._agency_tz = dict(agencies or {})
        repo._default_agency = next(iter(repo._agency_tz), None)
        repo._loaded = True
        return repo

    # -------------------- Public API --------------------

    def load(self) -> None:
        log.info("CalendarRepo.load() gtfs_dir=%s", self.gtfs_dir)
        self._load_agencies()
        self._load_calendar()
        self._load_calendar_dates()
        self._active_on.cache_clear()
        self._loaded = True

    def service_ids_for_date(self, d: date) -> frozenset[str]:
        self._ensure_loaded()
        return self._active_on(d)

    def _compute_service_ids(self, d: date) -> frozenset[str]:
        active = {sid for sid, row in self._calendar.items() if row.active_on(d)}
        added, removed = self._exceptions.get(_date_to_yyyymmdd(d), (set(), set()))
        active |= added
        active -= removed
        return frozenset(active)

    def timezone_for_agency(self, agency_id: str | None = None) -> ZoneInfo:
        override = getattr(settings, "AGENCY_TIMEZONE", None)
        if override:
            return ZoneInfo(override)
        self._ensure_loaded()
        aid = agency_id if agency_id is not None else self._default_agency
        if aid is None or aid not in self._agency_tz:
            raise KeyError(f"no timezone for agency {agency_id!r}")
        return ZoneInfo(self._agency_tz[aid])

    def service_date_for_instant(self, epoch: int, tz: ZoneInfo) -> date:
        return service_date_for_instant(epoch, tz)

    def service_day_origin(self, d: date, tz: ZoneInfo) -> int:
        return service_day_origin(d, tz)

    # ------------------- Load -------------------

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _load_agencies(self) -> None:
        self._agency_tz.clear()
        self._default_agency = None
        if not self.agency_path.exists():
            log.warning("agency.txt not found at %s", self.agency_path)
            return
        for row in iter_csv_dict(self.agency_path):
            tz = row.get("agency_timezone") or ""
            if not tz:
                continue
            # agency_id is optional in single-agency feeds
            aid = row.get("agency_id") or ""
            self._agency_tz[aid] = tz
            if self._default_agency is None:
                self._default_agency = aid
        log.info("Loaded %d agencies from %s", len(self._agency_tz), self.agency_path)

    def _load_calendar(self) -> None:
        self._calendar.clear()
        p = self.calendar_path
        if not p.exists():
            return
        rows = 0
        for row in iter_csv_dict(p):
            rows += 1
            sid = row.get("service_id") or ""
            start_i = try_int(row.get("start_date"))
            end_i = try_int(row.get("end_date"))
            if not sid or start_i is None or end_i is None:
                continue
            dow = tuple((row.get(f) or "0") == "1" for f in _DOW_FIELDS)
            self._calendar[sid] = CalendarRow(sid, start_i, end_i, dow)
        log.info("Loaded %d calendar services (rows=%d) from %s", len(self._calendar), rows, p)

    def _load_calendar_dates(self) -> None:
        self._exceptions.clear()
        p = self.calendar_dates_path
        if not p.exists():
            return
        for row in iter_csv_dict(p):
            ymd = try_int(row.get("date"))
            sid = row.get("service_id") or ""
            if ymd is None or not sid:
                continue
            added, removed = self._exceptions.setdefault(ymd, (set(), set()))
            et = row.get("exception_type") or ""
            if et == "1":
                added.add(sid)
            elif et == "2":
                removed.add(sid)
        if not self._calendar and not self._exceptions:
            log.warning("No calendar.txt nor calendar_dates.txt data in %s", self.gtfs_dir)


# -------------------- Singleton --------------------

_SINGLETON: CalendarRepo | None = None


def get_repo() -> CalendarRepo:
    global _SINGLETON
    if _SINGLETON is None:
        _SINGLETON = CalendarRepo()
        _SINGLETON.load()
    return _SINGLETON
