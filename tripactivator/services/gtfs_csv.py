from __future__ import annotations

import csv
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from tripactivator.config import settings


def gtfs_dir() -> Path:
    if settings and getattr(settings, "GTFS_RAW_DIR", None):
        return Path(settings.GTFS_RAW_DIR)
    return Path("data/gtfs")


def csv_params() -> tuple[str, str]:
    enc = getattr(settings, "GTFS_ENCODING", None) or "utf-8"
    delim = getattr(settings, "GTFS_DELIMITER", None) or ","
    return enc, delim


def norm_row(row: dict) -> dict:
    out = {}
    for k, v in row.items():
        kk = str(k).strip().lstrip("\ufeff").lower()
        if isinstance(v, str):
            out[kk] = v.strip()
        else:
            out[kk] = v
    return out


def iter_csv_dict(path: Path) -> Iterator[dict]:
    enc, delim = csv_params()
    with path.open("r", encoding=enc, newline="") as fh:
        reader = csv.DictReader(fh, delimiter=delim)
        for row in reader:
            yield norm_row(row)


def require(path: str | Path) -> Path:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))
    return p


def parse_gtfs_time(s: str | None) -> int | None:
    """``H:MM:SS`` to seconds since service-day start; hours may go past 24."""
    if not s:
        return None
    parts = str(s).strip().split(":")
    if len(parts) != 3:
        return None
    try:
        h, m, sec = int(parts[0]), int(parts[1]), int(parts[2])
    except ValueError:
        return None
    if h < 0 or m < 0 or m > 59 or sec < 0 or sec > 59:
        return None
    return h * 3600 + m * 60 + sec


def try_int(x: Any) -> int | None:
    try:
        return int(str(x).strip())
    except (TypeError, ValueError):
        return None
