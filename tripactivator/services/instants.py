from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


def parse_instant(value: str, tz: ZoneInfo) -> int:
    """Epoch seconds from ``value``: an integer epoch or an ISO-8601 timestamp.

    Timestamps without an offset are read as local time in ``tz``.
    """
    s = (value or "").strip()
    if not s:
        raise ValueError("empty instant")
    if s.lstrip("-").isdigit():
        return int(s)
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return int(dt.timestamp())
