from __future__ import annotations

import argparse
import json
import logging
import sys

from tripactivator.domain.models import format_hhmmss
from tripactivator.services.instants import parse_instant
from tripactivator.services.trip_activator import get_activator


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="List scheduled trips active in a time window.")
    ap.add_argument("--start", required=True, help="epoch seconds or ISO-8601")
    ap.add_argument("--end", required=True, help="epoch seconds or ISO-8601")
    ap.add_argument("--route", action="append", default=[], dest="routes", help="route_id")
    ap.add_argument("--table", action="store_true", help="plain text instead of JSON")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    activator = get_activator()
    tz = activator.timezone
    try:
        start = parse_instant(args.start, tz)
        end = parse_instant(args.end, tz)
    except ValueError as e:
        print(f"invalid instant: {e}", file=sys.stderr)
        return 2

    trips = list(activator.trips_for_range_and_routes(start, end, args.routes))
    if args.table:
        for at in trips:
            print(
                f"{at.service_date:%Y%m%d}  {at.route_id:<8} {at.trip_id:<24} "
                f"{format_hhmmss(at.start_time)}-{format_hhmmss(at.end_time)}"
            )
        return 0

    print(json.dumps([at.to_dict(tz) for at in trips], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
