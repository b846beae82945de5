from fastapi import APIRouter, HTTPException, Query

from tripactivator.services.instants import parse_instant
from tripactivator.services.trip_activator import get_activator

router = APIRouter(prefix="/api", tags=["active-trips"])


@router.get("/active-trips")
def active_trips(
    start: str = Query(..., description="epoch seconds or ISO-8601"),
    end: str = Query(..., description="epoch seconds or ISO-8601"),
    route_id: list[str] = Query(default=[]),
):
    activator = get_activator()
    tz = activator.timezone
    try:
        start_epoch = parse_instant(start, tz)
        end_epoch = parse_instant(end, tz)
    except ValueError as e:
        raise HTTPException(422, f"Invalid instant: {e}") from e

    trips = [
        at.to_dict(tz)
        for at in activator.trips_for_range_and_routes(start_epoch, end_epoch, route_id)
    ]
    return {"count": len(trips), "trips": trips}


@router.get("/active-trips/meta")
def active_trips_meta():
    activator = get_activator()
    return {
        "spans": activator.span_count,
        "max_lookback_days": activator.max_lookback,
        "timezone": activator.timezone.key,
    }
