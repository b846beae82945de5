from __future__ import annotations

import random

import pytest

from tripactivator.domain.models import Trip, TripSpan
from tripactivator.errors import UninitializedIndexError
from tripactivator.services.trip_interval_index import TripIntervalIndex


def _span(tid: str, lo: int, hi: int) -> TripSpan:
    return TripSpan(Trip(tid, "A", "WKDY"), lo, hi)


def _ids(spans) -> set[str]:
    return {s.trip_id for s in spans}


def test_query_before_build_raises():
    idx = TripIntervalIndex()
    idx.insert(0, 10, _span("T1", 0, 10))
    with pytest.raises(UninitializedIndexError):
        idx.query(0, 5)


def test_insert_after_build_raises():
    idx = TripIntervalIndex.from_spans([_span("T1", 0, 10)])
    assert idx.is_built
    with pytest.raises(RuntimeError):
        idx.insert(20, 30, _span("T2", 20, 30))


def test_closed_interval_touching_endpoints():
    idx = TripIntervalIndex.from_spans([_span("T1", 100, 200), _span("T2", 300, 400)])
    assert _ids(idx.query(200, 250)) == {"T1"}
    assert _ids(idx.query(50, 100)) == {"T1"}
    assert _ids(idx.query(200, 300)) == {"T1", "T2"}
    assert idx.query(201, 299) == []


def test_reversed_window_is_empty():
    idx = TripIntervalIndex.from_spans([_span("T1", 0, 86400)])
    assert idx.query(500, 100) == []


def test_negative_and_past_midnight_windows():
    idx = TripIntervalIndex.from_spans([_span("T1", 86000, 90200), _span("T2", 0, 600)])
    assert _ids(idx.query(86400 + 1800, 86400 + 2400)) == {"T1"}
    assert _ids(idx.query(-3600, 0)) == {"T2"}
    assert idx.query(-7200, -3600) == []


def test_empty_index():
    idx = TripIntervalIndex().build()
    assert len(idx) == 0
    assert idx.query(0, 100) == []


def test_matches_linear_scan():
    rnd = random.Random(1234)
    spans = []
    for i in range(400):
        lo = rnd.randint(0, 100_000)
        spans.append(_span(f"T{i}", lo, lo + rnd.randint(0, 7200)))
    idx = TripIntervalIndex.from_spans(spans)
    assert len(idx) == 400

    for _ in range(200):
        a = rnd.randint(-5000, 110_000)
        b = a + rnd.randint(0, 4000)
        expected = {s.trip_id for s in spans if s.min_second <= b and a <= s.max_second}
        got = idx.query(a, b)
        assert len(got) == len(expected)
        assert _ids(got) == expected


def test_span_identity_is_trip_id():
    a = _span("T1", 0, 10)
    b = _span("T1", 50, 60)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, _span("T2", 0, 10)}) == 2


def test_span_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        _span("T1", 10, 5)


def test_query_is_safe_from_many_threads():
    from concurrent.futures import ThreadPoolExecutor

    spans = [_span(f"T{i}", i * 100, i * 100 + 250) for i in range(200)]
    idx = TripIntervalIndex.from_spans(spans)

    def run(i: int) -> set[str]:
        return _ids(idx.query(i * 100, i * 100))

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(run, range(200)))
    for i, got in enumerate(results):
        assert got == {f"T{j}" for j in (i - 2, i - 1, i) if j >= 0}
