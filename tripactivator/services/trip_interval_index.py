from __future__ import annotations

import threading
from collections.abc import Iterable

from rtree import index

from tripactivator.domain.models import TripSpan
from tripactivator.errors import UninitializedIndexError


class TripIntervalIndex:
    """R-tree over trip spans, keyed by [min_second, max_second].

    Spans are inserted first, then ``build()`` loads them into the tree and freezes
    it. Queries are only valid afterwards and never mutate it.
    """

    def __init__(self) -> None:
        self._pending: list[TripSpan] | None = []
        self._rtree: index.Index | None = None
        self._size = 0
        self._lock = threading.Lock()

    @classmethod
    def from_spans(cls, spans: Iterable[TripSpan]) -> TripIntervalIndex:
        idx = cls()
        for s in spans:
            idx.insert(s.min_second, s.max_second, s)
        return idx.build()

    @property
    def is_built(self) -> bool:
        return self._pending is None

    def insert(self, lo: int, hi: int, span: TripSpan) -> None:
        if self._pending is None:
            raise RuntimeError("cannot insert into a built TripIntervalIndex")
        if (lo, hi) != (span.min_second, span.max_second):
            span = TripSpan(span.trip, lo, hi)
        self._pending.append(span)

    def build(self) -> TripIntervalIndex:
        if self._pending is None:
            return self
        pending, self._pending = self._pending, None

        # intervals are boxes flattened on y = 0
        tree = index.Index(interleaved=True)
        for i, s in enumerate(pending):
            tree.insert(i, (s.min_second, 0, s.max_second, 0), obj=s)
        self._rtree = tree
        self._size = len(pending)
        return self

    def query(self, q_start: int, q_end: int) -> list[TripSpan]:
        if self._pending is not None:
            raise UninitializedIndexError("TripIntervalIndex queried before build()")
        if q_start > q_end or self._size == 0:
            return []
        # libspatialindex handles are not safe for concurrent reads
        with self._lock:
            return list(self._rtree.intersection((q_start, 0, q_end, 0), objects="raw"))

    def __len__(self) -> int:
        return self._size if self._pending is None else len(self._pending)
