"""Thread-safe, timestamp-indexed detection result store."""

from __future__ import annotations

import threading
from typing import Iterable

from golftracer.types import DetectionBox, DetectionResult, Timestamp


class ResultStore:
    """Append-only detection results for the frames of one media load.

    Results are accepted only for registered frame timestamps of the current
    generation. ``clear`` starts a new generation, so late results from a
    superseded load are dropped instead of colliding with the new timestamps.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._known: set[Timestamp] = set()
        self._results: list[DetectionResult] = []
        self._latest: dict[Timestamp, tuple[DetectionBox, ...]] = {}

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def clear(self) -> int:
        """Drop all frames and results and return the new generation id."""
        with self._lock:
            self._generation += 1
            self._known.clear()
            self._results.clear()
            self._latest.clear()
            return self._generation

    def register(self, timestamp: Timestamp) -> None:
        with self._lock:
            self._known.add(timestamp)

    def register_many(self, timestamps: Iterable[Timestamp]) -> None:
        with self._lock:
            self._known.update(timestamps)

    def is_known(self, timestamp: Timestamp) -> bool:
        with self._lock:
            return timestamp in self._known

    def append(
        self,
        timestamp: Timestamp,
        boxes: Iterable[DetectionBox],
        generation: int | None = None,
    ) -> bool:
        """Append one result. Returns False for unknown timestamps or stale generations."""
        result_boxes = tuple(boxes)
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            if timestamp not in self._known:
                return False
            self._results.append(
                DetectionResult(timestamp=timestamp, boxes=result_boxes, generation=self._generation)
            )
            self._latest[timestamp] = result_boxes
            return True

    def lookup(self, timestamp: Timestamp) -> tuple[DetectionBox, ...] | None:
        """Most recently appended boxes for a timestamp, or None."""
        with self._lock:
            return self._latest.get(timestamp)

    def results(self) -> list[DetectionResult]:
        """Snapshot of all results in arrival order."""
        with self._lock:
            return list(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
