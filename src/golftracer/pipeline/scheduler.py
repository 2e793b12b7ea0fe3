"""Per-frame asynchronous inference on a bounded worker pool."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable

from golftracer.config import ThresholdConfig
from golftracer.pipeline.store import ResultStore
from golftracer.types import DetectionResult, Frame
from golftracer.vision.detector import Detector

logger = logging.getLogger(__name__)


class InferenceScheduler:
    """Dispatch one detection call per frame and append completions to the store.

    At most ``max_workers`` detection calls run at once. Completion order is
    whatever the pool produces; the store tolerates interleaved appends.
    A failed call appends nothing and never raises to the caller.
    """

    def __init__(self, detector: Detector, store: ResultStore, max_workers: int = 4):
        self.detector = detector
        self.store = store
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="golftracer-infer")
        self._lock = threading.Lock()
        self._pending: set[Future] = set()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return sum(1 for future in self._pending if not future.done())

    def _run(self, frame: Frame, thresholds: ThresholdConfig, generation: int | None) -> DetectionResult | None:
        try:
            boxes = self.detector.detect(frame.image, thresholds.confidence, thresholds.overlap)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Detection failed for frame %s: %s", frame.timestamp, exc)
            return None

        result = DetectionResult(
            timestamp=frame.timestamp,
            boxes=tuple(boxes),
            generation=generation if generation is not None else self.store.generation,
        )
        if not self.store.append(frame.timestamp, result.boxes, generation=generation):
            logger.debug("Discarded result for %s (generation %s)", frame.timestamp, generation)
            return None
        return result

    def _done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def submit(
        self,
        frame: Frame,
        thresholds: ThresholdConfig,
        generation: int | None = None,
    ) -> Future:
        """Queue detection for one frame using the thresholds given at call time."""
        snapshot = thresholds.model_copy()
        future = self._executor.submit(self._run, frame, snapshot, generation)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._done)
        return future

    def submit_many(
        self,
        frames: Iterable[Frame],
        thresholds: Callable[[], ThresholdConfig],
        generation: int | None = None,
    ) -> list[Future]:
        """Dispatch frames as the iterable yields them; thresholds are read per frame."""
        return [self.submit(frame, thresholds(), generation) for frame in frames]

    def cancel_pending(self) -> int:
        """Cancel calls that have not started yet. Running calls finish normally."""
        with self._lock:
            pending = list(self._pending)
        return sum(1 for future in pending if future.cancel())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every dispatched call has finished. Returns False on timeout."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending, cancel_futures=not wait_for_pending)
