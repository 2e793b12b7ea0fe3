"""Tracer session: load media, extract frames, dispatch detection, hold results."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Literal

from golftracer.config import THRESHOLD_STEP, AppSettings, ThresholdConfig
from golftracer.ingest.video_to_frames import VideoAsset, copy_media, load_image
from golftracer.pipeline.scheduler import InferenceScheduler
from golftracer.pipeline.store import ResultStore
from golftracer.types import Frame
from golftracer.vision.detector import Detector

logger = logging.getLogger(__name__)


class TracerSession:
    """Coordinator for one media item at a time.

    Probing and decoding run on a single extraction thread and every decoded
    frame is handed to the inference pool right away, so ``load_video`` and
    ``load_image`` return a future immediately. Loading a new item starts a new
    store generation: the previous extraction stops at its next frame, queued
    calls of the previous item are cancelled and any of its results still
    running are discarded on arrival.
    """

    def __init__(self, detector: Detector, settings: AppSettings | None = None):
        self.settings = settings or AppSettings()
        self.store = ResultStore()
        self.scheduler = InferenceScheduler(
            detector=detector,
            store=self.store,
            max_workers=self.settings.scheduler.max_workers,
        )
        self.source: Path | None = None
        self.media_kind: str | None = None
        self.last_error: str | None = None
        self._thresholds = self.settings.thresholds
        self._frames: list[Frame] = []
        self._generation = self.store.generation
        self._extractor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="golftracer-extract")
        self._extraction: Future | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> TracerSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def thresholds(self) -> ThresholdConfig:
        with self._lock:
            return self._thresholds

    @property
    def frames(self) -> list[Frame]:
        with self._lock:
            return list(self._frames)

    def set_thresholds(self, confidence: float | None = None, overlap: float | None = None) -> ThresholdConfig:
        """Update thresholds for calls issued from now on."""
        with self._lock:
            update: dict[str, float] = {}
            if confidence is not None:
                update["confidence"] = confidence
            if overlap is not None:
                update["overlap"] = overlap
            self._thresholds = ThresholdConfig.model_validate({**self._thresholds.model_dump(), **update})
            return self._thresholds

    def nudge_threshold(
        self,
        name: Literal["confidence", "overlap"],
        delta: float = THRESHOLD_STEP,
    ) -> ThresholdConfig:
        with self._lock:
            self._thresholds = self._thresholds.step(name, delta)
            return self._thresholds

    def _begin_load(self, source: Path, media_kind: str) -> int:
        if self._extraction is not None:
            self._extraction.cancel()
        cancelled = self.scheduler.cancel_pending()
        if cancelled:
            logger.info("Cancelled %d queued detections from previous load", cancelled)

        with self._lock:
            self._generation = self.store.clear()
            self._frames = []
            generation = self._generation
        self.source = source
        self.media_kind = media_kind
        self.last_error = None
        return generation

    def _dispatch(self, frame: Frame, generation: int) -> bool:
        with self._lock:
            if self._generation != generation:
                return False
            self.store.register(frame.timestamp)
            self._frames.append(frame)
            thresholds = self._thresholds
        self.scheduler.submit(frame, thresholds, generation)
        return True

    def _local_copy(self, source: Path) -> Path:
        media = self.settings.media
        if not media.copy_video:
            return source
        try:
            return copy_media(source, media.media_dir, media.copy_stem)
        except OSError as exc:
            logger.warning("Could not copy %s to %s: %s", source, media.media_dir, exc)
            return source

    def _extract_video(self, source: Path, generation: int) -> int:
        if not source.exists():
            logger.warning("Video not found: %s", source)
            return 0

        try:
            asset = VideoAsset(self._local_copy(source))
            frames = asset.iter_frames()
            dispatched = 0
            try:
                for frame in frames:
                    if not self._dispatch(frame, generation):
                        logger.info("Stopped extraction of superseded video %s", source)
                        return dispatched
                    dispatched += 1
            finally:
                frames.close()
        except Exception as exc:  # noqa: BLE001
            self.last_error = str(exc)
            logger.warning("Frame extraction failed for %s: %s", source, exc)
            return 0

        logger.info("Frames %d | Count %d", len(asset.timestamps()), dispatched)
        return dispatched

    def _extract_image(self, source: Path, generation: int) -> int:
        frame = load_image(source)
        if frame is None:
            return 0
        return 1 if self._dispatch(frame, generation) else 0

    def load_video(self, video_path: str | Path) -> Future:
        """Replace the current item with a video.

        Returns a future resolving to the number of frames dispatched.
        """
        source = Path(video_path)
        generation = self._begin_load(source, "video")
        self._extraction = self._extractor.submit(self._extract_video, source, generation)
        return self._extraction

    def load_image(self, image_path: str | Path) -> Future:
        """Replace the current item with a still photo: at most one detection call."""
        source = Path(image_path)
        generation = self._begin_load(source, "image")
        self._extraction = self._extractor.submit(self._extract_image, source, generation)
        return self._extraction

    def reprocess(self) -> int:
        """Run detection again on every current frame with the current thresholds."""
        with self._lock:
            generation = self._generation
            frames = list(self._frames)
            thresholds = self._thresholds
        for frame in frames:
            self.scheduler.submit(frame, thresholds, generation)
        return len(frames)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until extraction and every dispatched detection have finished."""
        deadline = None if timeout is None else time.monotonic() + timeout
        extraction = self._extraction
        if extraction is not None:
            _, not_done = wait([extraction], timeout=timeout)
            if not_done:
                return False
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        return self.scheduler.wait(remaining)

    def close(self) -> None:
        self._extractor.shutdown(wait=True, cancel_futures=True)
        self.scheduler.shutdown()

    def snapshot_status(self) -> dict[str, Any]:
        thresholds = self.thresholds
        extraction = self._extraction
        return {
            "source": str(self.source) if self.source else None,
            "media_kind": self.media_kind,
            "generation": self.store.generation,
            "extracting": extraction is not None and not extraction.done(),
            "frames": len(self.frames),
            "results": len(self.store),
            "in_flight": self.scheduler.in_flight,
            "confidence": thresholds.confidence,
            "overlap": thresholds.overlap,
            "last_error": self.last_error,
        }
