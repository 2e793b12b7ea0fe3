"""
Video -> frames extraction on a uniform timestamp grid.

Every frame of the video is sampled:
- total = floor(nominal_fps * duration_seconds)
- timestamp i = i / nominal_fps, for i in 0 .. total-1
- each timestamp is decoded exactly (no nearest-keyframe tolerance)

A video whose frame rate or duration cannot be determined yields no frames.
"""

from __future__ import annotations

import logging
import math
import shutil
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Iterator

import cv2

from golftracer.types import ZERO, Frame, Timestamp

logger = logging.getLogger(__name__)

# Largest denominator kept when turning a float fps into a rational rate.
# A container-reported 29.97002997 maps back to 30000/1001; a literal 29.97 stays 2997/100.
_RATE_MAX_DENOMINATOR = 1001
_DURATION_MAX_DENOMINATOR = 1_000_000


@dataclass(frozen=True)
class VideoMetadata:
    frame_rate: float
    duration_seconds: float
    frame_count: int = 0


def _valid_positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def probe_video(video_path: str | Path) -> VideoMetadata | None:
    """Read nominal frame rate and duration, or None if either is unavailable."""
    video_path = Path(video_path)
    if not video_path.exists():
        logger.warning("Video not found: %s", video_path)
        return None

    cap = cv2.VideoCapture(str(video_path))
    try:
        if not cap.isOpened():
            logger.warning("Could not open video: %s", video_path)
            return None

        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
    finally:
        cap.release()

    if not _valid_positive(fps):
        logger.warning("Video has no nominal frame rate: %s", video_path)
        return None
    if frame_count <= 0:
        logger.warning("Video has no duration: %s", video_path)
        return None

    return VideoMetadata(frame_rate=fps, duration_seconds=frame_count / fps, frame_count=frame_count)


def rational_rate(frame_rate: float) -> Fraction:
    return Fraction(frame_rate).limit_denominator(_RATE_MAX_DENOMINATOR)


def compute_timestamps(frame_rate: float | None, duration_seconds: float | None) -> list[Timestamp]:
    """Uniform grid of floor(frame_rate * duration) timestamps spaced 1/frame_rate apart."""
    if not _valid_positive(frame_rate) or not _valid_positive(duration_seconds):
        return []

    rate = rational_rate(frame_rate)
    if rate <= 0:
        return []
    duration = Fraction(duration_seconds).limit_denominator(_DURATION_MAX_DENOMINATOR)
    total = math.floor(rate * duration)

    # index / rate == index * q / p for rate = p / q
    return [Timestamp(value=index * rate.denominator, timescale=rate.numerator) for index in range(total)]


class VideoAsset:
    """Handle on one video file: metadata, timestamp grid, and frame decoding."""

    def __init__(self, video_path: str | Path):
        self.path = Path(video_path)
        self._metadata: VideoMetadata | None = None
        self._probed = False

    @property
    def metadata(self) -> VideoMetadata | None:
        if not self._probed:
            self._metadata = probe_video(self.path)
            self._probed = True
        return self._metadata

    def timestamps(self) -> list[Timestamp]:
        meta = self.metadata
        if meta is None:
            return []
        return compute_timestamps(meta.frame_rate, meta.duration_seconds)

    def iter_frames(self) -> Iterator[Frame]:
        """Lazily decode one Frame per timestamp; failed decodes are skipped."""
        timestamps = self.timestamps()
        if not timestamps:
            return

        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            logger.warning("Could not open video: %s", self.path)
            return

        # Sequential reads match the grid exactly; seek only after a failed read.
        position = 0
        try:
            for index, timestamp in enumerate(timestamps):
                try:
                    if position != index:
                        cap.set(cv2.CAP_PROP_POS_FRAMES, index)
                    ok, image = cap.read()
                except cv2.error as exc:
                    logger.debug("Decode error at %s: %s", timestamp, exc)
                    ok, image = False, None

                if not ok or image is None:
                    logger.debug("Dropped frame at %s", timestamp)
                    position = -1
                    continue

                position = index + 1
                yield Frame(timestamp=timestamp, image=image)
        finally:
            cap.release()

    def extract_frames(self) -> list[Frame]:
        """Batch variant: decode every timestamp and return the frames at once."""
        frames = list(self.iter_frames())
        logger.info("Frames %d | Count %d", len(self.timestamps()), len(frames))
        return frames


def load_image(image_path: str | Path) -> Frame | None:
    """Read a still photo as a single Frame at time zero."""
    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        logger.warning("Could not read image: %s", image_path)
        return None
    return Frame(timestamp=ZERO, image=image)


def copy_media(source: str | Path, media_dir: str | Path, stem: str = "movie") -> Path:
    """Copy a picked video to local storage, replacing any previous copy.

    Only one ``{stem}.*`` file is kept in ``media_dir``, whatever its extension.
    """
    source = Path(source)
    media_dir = Path(media_dir)
    media_dir.mkdir(parents=True, exist_ok=True)

    target = media_dir / f"{stem}{source.suffix}"
    if target.resolve() != source.resolve():
        if target.exists():
            target.unlink()
        shutil.copyfile(source, target)

    # Removed after the copy so a source that is itself an old copy survives long enough.
    for previous in media_dir.glob(f"{stem}.*"):
        if previous.is_file() and previous.resolve() != target.resolve():
            previous.unlink()
    return target
