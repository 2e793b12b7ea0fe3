from __future__ import annotations

import threading
from pathlib import Path

import cv2
import numpy as np
import pytest

from golftracer.types import DetectionBox


class FakeDetector:
    """Detector stand-in: one box per image, positioned by the image brightness."""

    def __init__(self, fail_on_mean: set[int] | None = None, gate: threading.Event | None = None):
        self.fail_on_mean = fail_on_mean or set()
        self.gate = gate
        self.calls: list[tuple[int, float, float]] = []
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def detect(self, image: np.ndarray, confidence: float, overlap: float) -> list[DetectionBox]:
        mean = int(round(float(image.mean())))
        with self._lock:
            self.calls.append((mean, confidence, overlap))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if mean in self.fail_on_mean:
            raise RuntimeError("model exploded")
        offset = (mean % 100) / 200.0
        return [DetectionBox(x=offset, y=offset, width=0.1, height=0.1, confidence=0.9)]


def write_video(path: Path, frames: int = 10, fps: float = 10.0, size: tuple[int, int] = (64, 48)) -> Path:
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, size)
    for index in range(frames):
        image = np.full((size[1], size[0], 3), (index * 20) % 250, dtype=np.uint8)
        writer.write(image)
    writer.release()
    return path


@pytest.fixture
def fake_detector() -> FakeDetector:
    return FakeDetector()


@pytest.fixture
def sample_video(tmp_path: Path) -> Path:
    return write_video(tmp_path / "swing.avi")


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    path = tmp_path / "ball.png"
    image = np.full((48, 64, 3), 40, dtype=np.uint8)
    cv2.circle(image, (32, 24), 6, (255, 255, 255), -1)
    cv2.imwrite(str(path), image)
    return path
