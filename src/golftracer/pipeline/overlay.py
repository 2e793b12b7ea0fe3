"""Draw normalized detection boxes over frames."""

from __future__ import annotations

from typing import Iterable

import cv2
import numpy as np

from golftracer.pipeline.store import ResultStore
from golftracer.types import DetectionBox, Frame


def to_pixel_rect(box: DetectionBox, width: int, height: int) -> tuple[int, int, int, int]:
    """Scale a bottom-left-origin normalized box to a top-left-origin (x, y, w, h) rect."""
    w_px = box.width * width
    h_px = box.height * height
    x_px = box.x * width
    y_px = box.y * height
    return (
        int(round(x_px)),
        int(round(height - y_px - h_px)),
        int(round(w_px)),
        int(round(h_px)),
    )


def draw_detections(
    image: np.ndarray,
    boxes: Iterable[DetectionBox],
    color: tuple[int, int, int] = (0, 0, 255),
    thickness: int = 2,
) -> np.ndarray:
    """Return a copy of image with one rectangle per box."""
    out = image.copy()
    height, width = out.shape[:2]
    for box in boxes:
        x, y, w, h = to_pixel_rect(box, width, height)
        cv2.rectangle(out, (x, y), (x + w, y + h), color, thickness)
    return out


def render_filmstrip(frames: Iterable[Frame], store: ResultStore) -> list[np.ndarray]:
    """Overlay each frame with its latest result; frames without one stay as-is."""
    rendered: list[np.ndarray] = []
    for frame in frames:
        boxes = store.lookup(frame.timestamp)
        if boxes is None:
            rendered.append(frame.image)
        else:
            rendered.append(draw_detections(frame.image, boxes))
    return rendered
