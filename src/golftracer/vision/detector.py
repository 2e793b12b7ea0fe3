"""Ultralytics YOLO golf ball detector wrapper."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

import numpy as np
from ultralytics import YOLO

from golftracer.types import DetectionBox

logger = logging.getLogger(__name__)


class Detector(Protocol):
    def detect(self, image: np.ndarray, confidence: float, overlap: float) -> list[DetectionBox]:
        ...


def _clamp(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def normalized_box(x1: float, y1: float, x2: float, y2: float, confidence: float) -> DetectionBox:
    """Convert top-left-origin normalized corners to a bottom-left-origin box."""
    left, right = _clamp(min(x1, x2)), _clamp(max(x1, x2))
    top, bottom = _clamp(min(y1, y2)), _clamp(max(y1, y2))
    return DetectionBox(
        x=left,
        y=1.0 - bottom,
        width=right - left,
        height=bottom - top,
        confidence=_clamp(confidence),
    )


class YoloDetector:
    """Run YOLO detection on one image with per-call thresholds.

    The model handle is loaded lazily and cached per worker thread, so
    concurrent calls never share predictor state. Thresholds are never cached:
    both are handed to the model on every call.
    """

    def __init__(
        self,
        model_path: str,
        imgsz: int | None = None,
        device: str | None = None,
        classes: list[int] | None = None,
    ):
        self.model_path = model_path
        self.imgsz = imgsz
        self.device = device
        self.classes = classes or None
        self._local = threading.local()
        self._lock = threading.Lock()
        self._load_failed = False

    def _model(self) -> YOLO | None:
        model = getattr(self._local, "model", None)
        if model is not None:
            return model

        with self._lock:
            if self._load_failed:
                return None
            try:
                model = YOLO(self.model_path)
            except Exception as exc:  # noqa: BLE001
                self._load_failed = True
                logger.warning("Could not load detector model %s: %s", self.model_path, exc)
                return None

        self._local.model = model
        return model

    def detect(self, image: np.ndarray, confidence: float, overlap: float) -> list[DetectionBox]:
        """Return normalized boxes for one image, or [] if inference is not possible."""
        if image is None or getattr(image, "size", 0) == 0:
            logger.warning("Skipping detection on empty image")
            return []

        model = self._model()
        if model is None:
            return []

        kwargs = {"conf": float(confidence), "iou": float(overlap), "classes": self.classes, "verbose": False}
        if self.imgsz is not None:
            kwargs["imgsz"] = self.imgsz
        if self.device is not None:
            kwargs["device"] = self.device

        boxes: list[DetectionBox] = []
        try:
            results = model(image, **kwargs)
            if not results:
                return boxes
            result = results[0]
            if result.boxes is None or len(result.boxes) == 0:
                return boxes
            xyxyn = result.boxes.xyxyn.cpu().numpy()
            confs = result.boxes.conf.cpu().numpy()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Detector inference failed: %s", exc)
            return []

        for (x1, y1, x2, y2), conf in zip(xyxyn, confs):
            boxes.append(normalized_box(float(x1), float(y1), float(x2), float(y2), float(conf)))
        return boxes
