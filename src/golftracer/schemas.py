"""Report schemas for exported detection runs."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field

from golftracer.config import ThresholdConfig
from golftracer.types import DetectionResult


class BoxRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)


class FrameRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    value: int
    timescale: int = Field(ge=1)
    seconds: float = Field(ge=0.0)
    boxes: list[BoxRecord] = Field(default_factory=list)


class TraceReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    media_kind: Literal["video", "image"]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    thresholds: ThresholdConfig
    frames_extracted: int = Field(ge=0)
    frames_detected: int = Field(ge=0)
    records: list[FrameRecord] = Field(default_factory=list)


def build_report(
    source: str | Path,
    media_kind: Literal["video", "image"],
    thresholds: ThresholdConfig,
    frames_extracted: int,
    results: Iterable[DetectionResult],
) -> TraceReport:
    """Build a report keeping the last result per timestamp, sorted by time."""
    latest: dict = {}
    for result in results:
        latest[result.timestamp] = result

    records = [
        FrameRecord(
            value=result.timestamp.value,
            timescale=result.timestamp.timescale,
            seconds=result.timestamp.seconds,
            boxes=[
                BoxRecord(x=b.x, y=b.y, width=b.width, height=b.height, confidence=b.confidence)
                for b in result.boxes
            ],
        )
        for timestamp, result in sorted(latest.items(), key=lambda item: item[0])
    ]
    return TraceReport(
        source=str(source),
        media_kind=media_kind,
        thresholds=thresholds,
        frames_extracted=frames_extracted,
        frames_detected=len(records),
        records=records,
    )


def write_report(path: str | Path, report: TraceReport) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, indent=2)
    return path
