"""Project configuration models and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

THRESHOLD_STEP = 0.05


class ThresholdConfig(BaseModel):
    """Detector thresholds, read at the moment each inference call is issued."""

    model_config = ConfigDict(frozen=True)

    confidence: float = Field(default=0.15, ge=0.0, le=1.0)
    overlap: float = Field(default=0.10, ge=0.0, le=1.0)

    def step(self, name: Literal["confidence", "overlap"], delta: float = THRESHOLD_STEP) -> ThresholdConfig:
        """Return a copy with one threshold nudged by delta and clamped to [0, 1]."""
        current = getattr(self, name)
        nudged = round(min(1.0, max(0.0, current + delta)), 6)
        return self.model_copy(update={name: nudged})


class DetectorSettings(BaseModel):
    path: str = "models/golf_ball.pt"
    imgsz: int | None = None
    device: str | None = None
    classes: list[int] = Field(default_factory=list)


class SchedulerSettings(BaseModel):
    max_workers: int = Field(default=4, ge=1)


class MediaSettings(BaseModel):
    media_dir: str = "data/media"
    copy_video: bool = True
    copy_stem: str = "movie"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_path: str | None = None


class AppSettings(BaseModel):
    detector: DetectorSettings = Field(default_factory=DetectorSettings)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_settings(config_path: str | Path | None = None) -> AppSettings:
    """Load YAML configuration into typed app settings."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        return AppSettings()

    with path.open("r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    return AppSettings.model_validate(raw)
