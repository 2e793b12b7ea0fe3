from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from functools import total_ordering

import numpy as np


@total_ordering
@dataclass(frozen=True, eq=False)
class Timestamp:
    """Rational frame time: value / timescale seconds."""

    value: int
    timescale: int

    def __post_init__(self) -> None:
        if self.timescale <= 0:
            raise ValueError(f"timescale must be positive, got {self.timescale}")

    @property
    def fraction(self) -> Fraction:
        return Fraction(self.value, self.timescale)

    @property
    def seconds(self) -> float:
        return self.value / self.timescale

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.fraction == other.fraction

    def __lt__(self, other: Timestamp) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.fraction < other.fraction

    def __hash__(self) -> int:
        return hash(self.fraction)

    def __str__(self) -> str:
        return f"{self.value}/{self.timescale}"


ZERO = Timestamp(0, 1)


@dataclass(frozen=True)
class Frame:
    timestamp: Timestamp
    image: np.ndarray = field(repr=False, compare=False)


@dataclass(frozen=True)
class DetectionBox:
    x: float  # normalized, origin bottom-left
    y: float
    width: float
    height: float
    confidence: float = 1.0


@dataclass(frozen=True)
class DetectionResult:
    timestamp: Timestamp
    boxes: tuple[DetectionBox, ...]
    generation: int = 0
