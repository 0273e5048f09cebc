# src/room_mode_eq/models.py

"""
Value types shared by the simulator, the analysis functions and the EQ generator.

All types are immutable. Transformations (roll-off, absorption, EQ) return a
new object on the same frequency grid instead of editing the input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, NamedTuple, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    """A position inside the room, in meters."""

    x: float
    y: float
    z: float


@dataclass(frozen=True)
class RoomDimensions:
    """Room length (L), width (W) and height (H) in meters."""

    L: float
    W: float
    H: float

    @property
    def volume(self) -> float:
        return self.L * self.W * self.H


class ResponsePoint(NamedTuple):
    freq: float
    db: float


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class FrequencyResponse:
    """
    An ordered frequency -> dB curve.

    Both arrays are read-only, so a response handed out by the simulation
    cache can be shared safely. Use ``with_db`` to derive a new curve.
    """

    freqs: np.ndarray
    db: np.ndarray

    def __post_init__(self):
        freqs = _readonly(self.freqs)
        db = _readonly(self.db)
        if freqs.shape != db.shape:
            raise ValueError("freqs and db must have the same length")
        object.__setattr__(self, "freqs", freqs)
        object.__setattr__(self, "db", db)

    @classmethod
    def empty(cls) -> "FrequencyResponse":
        return cls(np.array([]), np.array([]))

    @classmethod
    def from_points(cls, points: Iterable) -> "FrequencyResponse":
        """Build a response from ``(freq, db)`` pairs or ``ResponsePoint`` items."""
        pairs = [(float(p[0]), float(p[1])) for p in points]
        if not pairs:
            return cls.empty()
        freqs, db = zip(*pairs)
        return cls(np.array(freqs), np.array(db))

    def to_points(self) -> List[ResponsePoint]:
        return [ResponsePoint(float(f), float(d)) for f, d in zip(self.freqs, self.db)]

    def with_db(self, db) -> "FrequencyResponse":
        return FrequencyResponse(self.freqs, np.asarray(db, dtype=float))

    def __len__(self) -> int:
        return len(self.freqs)

    def __iter__(self) -> Iterator[ResponsePoint]:
        return iter(self.to_points())

    def __eq__(self, other) -> bool:
        if not isinstance(other, FrequencyResponse):
            return NotImplemented
        return np.array_equal(self.freqs, other.freqs) and np.array_equal(self.db, other.db)

    def __hash__(self):
        return hash((self.freqs.tobytes(), self.db.tobytes()))


@dataclass(frozen=True)
class EQBand:
    """
    A single parametric EQ band.

    Args:
        frequency: Center frequency in Hz
        gain: Gain in dB (positive = boost, negative = cut)
        q: Q factor (higher = narrower)
        type: Filter type, always "peak" (bell) for generated bands
    """

    frequency: float
    gain: float
    q: float
    type: str = "peak"


@dataclass(frozen=True)
class EQSettings:
    """A complete EQ result: the band set plus the limits it was built with."""

    bands: Tuple[EQBand, ...] = ()
    enabled: bool = True
    max_boost: float = 0.0
    max_cut: float = 0.0
    smoothing: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "bands", tuple(self.bands))

    @classmethod
    def disabled(cls) -> "EQSettings":
        return cls(bands=(), enabled=False)


@dataclass(frozen=True)
class DetectedFeature:
    """A peak or dip found in a response curve. Recomputed on every analysis."""

    frequency: float
    amplitude: float
    prominence: float
    width: float
    type: str  # "mode", "resonance" or "dip"


@dataclass(frozen=True)
class ErrorPoint:
    freq: float
    error: float
    current_db: float
    target_db: float


@dataclass(frozen=True)
class ErrorAnalysis:
    rms_error: float = 0.0
    max_error: float = 0.0
    avg_error: float = 0.0
    per_frequency: Tuple[ErrorPoint, ...] = field(default_factory=tuple)
