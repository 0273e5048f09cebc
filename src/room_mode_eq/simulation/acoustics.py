# src/room_mode_eq/simulation/acoustics.py

"""
Room and speaker adjustments applied on top of the raw modal response.

Surface absorption and furnishing set the modal Q; the subwoofer's
high-pass, air absorption, spectral tilt and the speaker's measured
directivity are applied to the simulated curve afterwards. Every function
returns a new FrequencyResponse.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

from .. import config
from ..models import FrequencyResponse, Point

SURFACES = ("front", "back", "left", "right", "ceiling", "floor")


def clamp_to_room(point, room):
    """Ensure a position is within the room boundaries."""
    return Point(
        x=min(max(0.0, point.x), room.L),
        y=min(max(0.0, point.y), room.W),
        z=min(max(0.0, point.z), room.H),
    )


@dataclass(frozen=True)
class SurfaceAbsorption:
    """Absorption coefficient (0.01 .. 1.0) of each room surface."""

    front: float = config.DEFAULT_SURFACE_ABSORPTION
    back: float = config.DEFAULT_SURFACE_ABSORPTION
    left: float = config.DEFAULT_SURFACE_ABSORPTION
    right: float = config.DEFAULT_SURFACE_ABSORPTION
    ceiling: float = config.DEFAULT_SURFACE_ABSORPTION
    floor: float = config.DEFAULT_SURFACE_ABSORPTION

    def effective(self, surface, master_adjust=0.0):
        return max(0.01, min(1.0, getattr(self, surface) + master_adjust))


def _surface_areas(room):
    front_back = room.W * room.H
    left_right = room.L * room.H
    ceiling_floor = room.L * room.W
    return {
        "front": front_back, "back": front_back,
        "left": left_right, "right": left_right,
        "ceiling": ceiling_floor, "floor": ceiling_floor,
    }


def total_absorption_area(room, absorption, master_adjust=0.0):
    """Sabine absorption area A = sum(alpha_i * S_i) in m^2."""
    areas = _surface_areas(room)
    return sum(absorption.effective(s, master_adjust) * areas[s] for s in SURFACES)


def estimate_modal_q(room, absorption=None, master_adjust=0.0,
                     furniture_factor=config.DEFAULT_FURNITURE_FACTOR):
    """
    Estimate the base modal Q from surface absorption and furnishing.

    Q = 1 / alpha_avg (clamped to 1 .. 50), then scaled down by the
    furniture damping multiplier. Without absorption data the default Q is used.
    """
    q = config.DEFAULT_Q_FACTOR
    if absorption is not None:
        total_area = sum(_surface_areas(room).values())
        if total_area > 0:
            alpha_avg = total_absorption_area(room, absorption, master_adjust) / total_area
            alpha_avg = max(0.01, min(1.0, alpha_avg))
            q = max(1.0, min(config.ABSORPTION_Q_MAX, 1.0 / alpha_avg))

    damping = config.FURNITURE_Q_DAMPING_MAX - furniture_factor * (
        config.FURNITURE_Q_DAMPING_MAX - config.FURNITURE_Q_DAMPING_MIN)
    return max(1.0, q * damping)


def sabine_rt60(room, absorption, master_adjust=0.0):
    """Reverberation time RT60 = 0.161 * V / A in seconds (0 for a degenerate room)."""
    area = total_absorption_area(room, absorption, master_adjust)
    if area <= 0 or room.volume <= 0:
        return 0.0
    return config.SABINE_CONSTANT * room.volume / area


def schroeder_frequency(room, absorption, master_adjust=0.0):
    """Transition frequency between modal and statistical behavior: 2000 * sqrt(RT60 / V)."""
    rt60 = sabine_rt60(room, absorption, master_adjust)
    if rt60 <= 0:
        return config.DEFAULT_SCHROEDER_FREQ_HZ
    return config.SCHROEDER_CONSTANT * math.sqrt(rt60 / room.volume)


def calibrate_level(response, reference_db=config.REFERENCE_SPL_DB):
    """Shift the whole curve so a unit modal magnitude reads ``reference_db``."""
    return response.with_db(response.db + reference_db)


def apply_spectral_tilt(response, db_per_octave=config.DEFAULT_SPECTRAL_TILT_DB_PER_OCT,
                        reference_freq=config.FREQUENCY_MIN_HZ):
    """Tilt the response by ``db_per_octave`` relative to ``reference_freq``."""
    if db_per_octave == 0 or len(response) == 0:
        return response
    freqs = response.freqs
    adjustment = np.zeros_like(freqs)
    positive = freqs > 0
    adjustment[positive] = db_per_octave * np.log2(freqs[positive] / reference_freq)
    return response.with_db(response.db + adjustment)


def apply_lf_rolloff(response, cutoff_hz=config.DEFAULT_LF_CUTOFF_HZ):
    """2nd order Butterworth high-pass: -10 * log10(1 + (fc / f)^4) dB."""
    if not cutoff_hz or cutoff_hz <= 0 or len(response) == 0:
        return response
    freqs = response.freqs
    adjustment = np.zeros_like(freqs)
    positive = freqs > 0
    adjustment[positive] = -10.0 * np.log10(1.0 + (cutoff_hz / freqs[positive]) ** 4)
    return response.with_db(response.db + adjustment)


def source_listener_distance(source, listener):
    distance = math.dist((source.x, source.y, source.z), (listener.x, listener.y, listener.z))
    return distance or config.MIN_SOURCE_DISTANCE_M


def apply_air_absorption(response, level, source, listener):
    """
    Air absorption loss, ``level`` dB at 20 kHz per meter, rising with f^2.

    Negligible in the bass range but kept for parity with full-range curves.
    """
    if level <= 0 or len(response) == 0:
        return response
    distance = source_listener_distance(source, listener)
    loss = -level * (response.freqs / config.AIR_ABSORPTION_REF_FREQ_HZ) ** 2 * distance
    return response.with_db(response.db + loss)


# === Speaker directivity lookup ===

def db_to_linear(db):
    return 10 ** (db / 20)


def interpolate(x, x1, x2, y1, y2):
    """Linear interpolation between (x1, y1) and (x2, y2); y1 when the bracket is a single point."""
    if x1 == x2:
        return y1
    t = (x - x1) / (x2 - x1)
    return y1 + t * (y2 - y1)


def find_bracket(values, x):
    """
    Indices (lo, hi) of the samples around ``x`` in an ascending list.

    Values outside the range clamp to the first or last index.
    """
    if len(values) == 0:
        return 0, 0
    if len(values) == 1 or x <= values[0]:
        return 0, 0
    if x >= values[-1]:
        last = len(values) - 1
        return last, last
    hi = int(np.searchsorted(values, x, side="right"))
    return hi - 1, hi


@dataclass
class SpeakerData:
    """
    Measured speaker curves: ascending ``freqs`` and named dB curves
    such as "OnAxis" or "ListeningWindow".
    """

    freqs: List[float]
    responses: Dict[str, List[float]]
    metadata: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        return cls(
            freqs=list(data.get("freqs", [])),
            responses={name: list(curve) for name, curve in data.get("responses", {}).items()},
            metadata=dict(data.get("metadata", {})),
        )

    @property
    def name(self):
        return self.metadata.get("name")


def speaker_gain_linear(speaker, freq, curve="ListeningWindow"):
    """
    Linear gain of the speaker's ``curve`` at ``freq``.

    Falls back to 1.0 (flat) when data is missing or inconsistent.
    """
    if speaker is None:
        return 1.0
    values = speaker.responses.get(curve)
    if not values or not speaker.freqs or len(values) != len(speaker.freqs):
        return 1.0
    lo, hi = find_bracket(speaker.freqs, freq)
    db = interpolate(freq, speaker.freqs[lo], speaker.freqs[hi], values[lo], values[hi])
    return db_to_linear(db)


def apply_speaker_directivity(response, speaker, curve="ListeningWindow"):
    """Multiply the response magnitude by the speaker's gain, floored at MIN_DB_VALUE."""
    if speaker is None or len(response) == 0:
        return response
    gains = np.array([speaker_gain_linear(speaker, f, curve) for f in response.freqs])
    magnitude = db_to_linear(response.db) * gains
    db = 20 * np.log10(np.maximum(config.MIN_MAGNITUDE, magnitude))
    return response.with_db(np.maximum(config.MIN_DB_VALUE, db))
