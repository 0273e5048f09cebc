# src/room_mode_eq/optimization/strategy.py

"""
Rules used by the multi-pass EQ generator: pass definitions, per-zone error
thresholds, frequency weighting, band spacing, Q selection and the
allocation of a pass's band budget across frequency zones.

Low frequencies get tighter thresholds, larger weights and tighter spacing
because room modes dominate there.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .. import config


@dataclass(frozen=True)
class PassDefinition:
    number: int
    key: str
    name: str
    budget_share: Optional[float]  # None: whatever budget is left
    scaling: float  # aggressiveness applied to gains and gain limits
    thresholds: Tuple[float, float, float, float, float]  # <40, <80, <150, <schroeder, >=schroeder
    q_multiplier: float
    spacing_factor: float

    def threshold(self, freq, schroeder_freq):
        return self.thresholds[error_zone_index(freq, schroeder_freq)]


PASSES = (
    PassDefinition(1, "broad", "Broad Correction", 0.30, 0.95,
                   (0.4, 0.5, 0.7, 1.0, 1.5), 1.0, 1.0),
    PassDefinition(2, "medium", "Medium Refinement", 0.30, 0.85,
                   (0.3, 0.4, 0.5, 0.7, 1.0), 1.4, 0.85),
    PassDefinition(3, "fine", "Fine Tuning", 0.25, 0.75,
                   (0.2, 0.25, 0.3, 0.4, 0.5), 1.9, 0.7),
    PassDefinition(4, "ultra_fine", "Ultra-Fine Polish", None, 0.6,
                   (0.1, 0.15, 0.2, 0.25, 0.3), 2.5, 0.55),
)

MAX_PASS_SCALING = max(p.scaling for p in PASSES)


class Candidate(NamedTuple):
    freq: float
    error: float
    weighted: float


def error_zone_index(freq, schroeder_freq):
    if freq < 40:
        return 0
    if freq < 80:
        return 1
    if freq < 150:
        return 2
    if freq < schroeder_freq:
        return 3
    return 4


def frequency_weight(freq, schroeder_freq):
    """Priority weight of an error at ``freq``."""
    if freq < 60:
        return 3.0
    # Weights step down at 60 and 100 Hz. A peak centred on a step outweighs
    # itself one bin lower, so a 100 Hz peak gets its cut at 99 Hz.
    if freq < 100:
        return 2.0
    if freq < schroeder_freq:
        return 1.5
    return 1.0


def frequency_scaling(freq, schroeder_freq):
    """Fraction of the error corrected at ``freq``; corrections above the modal region are gentler."""
    if freq < 60:
        return 1.0
    if freq < 100:
        return 0.95
    if freq < schroeder_freq:
        return 0.9
    return 0.8


def pass_budget(pass_def, num_bands, used):
    """Bands available to ``pass_def`` given ``used`` bands from earlier passes."""
    remaining = max(0, num_bands - used)
    if pass_def.budget_share is None:
        return remaining
    return min(remaining, int(math.floor(num_bands * pass_def.budget_share)))


# === Spacing ===

_BASE_SPACING_HZ = (3.0, 5.0, 8.0, 12.0, 18.0)


def min_spacing(freq, pass_def, schroeder_freq):
    """Minimum distance (Hz) between a new band and any placed band."""
    return _BASE_SPACING_HZ[error_zone_index(freq, schroeder_freq)] * pass_def.spacing_factor


def is_well_spaced(freq, placed, pass_def, schroeder_freq):
    spacing = min_spacing(freq, pass_def, schroeder_freq)
    return all(abs(freq - other) >= spacing for other in placed)


# === Q selection ===

_BASE_Q = (2.0, 3.0, 4.0, 5.0, 6.0)
_Q_WINDOWS = ((0.7, 6.0), (1.0, 10.0), (1.2, 12.0), (1.5, 14.0), (1.5, 16.0))


def error_q_adjustment(error_magnitude):
    if error_magnitude >= 6.0:
        return 1.2
    if error_magnitude >= 3.0:
        return 1.1
    if error_magnitude >= 1.5:
        return 1.05
    if error_magnitude < 0.5:
        return 0.8
    return 0.95


def compute_q(freq, pass_def, error_magnitude, total_bands, schroeder_freq):
    """
    Q for a band at ``freq``.

    Rises with frequency and with the pass number, is ~40% lower for small
    band budgets, is nudged by the size of the error and finally limited to
    the window of its frequency zone.
    """
    zone = error_zone_index(freq, schroeder_freq)
    q = _BASE_Q[zone] * pass_def.q_multiplier
    if total_bands <= config.SMALL_BAND_BUDGET:
        q *= config.SMALL_BUDGET_Q_FACTOR
    q *= error_q_adjustment(error_magnitude)
    q_min, q_max = _Q_WINDOWS[zone]
    return min(max(q, q_min), q_max)


# === Frequency distribution ===

@dataclass(frozen=True)
class FrequencyZone:
    name: str
    low: float
    high: float

    def contains(self, freq):
        return self.low <= freq < self.high


# Share of a pass budget per zone: (small budget, large budget)
_ZONE_SHARES = {
    "Deep Bass": (0.15, 0.20),
    "Bass Modes": (0.30, 0.35),
    "Upper Bass": (0.25, 0.25),
    "Modal Transition": (0.15, 0.12),
    "Speaker Region": (0.15, 0.08),
}


def distribution_zones(schroeder_freq):
    transition_end = max(150.0, schroeder_freq)
    return (
        FrequencyZone("Deep Bass", 0.0, 40.0),
        FrequencyZone("Bass Modes", 40.0, 80.0),
        FrequencyZone("Upper Bass", 80.0, 150.0),
        FrequencyZone("Modal Transition", 150.0, transition_end),
        FrequencyZone("Speaker Region", transition_end, math.inf),
    )


def zone_for(freq, zones):
    for zone in zones:
        if zone.contains(freq):
            return zone.name
    return zones[-1].name


def zone_caps(budget, total_bands, zones):
    """Per-zone band caps; small total budgets spread bands more evenly."""
    column = 0 if total_bands <= config.SMALL_BAND_BUDGET else 1
    return {zone.name: max(1, int(math.ceil(_ZONE_SHARES[zone.name][column] * budget)))
            for zone in zones}


def select_frequencies(candidates, budget, placed, pass_def, total_bands, schroeder_freq):
    """
    Choose up to ``budget`` candidate frequencies for a pass.

    Candidates must be sorted by descending weighted error. Low-frequency
    errors above PRIORITY_ERROR_DB are claimed first; the rest fill their
    zone up to its cap. Every choice keeps the minimum spacing to all bands
    placed so far, including those of earlier passes.
    """
    if budget <= 0:
        return []
    zones = distribution_zones(schroeder_freq)
    caps = zone_caps(budget, total_bands, zones)
    counts = {zone.name: 0 for zone in zones}
    taken = list(placed)
    selected = []

    def accept(candidate):
        selected.append(candidate)
        taken.append(candidate.freq)
        counts[zone_for(candidate.freq, zones)] += 1

    for candidate in candidates:
        if len(selected) >= budget:
            return selected
        if (candidate.freq < config.PRIORITY_MAX_FREQ_HZ
                and abs(candidate.error) > config.PRIORITY_ERROR_DB
                and is_well_spaced(candidate.freq, taken, pass_def, schroeder_freq)):
            accept(candidate)

    for candidate in candidates:
        if len(selected) >= budget:
            break
        if candidate in selected:
            continue
        zone = zone_for(candidate.freq, zones)
        if counts[zone] >= caps[zone]:
            continue
        if is_well_spaced(candidate.freq, taken, pass_def, schroeder_freq):
            accept(candidate)

    return selected
