# src/room_mode_eq/analysis/features.py

"""
Peak and dip detection on a frequency response.

Features are ephemeral: the EQ generator recomputes them on every pass
from the response it is currently correcting.
"""

import numpy as np

from .. import config
from ..models import DetectedFeature
from ..utils import smooth_moving_average


def _prominence_threshold(freq, schroeder_freq, is_peak):
    if is_peak:
        if freq < schroeder_freq:
            return config.PEAK_PROMINENCE_BELOW_SCHROEDER_DB
        return config.PEAK_PROMINENCE_ABOVE_SCHROEDER_DB
    if freq < schroeder_freq:
        return config.DIP_PROMINENCE_BELOW_SCHROEDER_DB
    return config.DIP_PROMINENCE_ABOVE_SCHROEDER_DB


def _crossing(freqs, levels, idx, step, threshold, is_peak):
    """
    Walk from ``idx`` in direction ``step`` until the level crosses ``threshold``.

    Returns the interpolated crossing frequency, or the edge frequency when
    the curve never crosses.
    """
    i = idx
    while 0 <= i + step < len(levels):
        nxt = i + step
        crossed = levels[nxt] <= threshold if is_peak else levels[nxt] >= threshold
        if crossed:
            span = levels[nxt] - levels[i]
            if span == 0:
                return float(freqs[nxt])
            t = (threshold - levels[i]) / span
            return float(freqs[i] + t * (freqs[nxt] - freqs[i]))
        i = nxt
    return float(freqs[i])


def estimate_width(freqs, levels, idx, is_peak, drop_db=config.FEATURE_WIDTH_DROP_DB):
    """Width in Hz between the points where the level is ``drop_db`` below a peak (above a dip)."""
    threshold = levels[idx] - drop_db if is_peak else levels[idx] + drop_db
    left = _crossing(freqs, levels, idx, -1, threshold, is_peak)
    right = _crossing(freqs, levels, idx, 1, threshold, is_peak)
    return right - left


def detect_features(response, schroeder_freq=config.DEFAULT_SCHROEDER_FREQ_HZ,
                    neighborhood=config.FEATURE_NEIGHBORHOOD):
    """
    Find peaks and dips in ``response``.

    The curve is smoothed with a +/-3 point moving average, then every strict
    local extremum over +/- ``neighborhood`` points is a candidate. Its
    prominence is the distance to the opposite extreme of that neighborhood,
    and it is kept only above a zone-dependent threshold. Peaks below the
    Schroeder frequency are "mode", above it "resonance"; dips are "dip".

    Returns:
        List of DetectedFeature sorted by descending prominence.
    """
    n = len(response)
    if n < 2 * neighborhood + 1:
        return []

    freqs = response.freqs
    levels = smooth_moving_average(response.db)
    features = []

    for i in range(neighborhood, n - neighborhood):
        window = np.concatenate((levels[i - neighborhood:i], levels[i + 1:i + neighborhood + 1]))
        level = levels[i]
        freq = float(freqs[i])

        if level > window.max():
            is_peak = True
            prominence = level - window.min()
        elif level < window.min():
            is_peak = False
            prominence = window.max() - level
        else:
            continue

        if prominence <= _prominence_threshold(freq, schroeder_freq, is_peak):
            continue

        if is_peak:
            kind = "mode" if freq < schroeder_freq else "resonance"
        else:
            kind = "dip"

        features.append(DetectedFeature(
            frequency=freq,
            amplitude=float(response.db[i]),
            prominence=float(prominence),
            width=estimate_width(freqs, levels, i, is_peak),
            type=kind,
        ))

    features.sort(key=lambda feat: feat.prominence, reverse=True)
    return features


def is_deep_null(features, freq,
                 min_prominence=config.NULL_MIN_PROMINENCE_DB,
                 max_width=config.NULL_MAX_WIDTH_HZ,
                 distance=config.NULL_MATCH_DISTANCE_HZ):
    """True when ``freq`` sits on a narrow, deep dip that a boost cannot economically fill."""
    for feat in features:
        if (feat.type == "dip" and abs(feat.frequency - freq) <= distance
                and feat.prominence >= min_prominence and feat.width <= max_width):
            return True
    return False
