# src/room_mode_eq/utils.py

"""
Utility functions for frequency grids, curve lookup, smoothing and the target curve.
"""

import numpy as np
from scipy.ndimage import uniform_filter1d

from . import config
from .models import FrequencyResponse


def frequency_grid():
    """Return the analysis grid (FREQUENCY_MIN_HZ .. FREQUENCY_MAX_HZ inclusive)."""
    return np.arange(config.FREQUENCY_MIN_HZ,
                     config.FREQUENCY_MAX_HZ + config.FREQUENCY_STEP_HZ,
                     config.FREQUENCY_STEP_HZ, dtype=float)


def lookup_db(response, freq, tolerance=config.FREQUENCY_MATCH_TOLERANCE_HZ):
    """
    Return the dB value of the point nearest to ``freq``.

    Returns None when the response is empty or the nearest point is further
    than ``tolerance`` Hz away.
    """
    if len(response) == 0:
        return None
    idx = int(np.argmin(np.abs(response.freqs - freq)))
    if abs(response.freqs[idx] - freq) > tolerance:
        return None
    return float(response.db[idx])


def mask_frequency_range(freqs, data, f_min, f_max):
    """
    Keep the samples with f_min <= freq <= f_max.
    Returns (freqs_masked, data_masked).
    """
    freqs = np.asarray(freqs)
    data = np.asarray(data)
    mask = (freqs >= f_min) & (freqs <= f_max)
    return freqs[mask], data[mask]


def smooth_moving_average(values, half_window=config.SMOOTHING_HALF_WINDOW):
    """Symmetric moving average over +/- half_window points, edges padded with the edge value."""
    values = np.asarray(values, dtype=float)
    if values.size == 0 or half_window <= 0:
        return values.copy()
    return uniform_filter1d(values, size=2 * half_window + 1, mode="nearest")


# === Target Curve ===

def target_db(freq, rolloff_freq=None, rolloff_slope_db_per_oct=config.DEFAULT_ROLLOFF_SLOPE_DB_PER_OCT):
    """
    Harman-like preference curve in dB at a single frequency.

    +7 dB up to 20 Hz, linear to +4 dB at 60 Hz, to 0 dB at 200 Hz,
    to -1 dB at 300 Hz and flat beyond. When ``rolloff_freq`` is given,
    frequencies below it are attenuated by ``slope * log2(rolloff_freq / freq)``.
    """
    points = config.TARGET_BREAKPOINTS
    if freq <= points[0][0]:
        level = points[0][1]
    elif freq > points[-1][0]:
        level = points[-1][1]
    else:
        level = points[-1][1]
        for (f1, db1), (f2, db2) in zip(points, points[1:]):
            if freq <= f2:
                level = db1 + (freq - f1) / (f2 - f1) * (db2 - db1)
                break

    if rolloff_freq and freq > 0 and freq < rolloff_freq:
        level -= rolloff_slope_db_per_oct * np.log2(rolloff_freq / freq)
    return float(level)


def generate_target_curve(freqs, offset_db=0.0, rolloff_freq=None,
                          rolloff_slope_db_per_oct=config.DEFAULT_ROLLOFF_SLOPE_DB_PER_OCT):
    """
    Build the target curve on the given grid, shifted by ``offset_db``.

    The shape never depends on the room; ``offset_db`` only aligns its level
    with the simulated response (see analysis.error.calculate_optimal_offset).
    """
    freqs = np.asarray(freqs, dtype=float)
    if freqs.size == 0:
        return FrequencyResponse.empty()
    db = [target_db(f, rolloff_freq, rolloff_slope_db_per_oct) + offset_db for f in freqs]
    return FrequencyResponse(freqs, np.array(db))
