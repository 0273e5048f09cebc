# src/room_mode_eq/optimization/filters.py

"""
Parametric (bell) filter bank evaluated in the frequency domain.

No audio is filtered; only the magnitude response of the band set is
modeled and added to a response curve in dB.
"""

import numpy as np

from .. import config


# === Filter Functions ===
def bell_filter_db(f, band):
    """
    Magnitude in dB of a single bell filter at frequencies ``f``:

        H(f) = 1 + (10^(gain/20) - 1) / (1 + (Q * (f/f0 - f0/f))^2)

    Non-finite or non-positive intermediate values contribute 0 dB, and the
    result is limited to the per-band safety window.
    """
    f = np.asarray(f, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        detune = band.q * (f / band.frequency - band.frequency / f)
        h = 1.0 + (10 ** (band.gain / 20.0) - 1.0) / (1.0 + detune ** 2)
        valid = np.isfinite(h) & (h > 0)
        db = np.zeros_like(f)
        db[valid] = 20.0 * np.log10(h[valid])
    db[~np.isfinite(db)] = 0.0
    return np.clip(db, config.BAND_CONTRIBUTION_MIN_DB, config.BAND_CONTRIBUTION_MAX_DB)


def compute_eq_curve(f, bands):
    """
    Sum the contributions of all bands to obtain the total EQ correction (in dB).
    """
    eq_total = np.zeros_like(np.asarray(f, dtype=float))
    for band in bands:
        eq_total += bell_filter_db(f, band)
    return eq_total


def apply_eq(response, eq_settings):
    """
    Apply ``eq_settings`` to ``response`` and return the corrected curve.

    A disabled or empty band set returns the response unchanged. Otherwise
    the summed result is limited to [EQ_RESULT_MIN_DB, EQ_RESULT_MAX_DB].
    """
    if not eq_settings.enabled or not eq_settings.bands or len(response) == 0:
        return response
    return apply_bands(response, eq_settings.bands)


def apply_bands(response, bands):
    """Apply a plain band list (always enabled)."""
    if not bands or len(response) == 0:
        return response
    corrected = response.db + compute_eq_curve(response.freqs, bands)
    return response.with_db(np.clip(corrected, config.EQ_RESULT_MIN_DB, config.EQ_RESULT_MAX_DB))
