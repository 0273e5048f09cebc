# src/room_mode_eq/analysis/error.py

"""Error between a response and its target curve."""

import logging

import numpy as np

from .. import config
from ..models import ErrorAnalysis, ErrorPoint
from ..utils import mask_frequency_range

logger = logging.getLogger(__name__)


def analyze_error(current, target, tolerance=config.FREQUENCY_MATCH_TOLERANCE_HZ):
    """
    Compare ``current`` against ``target`` point by point.

    Each current point is matched to the nearest target point within
    ``tolerance`` Hz; unmatched points are ignored. The error is
    current - target, so a positive error means too loud.
    """
    if len(current) == 0 or len(target) == 0:
        return ErrorAnalysis()

    target_freqs = target.freqs
    # nearest target index for every current frequency
    idx = np.searchsorted(target_freqs, current.freqs)
    idx = np.clip(idx, 1, len(target_freqs) - 1) if len(target_freqs) > 1 else np.zeros_like(idx)
    left = np.maximum(idx - 1, 0)
    choose_left = np.abs(current.freqs - target_freqs[left]) <= np.abs(current.freqs - target_freqs[idx])
    nearest = np.where(choose_left, left, idx)
    matched = np.abs(current.freqs - target_freqs[nearest]) <= tolerance

    if not np.any(matched):
        return ErrorAnalysis()

    current_db = current.db[matched]
    target_db = target.db[nearest[matched]]
    errors = current_db - target_db
    points = tuple(
        ErrorPoint(float(f), float(e), float(c), float(t))
        for f, e, c, t in zip(current.freqs[matched], errors, current_db, target_db)
    )
    return ErrorAnalysis(
        rms_error=float(np.sqrt(np.mean(errors ** 2))),
        max_error=float(np.max(np.abs(errors))),
        avg_error=float(np.mean(np.abs(errors))),
        per_frequency=points,
    )


def error_curve(current, target, tolerance=config.FREQUENCY_MATCH_TOLERANCE_HZ):
    """Return (freqs, errors) arrays of the matched points."""
    analysis = analyze_error(current, target, tolerance)
    freqs = np.array([p.freq for p in analysis.per_frequency])
    errors = np.array([p.error for p in analysis.per_frequency])
    return freqs, errors


def calculate_optimal_offset(response, target_curve):
    """
    Level offset that aligns the target curve with the response.

    Both curves are averaged over 80-200 Hz; the difference is clamped to
    60-95 dB and rounded to 0.5 dB. Too few points in the window gives 0.
    """
    _, response_db = mask_frequency_range(
        response.freqs, response.db, config.OFFSET_ANALYSIS_MIN_HZ, config.OFFSET_ANALYSIS_MAX_HZ)
    _, target_db = mask_frequency_range(
        target_curve.freqs, target_curve.db, config.OFFSET_ANALYSIS_MIN_HZ, config.OFFSET_ANALYSIS_MAX_HZ)

    if len(response_db) < config.OFFSET_MIN_POINTS or len(target_db) < config.OFFSET_MIN_POINTS:
        logger.warning("Not enough points between %.0f and %.0f Hz to align the target, using offset 0",
                       config.OFFSET_ANALYSIS_MIN_HZ, config.OFFSET_ANALYSIS_MAX_HZ)
        return 0.0

    offset = float(np.mean(response_db) - np.mean(target_db))
    offset = min(max(offset, config.OFFSET_MIN_DB), config.OFFSET_MAX_DB)
    step = config.OFFSET_ROUNDING_DB
    return round(offset / step) * step
