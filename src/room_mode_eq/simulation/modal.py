# src/room_mode_eq/simulation/modal.py

"""
Modal (standing-wave) response of a rectangular room.

The pressure at the listener is the complex sum over the room eigenmodes
(n, m, l). Each mode is a second order resonator whose contribution is
weighted by how strongly both the source and the listener couple to it.
Summing real and imaginary parts before taking the magnitude keeps the
destructive-interference nulls that a dB sum would lose.
"""

import logging
import math

import numpy as np

from .. import config
from ..models import FrequencyResponse
from ..utils import frequency_grid

logger = logging.getLogger(__name__)


def _safe_dimension(value):
    return config.DIMENSION_EPSILON if value == 0 else value


def calculate_mode_pressure(n, m, l, pos, room):
    """
    Pressure term of mode (n, m, l) at ``pos``.

    The x axis is mirrored (x_eff = L - x); positions are measured from the
    opposite wall in that direction.
    """
    lx = _safe_dimension(room.L)
    wy = _safe_dimension(room.W)
    hz = _safe_dimension(room.H)
    effective_x = lx - pos.x
    return (math.cos(n * math.pi * effective_x / lx)
            * math.cos(m * math.pi * pos.y / wy)
            * math.cos(l * math.pi * pos.z / hz))


def mode_frequency(n, m, l, room, speed_of_sound=config.SPEED_OF_SOUND):
    """Natural frequency of mode (n, m, l) in Hz. Axes with a zero dimension contribute nothing."""
    term_l = 0.0 if room.L == 0 else n / room.L
    term_w = 0.0 if room.W == 0 else m / room.W
    term_h = 0.0 if room.H == 0 else l / room.H
    return (speed_of_sound / 2.0) * math.sqrt(term_l ** 2 + term_w ** 2 + term_h ** 2)


def effective_mode_q(f_mode, base_q_factor):
    """Low modes ring longer: Q x2 below 80 Hz, x1.5 up to 150 Hz, floored at 1."""
    multiplier = 1.0
    if 0 < f_mode < 80:
        multiplier = config.LOW_MODE_Q_MULTIPLIER
    elif 80 <= f_mode < 150:
        multiplier = config.MID_MODE_Q_MULTIPLIER
    return max(1.0, base_q_factor * multiplier)


def classify_mode(n, m, l):
    nonzero = sum(1 for idx in (n, m, l) if idx != 0)
    return {1: "axial", 2: "tangential", 3: "oblique"}.get(nonzero, "dc")


def list_room_modes(room, max_order=config.DEFAULT_MAX_MODE_ORDER, max_freq=config.FREQUENCY_MAX_HZ):
    """
    List the eigenmodes of the room up to ``max_freq``.

    Returns a list of dicts {"n", "m", "l", "frequency", "kind"} sorted by frequency.
    """
    modes = []
    for n, m, l in _mode_indices(room, max_order):
        f_mode = mode_frequency(n, m, l, room)
        if 0 < f_mode <= max_freq:
            modes.append({"n": n, "m": m, "l": l, "frequency": f_mode, "kind": classify_mode(n, m, l)})
    modes.sort(key=lambda mode: mode["frequency"])
    return modes


def _mode_indices(room, max_order):
    for n in range(max_order + 1):
        if room.L == 0 and n != 0:
            continue
        for m in range(max_order + 1):
            if room.W == 0 and m != 0:
                continue
            for l in range(max_order + 1):
                if room.H == 0 and l != 0:
                    continue
                if n == 0 and m == 0 and l == 0:
                    continue
                yield n, m, l


def _coupled_modes(source, listener, room, max_order, base_q_factor):
    """
    Collect (f_mode, effective_q, coupling) for every mode that contributes.

    Coupling depends only on geometry, so it is computed once per mode
    instead of once per frequency.
    """
    prune_above = config.FREQUENCY_MAX_HZ * config.MODE_PRUNE_FREQ_RATIO
    prune_index = config.MODE_PRUNE_MIN_INDEX
    modes = []
    for n, m, l in _mode_indices(room, max_order):
        f_mode = mode_frequency(n, m, l, room)
        if f_mode == 0:
            continue
        if f_mode > prune_above and n > prune_index and m > prune_index and l > prune_index:
            continue

        coupling = (calculate_mode_pressure(n, m, l, source, room)
                    * calculate_mode_pressure(n, m, l, listener, room))
        if abs(coupling) < config.COUPLING_EPSILON:
            continue

        modes.append((f_mode, effective_mode_q(f_mode, base_q_factor), coupling))
    return modes


def simulate_room_response(source, listener, room,
                           max_mode_order=config.DEFAULT_MAX_MODE_ORDER,
                           base_q_factor=config.DEFAULT_Q_FACTOR):
    """
    Simulate the summed modal response between ``source`` and ``listener``.

    Args:
        source: Point of the subwoofer
        listener: Point of the listening position
        room: RoomDimensions
        max_mode_order: Highest index used for n, m and l
        base_q_factor: Modal Q before the low-frequency multipliers

    Returns:
        FrequencyResponse on the 20..300 Hz grid, every value >= MIN_DB_VALUE.
    """
    freqs = frequency_grid()
    modes = _coupled_modes(source, listener, room, max_mode_order, base_q_factor)
    logger.debug("Simulating %d coupled modes over %d frequencies", len(modes), len(freqs))

    total_real = np.zeros_like(freqs)
    total_imag = np.zeros_like(freqs)
    for f_mode, q, coupling in modes:
        ratio = freqs / f_mode
        damping = ratio / q
        resonance = 1.0 - ratio ** 2
        amplitude = 1.0 / np.sqrt(resonance ** 2 + damping ** 2)
        phase = np.arctan2(-damping, resonance)
        total_real += coupling * amplitude * np.cos(phase)
        total_imag += coupling * amplitude * np.sin(phase)

    magnitude = np.sqrt(total_real ** 2 + total_imag ** 2)
    db = np.full_like(freqs, config.MIN_DB_VALUE)
    audible = magnitude > config.MIN_MAGNITUDE
    db[audible] = 20.0 * np.log10(magnitude[audible])
    db = np.maximum(db, config.MIN_DB_VALUE)
    return FrequencyResponse(freqs, db)
