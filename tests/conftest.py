# tests/conftest.py

import os

import numpy as np
import pytest

# The worker tests create Qt objects; no display is needed.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from room_mode_eq.models import EQBand, FrequencyResponse, Point, RoomDimensions
from room_mode_eq.optimization.filters import apply_bands
from room_mode_eq.utils import frequency_grid


def flat_response(level=75.0):
    freqs = frequency_grid()
    return FrequencyResponse(freqs, np.full_like(freqs, level))


def response_with_peak(freq=100.0, gain=10.0, q=5.0, level=75.0):
    """Flat response with a single resonance-shaped peak (or dip for negative gain)."""
    return apply_bands(flat_response(level), [EQBand(freq, gain, q)])


@pytest.fixture
def reference_room():
    return RoomDimensions(L=4.8, W=4.8, H=2.7)


@pytest.fixture
def reference_source():
    return Point(0.38, 0.25, 0.83)


@pytest.fixture
def reference_listener():
    return Point(2.0, 3.70, 0.55)
