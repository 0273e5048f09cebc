# tests/test_acoustics.py

import numpy as np
import pytest

from conftest import flat_response
from room_mode_eq.models import Point, RoomDimensions
from room_mode_eq.simulation.acoustics import (
    SpeakerData,
    SurfaceAbsorption,
    apply_air_absorption,
    apply_lf_rolloff,
    apply_speaker_directivity,
    apply_spectral_tilt,
    calibrate_level,
    clamp_to_room,
    estimate_modal_q,
    find_bracket,
    sabine_rt60,
    schroeder_frequency,
    speaker_gain_linear,
)


@pytest.fixture
def room():
    return RoomDimensions(5.0, 5.0, 3.0)


@pytest.fixture
def speaker():
    return SpeakerData.from_dict({
        "freqs": [20.0, 40.0, 80.0],
        "responses": {"ListeningWindow": [0.0, 2.0, 4.0], "OnAxis": [0.0, 0.0]},
        "metadata": {"name": "Test Sub"},
    })


class TestRoomGeometry:

    def test_clamp_to_room(self, room):
        assert clamp_to_room(Point(-1.0, 2.0, 9.0), room) == Point(0.0, 2.0, 3.0)
        assert clamp_to_room(Point(6.0, -0.5, 1.0), room) == Point(5.0, 0.0, 1.0)
        assert clamp_to_room(Point(1.0, 1.0, 1.0), room) == Point(1.0, 1.0, 1.0)

    def test_modal_q_from_absorption(self, room):
        absorption = SurfaceAbsorption(*([0.1] * 6))
        assert estimate_modal_q(room, absorption, furniture_factor=0.0) == pytest.approx(10.0)
        assert estimate_modal_q(room, absorption, furniture_factor=1.0) == pytest.approx(3.0)
        assert estimate_modal_q(room, absorption, furniture_factor=0.5) == pytest.approx(6.5)

    def test_modal_q_is_bounded(self, room):
        dead = SurfaceAbsorption(*([1.0] * 6))
        assert estimate_modal_q(room, dead, furniture_factor=1.0) == 1.0
        live = SurfaceAbsorption(*([0.01] * 6))
        assert estimate_modal_q(room, live, furniture_factor=0.0) == pytest.approx(50.0)

    def test_master_adjust_is_clamped_per_surface(self):
        absorption = SurfaceAbsorption(front=0.5)
        assert absorption.effective("front", 0.8) == 1.0
        assert absorption.effective("back", -0.5) == 0.01

    def test_without_absorption_uses_default_q(self, room):
        assert estimate_modal_q(room, None, furniture_factor=0.0) == pytest.approx(10.0)

    def test_sabine_and_schroeder(self, room):
        absorption = SurfaceAbsorption(*([0.1] * 6))
        assert sabine_rt60(room, absorption) == pytest.approx(1.0977, abs=1e-4)
        assert schroeder_frequency(room, absorption) == pytest.approx(241.96, abs=0.01)

    def test_degenerate_room_falls_back(self):
        flat = RoomDimensions(5.0, 0.0, 3.0)
        absorption = SurfaceAbsorption()
        assert sabine_rt60(flat, absorption) == 0.0
        assert schroeder_frequency(flat, absorption) == 200.0


class TestResponseAdjustments:

    def test_calibrate_level(self):
        response = flat_response(0.0)
        assert np.all(calibrate_level(response, 65.0).db == 65.0)

    def test_lf_rolloff_at_cutoff(self):
        response = flat_response(0.0)
        rolled = apply_lf_rolloff(response, 30.0)
        idx = int(np.where(response.freqs == 30.0)[0][0])
        assert rolled.db[idx] == pytest.approx(-3.0103, abs=1e-4)
        assert rolled.db[-1] > -0.01
        assert apply_lf_rolloff(response, None) is response

    def test_spectral_tilt(self):
        response = flat_response(0.0)
        tilted = apply_spectral_tilt(response, -3.0)
        idx = int(np.where(response.freqs == 40.0)[0][0])
        assert tilted.db[0] == pytest.approx(0.0)
        assert tilted.db[idx] == pytest.approx(-3.0)
        assert apply_spectral_tilt(response, 0) is response

    def test_air_absorption_is_small_in_bass(self):
        response = flat_response(0.0)
        absorbed = apply_air_absorption(response, 1.0, Point(0, 0, 0), Point(3, 4, 0))
        # 5 m at 300 Hz: 1 * (300 / 20000)^2 * 5
        assert absorbed.db[-1] == pytest.approx(-(300 / 20000) ** 2 * 5)
        assert np.all(absorbed.db <= 0.0)
        assert apply_air_absorption(response, 0.0, Point(0, 0, 0), Point(3, 4, 0)) is response

    def test_input_is_not_modified(self):
        response = flat_response(1.0)
        apply_spectral_tilt(response, 6.0)
        apply_lf_rolloff(response, 40.0)
        assert np.all(response.db == 1.0)


class TestSpeakerDirectivity:

    def test_find_bracket(self):
        values = [20.0, 40.0, 80.0]
        assert find_bracket(values, 10.0) == (0, 0)
        assert find_bracket(values, 40.0) == (1, 2)
        assert find_bracket(values, 60.0) == (1, 2)
        assert find_bracket(values, 90.0) == (2, 2)
        assert find_bracket([], 10.0) == (0, 0)

    def test_gain_interpolation_and_edges(self, speaker):
        assert speaker_gain_linear(speaker, 60.0) == pytest.approx(1.4125, abs=1e-4)
        assert speaker_gain_linear(speaker, 10.0) == pytest.approx(1.0)
        assert speaker_gain_linear(speaker, 200.0) == pytest.approx(10 ** (4 / 20))

    def test_missing_or_inconsistent_data_is_flat(self, speaker):
        assert speaker_gain_linear(None, 60.0) == 1.0
        assert speaker_gain_linear(speaker, 60.0, curve="SoundPower") == 1.0
        assert speaker_gain_linear(speaker, 60.0, curve="OnAxis") == 1.0

    def test_apply_directivity(self, speaker):
        response = flat_response(0.0)
        adjusted = apply_speaker_directivity(response, speaker)
        idx = int(np.where(response.freqs == 60.0)[0][0])
        assert adjusted.db[idx] == pytest.approx(3.0)
        assert adjusted.db[-1] == pytest.approx(4.0)
        assert speaker.name == "Test Sub"
        assert apply_speaker_directivity(response, None) is response
