# tests/test_simulation.py

import math

import numpy as np
import pytest

from room_mode_eq import config
from room_mode_eq.models import Point, RoomDimensions
from room_mode_eq.simulation.modal import (
    calculate_mode_pressure,
    effective_mode_q,
    list_room_modes,
    mode_frequency,
    simulate_room_response,
)


class TestModePressure:
    """Pressure terms and natural frequencies of individual modes."""

    def test_x_axis_is_mirrored(self):
        room = RoomDimensions(4.0, 3.0, 2.5)
        # first axial length mode: cos(pi * (L - x) / L)
        at_origin = calculate_mode_pressure(1, 0, 0, Point(0.0, 0.0, 0.0), room)
        at_far_wall = calculate_mode_pressure(1, 0, 0, Point(4.0, 0.0, 0.0), room)
        assert at_origin == pytest.approx(-1.0)
        assert at_far_wall == pytest.approx(1.0)

    def test_y_and_z_are_not_mirrored(self):
        room = RoomDimensions(4.0, 3.0, 2.5)
        assert calculate_mode_pressure(0, 1, 0, Point(0.0, 0.0, 0.0), room) == pytest.approx(1.0)
        assert calculate_mode_pressure(0, 0, 1, Point(0.0, 0.0, 2.5), room) == pytest.approx(-1.0)

    def test_mode_frequency_of_first_axial_mode(self):
        room = RoomDimensions(4.8, 4.8, 2.7)
        assert mode_frequency(1, 0, 0, room) == pytest.approx(343.0 / (2 * 4.8))
        assert mode_frequency(0, 0, 1, room) == pytest.approx(343.0 / (2 * 2.7))

    def test_zero_dimension_contributes_no_modes(self):
        room = RoomDimensions(5.0, 0.0, 3.0)
        assert mode_frequency(0, 3, 0, room) == 0.0
        modes = list_room_modes(room, max_order=3)
        assert modes
        assert all(mode["m"] == 0 for mode in modes)

    def test_list_room_modes_sorted_and_classified(self):
        room = RoomDimensions(4.8, 4.8, 2.7)
        modes = list_room_modes(room, max_order=4, max_freq=120)
        freqs = [mode["frequency"] for mode in modes]
        assert freqs == sorted(freqs)
        assert modes[0]["kind"] == "axial"
        assert modes[0]["frequency"] == pytest.approx(35.73, abs=0.01)
        assert {mode["kind"] for mode in modes} <= {"axial", "tangential", "oblique"}

    def test_effective_q_multipliers(self):
        assert effective_mode_q(50, 10) == 20
        assert effective_mode_q(100, 10) == 15
        assert effective_mode_q(200, 10) == 10
        assert effective_mode_q(200, 0.2) == 1.0


class TestSimulateRoomResponse:
    """Summed modal response between a source and a listener."""

    def test_grid_and_floor(self, reference_room, reference_source, reference_listener):
        response = simulate_room_response(reference_source, reference_listener, reference_room, 10, 10)
        assert len(response) == (300 - 20) // 1 + 1 == 281
        assert response.freqs[0] == 20
        assert response.freqs[-1] == 300
        assert np.all(response.db >= config.MIN_DB_VALUE)
        assert np.all(np.isfinite(response.db))

    def test_swapping_source_and_listener_is_symmetric(self, reference_room, reference_source,
                                                       reference_listener):
        forward = simulate_room_response(reference_source, reference_listener, reference_room, 8, 10)
        backward = simulate_room_response(reference_listener, reference_source, reference_room, 8, 10)
        np.testing.assert_allclose(forward.db, backward.db, rtol=0, atol=1e-9)

    def test_response_has_modal_structure(self, reference_room, reference_source, reference_listener):
        response = simulate_room_response(reference_source, reference_listener, reference_room, 10, 10)
        # standing waves give a far from flat curve
        assert np.ptp(response.db) > 10.0

    def test_higher_q_gives_sharper_response(self, reference_room, reference_source, reference_listener):
        damped = simulate_room_response(reference_source, reference_listener, reference_room, 6, 2)
        ringing = simulate_room_response(reference_source, reference_listener, reference_room, 6, 20)
        assert np.ptp(ringing.db) > np.ptp(damped.db)

    def test_degenerate_room_does_not_fail(self):
        response = simulate_room_response(Point(1, 1, 1), Point(2, 2, 1), RoomDimensions(5.0, 0.0, 3.0), 4, 10)
        assert len(response) == 281
        assert np.all(response.db >= config.MIN_DB_VALUE)

    def test_all_zero_room_is_floor(self):
        response = simulate_room_response(Point(0, 0, 0), Point(0, 0, 0), RoomDimensions(0.0, 0.0, 0.0), 3, 10)
        assert np.all(response.db == config.MIN_DB_VALUE)

    def test_result_is_read_only(self, reference_room, reference_source, reference_listener):
        response = simulate_room_response(reference_source, reference_listener, reference_room, 4, 10)
        with pytest.raises(ValueError):
            response.db[0] = 0.0

    def test_low_mode_order_still_uses_first_mode(self):
        room = RoomDimensions(4.8, 4.8, 2.7)
        # source and listener at opposite ends of the length axis couple to (1, 0, 0)
        response = simulate_room_response(Point(0.0, 2.4, 1.35), Point(4.8, 2.4, 1.35), room, 1, 10)
        first_mode = 343.0 / (2 * 4.8)
        peak_freq = response.freqs[int(np.argmax(response.db))]
        assert math.isclose(peak_freq, first_mode, abs_tol=1.5)
