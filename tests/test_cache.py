# tests/test_cache.py

import threading
from unittest.mock import patch

import numpy as np
import pytest

from room_mode_eq.models import FrequencyResponse, Point, RoomDimensions
from room_mode_eq.simulation.cache import RoomSimulator, SimulationCache, make_cache_key


def _response(value):
    return FrequencyResponse(np.array([20.0, 21.0]), np.array([value, value]))


class TestCacheKey:

    def test_rounding_collapses_nearby_inputs(self):
        room = RoomDimensions(5, 4, 3)
        a = make_cache_key(Point(1.0, 1.0, 1.0), Point(2.0, 2.0, 1.0), room, 10, 10)
        b = make_cache_key(Point(1.0001, 1.0, 1.0), Point(2.0, 2.0, 1.0), room, 10, 10)
        assert a == b

    def test_distinct_inputs_give_distinct_keys(self):
        room = RoomDimensions(5, 4, 3)
        a = make_cache_key(Point(1.0, 1.0, 1.0), Point(2.0, 2.0, 1.0), room, 10, 10)
        b = make_cache_key(Point(1.0, 1.0, 1.0), Point(2.0, 2.0, 1.0), room, 12, 10)
        c = make_cache_key(Point(1.0, 1.0, 1.0), Point(2.0, 2.0, 1.0), room, 10, 8)
        assert len({a, b, c}) == 3


class TestSimulationCache:

    def test_evicts_oldest_half_when_full(self):
        cache = SimulationCache(max_size=4)
        for i in range(5):
            cache.put(f"k{i}", _response(i))
        assert len(cache) == 3
        assert "k0" not in cache
        assert "k1" not in cache
        assert cache.stats()["keys"] == ["k2", "k3", "k4"]

    def test_updating_existing_key_does_not_evict(self):
        cache = SimulationCache(max_size=2)
        cache.put("a", _response(1))
        cache.put("b", _response(2))
        cache.put("a", _response(3))
        assert len(cache) == 2
        assert cache.get("a").db[0] == 3

    def test_clear_and_stats(self):
        cache = SimulationCache(max_size=3)
        cache.put("a", _response(1))
        assert cache.stats() == {"size": 1, "keys": ["a"]}
        cache.clear()
        assert cache.stats() == {"size": 0, "keys": []}
        assert cache.get("a") is None

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SimulationCache(max_size=0)

    def test_concurrent_puts_respect_bound(self):
        cache = SimulationCache(max_size=10)

        def fill(prefix):
            for i in range(50):
                cache.put(f"{prefix}-{i}", _response(i))

        threads = [threading.Thread(target=fill, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert 1 <= len(cache) <= 10


class TestRoomSimulator:

    def test_repeated_simulation_is_cached(self, reference_room, reference_source, reference_listener):
        simulator = RoomSimulator(SimulationCache(max_size=4))
        first = simulator.simulate(reference_source, reference_listener, reference_room, 6, 10)
        with patch("room_mode_eq.simulation.cache.simulate_room_response") as mock_simulate:
            second = simulator.simulate(reference_source, reference_listener, reference_room, 6, 10)
            mock_simulate.assert_not_called()
        assert second is first
        assert simulator.get_cache_stats()["size"] == 1

    def test_cached_response_cannot_be_mutated(self, reference_room, reference_source, reference_listener):
        simulator = RoomSimulator()
        response = simulator.simulate(reference_source, reference_listener, reference_room, 4, 10)
        with pytest.raises(ValueError):
            response.db[10] = 0.0
        again = simulator.simulate(reference_source, reference_listener, reference_room, 4, 10)
        assert again == response

    def test_clear_cache_forces_resimulation(self, reference_room, reference_source, reference_listener):
        simulator = RoomSimulator()
        simulator.simulate(reference_source, reference_listener, reference_room, 4, 10)
        simulator.clear_cache()
        assert simulator.get_cache_stats()["size"] == 0
        with patch("room_mode_eq.simulation.cache.simulate_room_response",
                   return_value=_response(0.0)) as mock_simulate:
            simulator.simulate(reference_source, reference_listener, reference_room, 4, 10)
            mock_simulate.assert_called_once()
