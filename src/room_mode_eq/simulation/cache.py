# src/room_mode_eq/simulation/cache.py

"""
Memoization of simulated room responses.

The cache is an explicit object rather than module state, so each caller
(or each worker thread) can own one. Eviction is coarse: when the bound is
hit, the oldest half of the entries is dropped in one go.
"""

import json
import logging
import threading
from collections import OrderedDict

from .. import config
from .modal import simulate_room_response

logger = logging.getLogger(__name__)


def make_cache_key(source, listener, room, max_mode_order, base_q_factor,
                   decimals=config.CACHE_KEY_DECIMALS):
    """Serialize the rounded simulation arguments into a stable string key."""
    def r(value):
        return round(float(value), decimals)

    key = [
        [r(source.x), r(source.y), r(source.z)],
        [r(listener.x), r(listener.y), r(listener.z)],
        [r(room.L), r(room.W), r(room.H)],
        int(max_mode_order),
        r(base_q_factor),
    ]
    return json.dumps(key)


class SimulationCache:
    """
    Bounded map of cache key -> FrequencyResponse.

    Stored responses are immutable, so a hit returns the stored object as-is.
    Access is serialized with a lock.
    """

    def __init__(self, max_size=config.CACHE_MAX_SIZE):
        if max_size < 1:
            raise ValueError("Cache size must be at least 1.")
        self.max_size = max_size
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self._entries.get(key)

    def put(self, key, response):
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_oldest_half()
            self._entries[key] = response

    def _evict_oldest_half(self):
        drop = max(1, len(self._entries) // 2)
        for _ in range(drop):
            self._entries.popitem(last=False)
        logger.debug("Simulation cache full, evicted %d entries", drop)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def stats(self):
        """Debugging aid: current size and keys in insertion order."""
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries.keys())}

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries


class RoomSimulator:
    """Simulation service wrapping simulate_room_response with a result cache."""

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else SimulationCache()

    def simulate(self, source, listener, room,
                 max_mode_order=config.DEFAULT_MAX_MODE_ORDER,
                 base_q_factor=config.DEFAULT_Q_FACTOR):
        key = make_cache_key(source, listener, room, max_mode_order, base_q_factor)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Simulation cache hit")
            return cached

        response = simulate_room_response(source, listener, room, max_mode_order, base_q_factor)
        self.cache.put(key, response)
        return response

    def clear_cache(self):
        self.cache.clear()

    def get_cache_stats(self):
        return self.cache.stats()
