from .modal import calculate_mode_pressure, list_room_modes, mode_frequency, simulate_room_response
from .cache import RoomSimulator, SimulationCache, make_cache_key

__all__ = [
    "calculate_mode_pressure",
    "list_room_modes",
    "mode_frequency",
    "simulate_room_response",
    "RoomSimulator",
    "SimulationCache",
    "make_cache_key",
]
