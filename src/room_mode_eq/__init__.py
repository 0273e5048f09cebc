"""Room mode simulation and multi-pass parametric EQ generation."""

from .analysis import analyze_error, calculate_optimal_offset, detect_features
from .models import (
    DetectedFeature,
    EQBand,
    EQSettings,
    ErrorAnalysis,
    FrequencyResponse,
    Point,
    RoomDimensions,
)
from .optimization import (
    EQGenerationObserver,
    EQGenerationOptions,
    MultiPassEQGenerator,
    apply_eq,
    generate_eq,
)
from .simulation import RoomSimulator, SimulationCache, simulate_room_response
from .utils import generate_target_curve, target_db

__version__ = "1.0.0"

__all__ = [
    "analyze_error",
    "calculate_optimal_offset",
    "detect_features",
    "DetectedFeature",
    "EQBand",
    "EQSettings",
    "ErrorAnalysis",
    "FrequencyResponse",
    "Point",
    "RoomDimensions",
    "EQGenerationObserver",
    "EQGenerationOptions",
    "MultiPassEQGenerator",
    "apply_eq",
    "generate_eq",
    "RoomSimulator",
    "SimulationCache",
    "simulate_room_response",
    "generate_target_curve",
    "target_db",
]
