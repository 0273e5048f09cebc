from .error import analyze_error, calculate_optimal_offset, error_curve
from .features import detect_features, is_deep_null

__all__ = ["analyze_error", "calculate_optimal_offset", "error_curve", "detect_features", "is_deep_null"]
