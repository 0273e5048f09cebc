from .filters import apply_bands, apply_eq, bell_filter_db, compute_eq_curve
from .optimizer import (
    EQGenerationObserver,
    EQGenerationOptions,
    MultiPassEQGenerator,
    PassResult,
    generate_eq,
)

__all__ = [
    "apply_bands",
    "apply_eq",
    "bell_filter_db",
    "compute_eq_curve",
    "EQGenerationObserver",
    "EQGenerationOptions",
    "MultiPassEQGenerator",
    "PassResult",
    "generate_eq",
]
