# src/room_mode_eq/config.py

"""
Central configuration settings for the Room Mode EQ application.
"""

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================
FREQUENCY_MIN_HZ = 20  # Hz, first point of the analysis grid
FREQUENCY_MAX_HZ = 300  # Hz, last point of the analysis grid (inclusive)
FREQUENCY_STEP_HZ = 1  # Hz
SPEED_OF_SOUND = 343.0  # m/s
DEFAULT_Q_FACTOR = 10.0  # Typical Q for room modes
DEFAULT_MAX_MODE_ORDER = 10  # Max index for n, m, l
MIN_DB_VALUE = -100.0  # Floor for the simulated level (never -inf)
MIN_MAGNITUDE = 1e-9  # Magnitudes below this are reported as MIN_DB_VALUE
DIMENSION_EPSILON = 1e-6  # Substituted for a zero room dimension
COUPLING_EPSILON = 1e-9  # Modes with weaker source/listener coupling are skipped
MODE_PRUNE_FREQ_RATIO = 1.5  # Modes above FREQUENCY_MAX_HZ * ratio are candidates for pruning
MODE_PRUNE_MIN_INDEX = 3  # ... and are pruned when n, m and l all exceed this

# Q multipliers applied to low-frequency modes (mode frequency bounds in Hz)
LOW_MODE_Q_MULTIPLIER = 2.0  # fMode < 80 Hz
MID_MODE_Q_MULTIPLIER = 1.5  # 80 Hz <= fMode < 150 Hz

# =============================================================================
# CACHE SETTINGS
# =============================================================================
CACHE_MAX_SIZE = 50  # entries; half are dropped when the bound is hit
CACHE_KEY_DECIMALS = 3

# =============================================================================
# ROOM / SPEAKER DEFAULTS (application pipeline)
# =============================================================================
DEFAULT_ROOM = (5.0, 5.0, 3.0)  # L, W, H in meters
DEFAULT_SOURCE = (0.10, 0.10, 0.85)
DEFAULT_LISTENER = (2.0, 4.0, 0.55)
DEFAULT_SURFACE_ABSORPTION = 0.1  # per surface, 0.01 .. 1.0
DEFAULT_FURNITURE_FACTOR = 0.5  # 0 = empty room, 1 = heavily furnished
FURNITURE_Q_DAMPING_MIN = 0.3  # Q multiplier for a heavily furnished room
FURNITURE_Q_DAMPING_MAX = 1.0  # Q multiplier for an empty room
ABSORPTION_Q_MAX = 50.0
DEFAULT_LF_CUTOFF_HZ = 30.0  # 2nd order high-pass corner of the subwoofer
DEFAULT_AIR_ABSORPTION_LEVEL = 1.0  # dB loss at 20 kHz for 1 m, 0 .. 10
AIR_ABSORPTION_REF_FREQ_HZ = 20000.0
MIN_SOURCE_DISTANCE_M = 0.1
DEFAULT_SPECTRAL_TILT_DB_PER_OCT = -3.0
REFERENCE_SPL_DB = 65.0  # Level assigned to a unit modal magnitude
SABINE_CONSTANT = 0.161  # s/m
SCHROEDER_CONSTANT = 2000.0

# =============================================================================
# TARGET CURVE SETTINGS (HARMAN-LIKE)
# =============================================================================
# Breakpoints of the piecewise-linear preference curve: (Hz, dB)
TARGET_BREAKPOINTS = ((20.0, 7.0), (60.0, 4.0), (200.0, 0.0), (300.0, -1.0))
DEFAULT_ROLLOFF_SLOPE_DB_PER_OCT = 12.0
OFFSET_ANALYSIS_MIN_HZ = 80.0
OFFSET_ANALYSIS_MAX_HZ = 200.0
OFFSET_MIN_POINTS = 5  # fewer points in the window -> offset 0
OFFSET_MIN_DB = 60.0
OFFSET_MAX_DB = 95.0
OFFSET_ROUNDING_DB = 0.5
FREQUENCY_MATCH_TOLERANCE_HZ = 1.0

# =============================================================================
# FEATURE DETECTION SETTINGS
# =============================================================================
SMOOTHING_HALF_WINDOW = 3  # points on each side of the moving average
FEATURE_NEIGHBORHOOD = 3  # points on each side for the local extremum test
PEAK_PROMINENCE_BELOW_SCHROEDER_DB = 1.0
PEAK_PROMINENCE_ABOVE_SCHROEDER_DB = 0.8
DIP_PROMINENCE_BELOW_SCHROEDER_DB = 1.5
DIP_PROMINENCE_ABOVE_SCHROEDER_DB = 1.0
FEATURE_WIDTH_DROP_DB = 3.0

# =============================================================================
# EQ GENERATION DEFAULTS
# =============================================================================
DEFAULT_NUM_BANDS = 20
DEFAULT_MAX_BOOST_DB = 6.0
DEFAULT_MAX_CUT_DB = 12.0
DEFAULT_SMOOTHING = 0.1
DEFAULT_MIN_Q = 0.5
DEFAULT_MAX_Q = 20.0
DEFAULT_SCHROEDER_FREQ_HZ = 200.0
EQ_MAX_FREQ_HZ = 300.0  # Errors above this are never corrected
SMALL_BAND_BUDGET = 12  # Budgets up to this size favor broad coverage
MIN_BAND_GAIN_DB = 0.2  # Smaller corrections are discarded
PRIORITY_MAX_FREQ_HZ = 80.0  # Room-mode priority region
PRIORITY_ERROR_DB = 2.5
SMALL_BUDGET_Q_FACTOR = 0.6  # ~40% broader Q for small budgets

# Deep, narrow nulls are not boosted
NULL_MIN_PROMINENCE_DB = 4.0  # measured on the smoothed curve
NULL_MAX_WIDTH_HZ = 10.0
NULL_MATCH_DISTANCE_HZ = 3.0

# A band this close to the largest error is dropped last by the pass guard
WORST_ERROR_MATCH_HZ = 3.0

# =============================================================================
# CALIBRATION CONSTANTS (empirical, subject to revision)
# =============================================================================
# Spectral balance compensation (pass 1, small budgets only)
BALANCE_LOW_FREQ_MAX_HZ = 150.0
BALANCE_MIN_AVG_LOW_CUT_DB = 2.0
BALANCE_REGION_HZ = (150.0, 280.0)
BALANCE_MIN_EXCESS_DB = 1.5
BALANCE_BAND_FREQ_HZ = 200.0
BALANCE_BAND_Q = 0.8
BALANCE_GAIN_FRACTION = 0.8

# Boost interaction artifacts
INTERACTION_MAX_SPACING_HZ = 80.0
INTERACTION_OVERSHOOT_DB = 2.0
DIRECT_OVERSHOOT_DB = 3.0
ARTIFACT_CUT_FRACTION = 0.95
INTERACTION_CUT_Q = 3.5
DIRECT_OVERSHOOT_CUT_Q = 2.5

# =============================================================================
# FILTER BANK SAFETY LIMITS
# =============================================================================
BAND_CONTRIBUTION_MIN_DB = -50.0
BAND_CONTRIBUTION_MAX_DB = 20.0
EQ_RESULT_MIN_DB = -80.0
EQ_RESULT_MAX_DB = 130.0

# =============================================================================
# WORKER / EXPORT SETTINGS
# =============================================================================
PASS_DISPLAY_DELAY_MS = 250  # Pause between passes so a UI can render
EXPORT_PATH = "room_eq_filters.txt"
