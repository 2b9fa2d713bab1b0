"""
Configuration file for the GPX elevation gain engine
All tunable parameters in one place with clear documentation
"""

# ========================================
# FILE PATHS & DIRECTORIES
# ========================================
DATA_DIR = "data"
OFFICIAL_ELEVATION_CSV = f"{DATA_DIR}/official_elevation_data.csv"  # Benchmark gain per filename
PROCESSED_DIR = f"{DATA_DIR}/processed"  # Default output folder for cleaned GPX files
PROCESSED_SUFFIX = "_processed"  # Appended to cleaned GPX filenames

# ========================================
# TERRAIN CLASSIFICATION
# ========================================

# Raw gain per km (m/km) upper limits for each terrain label.
# Anything at or above the last limit is mountainous.
FLAT_GAIN_PER_KM = 12.0
ROLLING_GAIN_PER_KM = 30.0
HILLY_GAIN_PER_KM = 60.0

# Terrain tiers: (limit m/km, label, gaussian window in meters, spike threshold m)
# Smaller window for mountains preserves real relief,
# larger window for flat routes suppresses noise.
# On the legacy asymmetric grid the spike threshold doubles as the deadband threshold.
TERRAIN_TIERS = [
    (FLAT_GAIN_PER_KM, "flat", 90.0, 3.0),
    (ROLLING_GAIN_PER_KM, "rolling", 45.0, 4.0),
    (HILLY_GAIN_PER_KM, "hilly", 21.0, 6.0),
    (float("inf"), "mountainous", 15.0, 8.0),
]

# Symmetric tiers: (limit m/km, gaussian span m, min window, max window, deadband m)
# Used by the symmetric and adaptive strategies on their fine grid.
# Window points = round(span / interval), clamped to [min, max].
SYMMETRIC_TIERS = [
    (20.0, 120.0, 5, 50, 1.5),
    (40.0, 150.0, 5, 30, 2.5),
    (float("inf"), 100.0, 3, 20, 2.0),
]

# ========================================
# GRADIENT CAPPING
# ========================================

# Capping tiers: (limit m/km, max uphill %, max downhill %)
# The first tier whose limit exceeds the route's hilliness wins.
GRADE_CAP_TIERS = [
    (20.0, 15.0, 12.0),
    (30.0, 20.0, 15.0),
    (40.0, 25.0, 20.0),
    (50.0, 32.0, 27.0),
    (60.0, 35.0, 31.0),
    (float("inf"), 40.0, 36.0),
]

# ========================================
# RESAMPLING & FILTER PARAMETERS
# ========================================

# Grid step for the legacy asymmetric strategy (meters)
LEGACY_INTERVAL_M = 10.0

# Grid step for the symmetric strategy (meters)
# Empirically tuned; small steps keep short real climbs intact
SYMMETRIC_INTERVAL_M = 1.9

# Median filter window (points). Precision-tuned runs use 5.
MEDIAN_WINDOW = 3
PRECISION_MEDIAN_WINDOW = 5

# Long rolling mean for near-flat routes (points)
# Only applied when uphill gain per km is below FLAT_ROLLING_LIMIT
FLAT_ROLLING_WINDOW = 83
FLAT_ROLLING_LIMIT = 20.0

# Gaussian sigma is window / GAUSSIAN_SIGMA_DIVISOR
GAUSSIAN_SIGMA_DIVISOR = 6.0

# Fewer points than this and the whole trace is summed raw
MIN_TRACE_POINTS = 3

# Fewer points than this and windowed filters pass data through
MIN_FILTER_POINTS = 5

# Distance spans below this are treated as zero (meters)
ZERO_SPAN_M = 1e-10

# ========================================
# ADAPTIVE STRATEGY
# ========================================

# Raw gain/loss ratio at or below which the trace is trusted as-is
ADAPTIVE_RATIO_TOLERANCE = 1.1

# Grid step used by the adaptive strategy (meters)
ADAPTIVE_INTERVAL_M = SYMMETRIC_INTERVAL_M

# Maximum number of clean-up passes
ADAPTIVE_MAX_PASSES = 5

# Spike threshold schedules (meters), tightening pass by pass.
# (raw ratio above which the schedule applies, thresholds)
ADAPTIVE_SPIKE_SCHEDULES = [
    (2.5, (6.0, 4.0, 3.0, 2.0, 1.5)),  # extreme inflation
    (1.8, (5.0, 3.5, 2.5, 1.5)),  # very high
    (1.3, (4.0, 3.0, 2.0)),  # high
    (0.0, (3.0, 2.0)),  # suspicious
]

# ========================================
# LOGGING
# ========================================
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# ========================================
# PHYSICAL CONSTANTS & UNIT CONVERSIONS
# ========================================

# Earth radius for distance calculations (meters)
EARTH_R = 6371000.0

METERS_PER_KM = 1000.0

# Start-to-finish gap (meters) below which a route counts as a loop
LOOP_CLOSURE_M = 200.0
