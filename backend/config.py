# backend/config.py
"""
Tunable constants for the tsunami playback backend.

Deployment values (data dir, host, port, debug, log level) can be overridden
through environment variables; everything else is a plain module constant.
"""

import os

# ============================================================
# DEPLOYMENT
# ============================================================
DATA_DIR = os.environ.get("TSUNAMI_DATA_DIR", os.path.join(os.path.dirname(__file__), "data"))
STATIONS_FILE = "stations.geojson"
HOST = os.environ.get("TSUNAMI_HOST", "127.0.0.1")
PORT = int(os.environ.get("TSUNAMI_PORT", "5000"))
DEBUG = os.environ.get("TSUNAMI_DEBUG", "0") == "1"
LOG_LEVEL = os.environ.get("TSUNAMI_LOG_LEVEL", "INFO")

# ============================================================
# PLAYBACK CLOCK
# ============================================================
PLAYBACK_SPEEDS = (0.25, 0.5, 1, 2, 4, 8, 16)
DEFAULT_SPEED = 1
TOTAL_DURATION_MINUTES = 240.0  # 4 hours of simulated time
TICK_INTERVAL_SECONDS = 0.1
SIM_MINUTES_PER_REAL_SECOND = 1.0  # at 1x, one real second = one simulated minute
DEFAULT_EVENT_ID = "tohoku_2011"

# ============================================================
# WAVE PROPAGATION
# ============================================================
EARTH_RADIUS_KM = 6371.0
WAVE_SPEED_KM_PER_MIN = 12.0  # 200 m/s deep-ocean approximation
DISTANCE_EPSILON_KM = 1e-3

BACKGROUND_LEVEL_M = 1.2
BACKGROUND_AMPLITUDE_M = 0.3
BACKGROUND_PERIOD_SCALE_MIN = 30.0

# (onset after arrival [min], relative amplitude, sine period scale [min])
WAVE_PULSES = (
    (0.0, 1.0, 15.0),
    (30.0, 0.7, 18.0),
    (60.0, 0.5, 22.0),
)
MAGNITUDE_BASELINE = 7.0
MAGNITUDE_GAIN_M = 2.0
DISTANCE_ATTENUATION_KM = 1000.0  # 1 m of amplitude lost per 1000 km
DECAY_CONSTANT_MIN = 60.0
TSUNAMI_ACTIVE_WINDOW_MIN = 180.0
NOISE_THRESHOLD_M = 0.5
MIN_WAVE_HEIGHT_M = 0.1

SAMPLE_INTERVAL_MIN = 6
DEFAULT_SERIES_HOURS = 6
MAX_SERIES_HOURS = 24

BACKGROUND_PERIOD_RANGE_S = (8.0, 12.0)
TSUNAMI_PERIOD_RANGE_S = (25.0, 40.0)

# ============================================================
# SEVERITY CLASSIFICATION
# ============================================================
MODERATE_HEIGHT_M = 2.5
LARGE_HEIGHT_M = 4.0
CRITICAL_HEIGHT_M = 7.0
EMERGENCY_HEIGHT_M = 10.0
RAPID_INCREASE_PCT = 30.0
INCREASE_PCT = 20.0
TREND_AVERAGE_M = 2.0
TREND_SLACK = 0.9  # each reading may dip to 90% of the previous one
TREND_WINDOW = 4
REFERENCE_EPSILON_M = 0.1

# ============================================================
# MAP GEOMETRY
# ============================================================
DANGER_ZONE_RADII_KM = {
    "medium": 50.0,
    "high": 100.0,
    "critical": 200.0,
}
SECONDARY_WAVEFRONT_RATIO = 0.7
CIRCLE_SEGMENTS = 64

# ============================================================
# STATUS CACHE
# ============================================================
STATUS_CACHE_TTL_SECONDS = 120.0
PERSISTENT_ALERT_COUNT = 3
