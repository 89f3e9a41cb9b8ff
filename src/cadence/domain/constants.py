"""Centralized constants for the cadence scheduler.

SM-2 algorithm constants live here so every layer imports from a single
source of truth. Tunable scheduling knobs belong in SchedulerConfig.
"""

# ---------- SM-2 ----------
INITIAL_EASE_FACTOR = 2.5
MINIMUM_EASE_FACTOR = 1.3
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
QUALITY_THRESHOLD = 3  # below this = fail
MIN_QUALITY = 0
MAX_QUALITY = 5

# ---------- Quality Estimator ----------
DEFAULT_EXPECTED_TIME_SECONDS = 60
SLOW_TIME_RATIO = 1.5
NORMAL_TIME_RATIO = 1.0

# ---------- Card Stats ----------
YOUNG_INTERVAL_LIMIT = 21  # days
MATURE_INTERVAL_LIMIT = 90  # days
TREND_THRESHOLD = 2

# ---------- Planning ----------
DEFAULT_PLANNING_DAYS = 7
SECONDS_PER_DAY = 86400
