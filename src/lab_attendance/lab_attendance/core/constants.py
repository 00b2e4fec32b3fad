"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

FULL_DAY_MIN_HOURS_KEY = "FULL_DAY_MIN_HOURS"
HALF_DAY_MIN_HOURS_KEY = "HALF_DAY_MIN_HOURS"

DEFAULT_FULL_DAY_MIN_HOURS = 8.0
DEFAULT_HALF_DAY_MIN_HOURS = 4.0

# An open IN closer than this to midnight is treated as a mis-swipe.
END_OF_DAY_MIN_OPEN_HOURS = 1.0

DEFAULT_RECENT_LOGS_LIMIT = 100

MONEY_PRECISION = Decimal("0.01")
