"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_TABLE = "attendance"

DEFAULT_DAILY_ATTEMPT_LIMIT = 3
DEFAULT_ANALYTICS_WEEKS = 8
DEFAULT_ANALYTICS_MONTHS = 6
DEFAULT_RECENT_ACTIVITY_LIMIT = 10
DEFAULT_RECONNECT_ATTEMPTS = 3

UNKNOWN_FULL_NAME = "Unknown"
