import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DAILY_ATTEMPT_LIMIT = 3
ANALYTICS_WEEKS = 8
ANALYTICS_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 10
SYNC_RECONNECT_ATTEMPTS = 3
