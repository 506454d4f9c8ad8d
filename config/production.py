import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DAILY_ATTEMPT_LIMIT = int(os.getenv("DAILY_ATTEMPT_LIMIT", "3"))
ANALYTICS_WEEKS = int(os.getenv("ANALYTICS_WEEKS", "8"))
ANALYTICS_MONTHS = int(os.getenv("ANALYTICS_MONTHS", "6"))
RECENT_ACTIVITY_LIMIT = int(os.getenv("RECENT_ACTIVITY_LIMIT", "10"))
SYNC_RECONNECT_ATTEMPTS = int(os.getenv("SYNC_RECONNECT_ATTEMPTS", "3"))
