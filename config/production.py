import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

# No defaults: a missing value leaves the app in the "not configured" state
DB_CONFIG = {
    "host": os.getenv("DB_HOST"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER"),
    "password": os.getenv("DB_PASSWORD"),
    "database": os.getenv("DB_NAME"),
}

APP_BASE_URL = os.getenv("APP_BASE_URL", "")
ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "UTC")
STANDARD_DAILY_HOURS = float(os.getenv("STANDARD_DAILY_HOURS", "8"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
