"""
Configuration settings for the Property Calendar
"""
import os

# Hosted backend (PostgREST-style) Configuration
BACKEND_URL = os.getenv("BACKEND_URL", "")
BACKEND_API_KEY = os.getenv("BACKEND_API_KEY", "")
BACKEND_TIMEOUT_SECONDS = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

# Application Settings
APP_TITLE = "Property Calendar"
APP_ICON = "📅"
DEFAULT_VIEW_MODE = "month"

# Status resolution: compare full timestamps for events that carry a time.
# When disabled every event is compared by calendar date only.
STATUS_COMPARE_TIME = os.getenv("STATUS_COMPARE_TIME", "true").lower() == "true"

# Normalization Rules
LEASE_RENEWAL_NOTICE_DAYS = 60  # renewal reminder before lease end
DEFAULT_PAYMENT_TERMS_DAYS = 30
APPLIANCE_SERVICE_INTERVAL_MONTHS = 6

# Task List Settings
TASK_HORIZON_DAYS = 30
TODAY_TASK_LIMIT = 10

# Database Settings
USE_DATABASE = os.getenv("USE_DATABASE", "true").lower() == "true"
DATABASE_PATH = os.getenv("DATABASE_PATH", "data/calendar.duckdb")
AUDIT_LOG_PATH = os.getenv("AUDIT_LOG_PATH", "data/audit_log.jsonl")

# Date Format
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
DISPLAY_DATE_FORMAT = "%b %d, %Y"
