"""Constants for the Octopus Intelligent charging state reconciler."""

DOMAIN = "octopus_intelligent"

# Configuration Keys
CONF_ACCOUNT_NUMBER = "account_number"
CONF_RECONCILIATION_INTERVAL = "reconciliation_interval_seconds"
CONF_MANUAL_REFRESH_COOLDOWN = "manual_refresh_cooldown_seconds"
CONF_VALIDATION_RETRY_INTERVALS = "validation_retry_intervals"
CONF_LEAD_TIME = "lead_time_seconds"
CONF_FILE_LOGGING = "file_logging"

# Defaults
DEFAULT_RECONCILIATION_INTERVAL_SECONDS = 10
DEFAULT_MANUAL_REFRESH_COOLDOWN_SECONDS = 30
DEFAULT_VALIDATION_RETRY_INTERVALS = [15, 30, 60, 120]  # Exponential backoff
DEFAULT_LEAD_TIME_SECONDS = 30  # Early refresh before a slot starts
DEFAULT_FILE_LOGGING = True

# Lead-time timers further away than this are not armed
MAX_LEAD_TIME_HORIZON_HOURS = 24

# Preferences
MIN_TARGET_SOC = 50
MAX_TARGET_SOC = 100
TARGET_SOC_STEP = 5
DEFAULT_TARGET_SOC = 80
DEFAULT_TARGET_TIME = "08:00"
TIME_OPTIONS = [
    "04:00", "04:30", "05:00", "05:30",
    "06:00", "06:30", "07:00", "07:30",
    "08:00", "08:30", "09:00", "09:30",
    "10:00", "10:30", "11:00",
]

# Retry targets
TARGET_PREFERENCES = "preferences"

# Publisher topics
TOPIC_CHARGING_NOW = "charging_now"
TOPIC_STATUS = "status"
TOPIC_REFRESH_COOLDOWN = "refresh_cooldown"

# Summary
SUMMARY_SLOT_COUNT = 3
UNKNOWN_SOURCE = "unknown"
