"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_REASON_LENGTH = 500  # Maximum length for exception reasons and vacation messages

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
# Note: production URLs should be added via FRONTEND_URL environment variable
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite) - localhost
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Booking policy defaults (used when a provider has not saved settings yet)
DEFAULT_SESSION_DURATION_MINUTES = 60
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_MAX_DAILY_APPOINTMENTS = 8
DEFAULT_ADVANCE_BOOKING_DAYS = 90
DEFAULT_AUTO_CONFIRM_APPOINTMENTS = True

# Booking policy limits
MIN_SESSION_DURATION_MINUTES = 5
MAX_SESSION_DURATION_MINUTES = 480
MAX_BUFFER_MINUTES = 240
MAX_DAILY_APPOINTMENTS_LIMIT = 100
MAX_ADVANCE_BOOKING_DAYS = 365

# Default weekly schedule for new providers: Monday-Friday 09:00-17:00
DEFAULT_WORKDAY_START = "09:00"
DEFAULT_WORKDAY_END = "17:00"
WORKDAYS = (0, 1, 2, 3, 4)  # Monday=0 ... Friday=4

# Appointment statuses
APPOINTMENT_STATUS_PENDING = "pending"
APPOINTMENT_STATUS_CONFIRMED = "confirmed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"
ACTIVE_APPOINTMENT_STATUSES = (APPOINTMENT_STATUS_PENDING, APPOINTMENT_STATUS_CONFIRMED)
