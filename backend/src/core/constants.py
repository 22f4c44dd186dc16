"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",
    "http://localhost:5173",
    FRONTEND_URL,
]

CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Identifier formatting
IDENTIFIER_PAD_WIDTH = 3  # BR001-ORD007; grows past 999 (ORD1000)

# Commission rates are percentages
COMMISSION_RATE_MIN = 0
COMMISSION_RATE_MAX = 100

# Pagination defaults for list endpoints
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 500

# Report date windows
PAYMENT_SUMMARY_DEFAULT_DAYS = 30
RECENT_EXPENSES_COUNT = 5  # Most recent expenses shown in the expense summary

# Revenue analytics default look-back per bucket period
REVENUE_PERIOD_DEFAULT_WINDOWS = {
    "daily": {"days": 7},
    "weekly": {"days": 28},
    "monthly": {"months": 12},
    "yearly": {"years": 5},
}

# Test order QR payload prefix
ORDER_QR_PREFIX = "HEAL"
