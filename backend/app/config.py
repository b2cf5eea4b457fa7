# backend/app/config.py
import os

# Unset -> in-memory storage only
DATABASE_URL = os.getenv("DATABASE_URL")

# Optional tuning (env vars are strings). If not present, defaults used.
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
CONNECT_TIMEOUT = float(os.getenv("DB_CONNECT_TIMEOUT", 5))
DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", 3))

# Unset -> booking locks are process-local only
REDIS_URL = os.getenv("REDIS_URL")
BOOKING_LOCK_TIMEOUT = float(os.getenv("BOOKING_LOCK_TIMEOUT", 5))

SESSION_SECRET = os.getenv("SESSION_SECRET", "change_me_session_secret")
ADMIN_KEY = os.getenv("ADMIN_KEY", "change_me_admin_key")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 5000))
