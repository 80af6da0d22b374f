import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timecard_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Prefix for kiosk links rendered into QR codes.
QR_BASE_URL = os.getenv("QR_BASE_URL", "http://localhost:5000")

TENANT_HEADER = os.getenv("TENANT_HEADER", "X-Owner-Id")
ALLOW_TENANT_HEADER = bool(int(os.getenv("ALLOW_TENANT_HEADER", "1")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
