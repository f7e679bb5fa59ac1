# config.py
import os
import sys
import logging
from datetime import timedelta
from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger(__name__)

# Environment detection
ENVIRONMENT = os.getenv("FLASK_ENV", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

# Flask App Config - No hardcoded fallbacks for sensitive values in production
SECRET_KEY = os.getenv("SECRET_KEY")

# Optional: without it the app runs against the in-process fallbacks only
DATABASE_URL = os.getenv("DATABASE_URL") or None

if not SECRET_KEY:
    if IS_PRODUCTION:
        print("❌ CRITICAL: SECRET_KEY environment variable is required in production")
        sys.exit(1)
    else:
        logger.warning("Using development SECRET_KEY - DO NOT use in production")
        SECRET_KEY = "dev-only-secret-key-change-in-production"

PORT = int(os.getenv("PORT", "3000"))

# Application Settings - DEBUG is NEVER true in production
DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true' and not IS_PRODUCTION
TESTING = os.environ.get('TESTING', 'false').lower() == 'true'

# Logging Configuration
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
LOG_FILE = os.environ.get('LOG_FILE', 'foxhub.log')

# Database Connection Pool Settings
DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE', '10'))

# Session Configuration
PERMANENT_SESSION_LIFETIME = timedelta(hours=int(os.environ.get('SESSION_LIFETIME_HOURS', '24')))

# Seeded administrator account
DEFAULT_ADMIN_USERNAME = os.environ.get('DEFAULT_ADMIN_USERNAME', 'admin')
DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin')

# Inventory alert settings
LOW_STOCK_THRESHOLD = int(os.environ.get('LOW_STOCK_THRESHOLD', '10'))
WARNING_STOCK_FACTOR = 1.5

# In-process fallback buffers used while the database is unreachable
NOTIFICATION_BUFFER_SIZE = int(os.environ.get('NOTIFICATION_BUFFER_SIZE', '20'))
SCAN_BUFFER_SIZE = int(os.environ.get('SCAN_BUFFER_SIZE', '100'))

if not DATABASE_URL:
    logger.warning("DATABASE_URL not set - running without a database (fallback mode)")
