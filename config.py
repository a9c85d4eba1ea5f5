from pathlib import Path
from dotenv import load_dotenv
import os

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# JWT Config
JWT_ALGORITHM = "HS256"
DEFAULT_JWT_EXPIRY = "24h"

# Roles & statuses
ROLES = ["admin", "user", "supervisor"]
QUOTATION_STATUSES = ["pending", "approved", "rejected", "locked"]

# Database
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'site_manager')

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')


# Secrets and bootstrap credentials are read at call time so a missing value
# surfaces on first use rather than at import.

def get_jwt_secret() -> str:
    return os.environ.get('JWT_SECRET', '')


def get_jwt_expiry() -> str:
    return os.environ.get('JWT_EXPIRY', DEFAULT_JWT_EXPIRY)


def get_admin_credentials() -> tuple:
    return os.environ.get('ADMIN_EMAIL', ''), os.environ.get('ADMIN_PASSWORD', '')
