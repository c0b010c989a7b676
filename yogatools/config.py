import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Database URL configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./yogatools.db")

# Where catalog.json lives: a filesystem path or an http(s) URL
CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "./public/catalog.json")

TRANSCRIPT_TIMEOUT = float(os.getenv("TRANSCRIPT_TIMEOUT", "10.0"))
RECOMMENDATION_LIMIT = int(os.getenv("RECOMMENDATION_LIMIT", "2"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

AUTH_REALM = "YogaTools.ai"


def site_password() -> Optional[str]:
    """Shared password guarding the API; read per request so it can rotate."""
    return os.getenv("SITE_PASSWORD") or None
