"""Project-wide configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(os.environ.get("TIPT_PROJECT_ROOT", Path.cwd()))

load_dotenv(PROJECT_ROOT / ".env")

DB_PATH = Path(os.environ.get("TIPT_DB_PATH", PROJECT_ROOT / "tipt_profile.duckdb"))
UPLOAD_DIR = Path(os.environ.get("TIPT_UPLOAD_DIR", PROJECT_ROOT / "data" / "uploads"))

LOG_LEVEL = os.environ.get("TIPT_LOG_LEVEL", "INFO").upper()

# Object store
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
IMAGE_FETCH_TIMEOUT = 30

# Visitor geolocation (best effort, must never delay tracking)
GEOLOCATION_URL = os.environ.get("TIPT_GEOLOCATION_URL", "https://ipapi.co/json/")
GEOLOCATION_TIMEOUT = 2.0

# Dashboard
RECENT_EVENTS_LIMIT = 50
MONTHLY_CHART_MONTHS = 6
TOP_LINKS_LIMIT = 5

# Public profile handles
PROFILE_DOMAIN_SUFFIX = "tipt.co"
