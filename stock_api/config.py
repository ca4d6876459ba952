"""Environment-driven settings for the stock API.

Values are read once at import time.  A ``.env`` file in the working
directory is loaded first, without overriding variables that are already
set in the process environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=False)

SERVICE_NAME = "stock-api"
SERVICE_VERSION = "1.0.0"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATABASE_PATH = Path(os.environ.get("DATABASE_PATH", str(_PROJECT_ROOT / "stocks.db")))
DB_RESET_ON_START = os.environ.get("DB_RESET_ON_START", "false").lower() == "true"

UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(_PROJECT_ROOT / "uploads")))

# Rows per pandas chunk while streaming an uploaded CSV
CSV_CHUNK_ROWS = int(os.environ.get("CSV_CHUNK_ROWS", "1000"))

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "5000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
