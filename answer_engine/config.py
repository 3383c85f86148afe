"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Remote data service (PostgREST-compatible) and the LMS app hosting the
# sync/submit endpoints
DATA_SERVICE_URL = os.environ.get("DATA_SERVICE_URL", "http://127.0.0.1:54321").rstrip("/")
DATA_SERVICE_KEY = os.environ.get("DATA_SERVICE_KEY", "")
APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://127.0.0.1:3000").rstrip("/")
REQUEST_TIMEOUT_SECONDS = _parse_float_env("REQUEST_TIMEOUT_SECONDS", 15.0)

# Local persistence
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'answer_engine.db'}"
)
STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql")  # "sql" or "json"
STORAGE_DIR = Path(os.environ.get("STORAGE_DIR", DB_DIR / "storage"))

# Answer sheet
DEFAULT_QUESTION_COUNT = _parse_int_env("DEFAULT_QUESTION_COUNT", 10)
MAX_QUESTION_COUNT = _parse_int_env("MAX_QUESTION_COUNT", 100)

# Timing
TIME_WARNING_SECONDS = _parse_int_env("TIME_WARNING_SECONDS", 300)
SYNC_POLL_INTERVAL_SECONDS = _parse_float_env("SYNC_POLL_INTERVAL_SECONDS", 0.0)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
