"""Configuration management for SecureData."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key, "").lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    return default


# SecureData Data Directory (defaults to ~/.securedata)
SECUREDATA_DATA_DIR = Path(
    get_env("SECUREDATA_DATA_DIR", os.path.expanduser("~/.securedata"))
    or os.path.expanduser("~/.securedata")
)

# Ensure data directory exists
SECUREDATA_DATA_DIR.mkdir(parents=True, exist_ok=True)

# Database path
DATABASE_PATH = Path(
    get_env("SECUREDATA_DATABASE_PATH") or SECUREDATA_DATA_DIR / "securedata.db"
)

# Attachments
UPLOAD_DIR = Path(get_env("SECUREDATA_UPLOAD_DIR") or SECUREDATA_DATA_DIR / "uploads")
MAX_UPLOAD_BYTES = get_env_int("SECUREDATA_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

# Logo resolution (seconds per provider call)
LOGO_TIMEOUT_SECONDS = get_env_float("SECUREDATA_LOGO_TIMEOUT", 5.0)

# Storage reconnect delay (fixed, no backoff)
RECONNECT_DELAY_SECONDS = get_env_float("SECUREDATA_RECONNECT_DELAY", 5.0)

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "INFO")

# API Server settings
SECUREDATA_API_KEY = get_env("SECUREDATA_API_KEY")
SECUREDATA_HOST = get_env("SECUREDATA_HOST", "127.0.0.1")
SECUREDATA_PORT = get_env_int("SECUREDATA_PORT", 5000)
SECUREDATA_ALLOW_NO_AUTH = get_env_bool("SECUREDATA_ALLOW_NO_AUTH", False)


def setup_logging() -> logging.Logger:
    """Configure and return logger."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, (LOG_LEVEL or "INFO").upper(), logging.INFO),
    )
    return logging.getLogger(__name__)


def validate_api_environment() -> tuple[bool, str]:
    """
    Validate environment variables for the API server.

    Returns:
        (is_valid, message) - If not valid, message explains what's missing.
    """
    if not SECUREDATA_API_KEY and not SECUREDATA_ALLOW_NO_AUTH:
        return (
            False,
            "Missing SECUREDATA_API_KEY - set it or SECUREDATA_ALLOW_NO_AUTH=true",
        )

    return True, ""
