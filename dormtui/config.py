"""Configuration and constants for dormtui"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

# Backend
DEFAULT_API_URL = "https://dorm-revamp-backend.onrender.com/api"
API_URL = os.environ.get("DORM_API_URL", DEFAULT_API_URL)
API_TIMEOUT = float(os.environ.get("DORM_API_TIMEOUT", "10"))

# Storage settings
KEYRING_SERVICE = "dormtui"
TOKEN_KEY = "token"
ONBOARDING_KEY = "hasSeenOnboarding"

THEME_KEY = "theme"
HAPTICS_KEY = "hapticsEnabled"
APP_LOCK_KEY = "appLock"
CACHE_PREFIX = "offline_cache_"

DEBUG_ENV = "DORMTUI_DEBUG"
COLOR_SCHEME_ENV = "DORMTUI_COLOR_SCHEME"


def data_dir() -> Path:
    return Path(os.environ.get("DORMTUI_HOME") or Path.home())


def prefs_file() -> Path:
    return data_dir() / ".dormtui_prefs.json"


def debug_log_file() -> Path:
    return data_dir() / ".dormtui_debug.log"


def configure_logging() -> None:
    """Attach the debug file handler to the package logger.

    Only active when DORMTUI_DEBUG is set; Textual captures stdout/stderr so
    the file is the only place debug traces end up.
    """
    logger = logging.getLogger("dormtui")
    if not os.getenv(DEBUG_ENV):
        logger.setLevel(logging.WARNING)
        return

    logger.setLevel(logging.DEBUG)
    log_file = str(debug_log_file())
    if any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == log_file for h in logger.handlers):
        return
    try:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(fh)
    except OSError:
        # never fail core logic for logging issues
        pass
