"""Environment-driven settings for the selection sharing tools."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

SELECTION_FILENAME = "ide-selection.json"

# Records older than this are treated as absent by readers.
STALE_AFTER_MS = 60 * 60 * 1000

DEBOUNCE_MS = int(os.environ.get("PIDE_DEBOUNCE_MS", "100"))
POLL_INTERVAL_MS = int(os.environ.get("PIDE_POLL_INTERVAL_MS", "500"))

HTTP_ENABLED = os.environ.get("PIDE_HTTP_ENABLED", "").lower() in ("1", "true", "yes")
HTTP_HOST = os.environ.get("PIDE_HTTP_HOST", "localhost")
HTTP_PORT = int(os.environ.get("PIDE_HTTP_PORT", "8765"))


def pide_dir() -> Path:
    """Return the per-user directory holding the shared selection file."""
    return Path(os.environ.get("PIDE_DIR", str(Path.home() / ".pi")))


def selection_file() -> Path:
    """Return the well-known path of the shared selection file."""
    return pide_dir() / SELECTION_FILENAME
