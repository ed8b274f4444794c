"""The shared selection file: record model and atomic file access."""

from .models import SelectionRecord, now_ms
from .selection_file import (
    MalformedSelectionError,
    decode,
    delete_selection,
    encode,
    ensure_dir,
    read_raw,
    read_selection,
    write_selection,
)

__all__ = [
    "MalformedSelectionError",
    "SelectionRecord",
    "decode",
    "delete_selection",
    "encode",
    "ensure_dir",
    "now_ms",
    "read_raw",
    "read_selection",
    "write_selection",
]
