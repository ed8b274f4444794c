"""Read, write and delete the shared selection file.

The file is the only synchronization point between processes. Writes go to a
temp file in the same directory and are renamed over the target, so readers
see either the previous record or the new one, never a partial write.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..config import STALE_AFTER_MS, selection_file
from .models import SelectionRecord

logger = logging.getLogger(__name__)


class MalformedSelectionError(ValueError):
    """The shared file exists but does not hold a valid record."""


def ensure_dir(path: Path | None = None) -> Path:
    """Create the directory holding the selection file if needed."""
    path = Path(path) if path is not None else selection_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def encode(record: SelectionRecord) -> bytes:
    """Serialize a record to its UTF-8 wire form."""
    return json.dumps(record.to_wire(), indent=2, ensure_ascii=False).encode("utf-8")


def decode(raw: bytes | str) -> SelectionRecord:
    """Parse wire content into a record.

    Raises MalformedSelectionError for invalid JSON, a non-object body, a
    missing ``file`` or a broken line range.
    """
    try:
        return SelectionRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedSelectionError(str(exc)) from exc


def read_raw(path: Path | None = None) -> bytes | None:
    """Return the raw file content, or None when no selection is shared.

    Other OSErrors propagate; callers treat them as transient.
    """
    path = Path(path) if path is not None else selection_file()
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def read_selection(
    path: Path | None = None,
    now: int | None = None,
    max_age_ms: int = STALE_AFTER_MS,
) -> SelectionRecord | None:
    """Read the current record, treating stale records as absent."""
    raw = read_raw(path)
    if raw is None:
        return None
    record = decode(raw)
    if record.is_stale(now, max_age_ms):
        return None
    return record


def write_selection(record: SelectionRecord, path: Path | None = None) -> Path:
    """Atomically replace the shared file with ``record``."""
    path = ensure_dir(path)
    payload = encode(record)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tf:
            tf.write(payload)
            tf.flush()
            os.fsync(tf.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        # Rename failed: don't leave the temp file behind
        if temp_path and os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError:
                pass

    logger.debug("Wrote selection for %s to %s", record.file, path)
    return path


def delete_selection(path: Path | None = None) -> bool:
    """Remove the shared file. Returns False if it was already absent."""
    path = Path(path) if path is not None else selection_file()
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("Cleared selection at %s", path)
    return True
