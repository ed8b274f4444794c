"""Text shown to the user for a shared selection."""

import os

from .store import SelectionRecord

STATUS_HINT = " (ctrl+i to insert)"


def format_reference(record: SelectionRecord) -> str:
    """URL-style reference: ``/path/file.ts``, ``/path/file.ts:10`` or ``/path/file.ts:10-15``."""
    ref = record.file
    if record.has_range:
        if record.start_line == record.end_line:
            ref += f":{record.start_line}"
        else:
            ref += f":{record.start_line}-{record.end_line}"
    return ref


def format_insertion(record: SelectionRecord) -> str:
    """Text handed to the assistant's editor when the user inserts a reference."""
    return f"Referencing {format_reference(record)}\n"


def line_count(record: SelectionRecord) -> int:
    if record.has_range:
        return record.end_line - record.start_line + 1
    if record.selection:
        return len(record.selection.split("\n"))
    return 0


def short_path(path: str, max_len: int = 40) -> str:
    """Shorten a path to ``.../parent/name`` or ``.../name`` when too long."""
    if len(path) <= max_len:
        return path

    name = os.path.basename(path)
    parent = os.path.basename(os.path.dirname(path))
    short = f".../{parent}/{name}"
    if len(short) <= max_len:
        return short
    return f".../{name}"


def status_text(record: SelectionRecord | None) -> str | None:
    """One-line status for the assistant's footer, None when nothing is shared."""
    if record is None:
        return None

    ide = record.ide or "IDE"
    if record.selection:
        name = os.path.basename(record.file)
        return f"{line_count(record)} lines selected from {name} in {ide}{STATUS_HINT}"
    return f"{short_path(record.file, 30)} in {ide}{STATUS_HINT}"
