"""Share the editor's active file and selection with terminal coding assistants."""

from .reader import ReaderState, SelectionReader
from .reference import format_insertion, format_reference, status_text
from .session import HostUI, SelectionSession
from .store import MalformedSelectionError, SelectionRecord
from .writer import SelectionWriter, jetbrains_ide_name

__all__ = [
    "HostUI",
    "MalformedSelectionError",
    "ReaderState",
    "SelectionReader",
    "SelectionRecord",
    "SelectionSession",
    "SelectionWriter",
    "format_insertion",
    "format_reference",
    "jetbrains_ide_name",
    "status_text",
]
