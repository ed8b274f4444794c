"""Glue between a SelectionReader and the assistant's terminal UI."""

import logging
from typing import Protocol

from .reader import SelectionReader
from .reference import format_insertion, status_text
from .store import SelectionRecord

logger = logging.getLogger(__name__)

STATUS_KEY = "ide-selection"


class HostUI(Protocol):
    """What the hosting assistant shell provides to the session."""

    def set_status(self, key: str, text: str | None) -> None: ...

    def notify(self, message: str, level: str = "info") -> None: ...

    def paste_to_editor(self, text: str) -> None: ...

    def set_editor_text(self, text: str) -> None: ...


class SelectionSession:
    """One assistant session's view of the shared IDE selection.

    Keeps the footer status in sync with the reader and implements the
    user-facing insert and clear actions.
    """

    def __init__(self, ui: HostUI | None, reader: SelectionReader | None = None) -> None:
        self.ui = ui
        self.reader = reader or SelectionReader()
        self.reader.on_change = self._on_selection_change

    @property
    def current(self) -> SelectionRecord | None:
        return self.reader.current

    async def start(self) -> None:
        await self.reader.start()
        self.render_status()

    def switch(self, ui: HostUI | None) -> None:
        """Rebind to a new UI after the host switches sessions."""
        self.ui = ui
        self.reader.refresh()
        self.render_status()

    async def shutdown(self) -> None:
        await self.reader.stop()

    def render_status(self) -> None:
        if self.ui is None:
            return
        self.ui.set_status(STATUS_KEY, status_text(self.reader.current))

    def insert_reference(self, replace: bool = False) -> bool:
        """Put a reference to the current selection into the assistant's editor.

        Re-reads the shared file first so the newest selection wins even
        between poll ticks. ``replace`` overwrites the editor text instead of
        pasting at the cursor.
        """
        self.reader.refresh()
        record = self.reader.current
        if self.ui is None:
            return record is not None

        if record is None:
            self.ui.notify("No IDE selection", "warning")
            return False

        text = format_insertion(record)
        if replace:
            self.ui.set_editor_text(text)
        else:
            self.ui.paste_to_editor(text)
        logger.debug("Inserted reference to %s", record.file)
        return True

    def clear(self) -> None:
        """Clear the selection for all sessions and editors."""
        self.reader.clear()
        if self.ui is not None:
            self.ui.notify("IDE selection cleared", "info")

    def _on_selection_change(self, record: SelectionRecord | None) -> None:
        self.render_status()
