"""Editor-side writer: turns focus and selection events into shared-file updates.

Bursts of events (cursor moves, drag selections) are coalesced with a
trailing-edge debounce so only the last state in a burst hits the disk.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from . import config
from .store import SelectionRecord, delete_selection, write_selection

logger = logging.getLogger(__name__)

# JetBrains product name fragment -> ide tag, checked in order
_JETBRAINS_PRODUCTS = [
    ("goland", "goland"),
    ("intellij", "intellij"),
    ("webstorm", "webstorm"),
    ("pycharm", "pycharm"),
    ("rider", "rider"),
    ("clion", "clion"),
    ("rubymine", "rubymine"),
    ("phpstorm", "phpstorm"),
    ("android", "android-studio"),
    ("datagrip", "datagrip"),
]


def jetbrains_ide_name(app_name: str) -> str:
    """Map a JetBrains application name to its short ide tag."""
    name = app_name.lower()
    for fragment, tag in _JETBRAINS_PRODUCTS:
        if fragment in name:
            return tag
    return "jetbrains"


class SelectionWriter:
    """Debounced writer for one editor integration.

    All scheduling happens on the asyncio loop; immediate operations work
    without a running loop.
    """

    def __init__(
        self,
        ide: str,
        path: Path | None = None,
        debounce_ms: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.ide = ide
        self.path = Path(path) if path is not None else config.selection_file()
        self.debounce_ms = config.DEBOUNCE_MS if debounce_ms is None else debounce_ms
        self._loop = loop
        self._on_error = on_error
        self._pending: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def on_focus_or_selection_changed(
        self,
        file: str | None,
        selected_text: str | None = None,
        start_line: int | None = None,
        end_line: int | None = None,
        *,
        immediate: bool = False,
    ) -> None:
        """Record new editor state and commit it after the debounce window.

        ``immediate`` skips the debounce, for explicit sends and for leaving a
        visual selection. An empty ``file`` means nothing is focused.
        """
        if not file:
            self.on_focus_lost()
            return

        try:
            record = SelectionRecord.create(
                file=file,
                selection=selected_text,
                start_line=start_line,
                end_line=end_line,
                ide=self.ide,
            )
        except ValueError as exc:
            logger.warning("Ignoring invalid editor state for %s: %s", file, exc)
            self._report(exc)
            return
        self._cancel_pending()

        if immediate:
            self._commit(record)
            return

        loop = self._loop or asyncio.get_running_loop()
        self._pending = loop.call_later(self.debounce_ms / 1000, self._commit, record)

    def on_focus_lost(self) -> None:
        """Drop any pending commit and remove the shared selection."""
        self._cancel_pending()
        self.clear()

    def clear(self) -> None:
        """Remove the shared selection now, whatever the focus state."""
        try:
            delete_selection(self.path)
        except OSError as exc:
            logger.warning("Failed to clear selection file %s: %s", self.path, exc)
            self._report(exc)

    def close(self) -> None:
        """Cancel pending work without touching the shared file."""
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _commit(self, record: SelectionRecord) -> None:
        self._pending = None
        try:
            write_selection(record, self.path)
        except OSError as exc:
            # The next change overwrites it anyway
            logger.warning("Failed to write selection file %s: %s", self.path, exc)
            self._report(exc)

    def _report(self, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Selection writer error callback failed")
