"""Assistant-side reader: watches the shared selection file and holds its value.

Two independent triggers feed the same ``refresh``: a watchdog observer on the
file's directory (fast, but not reliable on every platform) and a fixed
interval poll on the asyncio loop. ``refresh`` compares raw bytes with the
last content it saw, so duplicate triggers cost one small read and nothing
else.
"""

import asyncio
import contextlib
import enum
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from . import config
from .reference import format_reference
from .store import MalformedSelectionError, SelectionRecord, decode, delete_selection, ensure_dir, read_raw

logger = logging.getLogger(__name__)

_WATCHED_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED})


class ReaderState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    WATCHING = "watching"
    REFRESHING = "refreshing"
    STOPPED = "stopped"


class SelectionFileEventHandler(FileSystemEventHandler):
    """Watchdog handler firing for events that touch one file name.

    Runs on the observer thread; ``on_change`` must be thread-safe.
    """

    def __init__(self, filename: str, on_change: Callable[[], None]) -> None:
        super().__init__()
        self._filename = filename
        self._on_change = on_change

    def on_any_event(self, event) -> None:
        # Open/close events would fire on our own reads
        if event.is_directory or event.event_type not in _WATCHED_EVENTS:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(p and os.path.basename(os.fsdecode(p)) == self._filename for p in paths):
            self._on_change()


class SelectionReader:
    """Holds the latest non-stale selection shared by any editor.

    Create one per assistant session and pass it to whatever displays or
    inserts the selection.
    """

    def __init__(
        self,
        path: Path | None = None,
        poll_interval_ms: int | None = None,
        on_change: Callable[[SelectionRecord | None], None] | None = None,
        stale_after_ms: int = config.STALE_AFTER_MS,
    ) -> None:
        self.path = Path(path) if path is not None else config.selection_file()
        self.poll_interval_ms = config.POLL_INTERVAL_MS if poll_interval_ms is None else poll_interval_ms
        self.stale_after_ms = stale_after_ms
        self.on_change = on_change

        self._state = ReaderState.UNINITIALIZED
        self._current: SelectionRecord | None = None
        self._last_raw: bytes | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None
        self._poll_task: asyncio.Task | None = None

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def current(self) -> SelectionRecord | None:
        return self._current

    @property
    def watching_natively(self) -> bool:
        """Whether the watchdog observer was installed (polling runs regardless)."""
        return self._observer is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Install the watch and the poll fallback, then load the initial value."""
        if self._state is ReaderState.STOPPED:
            raise RuntimeError("Selection reader has been stopped")
        if self._state is not ReaderState.UNINITIALIZED:
            return

        self._loop = asyncio.get_running_loop()
        try:
            ensure_dir(self.path)
        except OSError as exc:
            logger.warning("Could not create %s: %s", self.path.parent, exc)

        self._start_observer()
        self._poll_task = self._loop.create_task(self._poll())
        self._state = ReaderState.WATCHING
        logger.info(
            "Watching %s (native watch: %s, poll every %d ms)",
            self.path,
            "on" if self._observer is not None else "off",
            self.poll_interval_ms,
        )
        self.refresh()

    async def stop(self) -> None:
        """Tear down the watch and the poll. Safe to call more than once."""
        if self._state is ReaderState.STOPPED:
            return
        self._state = ReaderState.STOPPED

        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            await asyncio.to_thread(observer.join, 1.0)

        logger.info("Stopped watching %s", self.path)

    def _start_observer(self) -> None:
        handler = SelectionFileEventHandler(self.path.name, self._schedule_refresh)
        observer = Observer()
        try:
            observer.schedule(handler, str(self.path.parent), recursive=False)
            observer.start()
        except Exception as exc:
            logger.warning("Native watch on %s unavailable (%s), relying on polling", self.path.parent, exc)
            return
        self._observer = observer

    def _schedule_refresh(self) -> None:
        # Called from the observer thread
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._on_watch_event)
        except RuntimeError:
            # Loop already closed; the reader is going away
            pass

    def _on_watch_event(self) -> None:
        if self._state is not ReaderState.STOPPED:
            self.refresh()

    async def _poll(self) -> None:
        interval = self.poll_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            self.refresh()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """Re-read the shared file. Returns True when the held value changed."""
        if self._state in (ReaderState.STOPPED, ReaderState.REFRESHING):
            return False

        previous = self._state
        self._state = ReaderState.REFRESHING
        try:
            return self._refresh()
        finally:
            if self._state is ReaderState.REFRESHING:
                self._state = previous

    def _refresh(self) -> bool:
        try:
            raw = read_raw(self.path)
        except OSError as exc:
            logger.debug("Transient read error on %s: %s", self.path, exc)
            return False

        if raw == self._last_raw:
            # Same bytes, but the held record may have aged out meanwhile
            if self._current is not None and self._current.is_stale(max_age_ms=self.stale_after_ms):
                self._current = None
                self._notify()
                return True
            return False

        record: SelectionRecord | None = None
        if raw is not None:
            try:
                record = decode(raw)
            except MalformedSelectionError as exc:
                # Likely caught mid-write by another process; retry on the next tick
                logger.debug("Ignoring malformed selection file %s: %s", self.path, exc)
                return False
            if record.is_stale(max_age_ms=self.stale_after_ms):
                record = None

        self._last_raw = raw
        if record == self._current:
            return False

        self._current = record
        self._notify()
        return True

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self._current)
        except Exception:
            logger.exception("Selection change callback failed")

    # ------------------------------------------------------------------
    # Host accessors
    # ------------------------------------------------------------------

    def reference(self) -> str | None:
        """Line reference for the current selection, e.g. ``/a/b.ts:10-15``."""
        if self._current is None:
            return None
        return format_reference(self._current)

    def clear(self) -> None:
        """Delete the shared selection for every reader, then refresh."""
        try:
            delete_selection(self.path)
        except OSError as exc:
            logger.warning("Failed to clear selection file %s: %s", self.path, exc)
        self.refresh()
