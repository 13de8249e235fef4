"""Debounced watching of task source directories."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class _DebouncedHandler(FileSystemEventHandler):
    """Collects changed file paths and remembers when the last one arrived."""

    def __init__(self, pending: set[str], lock: threading.Lock, changed: threading.Event) -> None:
        super().__init__()
        self._pending = pending
        self._lock = lock
        self._changed = changed
        self.last_event = 0.0

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)

        with self._lock:
            self._pending.update(str(p) for p in paths)
            self.last_event = time.monotonic()
        self._changed.set()


class SourceWatcher:
    """Watches source directories (non-recursively) for file changes.

    ``wait_for_changes`` blocks until something changed and then until the
    directories have been quiet for ``debounce_seconds``, so an editor's
    temp-file-and-rename save produces one rebuild.
    """

    def __init__(self, directories: Iterable[Path], debounce_seconds: float = 0.5) -> None:
        self._directories = sorted({Path(d).resolve() for d in directories})
        self._debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._changed = threading.Event()
        self._pending: set[str] = set()
        self._observer: Observer | None = None
        self._handler = _DebouncedHandler(self._pending, self._lock, self._changed)

    @property
    def directories(self) -> list[Path]:
        return list(self._directories)

    def start(self) -> None:
        if self._observer is not None:
            return
        self._observer = Observer()
        for directory in self._directories:
            self._observer.schedule(self._handler, str(directory), recursive=False)
            logger.info("Watching %s for changes", directory)
        self._observer.start()

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching")

    def wait_for_changes(self, timeout: float | None = None) -> set[str]:
        """Return the paths changed since the last call, or an empty set on timeout."""
        if not self._changed.wait(timeout):
            return set()
        while True:
            with self._lock:
                quiet = time.monotonic() - self._handler.last_event
            if quiet >= self._debounce_seconds:
                break
            time.sleep(self._debounce_seconds - quiet)

        with self._lock:
            changed = set(self._pending)
            self._pending.clear()
            self._changed.clear()
        return changed
