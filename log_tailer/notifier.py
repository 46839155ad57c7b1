"""Filesystem change notifications backed by a watchdog Observer.

Watchdog watches directories, so subscribing a file schedules a watch on its
parent directory (once) and whitelists the file. Events are funnelled onto a
queue; ``events()`` yields them in delivery order until ``close()``.
"""

import os
import enum
import queue
import logging
import threading
from dataclasses import dataclass

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    CHANGED = "changed"
    CREATED = "created"
    ERROR = "error"


@dataclass(frozen=True)
class FileEvent:
    kind: EventKind
    path: str = ""
    error: Exception | None = None


_CLOSED = None


class WatchdogNotifier(FileSystemEventHandler):
    def __init__(self, observer=None):
        super().__init__()
        self._observer = observer if observer is not None else Observer()
        self._queue: queue.Queue = queue.Queue()
        self._lock = threading.Lock()
        self._subscribed: set[str] = set()
        self._watches: dict[str, object] = {}
        self._pinned_dirs: set[str] = set()
        self._closed = False

    def start(self):
        self._observer.start()

    def watch_directory(self, dir_path: str):
        """Watch a directory for file creation, independent of subscriptions."""
        abs_dir = os.path.abspath(dir_path)
        with self._lock:
            self._schedule(abs_dir)
            self._pinned_dirs.add(abs_dir)

    def subscribe(self, path: str):
        """Deliver CHANGED events for ``path``. Raises OSError if the watch fails."""
        abs_path = os.path.abspath(path)
        with self._lock:
            self._schedule(os.path.dirname(abs_path))
            self._subscribed.add(abs_path)
        logger.debug("Subscribed %s", abs_path)

    def unsubscribe(self, path: str):
        abs_path = os.path.abspath(path)
        dir_path = os.path.dirname(abs_path)
        with self._lock:
            self._subscribed.discard(abs_path)
            if dir_path in self._pinned_dirs:
                return
            if any(os.path.dirname(p) == dir_path for p in self._subscribed):
                return
            watch = self._watches.pop(dir_path, None)
            if watch is not None:
                self._observer.unschedule(watch)
                logger.debug("Stopped watching directory %s", dir_path)

    def is_subscribed(self, path: str) -> bool:
        with self._lock:
            return os.path.abspath(path) in self._subscribed

    def _schedule(self, dir_path: str):
        """Caller holds the lock."""
        if dir_path in self._watches:
            return
        self._watches[dir_path] = self._observer.schedule(self, dir_path, recursive=False)
        logger.info("Watching directory: %s", dir_path)

    def _put(self, event: FileEvent):
        if not self._closed:
            self._queue.put(event)

    def on_modified(self, event):
        if event.is_directory:
            return
        abs_path = os.path.abspath(event.src_path)
        if self.is_subscribed(abs_path):
            self._put(FileEvent(EventKind.CHANGED, abs_path))

    def on_created(self, event):
        if event.is_directory:
            return
        self._put(FileEvent(EventKind.CREATED, os.path.abspath(event.src_path)))

    def on_moved(self, event):
        # A file renamed into place (rename-style rotation) is a new file
        if event.is_directory:
            return
        self._put(FileEvent(EventKind.CREATED, os.path.abspath(event.dest_path)))

    def events(self):
        """Yield FileEvents until the notifier is closed."""
        while True:
            event = self._queue.get()
            if event is _CLOSED:
                return
            yield event

    def close(self):
        """Stop the observer and end the event stream."""
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=5)
        self._queue.put(_CLOSED)
