"""Periodic directory scan: discovers matching files and starts tracking them."""

import os
import re
import glob
import logging
import threading

from log_tailer.errors import AlreadyTrackedError
from log_tailer.registry import WatchSet

logger = logging.getLogger(__name__)


def list_matching(log_dir: str, pattern: str) -> list[str]:
    """Absolute paths of regular files in ``log_dir`` matching ``pattern``."""
    base = glob.escape(os.path.abspath(log_dir))
    return sorted(p for p in glob.glob(os.path.join(base, pattern)) if os.path.isfile(p))


class FileScanner:
    """Diffs the directory listing against the watch set.

    A path that cannot be subscribed or opened is skipped and retried on the
    next scan. Scans are serialized so a path is never subscribed twice.
    """

    def __init__(self, log_dir: str, pattern: str, watch_set: WatchSet, notifier):
        self._log_dir = log_dir
        self._pattern = pattern
        self._watch_set = watch_set
        self._notifier = notifier
        self._lock = threading.Lock()
        self._stopped = False

    def stop(self):
        """Wait for an in-progress scan, then refuse further ones."""
        with self._lock:
            self._stopped = True

    def scan(self) -> list[str]:
        """Register new files. Returns the paths registered in this pass."""
        with self._lock:
            if self._stopped:
                return []
            try:
                paths = list_matching(self._log_dir, self._pattern)
            except (OSError, re.error) as e:
                logger.warning("Scan of %s (%s) failed: %s", self._log_dir, self._pattern, e)
                return []

            registered = []
            for path in paths:
                if path in self._watch_set:
                    continue
                if self._track(path):
                    registered.append(path)

        if registered:
            logger.debug("Scan registered %d new file(s)", len(registered))
        return registered

    def _track(self, path: str) -> bool:
        try:
            self._notifier.subscribe(path)
        except OSError as e:
            logger.warning("Failed to subscribe %s: %s", path, e)
            return False

        try:
            self._watch_set.register(path)
        except AlreadyTrackedError:
            return False
        except OSError as e:
            logger.warning("Failed to open %s: %s", path, e)
            self._notifier.unsubscribe(path)
            return False
        return True
