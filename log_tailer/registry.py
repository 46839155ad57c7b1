"""WatchSet: per-file cursor store shared by the scanner, reconciler and readers.

Structural changes (insert) are serialized by a map-level lock. Per-file
cursor state is mutated only by the tail pass that owns the file, see
``TailReader``.
"""

import os
import logging
import threading

from log_tailer.errors import AlreadyTrackedError, NotTrackedError
from log_tailer.models import TrackedFile

logger = logging.getLogger(__name__)


class WatchSet:
    def __init__(self):
        self._files: dict[str, TrackedFile] = {}
        self._lock = threading.Lock()

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return os.path.abspath(path) in self._files

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def paths(self) -> list[str]:
        with self._lock:
            return list(self._files)

    def register(self, path: str) -> TrackedFile:
        """Open ``path`` and start tracking it from its current end.

        Pre-existing content is never delivered: the initial offset is the
        file size at discovery time.

        Raises:
            AlreadyTrackedError: the path is already in the set.
            OSError: the file could not be opened or stat'ed.
        """
        abs_path = os.path.abspath(path)
        with self._lock:
            if abs_path in self._files:
                raise AlreadyTrackedError(abs_path)

            fh = open(abs_path, "rb")
            try:
                stat = os.fstat(fh.fileno())
                fh.seek(stat.st_size)
            except OSError:
                fh.close()
                raise

            tracked = TrackedFile(
                path=abs_path,
                handle=fh,
                offset=stat.st_size,
                size=stat.st_size,
                inode=stat.st_ino,
            )
            self._files[abs_path] = tracked

        logger.info("Tracking %s from offset %d", abs_path, tracked.offset)
        return tracked

    def find(self, path: str) -> TrackedFile | None:
        with self._lock:
            return self._files.get(os.path.abspath(path))

    def get(self, path: str) -> TrackedFile:
        tracked = self.find(path)
        if tracked is None:
            raise NotTrackedError(os.path.abspath(path))
        return tracked

    def advance(self, path: str, new_offset: int, size: int | None = None):
        tracked = self.get(path)
        tracked.offset = new_offset
        if size is not None:
            tracked.size = size

    def reset(self, path: str):
        """Rewind the stored cursor to byte 0 (after rotation)."""
        tracked = self.get(path)
        tracked.offset = 0
        tracked.size = 0

    def reopen(self, path: str) -> TrackedFile:
        """Swap the handle for a fresh one on whatever file now lives at ``path``.

        Used when the path was replaced by a new file (inode changed). The
        cursor is rewound to 0. On failure the old handle is kept.
        """
        tracked = self.get(path)
        fh = open(tracked.path, "rb")
        try:
            inode = os.fstat(fh.fileno()).st_ino
        except OSError:
            fh.close()
            raise

        old = tracked.handle
        tracked.handle = fh
        tracked.inode = inode
        tracked.offset = 0
        tracked.size = 0
        try:
            old.close()
        except OSError as e:
            logger.debug("Failed to close old handle for %s: %s", tracked.path, e)
        logger.info("Reopened %s (inode=%d)", tracked.path, inode)
        return tracked

    def close_all(self):
        """Close every open handle. Entries stay in the set."""
        with self._lock:
            files = list(self._files.values())
        for tracked in files:
            try:
                tracked.handle.close()
            except OSError as e:
                logger.warning("Failed to close %s: %s", tracked.path, e)
