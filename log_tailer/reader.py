"""TailReader: incremental, line-by-line reads of tracked files."""

import os
import logging
import threading

from log_tailer.models import TrackedFile
from log_tailer.parsers import Parser, parse_line
from log_tailer.registry import WatchSet
from log_tailer.rotation import Decision, decide

logger = logging.getLogger(__name__)


class TailReader:
    """Reads newly appended complete lines and hands records to the sink.

    At most one pass runs per file. A ``tail()`` call that arrives while a
    pass for the same file is in flight is folded into it: the running pass
    goes round again before giving the file up, so the new bytes are read
    exactly once.
    """

    def __init__(self, watch_set: WatchSet, sink, parser: Parser = parse_line):
        self._watch_set = watch_set
        self._sink = sink
        self._parser = parser
        self._stats_lock = threading.Lock()
        self._records_emitted = 0
        self._parse_errors = 0
        self._sink_errors = 0
        self._passes = 0

    def stats(self) -> dict:
        with self._stats_lock:
            return {
                "records_emitted": self._records_emitted,
                "parse_errors": self._parse_errors,
                "sink_errors": self._sink_errors,
                "passes": self._passes,
            }

    def tail(self, path: str):
        tracked = self._watch_set.find(path)
        if tracked is None:
            logger.debug("Not tracked, skipping pass: %s", path)
            return

        with tracked.state_lock:
            tracked.pending = True
            if tracked.running:
                return
            tracked.running = True

        try:
            while True:
                with tracked.state_lock:
                    if not tracked.pending:
                        tracked.running = False
                        return
                    tracked.pending = False
                self._read_pass(tracked)
        except Exception:
            with tracked.state_lock:
                tracked.running = False
            raise

    def _read_pass(self, tracked: TrackedFile) -> int:
        """One pass from the stored offset to the last complete line.

        Stat or seek failures leave the offset untouched so the same bytes
        are retried on the next trigger.
        """
        path = tracked.path
        with self._stats_lock:
            self._passes += 1

        try:
            stat = os.stat(path)
        except OSError as e:
            logger.warning("Failed to stat %s: %s", path, e)
            return 0

        replaced = stat.st_ino != tracked.inode
        if replaced:
            logger.info("File replaced (inode changed): %s. Reading from start.", path)
            try:
                self._watch_set.reopen(path)
            except OSError as e:
                logger.warning("Failed to reopen %s: %s", path, e)
                return 0

        if decide(tracked.offset, stat.st_size, replaced) is Decision.RESET:
            if not replaced:
                logger.info("File shrank (%d < %d), probably rotated: %s. Reading from start.",
                            stat.st_size, tracked.offset, path)
            self._watch_set.reset(path)

        fh = tracked.handle
        position = tracked.offset
        try:
            fh.seek(position)
        except (OSError, ValueError) as e:
            logger.warning("Failed to seek %s to %d: %s", path, position, e)
            return 0

        emitted = 0
        try:
            while True:
                line = fh.readline()
                if not line.endswith(b"\n"):
                    # EOF, or an unterminated tail that a later pass will read whole
                    break
                position += len(line)
                emitted += self._emit(path, line)
        except OSError as e:
            logger.warning("Read error on %s at offset %d: %s", path, position, e)

        self._watch_set.advance(path, position, max(stat.st_size, position))
        if emitted:
            logger.debug("Read %d line(s) from %s, offset now %d", emitted, path, position)
        return emitted

    def _emit(self, path: str, raw: bytes) -> int:
        line = raw[:-1]
        if line.endswith(b"\r"):
            line = line[:-1]
        text = line.decode("utf-8", errors="replace")

        try:
            record = self._parser(path, text)
        except Exception as e:
            logger.warning("Failed to parse line from %s: %s", path, e)
            with self._stats_lock:
                self._parse_errors += 1
            return 0

        try:
            self._sink.accept(record)
        except Exception as e:
            logger.warning("Sink rejected record from %s: %s", path, e)
            with self._stats_lock:
                self._sink_errors += 1
            return 0

        with self._stats_lock:
            self._records_emitted += 1
        return 1
