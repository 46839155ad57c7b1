"""Record sinks: anything with ``accept(record)`` (and optionally ``close()``)."""

import os
import sys
import json
import logging
import tempfile
import threading
from datetime import datetime

from log_tailer.config import Config
from log_tailer.models import LogRecord, record_to_dict

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Print each record as a JSON object on stdout."""

    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def accept(self, record: LogRecord):
        line = "Log sent: " + json.dumps(record_to_dict(record))
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()


class BatchFileSink:
    """Buffer records and write them out as JSON array files.

    A file is written every ``batch_size`` records and on ``close()``. A batch
    that cannot be written is logged and dropped, so the buffer never holds
    more than ``batch_size`` records.
    """

    def __init__(self, output_dir: str, batch_size: int = 50):
        self._output_dir = output_dir
        self._batch_size = batch_size
        self._buffer: list[dict] = []
        self._lock = threading.Lock()
        self._batch_count = 0
        self._total_records = 0
        self._dropped_records = 0

    @property
    def batch_count(self) -> int:
        return self._batch_count

    @property
    def total_records(self) -> int:
        return self._total_records

    @property
    def dropped_records(self) -> int:
        return self._dropped_records

    @property
    def buffered(self) -> int:
        with self._lock:
            return len(self._buffer)

    def accept(self, record: LogRecord):
        with self._lock:
            self._buffer.append(record_to_dict(record))
            if len(self._buffer) >= self._batch_size:
                self._flush()

    def close(self):
        with self._lock:
            self._flush()

    def _flush(self):
        """Write the buffer atomically. Caller holds the lock."""
        if not self._buffer:
            return

        batch, self._buffer = self._buffer, []
        try:
            filename = self._write(batch)
        except OSError as e:
            self._dropped_records += len(batch)
            logger.warning("Failed to write batch of %d records to %s, dropped: %s",
                           len(batch), self._output_dir, e)
            return

        self._total_records += len(batch)
        logger.info("Flushed %d records to %s (total: %d)", len(batch), filename, self._total_records)

    def _write(self, batch: list[dict]) -> str:
        os.makedirs(self._output_dir, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"collected_{ts}_{self._batch_count + 1:03d}.json"
        target = os.path.join(self._output_dir, filename)

        fd, tmp = tempfile.mkstemp(dir=self._output_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(batch, f, indent=2)
            os.replace(tmp, target)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

        self._batch_count += 1
        return filename


def build_sink(config: Config):
    if config.sink == "batch":
        return BatchFileSink(config.output_dir, config.batch_size)
    if config.sink == "console":
        return ConsoleSink()
    raise ValueError(f"Unknown sink: {config.sink!r}")
