"""LogCollector: owns the scan loop, the notification loop and the tail workers."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from log_tailer.config import Config
from log_tailer.errors import SetupError
from log_tailer.parsers import Parser, parse_line
from log_tailer.reader import TailReader
from log_tailer.reconciler import ChangeReconciler
from log_tailer.registry import WatchSet
from log_tailer.scanner import FileScanner

logger = logging.getLogger(__name__)


class LogCollector:
    """Wires the tailing engine together and runs it on background threads.

    One thread rescans the directory every ``poll_interval`` seconds, one
    thread consumes notifier events, and tail passes run on a thread pool.
    Closing the notifier's event stream is a clean shutdown signal.
    """

    def __init__(self, config: Config, sink, notifier, parser: Parser = parse_line,
                 watch_set: WatchSet | None = None):
        self._config = config
        self._sink = sink
        self._notifier = notifier
        self._watch_set = watch_set if watch_set is not None else WatchSet()
        self._reader = TailReader(self._watch_set, sink, parser)
        self._scanner = FileScanner(config.log_dir, config.file_pattern,
                                    self._watch_set, notifier)
        self._reconciler = ChangeReconciler(self._watch_set, self._dispatch)
        self._executor = ThreadPoolExecutor(max_workers=config.max_workers,
                                            thread_name_prefix="tail")
        self._shutdown = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._scan_thread: threading.Thread | None = None
        self._event_thread: threading.Thread | None = None

    @property
    def watch_set(self) -> WatchSet:
        return self._watch_set

    @property
    def scanner(self) -> FileScanner:
        return self._scanner

    @property
    def reconciler(self) -> ChangeReconciler:
        return self._reconciler

    def stats(self) -> dict:
        stats = self._reader.stats()
        stats["files_tracked"] = len(self._watch_set)
        return stats

    def start(self):
        """Start watching. Raises SetupError if the notifier cannot be started."""
        try:
            self._notifier.watch_directory(self._config.log_dir)
            self._notifier.start()
        except OSError as e:
            raise SetupError(f"Cannot watch {self._config.log_dir}: {e}") from e

        self._scanner.scan()

        self._scan_thread = threading.Thread(target=self._scan_loop, name="scan", daemon=True)
        self._event_thread = threading.Thread(target=self._event_loop, name="events", daemon=True)
        self._scan_thread.start()
        self._event_thread.start()
        logger.info("Collector started: dir=%s, pattern=%s, poll_interval=%.1fs",
                    self._config.log_dir, self._config.file_pattern, self._config.poll_interval)

    def run(self):
        """Start, block until shutdown is requested, then stop."""
        self.start()
        try:
            while not self._shutdown.wait(1.0):
                pass
        finally:
            self.stop()

    def request_stop(self):
        self._shutdown.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._shutdown.wait(timeout)

    def stop(self):
        """Stop accepting triggers, let in-flight passes finish, release files."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        logger.info("Shutting down collector...")
        self._shutdown.set()
        self._reconciler.stop()
        self._notifier.close()
        for t in (self._scan_thread, self._event_thread):
            if t is not None:
                t.join(timeout=5)
                if t.is_alive():
                    logger.warning("Thread %s did not exit within 5s", t.name)
        self._scanner.stop()
        self._executor.shutdown(wait=True)
        self._watch_set.close_all()

        close = getattr(self._sink, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                logger.warning("Failed to close sink: %s", e)

        logger.info("Collector stopped: %s", self.stats())

    def _scan_loop(self):
        while not self._shutdown.wait(self._config.poll_interval):
            try:
                self._scanner.scan()
            except Exception:
                logger.exception("Scan pass failed")

    def _event_loop(self):
        for event in self._notifier.events():
            try:
                self._reconciler.handle(event)
            except Exception:
                logger.exception("Failed to handle %s event for %s", event.kind.value, event.path)
        logger.info("Notification channel closed")
        self._shutdown.set()

    def _dispatch(self, path: str):
        try:
            self._executor.submit(self._run_pass, path)
        except RuntimeError:
            logger.debug("Executor shut down, dropping pass for %s", path)

    def _run_pass(self, path: str):
        try:
            self._reader.tail(path)
        except Exception:
            logger.exception("Tail pass failed for %s", path)
