"""Shared fixtures: a recording sink and an in-memory notifier."""

import os
import queue
import threading
import time

import pytest

from log_tailer.registry import WatchSet


class RecordingSink:
    def __init__(self):
        self._lock = threading.Lock()
        self.records = []
        self.closed = False

    def accept(self, record):
        with self._lock:
            self.records.append(record)

    def close(self):
        self.closed = True

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [r.message for r in self.records]


class FakeNotifier:
    """Stands in for the watchdog notifier; events are pushed by the test."""

    def __init__(self, fail_paths=()):
        self._queue = queue.Queue()
        self.fail_paths = {os.path.abspath(p) for p in fail_paths}
        self.subscribed: list[str] = []
        self.unsubscribed: list[str] = []
        self.directories: list[str] = []
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def watch_directory(self, dir_path):
        self.directories.append(os.path.abspath(dir_path))

    def subscribe(self, path):
        abs_path = os.path.abspath(path)
        if abs_path in self.fail_paths:
            raise OSError(f"cannot watch {abs_path}")
        self.subscribed.append(abs_path)

    def unsubscribe(self, path):
        self.unsubscribed.append(os.path.abspath(path))

    def emit(self, event):
        self._queue.put(event)

    def events(self):
        while True:
            event = self._queue.get()
            if event is None:
                return
            yield event

    def close(self):
        if not self.closed:
            self.closed = True
            self._queue.put(None)


def wait_for(predicate, timeout=3.0, interval=0.02) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def append(path, data: str):
    with open(path, "a", encoding="utf-8", newline="") as f:
        f.write(data)
        f.flush()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def watch_set():
    ws = WatchSet()
    yield ws
    ws.close_all()


@pytest.fixture
def log_dir(tmp_path):
    d = tmp_path / "logs"
    d.mkdir()
    return d
