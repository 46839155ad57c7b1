"""Tests for the console and batch file sinks."""

import io
import json
import os
import tempfile
import threading
from datetime import datetime, timezone

from log_tailer.config import Config
from log_tailer.models import LogRecord
from log_tailer.sinks import BatchFileSink, ConsoleSink, build_sink


def _record(message="hello", service="app"):
    return LogRecord(datetime(2025, 1, 1, tzinfo=timezone.utc), service, message, f"/logs/{service}.log")


class TestConsoleSink:
    def test_prints_json(self):
        out = io.StringIO()
        ConsoleSink(out).accept(_record())
        line = out.getvalue()
        assert line.startswith("Log sent: ")
        payload = json.loads(line[len("Log sent: "):])
        assert payload["service"] == "app"
        assert payload["message"] == "hello"
        assert payload["timestamp"] == "2025-01-01T00:00:00+00:00"
        assert payload["source_file"] == "/logs/app.log"
        assert set(payload) == {"timestamp", "service", "message", "source_file"}

    def test_escapes_quotes(self):
        out = io.StringIO()
        ConsoleSink(out).accept(_record('say "hi"'))
        payload = json.loads(out.getvalue()[len("Log sent: "):])
        assert payload["message"] == 'say "hi"'


class TestBatchFileSink:
    def _files(self, d):
        return sorted(f for f in os.listdir(d) if f.startswith("collected_"))

    def test_flushes_at_batch_size(self, tmp_path):
        sink = BatchFileSink(str(tmp_path), batch_size=3)
        for i in range(7):
            sink.accept(_record(f"line {i}"))
        assert sink.batch_count == 2
        assert sink.total_records == 6

        sink.close()
        files = self._files(tmp_path)
        assert len(files) == 3
        with open(tmp_path / files[-1]) as f:
            assert [d["message"] for d in json.load(f)] == ["line 6"]

    def test_close_with_empty_buffer_writes_nothing(self, tmp_path):
        sink = BatchFileSink(str(tmp_path / "out"), batch_size=5)
        sink.close()
        assert not os.path.exists(tmp_path / "out")

    def test_no_tmp_files_left(self, tmp_path):
        sink = BatchFileSink(str(tmp_path), batch_size=1)
        sink.accept(_record())
        assert not [f for f in os.listdir(tmp_path) if f.endswith(".tmp")]

    def test_unwritable_output_keeps_buffer_bounded(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        sink = BatchFileSink(str(blocker), batch_size=2)

        for i in range(10):
            sink.accept(_record(f"line {i}"))
            assert sink.buffered <= 2

        assert sink.dropped_records == 10
        assert sink.total_records == 0
        assert sink.batch_count == 0

    def test_close_on_unwritable_output_drops_remainder(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        sink = BatchFileSink(str(blocker), batch_size=5)
        sink.accept(_record())
        sink.close()
        assert sink.buffered == 0
        assert sink.dropped_records == 1

    def test_recovers_after_failed_batch(self, tmp_path, monkeypatch):
        sink = BatchFileSink(str(tmp_path), batch_size=1)
        real_mkstemp = tempfile.mkstemp
        calls = []

        def flaky_mkstemp(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise OSError("disk full")
            return real_mkstemp(*args, **kwargs)

        monkeypatch.setattr("log_tailer.sinks.tempfile.mkstemp", flaky_mkstemp)
        sink.accept(_record("lost"))
        sink.accept(_record("kept"))

        assert sink.dropped_records == 1
        assert sink.total_records == 1
        files = self._files(tmp_path)
        assert len(files) == 1
        with open(tmp_path / files[0]) as f:
            assert [d["message"] for d in json.load(f)] == ["kept"]

    def test_concurrent_accept(self, tmp_path):
        sink = BatchFileSink(str(tmp_path), batch_size=10)

        def worker(n):
            for i in range(50):
                sink.accept(_record(f"{n}-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        sink.close()

        messages = []
        for name in self._files(tmp_path):
            with open(tmp_path / name) as f:
                messages.extend(d["message"] for d in json.load(f))
        assert sorted(messages) == sorted(f"{n}-{i}" for n in range(4) for i in range(50))


class TestBuildSink:
    def test_console(self):
        assert isinstance(build_sink(Config()), ConsoleSink)

    def test_batch(self, tmp_path):
        sink = build_sink(Config(sink="batch", output_dir=str(tmp_path), batch_size=7))
        assert isinstance(sink, BatchFileSink)
