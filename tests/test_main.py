"""Tests for the command-line entry point."""

import signal

import pytest

from log_tailer import main as main_module
from log_tailer.collector import LogCollector


@pytest.fixture(autouse=True)
def restore_signals():
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


class TestMain:
    def test_creates_missing_log_dir(self, tmp_path, monkeypatch):
        ran = []
        monkeypatch.setattr(LogCollector, "run", lambda self: ran.append(self))
        log_dir = tmp_path / "fresh" / "logs"

        code = main_module.main(["--log-dir", str(log_dir), "--poll-interval", "1"])

        assert code == 0
        assert log_dir.is_dir()
        assert len(ran) == 1

    def test_unusable_log_dir_is_fatal(self, tmp_path, monkeypatch):
        monkeypatch.setattr(LogCollector, "run", lambda self: pytest.fail("should not run"))
        blocker = tmp_path / "file"
        blocker.write_text("")

        code = main_module.main(["--log-dir", str(blocker / "logs")])

        assert code == 1

    def test_bad_log_level_is_fatal(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setattr(LogCollector, "run", lambda self: pytest.fail("should not run"))

        code = main_module.main(["--log-dir", str(tmp_path), "--log-level", "chatty"])

        assert code == 1
        assert "invalid configuration" in caplog.text

    def test_bad_env_poll_interval_is_fatal(self, tmp_path, monkeypatch):
        monkeypatch.setattr(LogCollector, "run", lambda self: pytest.fail("should not run"))
        monkeypatch.setenv("POLL_INTERVAL", "soon")

        assert main_module.main(["--log-dir", str(tmp_path)]) == 1

    def test_rejects_unknown_sink(self):
        with pytest.raises(SystemExit):
            main_module.build_cli_parser().parse_args(["--sink", "kafka"])
