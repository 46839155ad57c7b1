#!/usr/bin/env python3
"""Log Tailing Collector — Entry Point."""

import os
import sys
import signal
import logging
import argparse

from log_tailer.collector import LogCollector
from log_tailer.config import SINKS, load_config, load_yaml_config
from log_tailer.errors import SetupError
from log_tailer.notifier import WatchdogNotifier
from log_tailer.sinks import build_sink

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log Tailing Collector")
    parser.add_argument("--log-dir", dest="log_dir", default=None,
                        help="Directory to watch (default: ./logs)")
    parser.add_argument("--pattern", dest="file_pattern", default=None,
                        help="Filename glob pattern (default: *.log)")
    parser.add_argument("--poll-interval", dest="poll_interval", type=float, default=None,
                        help="Seconds between directory scans (default: 10)")
    parser.add_argument("--max-workers", dest="max_workers", type=int, default=None,
                        help="Concurrent tail passes (default: 4)")
    parser.add_argument("--sink", choices=SINKS, default=None,
                        help="Where records go (default: console)")
    parser.add_argument("--output-dir", dest="output_dir", default=None,
                        help="Output directory for the batch sink (default: collected_logs/)")
    parser.add_argument("--log-level", dest="log_level", default=None,
                        help="Logging level (default: INFO)")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file")
    return parser


def _ensure_log_dir(path: str):
    if os.path.isdir(path):
        return
    logger.info("Log directory %s not found, creating it", path)
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Cannot create log directory {path}: {e}") from e


def _setup_logging(level: str):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [TAILER] %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_cli_parser().parse_args(argv)
    try:
        config = load_config(args, load_yaml_config(args.config))
    except ValueError as e:
        _setup_logging("INFO")
        logger.error("Startup failed: invalid configuration: %s", e)
        return 1

    _setup_logging(config.log_level)
    logger.info("Config: log_dir=%s, pattern=%s, poll_interval=%.1f, sink=%s",
                config.log_dir, config.file_pattern, config.poll_interval, config.sink)

    try:
        _ensure_log_dir(config.log_dir)
        try:
            notifier = WatchdogNotifier()
        except OSError as e:
            raise SetupError(f"Cannot create file watcher: {e}") from e
        collector = LogCollector(config, build_sink(config), notifier)

        def _signal_handler(sig, frame):
            logger.info("Shutdown signal received, stopping...")
            collector.request_stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        collector.run()
    except SetupError as e:
        logger.error("Startup failed: %s", e)
        return 1

    logger.info("Log Tailing Collector stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
