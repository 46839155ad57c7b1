"""Default line parser: one raw line in, one LogRecord out.

Both the parser and the service labeler are plain callables so deployments
can swap them without touching the tailing engine.
"""

import os
from datetime import datetime, timezone
from typing import Callable

from log_tailer.models import LogRecord

Labeler = Callable[[str], str]
Parser = Callable[[str, str], LogRecord]


def service_from_path(path: str) -> str:
    """``/var/log/app.log`` -> ``app``."""
    return os.path.splitext(os.path.basename(path))[0]


def parse_line(path: str, raw_line: str, labeler: Labeler = service_from_path) -> LogRecord:
    return LogRecord(
        timestamp=datetime.now(timezone.utc),
        service=labeler(path),
        message=raw_line,
        source_file=path,
    )


def make_parser(labeler: Labeler) -> Parser:
    """Build a parser that labels records with a custom policy."""
    def _parse(path: str, raw_line: str) -> LogRecord:
        return parse_line(path, raw_line, labeler)
    return _parse
