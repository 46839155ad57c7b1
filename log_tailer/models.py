"""Data model for tracked files and emitted log records."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO


@dataclass(frozen=True)
class LogRecord:
    timestamp: datetime  # time of processing, not of the original write
    service: str         # file base name without extension
    message: str         # raw line text, terminator stripped
    source_file: str = ""


def record_to_dict(record: LogRecord) -> dict:
    return {
        "timestamp": record.timestamp.isoformat(),
        "service": record.service,
        "message": record.message,
        "source_file": record.source_file,
    }


@dataclass
class TrackedFile:
    """Cursor state for one watched file.

    ``offset`` and ``handle`` belong to whichever tail pass currently holds
    ``running``; nothing else touches them while a pass is in flight.
    """

    path: str
    handle: BinaryIO
    offset: int
    size: int
    inode: int = 0
    pending: bool = False
    running: bool = False
    state_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
