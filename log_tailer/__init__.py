"""Log tailing collector: follows append-only log files in a directory."""

__version__ = "0.1.0"
