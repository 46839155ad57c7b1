"""Exceptions raised by the tailing engine."""


class TailerError(Exception):
    """Base class for collector errors."""


class AlreadyTrackedError(TailerError):
    """Raised when registering a path that is already in the watch set."""

    def __init__(self, path: str):
        super().__init__(f"Already tracked: {path}")
        self.path = path


class NotTrackedError(TailerError):
    """Raised when looking up a path that is not in the watch set."""

    def __init__(self, path: str):
        super().__init__(f"Not tracked: {path}")
        self.path = path


class SetupError(TailerError):
    """Fatal startup failure (watch directory or notifier could not be created)."""
