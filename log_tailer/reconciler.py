"""Maps notification events onto tail passes."""

import enum
import logging
from typing import Callable

from log_tailer.notifier import EventKind, FileEvent
from log_tailer.registry import WatchSet

logger = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


class ChangeReconciler:
    """Handles one event at a time from the notification loop.

    A write on a tracked file dispatches a pass and returns without waiting
    for it. Creates are left to the next periodic scan. Once stopped, every
    event is ignored.
    """

    def __init__(self, watch_set: WatchSet, dispatch: Callable[[str], None]):
        self._watch_set = watch_set
        self._dispatch = dispatch
        self._state = State.IDLE

    @property
    def state(self) -> State:
        return self._state

    def handle(self, event: FileEvent):
        if self._state is State.STOPPED:
            logger.debug("Stopped, ignoring %s event for %s", event.kind.value, event.path)
            return

        if event.kind is EventKind.CHANGED:
            if event.path not in self._watch_set:
                logger.debug("Write on untracked file ignored: %s", event.path)
                return
            self._state = State.DISPATCHING
            try:
                self._dispatch(event.path)
            finally:
                if self._state is State.DISPATCHING:
                    self._state = State.IDLE

        elif event.kind is EventKind.CREATED:
            logger.info("New file created: %s (picked up by next scan)", event.path)

        elif event.kind is EventKind.ERROR:
            logger.warning("Watcher error: %s", event.error)

    def stop(self):
        self._state = State.STOPPED
