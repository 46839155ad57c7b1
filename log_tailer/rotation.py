"""Rotation/truncation detection.

The decision is a size heuristic: if the file is now shorter than what we
have already read, it was truncated or replaced and reading restarts at byte
0. A replacement that happens to be the same size or larger than the stored
offset (for example copy-truncate rotation followed by a quick burst of
writes) cannot be told apart from plain growth, and its first bytes are
skipped. Rename-style rotation is caught separately by comparing inodes, see
``replaced``.
"""

import enum


class Decision(enum.Enum):
    CONTINUE = "continue"
    RESET = "reset"


def decide(last_offset: int, current_size: int, replaced: bool = False) -> Decision:
    """Return RESET when reading must restart from byte 0, else CONTINUE."""
    if replaced or current_size < last_offset:
        return Decision.RESET
    return Decision.CONTINUE
