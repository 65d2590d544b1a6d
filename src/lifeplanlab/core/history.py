"""
Linear undo/redo history of whole-plan snapshots.
"""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

from .errors import ConfigError, HistoryBoundary

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 50

T = TypeVar("T")


class HistoryStack(Generic[T]):
    """
    Bounded, linear sequence of snapshots with a current pointer.

    ``push`` drops every entry after the pointer, appends the new snapshot and
    moves the pointer onto it. Once the cap is exceeded the oldest entries are
    discarded. ``undo`` and ``redo`` move the pointer and are no-ops at either
    end of the history.

    Snapshots are stored by reference; callers must treat a pushed plan as
    immutable.

    **Example Usage:**
        ```python
        history = HistoryStack(s0)
        history.push(s1)
        history.push(s2)
        history.undo()      # -> s1
        history.push(s3)    # s2 can no longer be redone
        history.can_redo    # False
        ```
    """

    def __init__(self, initial: T, max_entries: int = DEFAULT_MAX_HISTORY):
        if max_entries < 1:
            raise ConfigError("max_entries must be >= 1")
        self._entries: list[T] = [initial]
        self._index = 0
        self.max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> T:
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def entries(self) -> list[T]:
        """Snapshots from oldest to newest."""
        return list(self._entries)

    def push(self, snapshot: T) -> T:
        """Record ``snapshot`` as the new current entry and return it."""
        del self._entries[self._index + 1 :]
        self._entries.append(snapshot)
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            del self._entries[:overflow]
            logger.debug("History cap %d reached; dropped %d entries", self.max_entries, overflow)
        self._index = len(self._entries) - 1
        return snapshot

    def undo(self) -> T:
        """Step back one entry if possible and return the current snapshot."""
        if self.can_undo:
            self._index -= 1
        return self.current

    def redo(self) -> T:
        """Step forward one entry if possible and return the current snapshot."""
        if self.can_redo:
            self._index += 1
        return self.current

    def restore(self, index: int) -> T:
        """
        Move the pointer to ``index``.

        Raises:
            HistoryBoundary: If ``index`` is outside the recorded history
        """
        if not 0 <= index < len(self._entries):
            raise HistoryBoundary(
                f"History index {index} outside [0, {len(self._entries) - 1}]"
            )
        self._index = index
        return self.current

    def reset(self, snapshot: T) -> T:
        """Discard all history and start over from ``snapshot``."""
        self._entries = [snapshot]
        self._index = 0
        return snapshot
