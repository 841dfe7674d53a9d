"""Undo/redo history over flow snapshots."""

from typing import Generic, List, Optional, TypeVar

import structlog

T = TypeVar("T")
logger = structlog.get_logger(__name__)


class History(Generic[T]):
    """Linear undo/redo stack.

    Holds an ordered list of immutable snapshots and a pointer to the
    current one. A push after an undo discards the redo branch. When
    ``limit`` is set the oldest snapshots are dropped once the stack
    grows beyond it.
    """

    def __init__(self, initial: T, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError("History limit must be at least 1")
        self._snapshots: List[T] = [initial]
        self._pointer = 0
        self._limit = limit

    def push(self, snapshot: T) -> T:
        """Record ``snapshot`` as the new current state."""
        self._snapshots = self._snapshots[: self._pointer + 1]
        self._snapshots.append(snapshot)

        if self._limit is not None and len(self._snapshots) > self._limit:
            overflow = len(self._snapshots) - self._limit
            del self._snapshots[:overflow]
            logger.debug("history_trimmed", dropped=overflow, limit=self._limit)

        self._pointer = len(self._snapshots) - 1
        return snapshot

    def undo(self) -> T:
        if self._pointer > 0:
            self._pointer -= 1
        return self._snapshots[self._pointer]

    def redo(self) -> T:
        if self._pointer < len(self._snapshots) - 1:
            self._pointer += 1
        return self._snapshots[self._pointer]

    def current(self) -> T:
        return self._snapshots[self._pointer]

    def replace_current(self, snapshot: T) -> T:
        """Swap the current snapshot in place without touching undo or redo."""
        self._snapshots[self._pointer] = snapshot
        return snapshot

    @property
    def can_undo(self) -> bool:
        return self._pointer > 0

    @property
    def can_redo(self) -> bool:
        return self._pointer < len(self._snapshots) - 1

    def __len__(self) -> int:
        return len(self._snapshots)
