"""Bounded undo/redo stacks of full snapshots."""

from __future__ import annotations

from collections import deque
from typing import Any

Snapshot = dict[str, Any]


class SnapshotHistory:
    """Two bounded stacks. Pushing past ``limit`` evicts the oldest entry."""

    def __init__(self, limit: int = 100) -> None:
        if limit < 1:
            raise ValueError(f"history limit must be at least 1, got {limit}")
        self.limit = limit
        self._undo: deque[Snapshot] = deque(maxlen=limit)
        self._redo: deque[Snapshot] = deque(maxlen=limit)

    def record(self, snapshot: Snapshot) -> None:
        """Push a pre-change snapshot; a new action invalidates the redo stack."""
        self._undo.append(snapshot)
        self._redo.clear()

    def pop_undo(self, current: Snapshot) -> Snapshot | None:
        """Pop the last undo snapshot and push ``current`` onto the redo stack."""
        if not self._undo:
            return None
        snapshot = self._undo.pop()
        self._redo.append(current)
        return snapshot

    def pop_redo(self, current: Snapshot) -> Snapshot | None:
        if not self._redo:
            return None
        snapshot = self._redo.pop()
        self._undo.append(current)
        return snapshot

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
