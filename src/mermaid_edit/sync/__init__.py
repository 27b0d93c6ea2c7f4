"""Text/model synchronisation: SyncEngine with debounce and undo/redo."""

from mermaid_edit.sync.debounce import Debouncer
from mermaid_edit.sync.engine import SyncEngine
from mermaid_edit.sync.history import SnapshotHistory

__all__ = ["Debouncer", "SnapshotHistory", "SyncEngine"]
