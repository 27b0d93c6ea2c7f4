"""SyncEngine: keeps diagram text and the editable model in step.

The engine owns one live FlowchartModel plus a node position table. Mermaid
text has no position syntax, so positions live beside the model and are
re-applied whenever the model is rebuilt from text. Structural edits are
recorded for undo and re-serialized after a debounce delay; moving a node
is neither.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from mermaid_edit.config import SerializerConfig, SyncConfig
from mermaid_edit.ir.entities import Edge, Node, Position
from mermaid_edit.ir.graph import GraphIR
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.parsers import parse
from mermaid_edit.serializers.mermaid import MermaidSerializer
from mermaid_edit.sync.debounce import Debouncer
from mermaid_edit.sync.history import SnapshotHistory
from mermaid_edit.types import NodeShape

logger = logging.getLogger(__name__)

T = TypeVar("T")

CodeChangeCallback = Callable[[str], None]


class SyncEngine:
    """Two-way sync between Mermaid text and a FlowchartModel.

    Args:
        config: Debounce delay and undo depth.
        serializer_config: Output formatting for generated text.
    """

    def __init__(self, config: SyncConfig | None = None, serializer_config: SerializerConfig | None = None) -> None:
        self.config = config or SyncConfig()
        self._serializer = MermaidSerializer(serializer_config)
        self._model = FlowchartModel()
        self._positions: dict[str, Position] = {}
        self._history = SnapshotHistory(self.config.history_limit)
        self._debouncer = Debouncer(self.config.debounce_delay, self._emit_code)
        self._on_code_change: CodeChangeCallback | None = None
        self._lock = threading.RLock()

    def set_on_code_change(self, callback: CodeChangeCallback | None) -> None:
        self._on_code_change = callback

    # ─── Text side ───────────────────────────────────────────────────────

    def update_from_code(self, code: str) -> FlowchartModel:
        """Replace the model with one parsed from ``code``.

        Known positions are re-applied to nodes that still exist. On failure
        the previous model and positions are kept and the error propagates.
        """
        with self._lock:
            try:
                model = parse(code)
            except Exception:
                logger.error("failed to parse diagram text", exc_info=True)
                raise
            for node_id, pos in self._positions.items():
                if model.has_node(node_id):
                    model.update_node(node_id, position=Position(pos.x, pos.y))
            self._debouncer.cancel()
            self._model = model
            return model

    def set_code(self, code: str) -> FlowchartModel:
        return self.update_from_code(code)

    def get_code(self) -> str:
        with self._lock:
            return self._serializer.serialize(self._model)

    def get_model(self) -> FlowchartModel:
        return self._model

    # ─── Positions ───────────────────────────────────────────────────────

    def update_node_position(self, node_id: str, x: float, y: float) -> None:
        """Record a position. Does not touch the text or the undo history."""
        with self._lock:
            self._positions[node_id] = Position(x, y)
            if self._model.has_node(node_id):
                self._model.update_node(node_id, position=Position(x, y))

    def get_node_position(self, node_id: str) -> Position | None:
        pos = self._positions.get(node_id)
        return Position(pos.x, pos.y) if pos else None

    def get_all_node_positions(self) -> dict[str, Position]:
        return {node_id: Position(p.x, p.y) for node_id, p in self._positions.items()}

    def export_positions(self) -> dict[str, dict[str, float]]:
        return {node_id: p.to_data() for node_id, p in self._positions.items()}

    def import_positions(self, positions: dict[str, Any]) -> None:
        """Replace the position table and apply it to the live model."""
        with self._lock:
            self._positions = {node_id: Position.from_data(p) for node_id, p in positions.items()}
            for node_id, pos in self._positions.items():
                if self._model.has_node(node_id):
                    self._model.update_node(node_id, position=Position(pos.x, pos.y))

    # ─── Structural edits ────────────────────────────────────────────────

    def add_node(
        self,
        node_id: str,
        text: str | None = None,
        shape: NodeShape | str = NodeShape.Rect,
        position: Position | None = None,
        **fields: Any,
    ) -> Node:
        def action() -> Node:
            node = self._model.add_node(
                {"id": node_id, "text": text if text is not None else node_id, "shape": shape, **fields}
            )
            if position is not None:
                self._positions[node_id] = Position(position.x, position.y)
                node = self._model.update_node(node_id, position=Position(position.x, position.y)) or node
            return node

        return self._mutate(action)

    def remove_node(self, node_id: str) -> bool:
        def action() -> bool:
            removed = self._model.remove_node(node_id)
            if removed:
                self._positions.pop(node_id, None)
            return removed

        return self._mutate(action)

    def update_node(self, node_id: str, **changes: Any) -> Node | None:
        return self._mutate(lambda: self._model.update_node(node_id, **changes))

    def add_edge(self, source: str, target: str, **fields: Any) -> Edge:
        return self._mutate(lambda: self._model.add_edge({"source": source, "target": target, **fields}))

    def remove_edge(self, edge_id: str) -> bool:
        return self._mutate(lambda: self._model.remove_edge(edge_id))

    def update_edge(self, edge_id: str, **changes: Any) -> Edge | None:
        return self._mutate(lambda: self._model.update_edge(edge_id, **changes))

    def insert_node_on_edge(
        self,
        source_id: str,
        target_id: str,
        shape: NodeShape | str = NodeShape.Rect,
        node_id: str | None = None,
        text: str | None = None,
    ) -> Node | None:
        """Split the edge ``source_id -> target_id`` with a new node.

        Both replacement edges inherit the original's stroke, arrows, length,
        style and classes; the label stays on the first one. Recorded as a
        single undo step. Returns None when no such edge exists.
        """
        with self._lock:
            edge_ids = GraphIR.from_model(self._model).edges_between(source_id, target_id)
            if not edge_ids:
                return None
            original = self._model.get_edge(edge_ids[0])
            if original is None:
                return None
            new_id = node_id or self._next_node_id()

            def action() -> Node:
                with self._model.batch():
                    node = self._model.add_node({"id": new_id, "text": text or new_id, "shape": shape})
                    inherited = {
                        "stroke": original.stroke,
                        "arrow_start": original.arrow_start,
                        "arrow_end": original.arrow_end,
                        "length": original.length,
                        "style": copy.copy(original.style),
                        "css_classes": list(original.css_classes),
                    }
                    self._model.add_edge({"source": source_id, "target": new_id, "text": original.text, **inherited})
                    self._model.add_edge({"source": new_id, "target": target_id, **inherited})
                    self._model.remove_edge(original.id)
                    start = self._positions.get(source_id)
                    end = self._positions.get(target_id)
                    if start and end:
                        mid = Position((start.x + end.x) / 2, (start.y + end.y) / 2)
                        self._positions[new_id] = mid
                        node = self._model.update_node(new_id, position=Position(mid.x, mid.y)) or node
                return node

            return self._mutate(action)

    def _next_node_id(self) -> str:
        n = self._model.node_count + 1
        while self._model.has_node(f"N{n}"):
            n += 1
        return f"N{n}"

    def _mutate(self, action: Callable[[], T]) -> T:
        """Run a structural edit; on success record undo and schedule output.

        Edits that report no change (None/False) leave history alone.
        """
        with self._lock:
            snapshot = self._snapshot()
            result = action()
            if result is None or result is False:
                return result
            self._history.record(snapshot)
            self._debouncer.schedule()
            return result

    # ─── Undo / redo ─────────────────────────────────────────────────────

    def undo(self) -> bool:
        with self._lock:
            snapshot = self._history.pop_undo(self._snapshot())
            if snapshot is None:
                return False
            self._restore(snapshot)
            logger.debug("undo: %d step(s) left", self._history.undo_depth)
        self._serialize_now()
        return True

    def redo(self) -> bool:
        with self._lock:
            snapshot = self._history.pop_redo(self._snapshot())
            if snapshot is None:
                return False
            self._restore(snapshot)
            logger.debug("redo: %d step(s) left", self._history.redo_depth)
        self._serialize_now()
        return True

    def can_undo(self) -> bool:
        return self._history.can_undo

    def can_redo(self) -> bool:
        return self._history.can_redo

    def _snapshot(self) -> dict[str, Any]:
        return {
            "model": self._model.to_data(),
            "positions": {node_id: p.to_data() for node_id, p in self._positions.items()},
        }

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._model = FlowchartModel.from_data(snapshot["model"])
        self._positions = {node_id: Position.from_data(p) for node_id, p in snapshot["positions"].items()}

    # ─── Output ──────────────────────────────────────────────────────────

    def flush(self) -> bool:
        """Emit pending text now instead of waiting for the debounce delay."""
        flushed = self._debouncer.flush()
        if flushed:
            logger.debug("flushed pending serialization")
        return flushed

    def _serialize_now(self) -> None:
        self._debouncer.cancel()
        self._emit_code()

    def _emit_code(self) -> None:
        callback = self._on_code_change
        if callback is None:
            return
        callback(self.get_code())

    # ─── Lifecycle ───────────────────────────────────────────────────────

    def clear(self) -> None:
        """Reset to an empty model with no positions and no history."""
        with self._lock:
            self._debouncer.cancel()
            self._model = FlowchartModel()
            self._positions.clear()
            self._history.clear()

    def destroy(self) -> None:
        """Cancel pending output and drop every callback and model listener."""
        self._debouncer.cancel()
        with self._lock:
            self._model.remove_all_listeners()
            self._history.clear()
            self._positions.clear()
            self._on_code_change = None
