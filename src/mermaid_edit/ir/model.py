"""FlowchartModel: the editable, event-emitting source of truth.

Every change goes through the model's own methods. Each method validates
first and mutates second, so a raised error leaves state and listeners
untouched. Reads hand out clones.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from typing import Any

from mermaid_edit.errors import DuplicateIdError, MermaidEditError, MissingNodeError, SubGraphCycleError
from mermaid_edit.ir.entities import (
    Edge,
    EdgeStyle,
    Node,
    NodeStyle,
    Position,
    Size,
    SubGraph,
    field_names,
)
from mermaid_edit.ir.events import EventEmitter, ModelChangeEvent
from mermaid_edit.syntax.edge_id import dedupe_edge_id, generate_edge_id
from mermaid_edit.syntax.patterns import edge_operator
from mermaid_edit.types import ArrowType, Direction, ModelEventType, Stroke, resolve_shape

_NODE_FIELDS = field_names(Node)
_EDGE_FIELDS = field_names(Edge)
_SUBGRAPH_FIELDS = field_names(SubGraph)


def _coerce_node_field(name: str, value: Any) -> Any:
    if name == "shape":
        return resolve_shape(value)
    if name == "style":
        return NodeStyle.from_data(value)
    if name == "position":
        return Position.from_data(value)
    if name == "size":
        return Size.from_data(value)
    if name == "css_classes":
        return list(value or [])
    return value


def _coerce_edge_field(name: str, value: Any) -> Any:
    if name == "stroke":
        return Stroke(value)
    if name in ("arrow_start", "arrow_end"):
        return ArrowType(value)
    if name == "style":
        return EdgeStyle.from_data(value)
    if name == "css_classes":
        return list(value or [])
    return value


def _coerce_subgraph_field(name: str, value: Any) -> Any:
    if name == "direction":
        return Direction.from_token(value) if value else None
    if name == "css_classes":
        return list(value or [])
    return value


def _check_update(kind: str, entity_id: str, changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise TypeError(f"{kind} has no field(s): {', '.join(unknown)}")
    if "id" in changes and changes["id"] != entity_id:
        raise ValueError(f'cannot change the id of {kind.lower()} "{entity_id}"')


class FlowchartModel(EventEmitter):
    """Nodes, edges, subgraphs and class definitions of one flowchart.

    Listeners registered with ``subscribe`` receive a ModelChangeEvent per
    change. Between ``begin_batch`` and the matching ``end_batch`` events
    are buffered and delivered as one ``batch`` event.
    """

    def __init__(self, direction: Direction = Direction.TB) -> None:
        super().__init__()
        self._direction = direction
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._subgraphs: dict[str, SubGraph] = {}
        self._class_defs: dict[str, list[str]] = {}
        self._batch_depth = 0
        self._batch_events: list[ModelChangeEvent] = []

    # ─── Direction ───────────────────────────────────────────────────────

    @property
    def direction(self) -> Direction:
        return self._direction

    @direction.setter
    def direction(self, value: Direction | str) -> None:
        new = value if isinstance(value, Direction) else Direction.from_token(value)
        if new is None:
            raise ValueError(f"unknown direction '{value}'; use TB, TD, BT, LR or RL")
        if new == self._direction:
            return
        previous = self._direction
        self._direction = new
        self._emit_change(ModelChangeEvent(ModelEventType.DirectionChange, new, previous, new))

    # ─── Read access ─────────────────────────────────────────────────────

    @property
    def nodes(self) -> list[Node]:
        return [n.clone() for n in self._nodes.values()]

    @property
    def edges(self) -> list[Edge]:
        return [e.clone() for e in self._edges.values()]

    @property
    def subgraphs(self) -> list[SubGraph]:
        return [s.clone() for s in self._subgraphs.values()]

    @property
    def class_defs(self) -> dict[str, list[str]]:
        return {name: list(styles) for name, styles in self._class_defs.items()}

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def get_node(self, node_id: str) -> Node | None:
        node = self._nodes.get(node_id)
        return node.clone() if node else None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_edge(self, edge_id: str) -> Edge | None:
        edge = self._edges.get(edge_id)
        return edge.clone() if edge else None

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def edges_for_node(self, node_id: str) -> list[Edge]:
        return [e.clone() for e in self._edges.values() if node_id in (e.source, e.target)]

    def get_subgraph(self, subgraph_id: str) -> SubGraph | None:
        sg = self._subgraphs.get(subgraph_id)
        return sg.clone() if sg else None

    def has_subgraph(self, subgraph_id: str) -> bool:
        return subgraph_id in self._subgraphs

    def get_class_def(self, name: str) -> list[str] | None:
        styles = self._class_defs.get(name)
        return list(styles) if styles is not None else None

    # ─── Nodes ───────────────────────────────────────────────────────────

    def add_node(self, data: Node | dict[str, Any]) -> Node:
        """Insert a node; raises DuplicateIdError if the id is taken."""
        node = data.clone() if isinstance(data, Node) else Node.from_data(data)
        if node.id in self._nodes:
            raise DuplicateIdError("Node", node.id)
        if node.parent_id is not None and node.parent_id not in self._subgraphs:
            raise MermaidEditError(f'subgraph "{node.parent_id}" does not exist')

        # Joining a subgraph also updates it, so that case is one batch.
        with self.batch() if node.parent_id is not None else nullcontext():
            self._nodes[node.id] = node
            self._emit_change(ModelChangeEvent(ModelEventType.NodeAdd, node.clone(), None, node.clone()))
            if node.parent_id is not None:
                self._attach(node.id, node.parent_id)
        return node.clone()

    def update_node(self, node_id: str, **changes: Any) -> Node | None:
        """Merge ``changes`` into a node; returns None when the id is unknown."""
        node = self._nodes.get(node_id)
        if node is None:
            return None
        _check_update("Node", node_id, changes, _NODE_FIELDS)
        coerced = {name: _coerce_node_field(name, value) for name, value in changes.items()}
        new_parent = changes.get("parent_id", node.parent_id)
        if new_parent is not None and new_parent not in self._subgraphs:
            raise MermaidEditError(f'subgraph "{new_parent}" does not exist')

        moving = new_parent != node.parent_id
        with self.batch() if moving else nullcontext():
            if moving:
                self._detach(node_id)
                if new_parent is not None:
                    self._attach(node_id, new_parent)
            previous = self._nodes[node_id].clone()
            for name, value in coerced.items():
                setattr(node, name, value)
            self._emit_change(ModelChangeEvent(ModelEventType.NodeUpdate, node.clone(), previous, node.clone()))
        return node.clone()

    def remove_node(self, node_id: str) -> bool:
        """Remove a node with every edge touching it, as one batch event."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        with self.batch():
            for edge in [e for e in self._edges.values() if node_id in (e.source, e.target)]:
                self._remove_edge(edge.id)
            self._detach(node_id)
            del self._nodes[node_id]
            self._emit_change(ModelChangeEvent(ModelEventType.NodeRemove, node.clone(), node.clone()))
        return True

    # ─── Edges ───────────────────────────────────────────────────────────

    def add_edge(self, data: Edge | dict[str, Any]) -> Edge:
        """Insert an edge between two existing nodes.

        Without an id the content-derived ``edge-<hex>`` id is generated and
        made unique with ``-dup<N>``. An explicit id that is already taken
        raises DuplicateIdError.
        """
        if isinstance(data, Edge):
            edge = data.clone()
        else:
            edge = Edge.from_data({"id": "", **data})
        if edge.source not in self._nodes:
            raise MissingNodeError("Source", edge.source)
        if edge.target not in self._nodes:
            raise MissingNodeError("Target", edge.target)
        if edge.id:
            if edge.id in self._edges:
                raise DuplicateIdError("Edge", edge.id)
        else:
            base = generate_edge_id(
                edge.source,
                edge.target,
                edge_operator(edge.stroke, edge.arrow_start, edge.arrow_end, edge.length),
                edge.text,
                edge.stroke,
                edge.arrow_start,
                edge.arrow_end,
            )
            edge.id = dedupe_edge_id(base, self._edges)

        self._edges[edge.id] = edge
        self._emit_change(ModelChangeEvent(ModelEventType.EdgeAdd, edge.clone(), None, edge.clone()))
        return edge.clone()

    def update_edge(self, edge_id: str, **changes: Any) -> Edge | None:
        edge = self._edges.get(edge_id)
        if edge is None:
            return None
        _check_update("Edge", edge_id, changes, _EDGE_FIELDS)
        if changes.get("source", edge.source) not in self._nodes:
            raise MissingNodeError("Source", changes["source"])
        if changes.get("target", edge.target) not in self._nodes:
            raise MissingNodeError("Target", changes["target"])

        coerced = {name: _coerce_edge_field(name, value) for name, value in changes.items()}
        previous = edge.clone()
        for name, value in coerced.items():
            setattr(edge, name, value)
        self._emit_change(ModelChangeEvent(ModelEventType.EdgeUpdate, edge.clone(), previous, edge.clone()))
        return edge.clone()

    def remove_edge(self, edge_id: str) -> bool:
        if edge_id not in self._edges:
            return False
        self._remove_edge(edge_id)
        return True

    def _remove_edge(self, edge_id: str) -> None:
        edge = self._edges.pop(edge_id)
        self._emit_change(ModelChangeEvent(ModelEventType.EdgeRemove, edge.clone(), edge.clone()))

    # ─── Subgraphs ───────────────────────────────────────────────────────

    def add_subgraph(self, data: SubGraph | dict[str, Any]) -> SubGraph:
        """Insert a subgraph; listed member nodes are moved into it."""
        sg = data.clone() if isinstance(data, SubGraph) else SubGraph.from_data(data)
        if sg.id in self._subgraphs:
            raise DuplicateIdError("SubGraph", sg.id)
        if sg.parent_id is not None:
            if sg.parent_id == sg.id:
                raise SubGraphCycleError(sg.id, sg.parent_id)
            if sg.parent_id not in self._subgraphs:
                raise MermaidEditError(f'subgraph "{sg.parent_id}" does not exist')
        for node_id in sg.node_ids:
            if node_id not in self._nodes:
                raise MissingNodeError("Member", node_id)

        members = list(dict.fromkeys(sg.node_ids))
        sg.node_ids = []
        with self.batch():
            self._subgraphs[sg.id] = sg
            self._emit_change(ModelChangeEvent(ModelEventType.SubGraphAdd, sg.clone(), None, sg.clone()))
            for node_id in members:
                self._move_node(node_id, sg.id)
        return self._subgraphs[sg.id].clone()

    def update_subgraph(self, subgraph_id: str, **changes: Any) -> SubGraph | None:
        sg = self._subgraphs.get(subgraph_id)
        if sg is None:
            return None
        _check_update("SubGraph", subgraph_id, changes, _SUBGRAPH_FIELDS)
        parent_id = changes.get("parent_id", sg.parent_id)
        if parent_id is not None:
            if parent_id not in self._subgraphs:
                raise MermaidEditError(f'subgraph "{parent_id}" does not exist')
            if self._would_cycle(subgraph_id, parent_id):
                raise SubGraphCycleError(subgraph_id, parent_id)
        members = changes.pop("node_ids", None)
        if members is not None:
            for node_id in members:
                if node_id not in self._nodes:
                    raise MissingNodeError("Member", node_id)

        coerced = {name: _coerce_subgraph_field(name, value) for name, value in changes.items()}
        with self.batch():
            if members is not None:
                for node_id in [n for n in sg.node_ids if n not in members]:
                    self._move_node(node_id, None)
                for node_id in dict.fromkeys(members):
                    self._move_node(node_id, subgraph_id)
            previous = sg.clone()
            for name, value in coerced.items():
                setattr(sg, name, value)
            if coerced:
                self._emit_change(ModelChangeEvent(ModelEventType.SubGraphUpdate, sg.clone(), previous, sg.clone()))
        return sg.clone()

    def remove_subgraph(self, subgraph_id: str) -> bool:
        """Remove a subgraph; its members and child subgraphs move up one level."""
        sg = self._subgraphs.get(subgraph_id)
        if sg is None:
            return False
        with self.batch():
            for node_id in list(sg.node_ids):
                self._move_node(node_id, sg.parent_id)
            for child in self._subgraphs.values():
                if child.parent_id == subgraph_id:
                    previous = child.clone()
                    child.parent_id = sg.parent_id
                    self._emit_change(
                        ModelChangeEvent(ModelEventType.SubGraphUpdate, child.clone(), previous, child.clone())
                    )
            del self._subgraphs[subgraph_id]
            self._emit_change(ModelChangeEvent(ModelEventType.SubGraphRemove, sg.clone(), sg.clone()))
        return True

    def _would_cycle(self, subgraph_id: str, parent_id: str) -> bool:
        seen: set[str] = set()
        current: str | None = parent_id
        while current is not None and current not in seen:
            if current == subgraph_id:
                return True
            seen.add(current)
            parent = self._subgraphs.get(current)
            current = parent.parent_id if parent else None
        return False

    def _attach(self, node_id: str, subgraph_id: str) -> None:
        sg = self._subgraphs[subgraph_id]
        previous = sg.clone()
        if sg.add_node(node_id):
            self._emit_change(ModelChangeEvent(ModelEventType.SubGraphUpdate, sg.clone(), previous, sg.clone()))

    def _detach(self, node_id: str) -> None:
        for sg in self._subgraphs.values():
            if sg.has_node(node_id):
                previous = sg.clone()
                sg.remove_node(node_id)
                self._emit_change(ModelChangeEvent(ModelEventType.SubGraphUpdate, sg.clone(), previous, sg.clone()))

    def _move_node(self, node_id: str, subgraph_id: str | None) -> None:
        node = self._nodes[node_id]
        self._detach(node_id)
        if subgraph_id is not None:
            self._attach(node_id, subgraph_id)
        if node.parent_id != subgraph_id:
            previous = node.clone()
            node.parent_id = subgraph_id
            self._emit_change(ModelChangeEvent(ModelEventType.NodeUpdate, node.clone(), previous, node.clone()))

    # ─── Class definitions ───────────────────────────────────────────────

    def define_class(self, name: str, styles: list[str]) -> None:
        self._class_defs[name] = list(styles)

    def remove_class(self, name: str) -> bool:
        return self._class_defs.pop(name, None) is not None

    # ─── Batching ────────────────────────────────────────────────────────

    def begin_batch(self) -> None:
        self._batch_depth += 1

    def end_batch(self) -> None:
        if self._batch_depth == 0:
            return
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._batch_events:
            events, self._batch_events = self._batch_events, []
            self._emit(ModelChangeEvent(ModelEventType.Batch, None, None, events))

    @contextmanager
    def batch(self) -> Iterator[FlowchartModel]:
        """Context-manager form of begin_batch()/end_batch()."""
        self.begin_batch()
        try:
            yield self
        finally:
            self.end_batch()

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    def _emit_change(self, event: ModelChangeEvent) -> None:
        if self._batch_depth > 0:
            self._batch_events.append(event)
        else:
            self._emit(event)

    # ─── Snapshots ───────────────────────────────────────────────────────

    def to_data(self) -> dict[str, Any]:
        return {
            "direction": self._direction.value,
            "nodes": [n.to_data() for n in self._nodes.values()],
            "edges": [e.to_data() for e in self._edges.values()],
            "subgraphs": [s.to_data() for s in self._subgraphs.values()],
            "class_defs": self.class_defs,
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> FlowchartModel:
        """Rebuild a model from ``to_data()`` output without emitting events."""
        model = cls(Direction.from_token(data.get("direction")) or Direction.TB)
        for node_data in data.get("nodes") or []:
            node = Node.from_data(node_data)
            model._nodes[node.id] = node
        for edge_data in data.get("edges") or []:
            edge = Edge.from_data(edge_data)
            model._edges[edge.id] = edge
        for sg_data in data.get("subgraphs") or []:
            sg = SubGraph.from_data(sg_data)
            model._subgraphs[sg.id] = sg
        for name, styles in (data.get("class_defs") or {}).items():
            model._class_defs[name] = list(styles)
        return model

    def clone(self) -> FlowchartModel:
        return FlowchartModel.from_data(self.to_data())

    def clear(self) -> None:
        """Remove everything and reset the direction, as one batch event."""
        with self.batch():
            for edge_id in list(self._edges):
                self._remove_edge(edge_id)
            for sg in list(self._subgraphs.values()):
                del self._subgraphs[sg.id]
                self._emit_change(ModelChangeEvent(ModelEventType.SubGraphRemove, sg.clone(), sg.clone()))
            for node in list(self._nodes.values()):
                del self._nodes[node.id]
                self._emit_change(ModelChangeEvent(ModelEventType.NodeRemove, node.clone(), node.clone()))
            self._class_defs.clear()
            self.direction = Direction.TB
