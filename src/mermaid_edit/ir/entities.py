"""Entity data structures held by the flowchart model.

Node, Edge and SubGraph are plain dataclasses. The model stores its own
copies and hands out clones, so an entity is only ever changed through
FlowchartModel's API. ``to_data``/``from_data`` give the plain-dict form
used for snapshots, undo/redo and JSON output.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any

from mermaid_edit.types import ArrowType, Direction, NodeShape, Stroke, resolve_shape, shape_name

LINK_TARGETS = ("_self", "_blank", "_parent", "_top")


@dataclass
class Position:
    x: float
    y: float

    def to_data(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_data(cls, data: Any) -> Position | None:
        if data is None:
            return None
        if isinstance(data, Position):
            return Position(data.x, data.y)
        return cls(x=data["x"], y=data["y"])


@dataclass
class Size:
    width: float
    height: float

    def to_data(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_data(cls, data: Any) -> Size | None:
        if data is None:
            return None
        if isinstance(data, Size):
            return Size(data.width, data.height)
        return cls(width=data["width"], height=data["height"])


@dataclass
class NodeStyle:
    fill: str | None = None
    stroke: str | None = None
    stroke_width: int | None = None
    color: str | None = None

    def is_empty(self) -> bool:
        return self.fill is None and self.stroke is None and self.stroke_width is None and self.color is None

    def to_data(self) -> dict[str, Any]:
        return {k: v for k, v in vars(self).items() if v is not None}

    @classmethod
    def from_data(cls, data: Any) -> NodeStyle | None:
        if data is None:
            return None
        if isinstance(data, NodeStyle):
            return copy.copy(data)
        return cls(**data)


@dataclass
class EdgeStyle:
    stroke: str | None = None
    stroke_width: int | None = None

    def is_empty(self) -> bool:
        return self.stroke is None and self.stroke_width is None

    def to_data(self) -> dict[str, Any]:
        return {k: v for k, v in vars(self).items() if v is not None}

    @classmethod
    def from_data(cls, data: Any) -> EdgeStyle | None:
        if data is None:
            return None
        if isinstance(data, EdgeStyle):
            return copy.copy(data)
        return cls(**data)


@dataclass
class Node:
    id: str
    text: str
    shape: NodeShape | str = field(default_factory=NodeShape.default)
    style: NodeStyle | None = None
    css_classes: list[str] = field(default_factory=list)
    link: str | None = None
    link_target: str | None = None
    tooltip: str | None = None
    parent_id: str | None = None
    # Set by collaborators (layout, drag); never read from or written to DSL text.
    position: Position | None = None
    size: Size | None = None
    # @{ ... } properties of the extended shapes
    icon: str | None = None
    img: str | None = None
    form: str | None = None
    label_pos: str | None = None
    width: int | None = None
    height: int | None = None

    @classmethod
    def bare(cls, id: str) -> Node:
        """Create a bare node (text = id, default rect shape)."""
        return cls(id=id, text=id, shape=NodeShape.Rect)

    def clone(self) -> Node:
        return copy.deepcopy(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "shape": shape_name(self.shape),
            "style": self.style.to_data() if self.style else None,
            "css_classes": list(self.css_classes),
            "link": self.link,
            "link_target": self.link_target,
            "tooltip": self.tooltip,
            "parent_id": self.parent_id,
            "position": self.position.to_data() if self.position else None,
            "size": self.size.to_data() if self.size else None,
            "icon": self.icon,
            "img": self.img,
            "form": self.form,
            "label_pos": self.label_pos,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> Node:
        return cls(
            id=data["id"],
            text=data.get("text", data["id"]),
            shape=resolve_shape(data.get("shape") or NodeShape.Rect),
            style=NodeStyle.from_data(data.get("style")),
            css_classes=list(data.get("css_classes") or []),
            link=data.get("link"),
            link_target=data.get("link_target"),
            tooltip=data.get("tooltip"),
            parent_id=data.get("parent_id"),
            position=Position.from_data(data.get("position")),
            size=Size.from_data(data.get("size")),
            icon=data.get("icon"),
            img=data.get("img"),
            form=data.get("form"),
            label_pos=data.get("label_pos"),
            width=data.get("width"),
            height=data.get("height"),
        )


@dataclass
class Edge:
    id: str
    source: str
    target: str
    text: str | None = None
    stroke: Stroke = Stroke.Normal
    arrow_start: ArrowType = ArrowType.NONE
    arrow_end: ArrowType = ArrowType.Arrow
    length: int = 1
    style: EdgeStyle | None = None
    css_classes: list[str] = field(default_factory=list)
    animate: bool = False
    animation: str | None = None  # "fast" | "slow"
    user_defined_id: bool = False

    @property
    def is_bidirectional(self) -> bool:
        return self.arrow_start != ArrowType.NONE and self.arrow_end != ArrowType.NONE

    def clone(self) -> Edge:
        return copy.deepcopy(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "text": self.text,
            "stroke": self.stroke.value,
            "arrow_start": self.arrow_start.value,
            "arrow_end": self.arrow_end.value,
            "length": self.length,
            "style": self.style.to_data() if self.style else None,
            "css_classes": list(self.css_classes),
            "animate": self.animate,
            "animation": self.animation,
            "user_defined_id": self.user_defined_id,
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> Edge:
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            text=data.get("text"),
            stroke=Stroke(data.get("stroke", Stroke.Normal)),
            arrow_start=ArrowType(data.get("arrow_start", ArrowType.NONE)),
            arrow_end=ArrowType(data.get("arrow_end", ArrowType.Arrow)),
            length=data.get("length", 1),
            style=EdgeStyle.from_data(data.get("style")),
            css_classes=list(data.get("css_classes") or []),
            animate=bool(data.get("animate", False)),
            animation=data.get("animation"),
            user_defined_id=bool(data.get("user_defined_id", False)),
        )


@dataclass
class SubGraph:
    id: str
    title: str
    node_ids: list[str] = field(default_factory=list)
    parent_id: str | None = None
    direction: Direction | None = None
    css_classes: list[str] = field(default_factory=list)

    def add_node(self, node_id: str) -> bool:
        if node_id in self.node_ids:
            return False
        self.node_ids.append(node_id)
        return True

    def remove_node(self, node_id: str) -> bool:
        if node_id not in self.node_ids:
            return False
        self.node_ids.remove(node_id)
        return True

    def has_node(self, node_id: str) -> bool:
        return node_id in self.node_ids

    def clone(self) -> SubGraph:
        return copy.deepcopy(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "node_ids": list(self.node_ids),
            "parent_id": self.parent_id,
            "direction": self.direction.value if self.direction else None,
            "css_classes": list(self.css_classes),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> SubGraph:
        direction = data.get("direction")
        return cls(
            id=data["id"],
            title=data.get("title") or data["id"],
            node_ids=list(data.get("node_ids") or []),
            parent_id=data.get("parent_id"),
            direction=Direction(direction) if direction else None,
            css_classes=list(data.get("css_classes") or []),
        )


def field_names(cls: type) -> frozenset[str]:
    """Names accepted as keyword updates for an entity dataclass."""
    return frozenset(f.name for f in fields(cls))
