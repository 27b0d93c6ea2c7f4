"""Shared type definitions for mermaid-edit.

Enums and small lookup tables used across parsers, the graph model, the
serializer and the sync engine. Enum values are the DSL spellings so a
member can be written straight back into flowchart text.
"""

from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @classmethod
    def default(cls) -> Direction:
        return cls.TB

    @classmethod
    def from_token(cls, token: str | None) -> Direction | None:
        """Map a direction keyword to a Direction; TD is an alias of TB."""
        if not token:
            return None
        key = token.upper()
        if key == "TD":
            return cls.TB
        try:
            return cls(key)
        except ValueError:
            return None


class NodeShape(str, Enum):
    # Bracket shapes
    Rect = "rect"  # id[text]
    Rounded = "rounded"  # id(text)
    Stadium = "stadium"  # id([text])
    Subroutine = "subroutine"  # id[[text]]
    Cylinder = "cylinder"  # id[(text)]
    Circle = "circle"  # id((text))
    DoubleCircle = "doublecircle"  # id(((text)))
    Diamond = "diamond"  # id{text}
    Hexagon = "hexagon"  # id{{text}}
    Trapezoid = "trapezoid"  # id[/text/]
    InvTrapezoid = "inv_trapezoid"  # id[\text\]
    LeanRight = "lean_right"  # id[/text\]
    LeanLeft = "lean_left"  # id[\text/]
    Odd = "odd"  # id>text]

    # @{ shape: ... } only
    Doc = "doc"
    NotchRect = "notch-rect"
    BowRect = "bow-rect"
    Braces = "braces"
    BraceL = "brace-l"
    BraceR = "brace-r"
    Triangle = "triangle"
    FlipTriangle = "flip-triangle"
    Cross = "cross"
    Hourglass = "hourglass"
    Bolt = "bolt"
    ComLink = "com-link"
    WindowPane = "window-pane"
    DividedRect = "divided-rect"
    LinRect = "lin-rect"
    Fork = "fork"
    Delay = "delay"
    HCyl = "h-cyl"
    CurvedTrap = "curved-trap"
    SlRect = "sl-rect"
    SmCirc = "sm-circ"
    FrCirc = "fr-circ"
    LinCyl = "lin-cyl"
    TiltedCyl = "tilted-cyl"
    WaveRect = "wave-rect"
    TagRect = "tag-rect"
    WaveEdged = "wave-edged"
    TagDoc = "tag-doc"
    HalfRounded = "half-rounded"
    MultiRect = "multi-rect"
    MultiWave = "multi-wave"
    Text = "text"
    Icon = "icon"
    Image = "image"

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rect


class Stroke(str, Enum):
    Normal = "normal"
    Thick = "thick"
    Dotted = "dotted"
    Invisible = "invisible"


class ArrowType(str, Enum):
    Arrow = "arrow"
    Circle = "circle"
    Cross = "cross"
    NONE = "none"


class ModelEventType(str, Enum):
    NodeAdd = "node:add"
    NodeRemove = "node:remove"
    NodeUpdate = "node:update"
    EdgeAdd = "edge:add"
    EdgeRemove = "edge:remove"
    EdgeUpdate = "edge:update"
    SubGraphAdd = "subgraph:add"
    SubGraphRemove = "subgraph:remove"
    SubGraphUpdate = "subgraph:update"
    DirectionChange = "direction:change"
    Batch = "batch"


LEGACY_SHAPES: frozenset[NodeShape] = frozenset(
    {
        NodeShape.Rect,
        NodeShape.Rounded,
        NodeShape.Stadium,
        NodeShape.Subroutine,
        NodeShape.Cylinder,
        NodeShape.Circle,
        NodeShape.DoubleCircle,
        NodeShape.Diamond,
        NodeShape.Hexagon,
        NodeShape.Trapezoid,
        NodeShape.InvTrapezoid,
        NodeShape.LeanRight,
        NodeShape.LeanLeft,
        NodeShape.Odd,
    }
)

EXTENDED_SHAPES: frozenset[NodeShape] = frozenset(s for s in NodeShape if s not in LEGACY_SHAPES)

# Short names accepted by `@{ shape: ... }`, mapped to canonical shapes.
SHAPE_ALIASES: dict[str, NodeShape] = {
    "rect": NodeShape.Rect,
    "square": NodeShape.Rect,
    "process": NodeShape.Rect,
    "proc": NodeShape.Rect,
    "round": NodeShape.Rounded,
    "rounded": NodeShape.Rounded,
    "stadium": NodeShape.Stadium,
    "pill": NodeShape.Stadium,
    "terminal": NodeShape.Stadium,
    "subroutine": NodeShape.Subroutine,
    "subproc": NodeShape.Subroutine,
    "fr-rect": NodeShape.Subroutine,
    "cyl": NodeShape.Cylinder,
    "cylinder": NodeShape.Cylinder,
    "db": NodeShape.Cylinder,
    "database": NodeShape.Cylinder,
    "circ": NodeShape.Circle,
    "circle": NodeShape.Circle,
    "dbl-circ": NodeShape.DoubleCircle,
    "doublecircle": NodeShape.DoubleCircle,
    "diam": NodeShape.Diamond,
    "diamond": NodeShape.Diamond,
    "decision": NodeShape.Diamond,
    "hex": NodeShape.Hexagon,
    "hexagon": NodeShape.Hexagon,
    "prepare": NodeShape.Hexagon,
    "trap-b": NodeShape.Trapezoid,
    "trapezoid": NodeShape.Trapezoid,
    "trap-t": NodeShape.InvTrapezoid,
    "inv-trapezoid": NodeShape.InvTrapezoid,
    "inv_trapezoid": NodeShape.InvTrapezoid,
    "lean-r": NodeShape.LeanRight,
    "lean_right": NodeShape.LeanRight,
    "in-out": NodeShape.LeanRight,
    "lean-l": NodeShape.LeanLeft,
    "lean_left": NodeShape.LeanLeft,
    "out-in": NodeShape.LeanLeft,
    "odd": NodeShape.Odd,
    "flag": NodeShape.Odd,
    "doc": NodeShape.Doc,
    "document": NodeShape.Doc,
    "notch-rect": NodeShape.NotchRect,
    "card": NodeShape.NotchRect,
    "tri": NodeShape.Triangle,
    "triangle": NodeShape.Triangle,
    "bolt": NodeShape.Bolt,
    "lightning-bolt": NodeShape.Bolt,
    "brace": NodeShape.Braces,
    "braces": NodeShape.Braces,
    "comment": NodeShape.Braces,
    "fork": NodeShape.Fork,
    "join": NodeShape.Fork,
    "crossed-circle": NodeShape.Cross,
    "lined-process": NodeShape.LinRect,
    "div-rect": NodeShape.DividedRect,
    "divided-process": NodeShape.DividedRect,
    "img": NodeShape.Image,
}


def resolve_shape(name: str | NodeShape) -> NodeShape | str:
    """Resolve a shape name or alias to a NodeShape.

    Unknown names are returned lower-cased as plain strings so that shapes
    added to the DSL later still survive a parse/serialize round trip.
    """
    if isinstance(name, NodeShape):
        return name
    key = name.strip().lower()
    if key in SHAPE_ALIASES:
        return SHAPE_ALIASES[key]
    try:
        return NodeShape(key)
    except ValueError:
        return key


def shape_name(shape: NodeShape | str) -> str:
    """DSL spelling of a shape (enum value or the raw string)."""
    return shape.value if isinstance(shape, NodeShape) else shape
